"""
Orchestration package for coordinating migration pipeline phases.

This package provides the core orchestration layer that sequences a run:
Enumerate → Translate each page → Copy its attachments → Report.
"""

from .attachment_migrator import AttachmentMigrator, HashingReader
from .migration_report import MigrationReport
from .migration_runner import MigrationRunner, RunnerState
from .page_enumerator import PageEnumerator
from .page_translator import PageTranslator

__all__ = [
    'AttachmentMigrator',
    'HashingReader',
    'MigrationReport',
    'MigrationRunner',
    'RunnerState',
    'PageEnumerator',
    'PageTranslator'
]
