"""
Migration report for accumulating per-page outcomes and formatting reports.

This module counts pages as they finish, then formats the run summary for
console display and JSON export.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from models import PageOutcome

logger = logging.getLogger('jspwiki_migrator.orchestrator.report')


class MigrationReport:
    """
    Accumulates total/success/failed counters across one migration run.

    Every recorded outcome increments ``total`` and exactly one of
    ``success`` or ``failed``.
    """

    def __init__(
        self,
        language: str,
        source_dialect: str = 'jspwiki',
        target_dialect: str = 'markdown',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize migration report.

        Args:
            language: Language code labelling the run
            source_dialect: Dialect migrated from
            target_dialect: Dialect migrated to
            logger: Optional logger instance
        """
        self.language = language
        self.source_dialect = source_dialect
        self.target_dialect = target_dialect
        self.logger = logger or logging.getLogger('jspwiki_migrator.orchestrator.report')

        self.total = 0
        self.success = 0
        self.failed = 0
        self.attachments_copied = 0
        self.failures: List[PageOutcome] = []

        self.started_at = datetime.now()
        self._start_time = time.time()
        self._end_time: Optional[float] = None
        self._printed = False

    def record(self, outcome: PageOutcome) -> None:
        """Count the outcome of one page."""
        self.total += 1
        if outcome.success:
            self.success += 1
            self.attachments_copied += outcome.attachments_copied
        else:
            self.failed += 1
            self.failures.append(outcome)

    def summary(self) -> Tuple[int, int, int]:
        """Return ``(total, success, failed)``."""
        return self.total, self.success, self.failed

    def finish(self) -> None:
        """Stop the run clock."""
        if self._end_time is None:
            self._end_time = time.time()

    @property
    def duration(self) -> float:
        end = self._end_time if self._end_time is not None else time.time()
        return end - self._start_time

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to dictionary."""
        return {
            'summary': {
                'language': self.language,
                'source_dialect': self.source_dialect,
                'target_dialect': self.target_dialect,
                'total': self.total,
                'success': self.success,
                'failed': self.failed,
                'attachments_copied': self.attachments_copied,
                'duration_seconds': round(self.duration, 3),
                'duration_formatted': self._format_duration(self.duration)
            },
            'failures': [outcome.to_dict() for outcome in self.failures],
            'timestamp': self.started_at.isoformat()
        }

    def format_console_report(self) -> str:
        """
        Format report for console display.

        Returns:
            Formatted console string
        """
        sections = []

        # Header
        sections.append("=" * 60)
        sections.append("MIGRATION REPORT")
        sections.append("=" * 60)
        sections.append("")

        sections.append(f"Language:                {self.language}")
        sections.append(f"Dialects:                {self.source_dialect} -> {self.target_dialect}")
        sections.append(f"Total pages:             {self.total}")
        sections.append(f"Successfully translated: {self.success}")
        sections.append(f"Failed:                  {self.failed}")
        sections.append(f"Attachments copied:      {self.attachments_copied}")
        sections.append(f"Duration:                {self._format_duration(self.duration)}")

        if self.failures:
            sections.append("")
            sections.append("Failed pages:")
            for outcome in self.failures:
                kind = outcome.error_kind.value if outcome.error_kind else 'unknown'
                sections.append(f"  - {outcome.page_name} [{kind}]: {outcome.message}")

        sections.append("")
        sections.append("=" * 60)

        return "\n".join(sections)

    def print_summary(self) -> None:
        """Print the console report. Only the first call prints."""
        if self._printed:
            self.logger.debug("Summary already printed")
            return
        self._printed = True
        print(self.format_console_report())

    def export_json_report(self, filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"


__all__ = ['MigrationReport']
