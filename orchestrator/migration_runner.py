"""
Migration runner for coordinating the complete migration pipeline.

This module provides the central coordinator that sequences the run:
Initialize → Enumerate → Process each page → Report. Only initialization
can abort a run; every per-page failure is counted and the run goes on.
"""

import logging
import shutil
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from tqdm import tqdm

from converters import ConverterFactory, Renderer, Translator
from errors import MigrationError, as_migration_error
from logger import attach_engine_log, detach_engine_log, engine_logger, log_engine_config, log_section
from models import EngineConfig, PageOutcome, WikiPage
from orchestrator.attachment_migrator import AttachmentMigrator
from orchestrator.migration_report import MigrationReport
from orchestrator.page_enumerator import PageEnumerator
from orchestrator.page_translator import PageTranslator, PostProcessor
from providers import ProviderRegistry

logger = logging.getLogger('jspwiki_migrator.orchestrator.runner')


class RunnerState(Enum):
    """States of a migration run."""
    INITIALIZING = "initializing"
    ENUMERATING = "enumerating"
    PROCESSING_PAGE = "processing_page"
    REPORTING = "reporting"
    DONE = "done"
    ABORTED = "aborted"


class MigrationRunner:
    """Central coordinator sequencing a migration run for one language edition."""

    def __init__(
        self,
        config: Dict[str, Any],
        providers: Optional[ProviderRegistry] = None,
        renderer_factory: Optional[Callable[[EngineConfig, logging.Logger], Renderer]] = None,
        translator_factory: Optional[Callable[[EngineConfig, logging.Logger], Translator]] = None,
        post_processors: Optional[Sequence[PostProcessor]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize migration runner.

        Args:
            config: Configuration dictionary (see config_loader.DEFAULT_CONFIG)
            providers: Optional store registry (file system stores by default)
            renderer_factory: Optional factory for the source renderer
            translator_factory: Optional factory for the target translator
            post_processors: Optional text hooks applied after translation
            logger: Optional logger instance
        """
        self.config = config
        self.providers = providers or ProviderRegistry()
        self.renderer_factory = renderer_factory or ConverterFactory.create_renderer
        self.translator_factory = translator_factory or ConverterFactory.create_translator
        self.post_processors = list(post_processors or [])
        self.logger = logger or logging.getLogger('jspwiki_migrator.orchestrator.runner')

        migration = config.get('migration', {})
        self.source_directory = migration.get('source_directory')
        self.target_directory = migration.get('target_directory')
        self.language = migration.get('language')
        self.dry_run = bool(migration.get('dry_run', False))
        self.clean_target = bool(migration.get('clean_target', False))
        self.verify_attachments = bool(migration.get('verify_attachments', True))
        self.report_path = migration.get('report_path')
        self.progress_bars = bool(migration.get('progress_bars', True))

        self.state = RunnerState.INITIALIZING
        self.current_index: Optional[int] = None
        self.source_config: Optional[EngineConfig] = None
        self.target_config: Optional[EngineConfig] = None
        self.report: Optional[MigrationReport] = None

        self.enumerator: Optional[PageEnumerator] = None
        self.page_translator: Optional[PageTranslator] = None
        self.attachment_migrator: Optional[AttachmentMigrator] = None

    def run(self) -> MigrationReport:
        """
        Run the migration.

        Returns:
            The filled-in MigrationReport

        Raises:
            MigrationError: ConfigurationError if initialization fails
        """
        log_section("Initializing")
        try:
            self._initialize()
        except MigrationError:
            self._abort()
            raise
        except Exception as e:
            self._abort()
            raise MigrationError.configuration(f"Initialization failed: {e}", cause=e) from e

        try:
            pages = self._enumerate()
            self._process(pages)
            self._report()
        finally:
            self._detach_engine_logs()

        self.state = RunnerState.DONE
        return self.report

    def _abort(self) -> None:
        self.state = RunnerState.ABORTED
        self._detach_engine_logs()

    def _detach_engine_logs(self) -> None:
        for config in (self.source_config, self.target_config):
            if config is not None:
                detach_engine_log(config)

    def _initialize(self) -> None:
        engine = self.config.get('engine', {})
        migration = self.config.get('migration', {})

        if not self.source_directory or not self.target_directory or not self.language:
            raise MigrationError.configuration("Source directory, target directory and language are required")

        work_root = engine.get('work_directory') or './target'
        cache_enabled = bool(engine.get('cache_enabled', False))

        self.source_config = EngineConfig.for_dialect(
            migration.get('source_dialect', 'jspwiki'),
            self.source_directory,
            work_root,
            cache_enabled=cache_enabled,
            parser_override=engine.get('parser_override')
        )
        self.target_config = EngineConfig.for_dialect(
            migration.get('target_dialect', 'markdown'),
            self.target_directory,
            work_root,
            cache_enabled=cache_enabled
        )

        if not self.source_config.page_dir.is_dir():
            raise MigrationError.configuration(f"Source directory does not exist: {self.source_config.page_dir}")

        self._prepare_target(self.source_config.page_dir, self.target_config.page_dir)

        for config in (self.source_config, self.target_config):
            config.work_dir.mkdir(parents=True, exist_ok=True)
            config.log_path.parent.mkdir(parents=True, exist_ok=True)
            attach_engine_log(config)

        log_engine_config(self.source_config, 'source')
        log_engine_config(self.target_config, 'target')

        renderer = self.renderer_factory(self.source_config, engine_logger(self.source_config))
        translator = self.translator_factory(self.target_config, engine_logger(self.target_config))

        self.enumerator = PageEnumerator(self.providers, self.logger)
        self.page_translator = PageTranslator(
            self.providers,
            renderer,
            translator,
            post_processors=self.post_processors,
            dry_run=self.dry_run,
            logger=self.logger
        )
        self.attachment_migrator = AttachmentMigrator(
            self.providers,
            verify_checksums=self.verify_attachments,
            dry_run=self.dry_run,
            show_progress=self._should_show_progress(),
            logger=self.logger
        )
        self.report = MigrationReport(
            self.language,
            self.source_config.dialect.value,
            self.target_config.dialect.value,
            logger=self.logger
        )

        self.logger.info(
            f"Migrating {self.source_config.dialect.value} -> {self.target_config.dialect.value} "
            f"for language '{self.language}'"
        )

    def _prepare_target(self, source_dir: Path, target_dir: Path) -> None:
        """Apply the target directory policy: keep existing content unless cleaning was requested."""
        if self.clean_target and (target_dir == source_dir or target_dir in source_dir.parents):
            raise MigrationError.configuration(
                f"Refusing to clean target directory {target_dir}: it contains the source directory"
            )

        if not target_dir.exists():
            if self.dry_run:
                self.logger.info(f"[dry-run] Would create target directory {target_dir}")
            else:
                target_dir.mkdir(parents=True, exist_ok=True)
                self.logger.info(f"Created target directory {target_dir}")
            return

        if not target_dir.is_dir():
            raise MigrationError.configuration(f"Target path is not a directory: {target_dir}")

        if not self.clean_target:
            self.logger.info(f"Target directory exists, existing content is left in place: {target_dir}")
            return

        if self.dry_run:
            self.logger.info(f"[dry-run] Would delete existing content of {target_dir}")
            return

        for entry in target_dir.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        self.logger.info(f"Deleted existing content of target directory {target_dir}")

    def _enumerate(self) -> List[WikiPage]:
        self.state = RunnerState.ENUMERATING
        log_section("Enumerating pages")
        try:
            return self.enumerator.list(self.source_config)
        except MigrationError as e:
            self.logger.error(f"Cannot enumerate pages: {e}")
            return []

    def _process(self, pages: List[WikiPage]) -> None:
        log_section("Migrating pages")

        if not pages:
            self.logger.warning("No pages to migrate")
            return

        pages_iter = pages
        if self._should_show_progress():
            pages_iter = tqdm(pages, desc="Pages", unit="page")

        for index, page in enumerate(pages_iter):
            self.state = RunnerState.PROCESSING_PAGE
            self.current_index = index
            tqdm.write(f"Processing page: {page.name}")
            self.report.record(self._migrate_page(page))

        self.current_index = None

    def _migrate_page(self, page: WikiPage) -> PageOutcome:
        try:
            self.page_translator.translate(page, self.source_config, self.target_config)
            copied = self.attachment_migrator.migrate(page, self.source_config, self.target_config)
            return PageOutcome.succeeded(page.name, copied)
        except Exception as e:
            error = as_migration_error(e, page.name)
            self.logger.error(
                f"Failed to migrate page '{page.name}' [{error.kind.value}]: {error.message}",
                exc_info=error
            )
            return PageOutcome.failed(page.name, error)

    def _report(self) -> None:
        self.state = RunnerState.REPORTING
        self.report.finish()

        total, success, failed = self.report.summary()
        self.logger.info(f"Migration complete: {total} pages, {success} succeeded, {failed} failed")

        self.report.print_summary()

        if self.report_path:
            self.report.export_json_report(self.report_path)

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        if not self.progress_bars:
            return False
        if not sys.stdout.isatty():
            return False
        return True


__all__ = ['MigrationRunner', 'RunnerState']
