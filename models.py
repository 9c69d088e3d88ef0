"""Data models for the wiki migration pipeline."""

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from errors import ErrorKind, MigrationError

# Version number meaning "the current version of the page"
LATEST_VERSION = -1

# Context variable telling renderers to skip editor-only UI elements
VAR_WYSIWYG_EDITOR_MODE = 'WYSIWYG_EDITOR_MODE'

PARSER_CLASS_PATTERN = re.compile(r'^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*([.:][A-Za-z_]\w*)$')


class Dialect(Enum):
    """Markup dialects the migrator understands."""
    JSPWIKI = "jspwiki"
    MARKDOWN = "markdown"

    @property
    def file_extension(self) -> str:
        """Extension used by the file system page provider."""
        return '.md' if self is Dialect.MARKDOWN else '.txt'


class RequestContext(Enum):
    """Request contexts a rendering operation can run under."""
    VIEW = "view"
    EDIT = "edit"
    PREVIEW = "preview"
    NONE = "none"


@dataclass(frozen=True)
class WikiPage:
    """Handle to a page in a page store."""

    name: str
    version: int = LATEST_VERSION

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class WikiAttachment:
    """Handle to a binary attachment owned by a page."""

    filename: str
    page_name: str
    version: int = LATEST_VERSION
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize attachment to dictionary."""
        return {
            'filename': self.filename,
            'page_name': self.page_name,
            'version': self.version,
            'size': self.size
        }


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable configuration of one wiki engine (one dialect) for a run.

    Built once per dialect and shared read-only by every per-page operation.
    """

    dialect: Dialect
    page_dir: Path
    work_dir: Path
    log_path: Path
    cache_enabled: bool = False
    parser_override: Optional[str] = None

    @classmethod
    def build(
        cls,
        dialect: Union[str, Dialect],
        page_dir: Union[str, Path],
        work_dir: Union[str, Path],
        log_path: Union[str, Path],
        cache_enabled: bool = False,
        parser_override: Optional[str] = None
    ) -> 'EngineConfig':
        """
        Build an engine configuration without touching the disk.

        Args:
            dialect: Dialect name ('jspwiki' or 'markdown')
            page_dir: Storage root for pages and attachments
            work_dir: Scratch space for this engine
            log_path: Diagnostic log file for this engine
            cache_enabled: Whether stores may cache what they read
            parser_override: Optional dotted path of an alternate renderer class

        Returns:
            Frozen EngineConfig

        Raises:
            MigrationError: ConfigurationError if the dialect is unknown, a path
                cannot be resolved or the parser override is malformed
        """
        resolved_dialect = cls._resolve_dialect(dialect)

        if parser_override is not None:
            if not isinstance(parser_override, str) or not PARSER_CLASS_PATTERN.match(parser_override):
                raise MigrationError.configuration(
                    f"Invalid parser override '{parser_override}': expected 'package.module.Class' "
                    f"or 'package.module:Class'"
                )

        return cls(
            dialect=resolved_dialect,
            page_dir=cls._resolve_path(page_dir, 'page directory'),
            work_dir=cls._resolve_path(work_dir, 'work directory'),
            log_path=cls._resolve_path(log_path, 'log path'),
            cache_enabled=bool(cache_enabled),
            parser_override=parser_override
        )

    @classmethod
    def for_dialect(
        cls,
        dialect: Union[str, Dialect],
        page_dir: Union[str, Path],
        work_root: Union[str, Path],
        cache_enabled: bool = False,
        parser_override: Optional[str] = None
    ) -> 'EngineConfig':
        """Build a config with the conventional work dir and log path under ``work_root``."""
        name = cls._resolve_dialect(dialect).value
        root = cls._resolve_path(work_root, 'work root')
        return cls.build(
            dialect=name,
            page_dir=page_dir,
            work_dir=root / f"workDir-{name}",
            log_path=root / f"wiki-{name}.log",
            cache_enabled=cache_enabled,
            parser_override=parser_override
        )

    @staticmethod
    def _resolve_dialect(dialect: Union[str, Dialect]) -> Dialect:
        if isinstance(dialect, Dialect):
            return dialect
        try:
            return Dialect(str(dialect).strip().lower())
        except ValueError:
            raise MigrationError.configuration(
                f"Unrecognized dialect '{dialect}'. Must be one of: {[d.value for d in Dialect]}"
            )

    @staticmethod
    def _resolve_path(value: Union[str, Path, None], label: str) -> Path:
        if value is None or str(value).strip() == '':
            raise MigrationError.configuration(f"Missing {label}")
        try:
            return Path(os.path.abspath(os.path.expanduser(os.fspath(value))))
        except (TypeError, ValueError) as e:
            raise MigrationError.configuration(f"Cannot resolve {label} '{value}': {e}", cause=e)

    @property
    def file_extension(self) -> str:
        return self.dialect.file_extension

    def properties(self) -> Dict[str, str]:
        """Configuration expressed as JSPWiki engine properties."""
        props = {
            'jspwiki.fileSystemProvider.pageDir': str(self.page_dir),
            'jspwiki.basicAttachmentProvider.storageDir': str(self.page_dir),
            'jspwiki.workDir': str(self.work_dir),
            'appender.rolling.fileName': str(self.log_path),
            'jspwiki.cache.enable': str(self.cache_enabled).lower(),
            'jspwiki.syntax': self.dialect.value
        }
        if self.parser_override:
            props['jspwiki.renderingManager.markupParser'] = self.parser_override
        return props


@dataclass(frozen=True)
class RenderFlags:
    """Options for a single render call."""

    plugins_enabled: bool = False


@dataclass(frozen=True)
class WikiContext:
    """Per-operation context: the active page, engine config and mode flags."""

    page: WikiPage
    config: EngineConfig
    request_context: RequestContext = RequestContext.VIEW
    variables: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_rendering(cls, page: WikiPage, config: EngineConfig) -> 'WikiContext':
        """Context for rendering during migration: no request history, WYSIWYG mode."""
        return cls(
            page=page,
            config=config,
            request_context=RequestContext.NONE,
            variables={VAR_WYSIWYG_EDITOR_MODE: True}
        )

    @classmethod
    def for_saving(cls, page: WikiPage, config: EngineConfig) -> 'WikiContext':
        """Context for writing a page into the store bound to ``config``."""
        return cls(page=page, config=config, request_context=RequestContext.EDIT)

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self.variables.get(name, default)

    @property
    def wysiwyg_editor_mode(self) -> bool:
        return bool(self.variables.get(VAR_WYSIWYG_EDITOR_MODE, False))


@dataclass
class PageOutcome:
    """Result of migrating one page."""

    page_name: str
    success: bool
    attachments_copied: int = 0
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def succeeded(cls, page_name: str, attachments_copied: int = 0) -> 'PageOutcome':
        return cls(page_name=page_name, success=True, attachments_copied=attachments_copied)

    @classmethod
    def failed(cls, page_name: str, error: MigrationError) -> 'PageOutcome':
        return cls(page_name=page_name, success=False, error_kind=error.kind, message=error.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize outcome to dictionary."""
        return {
            'page': self.page_name,
            'success': self.success,
            'attachments_copied': self.attachments_copied,
            'error_kind': self.error_kind.value if self.error_kind else None,
            'message': self.message
        }
