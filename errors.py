"""Classified errors raised by the migration pipeline."""

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional


class ErrorKind(Enum):
    """Kinds of failure the pipeline distinguishes."""
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    TRANSLATION = "translation"
    RESOURCE = "resource"


class MigrationError(Exception):
    """
    Single error type for the migration pipeline.

    Only ``ErrorKind.CONFIGURATION`` is fatal to a run; every other kind is
    absorbed at the page boundary and counted as a failed page.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        page: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.page = page
        self.cause = cause

    @classmethod
    def configuration(cls, message: str, cause: Optional[BaseException] = None) -> 'MigrationError':
        return cls(ErrorKind.CONFIGURATION, message, cause=cause)

    @property
    def is_fatal(self) -> bool:
        return self.kind is ErrorKind.CONFIGURATION

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


def classify(exc: BaseException) -> ErrorKind:
    """Map an unclassified exception to the closest error kind."""
    if isinstance(exc, MigrationError):
        return exc.kind
    if isinstance(exc, OSError):
        return ErrorKind.STORAGE
    return ErrorKind.TRANSLATION


def as_migration_error(exc: BaseException, page: Optional[str] = None) -> MigrationError:
    """Return ``exc`` as a MigrationError, wrapping it if needed."""
    if isinstance(exc, MigrationError):
        if exc.page is None:
            exc.page = page
        return exc
    return MigrationError(classify(exc), f"{type(exc).__name__}: {exc}", page=page, cause=exc)


@contextmanager
def error_boundary(kind: ErrorKind, page: Optional[str], action: str) -> Iterator[None]:
    """
    Classify anything raised inside the block as ``kind``.

    Errors that are already MigrationErrors keep their own kind.

    Args:
        kind: Kind assigned to unclassified exceptions
        page: Name of the page being processed, if any
        action: Short description used in the error message
    """
    try:
        yield
    except MigrationError:
        raise
    except Exception as e:
        target = f" for page '{page}'" if page else ""
        raise MigrationError(kind, f"{action} failed{target}: {e}", page=page, cause=e) from e


__all__ = ['ErrorKind', 'MigrationError', 'classify', 'as_migration_error', 'error_boundary']
