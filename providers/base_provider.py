"""Abstract page and attachment store interfaces and common functionality."""

import logging
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional
from urllib.parse import quote_plus, unquote_plus

from models import EngineConfig, WikiAttachment, WikiContext, WikiPage


def mangle_name(name: str) -> str:
    """
    Turn a page or attachment name into a safe file name.

    Names are URL-encoded as UTF-8 with '+' for spaces and '/' encoded.
    A leading dot is encoded too so no name maps to a hidden file.

    Args:
        name: Wiki page or attachment name

    Returns:
        File system safe name
    """
    mangled = quote_plus(name, safe='', encoding='utf-8')
    if mangled.startswith('.'):
        mangled = '%2E' + mangled[1:]
    return mangled


def unmangle_name(filename: str) -> str:
    """Inverse of :func:`mangle_name`."""
    return unquote_plus(filename, encoding='utf-8')


class PageStore(ABC):
    """Abstract base class for page storage backends."""

    def __init__(self, config: EngineConfig, logger=None):
        """
        Initialize store with its engine configuration and logger.

        Args:
            config: Engine configuration the store is bound to
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('jspwiki_migrator.providers')

    @abstractmethod
    def list_all_pages(self) -> List[WikiPage]:
        """
        List every page currently present in the store.

        Returns:
            Page handles carrying the current version of each page
        """
        pass

    @abstractmethod
    def get_raw_text(self, name: str, version: int) -> str:
        """
        Read the raw markup of a page.

        Args:
            name: Page name
            version: Version number, or LATEST_VERSION for the current one

        Returns:
            Raw page text
        """
        pass

    @abstractmethod
    def save_text(self, context: WikiContext, text: str) -> None:
        """
        Persist text as the new current version of ``context.page``.

        Args:
            context: Save context bound to this store's configuration
            text: Page text in this store's dialect
        """
        pass

    @abstractmethod
    def page_exists(self, name: str) -> bool:
        """Check whether a page with the given name exists."""
        pass


class AttachmentStore(ABC):
    """Abstract base class for attachment storage backends."""

    def __init__(self, config: EngineConfig, logger=None):
        self.config = config
        self.logger = logger or logging.getLogger('jspwiki_migrator.providers')

    @abstractmethod
    def list_attachments(self, page: WikiPage) -> List[WikiAttachment]:
        """
        List the latest version of each attachment owned by a page.

        Args:
            page: Owning page

        Returns:
            Attachment handles
        """
        pass

    @abstractmethod
    def open_stream(self, page: WikiPage, attachment: WikiAttachment) -> BinaryIO:
        """
        Open the attachment content for reading.

        The caller owns the returned stream and must close it.
        """
        pass

    @abstractmethod
    def store(self, attachment: WikiAttachment, stream: BinaryIO) -> Optional[int]:
        """
        Store the content read from ``stream`` as a new version of ``attachment``.

        Args:
            attachment: Attachment handle (filename and owning page name)
            stream: Readable binary stream, consumed but not closed

        Returns:
            Version number written, if the store tracks versions
        """
        pass


__all__ = ['PageStore', 'AttachmentStore', 'mangle_name', 'unmangle_name']
