"""Providers package for page and attachment storage backends."""

from typing import Dict

from models import EngineConfig

from .attachment_provider import FileSystemAttachmentStore
from .base_provider import AttachmentStore, PageStore, mangle_name, unmangle_name
from .file_system_provider import FileSystemPageStore


class ProviderRegistry:
    """
    Hands out one page store and one attachment store per engine configuration.

    Store classes can be replaced to plug in other backends or test fakes.
    """

    def __init__(self, page_store_class=FileSystemPageStore,
                 attachment_store_class=FileSystemAttachmentStore, logger=None):
        self.page_store_class = page_store_class
        self.attachment_store_class = attachment_store_class
        self.logger = logger
        self._page_stores: Dict[EngineConfig, PageStore] = {}
        self._attachment_stores: Dict[EngineConfig, AttachmentStore] = {}

    def page_store(self, config: EngineConfig) -> PageStore:
        """Return the page store bound to ``config``, creating it on first use."""
        if config not in self._page_stores:
            self._page_stores[config] = self.page_store_class(config, self.logger)
        return self._page_stores[config]

    def attachment_store(self, config: EngineConfig) -> AttachmentStore:
        """Return the attachment store bound to ``config``, creating it on first use."""
        if config not in self._attachment_stores:
            self._attachment_stores[config] = self.attachment_store_class(config, self.logger)
        return self._attachment_stores[config]


__all__ = [
    'PageStore',
    'AttachmentStore',
    'FileSystemPageStore',
    'FileSystemAttachmentStore',
    'ProviderRegistry',
    'mangle_name',
    'unmangle_name'
]
