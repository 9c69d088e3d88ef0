"""Page enumeration over the source page store."""

import logging
from typing import List, Optional

from errors import ErrorKind, error_boundary
from models import EngineConfig, WikiPage
from providers import ProviderRegistry


class PageEnumerator:
    """Lists the pages currently present in a page store."""

    def __init__(self, providers: ProviderRegistry, logger: Optional[logging.Logger] = None):
        self.providers = providers
        self.logger = logger or logging.getLogger('jspwiki_migrator.orchestrator.enumerator')

    def list(self, source_config: EngineConfig) -> List[WikiPage]:
        """
        List every page of the store bound to ``source_config``.

        Each call re-reads the store unless the store caches. The order is
        whatever the store returns.

        Raises:
            MigrationError: StorageError if the store cannot be read
        """
        with error_boundary(ErrorKind.STORAGE, None, "Listing pages"):
            pages = list(self.providers.page_store(source_config).list_all_pages())

        self.logger.info(f"Found {len(pages)} pages in {source_config.page_dir}")
        return pages


__all__ = ['PageEnumerator']
