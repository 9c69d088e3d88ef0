"""Abstract renderer and translator interfaces."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from models import EngineConfig, RenderFlags, WikiContext


class Renderer(ABC):
    """Turns source-dialect markup into HTML."""

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize renderer with its engine configuration and logger.

        Args:
            config: Engine configuration of the dialect being rendered
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('jspwiki_migrator.converters.renderer')

    @abstractmethod
    def render(self, context: WikiContext, text: str, flags: RenderFlags) -> str:
        """
        Render raw page text to an HTML fragment.

        Args:
            context: Rendering context (page, config, mode flags)
            text: Raw markup of the page
            flags: Options for this render call

        Returns:
            HTML fragment
        """
        pass


class Translator(ABC):
    """Turns rendered HTML into target-dialect markup."""

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger('jspwiki_migrator.converters.translator')

    @abstractmethod
    def translate(self, html: str) -> str:
        """
        Translate an HTML fragment into target-dialect text.

        Args:
            html: HTML produced by a renderer

        Returns:
            Target-dialect text
        """
        pass


__all__ = ['Renderer', 'Translator']
