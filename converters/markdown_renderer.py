"""
Renderer for the markdown dialect.

Converts markdown page text to HTML with Python-Markdown so it can be
translated into another dialect.
"""

import html
import logging
import re
from typing import Optional

import markdown as md

from errors import ErrorKind, MigrationError
from models import EngineConfig, RenderFlags, WikiContext

from .base_converter import Renderer

# Plugin invocations in JSPWiki markdown syntax: [{Plugin args}]()
PLUGIN_RE = re.compile(r'\[\{(.*?)\}\]\(\)')


class MarkdownRenderer(Renderer):
    """Renders markdown page text to HTML."""

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize markdown renderer.

        Args:
            config: Engine configuration of the markdown dialect
            logger: Optional logger instance (defaults to module logger)
        """
        super().__init__(config, logger or logging.getLogger('jspwiki_migrator.converters.markdownrenderer'))

        self.md = md.Markdown(
            extensions=[
                'extra',           # Tables, fenced code, definition lists
                'sane_lists'       # Better list handling
            ]
        )

        self.logger.debug("Initialized MarkdownRenderer with markdown extensions")

    def render(self, context: WikiContext, text: str, flags: RenderFlags) -> str:
        if text is None:
            raise MigrationError(
                ErrorKind.TRANSLATION,
                f"No markup to render for page '{context.page.name}'",
                page=context.page.name
            )

        if not text:
            self.logger.debug("Empty markdown content provided")
            return ""

        if flags.plugins_enabled:
            self.logger.warning("Plugin execution is not supported, plugins are kept as markup")

        source = PLUGIN_RE.sub(
            lambda m: f'<span class="wikiplugin">{html.escape(m.group(1), quote=False)}</span>',
            text
        )

        # Reset the markdown converter state between pages
        self.md.reset()
        html_content = self.md.convert(source)

        self.logger.debug(f"Converted {len(text)} chars of markdown to {len(html_content)} chars of HTML")
        return html_content


__all__ = ['MarkdownRenderer']
