"""Converters package for rendering wiki markup to HTML and translating HTML between dialects."""

import importlib
import logging
from typing import Optional, Type

from errors import MigrationError
from models import Dialect, EngineConfig, RenderFlags, WikiContext, WikiPage

from .base_converter import Renderer, Translator
from .html_cleaner import HtmlCleaner
from .jspwiki_renderer import JSPWikiRenderer
from .jspwiki_translator import JSPWikiTranslator
from .markdown_renderer import MarkdownRenderer
from .markdown_translator import MarkdownTranslator

logger = logging.getLogger('jspwiki_migrator.converters')


class ConverterFactory:
    """Factory for creating renderer and translator instances based on engine configuration."""

    RENDERERS = {
        Dialect.JSPWIKI: JSPWikiRenderer,
        Dialect.MARKDOWN: MarkdownRenderer
    }

    TRANSLATORS = {
        Dialect.MARKDOWN: MarkdownTranslator,
        Dialect.JSPWIKI: JSPWikiTranslator
    }

    @staticmethod
    def create_renderer(config: EngineConfig, logger=None) -> Renderer:
        """Create the renderer for the config's dialect, honouring its parser override.

        Args:
            config: Source engine configuration
            logger: Logger instance

        Returns:
            Renderer instance

        Raises:
            MigrationError: ConfigurationError if no renderer exists for the
                dialect or the override cannot be loaded
        """
        if config.parser_override:
            renderer_class = ConverterFactory.load_class(config.parser_override, Renderer)
        else:
            renderer_class = ConverterFactory.RENDERERS.get(config.dialect)
            if renderer_class is None:
                raise MigrationError.configuration(f"No renderer available for dialect '{config.dialect.value}'")

        return ConverterFactory._instantiate(renderer_class, config, logger)

    @staticmethod
    def create_translator(config: EngineConfig, logger=None) -> Translator:
        """Create the translator producing the config's dialect.

        Raises:
            MigrationError: ConfigurationError if no translator exists for the dialect
        """
        translator_class = ConverterFactory.TRANSLATORS.get(config.dialect)
        if translator_class is None:
            raise MigrationError.configuration(f"No translator available for dialect '{config.dialect.value}'")
        return ConverterFactory._instantiate(translator_class, config, logger)

    @staticmethod
    def _instantiate(converter_class: Type, config: EngineConfig, logger=None):
        """Construct a converter; any failure makes the configuration unusable."""
        try:
            return converter_class(config, logger)
        except Exception as e:
            raise MigrationError.configuration(
                f"Cannot create {converter_class.__name__} for dialect '{config.dialect.value}': {e}",
                cause=e
            ) from e

    @staticmethod
    def load_class(path: str, base: Type) -> Type:
        """Import a class from 'package.module.Class' or 'package.module:Class'."""
        if ':' in path:
            module_name, _, class_name = path.partition(':')
        else:
            module_name, _, class_name = path.rpartition('.')

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise MigrationError.configuration(f"Cannot import parser module '{module_name}': {e}", cause=e)

        loaded = getattr(module, class_name, None)
        if not isinstance(loaded, type) or not issubclass(loaded, base):
            raise MigrationError.configuration(
                f"'{path}' is not a {base.__name__} class"
            )
        return loaded


def convert_markup(text: str, page_name: str, source_config: EngineConfig,
                   target_config: EngineConfig, logger=None) -> str:
    """
    Convenience function to convert one page's markup between dialects.

    Renders with the source dialect's renderer in migration mode (no plugin
    execution, links to page names) and translates into the target dialect.
    Nothing is read from or written to a store.

    Args:
        text: Raw source-dialect markup
        page_name: Name of the page the markup belongs to
        source_config: Engine configuration of the source dialect
        target_config: Engine configuration of the target dialect
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        Target-dialect text

    Example:
        >>> from converters import convert_markup
        >>> convert_markup('__bold__ text', 'Main', jspwiki_config, markdown_config)
        '**bold** text\\n'
    """
    logger = logger or logging.getLogger('jspwiki_migrator.converters')

    renderer = ConverterFactory.create_renderer(source_config, logger)
    translator = ConverterFactory.create_translator(target_config, logger)

    context = WikiContext.for_rendering(WikiPage(page_name), source_config)
    html_content = renderer.render(context, text, RenderFlags(plugins_enabled=False))
    return translator.translate(html_content)


__all__ = [
    'convert_markup',
    'ConverterFactory',
    'Renderer',
    'Translator',
    'JSPWikiRenderer',
    'MarkdownRenderer',
    'MarkdownTranslator',
    'JSPWikiTranslator',
    'HtmlCleaner'
]
