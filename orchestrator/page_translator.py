"""
Per-page translation: read, render, translate, post-process and save.

The target text is written only after every earlier step has succeeded, so
a failing page never leaves a partial file in the target store.
"""

import logging
from typing import Callable, List, Optional, Sequence

from converters import Renderer, Translator
from errors import ErrorKind, error_boundary
from models import EngineConfig, RenderFlags, WikiContext, WikiPage
from providers import ProviderRegistry

PostProcessor = Callable[[str], str]


class PageTranslator:
    """Translates one page from the source dialect into the target dialect."""

    def __init__(
        self,
        providers: ProviderRegistry,
        renderer: Renderer,
        translator: Translator,
        post_processors: Optional[Sequence[PostProcessor]] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize page translator.

        Args:
            providers: Registry handing out the page stores
            renderer: Renderer for the source dialect
            translator: Translator producing the target dialect
            post_processors: Text hooks applied in order after translation
            dry_run: If True, translate but never save
            logger: Optional logger instance
        """
        self.providers = providers
        self.renderer = renderer
        self.translator = translator
        self.post_processors: List[PostProcessor] = list(post_processors or [])
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('jspwiki_migrator.orchestrator.translator')

    def translate(self, page: WikiPage, source_config: EngineConfig, target_config: EngineConfig) -> str:
        """
        Translate ``page`` and save the result in the target store.

        Args:
            page: Page handle from the source store
            source_config: Configuration of the source engine
            target_config: Configuration of the target engine

        Returns:
            Target-dialect text

        Raises:
            MigrationError: StorageError when reading or saving fails,
                TranslationError when rendering, translating or
                post-processing fails
        """
        name = page.name

        with error_boundary(ErrorKind.STORAGE, name, "Reading page"):
            raw_text = self.providers.page_store(source_config).get_raw_text(name, page.version)

        render_context = WikiContext.for_rendering(page, source_config)

        with error_boundary(ErrorKind.TRANSLATION, name, "Rendering"):
            html_content = self.renderer.render(render_context, raw_text, RenderFlags(plugins_enabled=False))

        with error_boundary(ErrorKind.TRANSLATION, name, "Translating"):
            text = self.translator.translate(html_content)

        with error_boundary(ErrorKind.TRANSLATION, name, "Post-processing"):
            text = self.clean(text)

        if self.dry_run:
            self.logger.info(f"[dry-run] Would save page '{name}' ({len(text)} chars)")
            return text

        save_context = WikiContext.for_saving(WikiPage(name), target_config)
        with error_boundary(ErrorKind.STORAGE, name, "Saving page"):
            self.providers.page_store(target_config).save_text(save_context, text)

        self.logger.debug(f"Translated page '{name}': {len(raw_text)} -> {len(text)} chars")
        return text

    def clean(self, text: str) -> str:
        """Apply the post-processing hooks in order. Identity when there are none."""
        for hook in self.post_processors:
            text = hook(text)
        return text


__all__ = ['PageTranslator', 'PostProcessor']
