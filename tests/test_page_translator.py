"""Tests for translating single pages between stores."""

import pytest

from converters import JSPWikiRenderer, MarkdownTranslator, Renderer
from errors import ErrorKind, MigrationError
from models import WikiPage
from orchestrator import PageTranslator
from providers import ProviderRegistry


class ExplodingRenderer(Renderer):
    """Renderer failing on pages containing the word BOOM."""

    def render(self, context, text, flags):
        if 'BOOM' in text:
            raise ValueError('unbalanced markup')
        return f"<p>{text}</p>"


@pytest.fixture
def providers():
    return ProviderRegistry()


def make_translator(providers, source_config, target_config, renderer=None, **kwargs):
    return PageTranslator(
        providers,
        renderer or JSPWikiRenderer(source_config),
        MarkdownTranslator(target_config),
        **kwargs
    )


class TestPageTranslator:
    """Test the read, render, translate and save sequence."""

    def test_translates_and_saves(self, providers, jspwiki_config, markdown_config, source_dir, target_dir, write_page):
        write_page(source_dir, 'Main Page', "!!! Welcome\n\n__Hello__ world")
        translator = make_translator(providers, jspwiki_config, markdown_config)

        text = translator.translate(WikiPage('Main Page'), jspwiki_config, markdown_config)

        assert text == "## Welcome\n\n**Hello** world\n"
        assert (target_dir / 'Main+Page.md').read_text(encoding='utf-8') == text

    def test_render_failure_leaves_no_target_file(self, providers, jspwiki_config, markdown_config,
                                                  source_dir, target_dir, write_page):
        write_page(source_dir, 'Broken', 'BOOM')
        translator = make_translator(providers, jspwiki_config, markdown_config, renderer=ExplodingRenderer(jspwiki_config))

        with pytest.raises(MigrationError) as exc_info:
            translator.translate(WikiPage('Broken'), jspwiki_config, markdown_config)

        assert exc_info.value.kind is ErrorKind.TRANSLATION
        assert exc_info.value.page == 'Broken'
        assert 'unbalanced markup' in exc_info.value.message
        assert not (target_dir / 'Broken.md').exists()

    def test_missing_page_is_storage_error(self, providers, jspwiki_config, markdown_config):
        translator = make_translator(providers, jspwiki_config, markdown_config)

        with pytest.raises(MigrationError) as exc_info:
            translator.translate(WikiPage('Nowhere'), jspwiki_config, markdown_config)

        assert exc_info.value.kind is ErrorKind.STORAGE

    def test_post_processors_run_in_order(self, providers, jspwiki_config, markdown_config, source_dir, write_page):
        write_page(source_dir, 'Main', 'text')
        translator = make_translator(
            providers, jspwiki_config, markdown_config,
            post_processors=[lambda t: t.upper(), lambda t: t + 'END\n']
        )

        assert translator.translate(WikiPage('Main'), jspwiki_config, markdown_config) == 'TEXT\nEND\n'

    def test_failing_post_processor_is_translation_error(self, providers, jspwiki_config, markdown_config,
                                                         source_dir, target_dir, write_page):
        write_page(source_dir, 'Main', 'text')

        def broken(text):
            raise RuntimeError('hook failed')

        translator = make_translator(providers, jspwiki_config, markdown_config, post_processors=[broken])

        with pytest.raises(MigrationError) as exc_info:
            translator.translate(WikiPage('Main'), jspwiki_config, markdown_config)

        assert exc_info.value.kind is ErrorKind.TRANSLATION
        assert not (target_dir / 'Main.md').exists()

    def test_clean_without_hooks_is_identity(self, providers, jspwiki_config, markdown_config):
        translator = make_translator(providers, jspwiki_config, markdown_config)

        assert translator.clean('unchanged') == 'unchanged'

    def test_dry_run_does_not_save(self, providers, jspwiki_config, markdown_config, source_dir, target_dir, write_page):
        write_page(source_dir, 'Main', '__bold__')
        translator = make_translator(providers, jspwiki_config, markdown_config, dry_run=True)

        assert translator.translate(WikiPage('Main'), jspwiki_config, markdown_config) == '**bold**\n'
        assert not target_dir.exists()
