"""Tests for rendering markdown pages and for the converter factory."""

import pytest

from converters import ConverterFactory, JSPWikiRenderer, JSPWikiTranslator, MarkdownRenderer, MarkdownTranslator
from errors import ErrorKind, MigrationError
from models import EngineConfig, RenderFlags, WikiContext, WikiPage


@pytest.fixture
def context(markdown_config):
    return WikiContext.for_rendering(WikiPage('Main'), markdown_config)


class TestMarkdownRenderer:
    """Test markdown to HTML rendering."""

    def test_renders_markdown(self, markdown_config, context):
        html = MarkdownRenderer(markdown_config).render(context, "# Title\n\nSome *text*.", RenderFlags())

        assert '<h1>Title</h1>' in html
        assert '<p>Some <em>text</em>.</p>' in html

    def test_tables_from_extra(self, markdown_config, context):
        html = MarkdownRenderer(markdown_config).render(
            context, "| A | B |\n| --- | --- |\n| 1 | 2 |\n", RenderFlags()
        )

        assert '<table>' in html
        assert '<td>1</td>' in html

    def test_plugin_becomes_inert_span(self, markdown_config, context):
        html = MarkdownRenderer(markdown_config).render(context, "[{TableOfContents}]()", RenderFlags())

        assert '<span class="wikiplugin">TableOfContents</span>' in html

    def test_state_is_reset_between_pages(self, markdown_config, context):
        renderer = MarkdownRenderer(markdown_config)
        text = "Text with a note[^1].\n\n[^1]: The note."

        assert renderer.render(context, text, RenderFlags()) == renderer.render(context, text, RenderFlags())

    def test_empty_text(self, markdown_config, context):
        assert MarkdownRenderer(markdown_config).render(context, '', RenderFlags()) == ''

    def test_none_text(self, markdown_config, context):
        with pytest.raises(MigrationError) as exc_info:
            MarkdownRenderer(markdown_config).render(context, None, RenderFlags())

        assert exc_info.value.kind is ErrorKind.TRANSLATION


class TestConverterFactory:
    """Test renderer and translator selection."""

    def test_default_renderers(self, jspwiki_config, markdown_config):
        assert isinstance(ConverterFactory.create_renderer(jspwiki_config), JSPWikiRenderer)
        assert isinstance(ConverterFactory.create_renderer(markdown_config), MarkdownRenderer)

    def test_default_translators(self, jspwiki_config, markdown_config):
        assert type(ConverterFactory.create_translator(markdown_config)) is MarkdownTranslator
        assert isinstance(ConverterFactory.create_translator(jspwiki_config), JSPWikiTranslator)

    @pytest.mark.parametrize('override', [
        'converters.markdown_renderer.MarkdownRenderer',
        'converters.markdown_renderer:MarkdownRenderer',
    ])
    def test_parser_override(self, tmp_path, override):
        config = EngineConfig.for_dialect('jspwiki', tmp_path, tmp_path, parser_override=override)

        assert isinstance(ConverterFactory.create_renderer(config), MarkdownRenderer)

    @pytest.mark.parametrize('override', [
        'no_such_module_for_parsers.Renderer',
        'converters.html_cleaner.HtmlCleaner',
        'converters.markdown_renderer.Missing',
    ])
    def test_unusable_parser_override(self, tmp_path, override):
        config = EngineConfig.for_dialect('jspwiki', tmp_path, tmp_path, parser_override=override)

        with pytest.raises(MigrationError) as exc_info:
            ConverterFactory.create_renderer(config)

        assert exc_info.value.kind is ErrorKind.CONFIGURATION
