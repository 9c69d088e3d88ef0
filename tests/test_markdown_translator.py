"""Tests for translating rendered wiki HTML to Markdown."""

import pytest
from bs4 import BeautifulSoup

from converters import HtmlCleaner, MarkdownTranslator, convert_markup
from errors import ErrorKind, MigrationError


@pytest.fixture
def translator(markdown_config):
    return MarkdownTranslator(markdown_config)


class TestMarkdownTranslator:
    """Test HTML to Markdown translation."""

    def test_heading_drops_anchor_and_hashlink(self, translator):
        html = '<h2 id="section-Main-Title">Title<a class="hashlink" href="#section-Main-Title">#</a></h2>'

        assert translator.translate(html) == '## Title\n'

    def test_inline_formatting(self, translator):
        html = '<p>Some <b>bold</b> and <i>italic</i> text</p>'

        assert translator.translate(html) == 'Some **bold** and *italic* text\n'

    def test_emphasis_markers_in_prose_are_escaped(self, translator):
        html = '<p>*stars*, _word_ and snake_case or __init__</p>'

        assert translator.translate(html) == '\\*stars\\*, \\_word\\_ and snake_case or \\_\\_init\\_\\_\n'

    @pytest.mark.parametrize('text,expected', [
        ('- not a bullet', '\\- not a bullet'),
        ('+ not a bullet', '\\+ not a bullet'),
        ('&gt; not a quote', '\\> not a quote'),
        ('1. not a list', '1\\. not a list'),
        ('2024) a year', '2024\\) a year'),
        ('## not a heading', '\\## not a heading'),
        ('first line\n--- not a setext underline', 'first line\n\\--- not a setext underline'),
    ])
    def test_block_markers_at_line_start_are_escaped(self, translator, text, expected):
        assert translator.translate(f'<p>{text}</p>') == expected + '\n'

    def test_markers_inside_a_line_are_kept(self, translator):
        html = '<p>ranges 1. to 2. - and &gt; signs</p>'

        assert translator.translate(html) == 'ranges 1. to 2. - and > signs\n'

    def test_literal_entities_survive(self, translator):
        assert translator.translate('<p>write &amp;lt; for &lt;</p>') == 'write &lt; for <\n'

    def test_page_link_with_spaces(self, translator):
        html = '<p><a class="wikipage" href="Other Page">other</a></p>'

        assert translator.translate(html) == '[other](<Other Page>)\n'

    def test_link_without_autolink_shortcut(self, translator):
        html = '<p><a class="wikipage" href="Main">Main</a></p>'

        assert translator.translate(html) == '[Main](Main)\n'

    def test_view_url_becomes_page_name(self, translator):
        html = '<p><a class="wikipage" href="Wiki.jsp?page=Other+Page#section-x">x</a></p>'

        assert translator.translate(html) == '[x](<Other Page#section-x>)\n'

    def test_attachment_url_becomes_path(self, translator):
        html = '<p><img class="inline" src="attach/Main/diagram.png" alt="diagram"/></p>'

        assert translator.translate(html) == '![diagram](Main/diagram.png)\n'

    def test_plugin_is_kept_inert(self, translator):
        html = '<p><span class="wikiplugin">TableOfContents</span></p>'

        assert translator.translate(html) == '[{TableOfContents}]()\n'

    def test_preformatted(self, translator):
        assert translator.translate('<pre>x = 1\ny = 2</pre>') == '```\nx = 1\ny = 2\n```\n'

    def test_table_first_row_is_header(self, translator):
        html = (
            '<table class="wikitable" border="1">'
            '<tr><th>Name</th><th>Value</th></tr>'
            '<tr><td>a|b</td></tr>'
            '</table>'
        )

        assert translator.translate(html) == (
            '| Name | Value |\n'
            '| --- | --- |\n'
            '| a\\|b |  |\n'
        )

    def test_nested_list(self, translator):
        html = '<ul><li>one<ul><li>inner</li></ul></li><li>two</li></ul>'

        result = translator.translate(html)

        assert result.splitlines() == ['- one', '  - inner', '- two']

    def test_blank_lines_are_collapsed(self, translator):
        html = '<p>a</p><p></p><p></p><p>b</p>'

        assert translator.translate(html) == 'a\n\nb\n'

    def test_empty_input(self, translator):
        assert translator.translate('   ') == ''

    def test_none_is_translation_error(self, translator):
        with pytest.raises(MigrationError) as exc_info:
            translator.translate(None)

        assert exc_info.value.kind is ErrorKind.TRANSLATION


class TestHtmlCleaner:
    """Test removal of wiki editor markup."""

    def test_removes_editor_ui_and_link_classes(self):
        soup = BeautifulSoup(
            '<h3 id="section-Main-A">A<a class="hashlink" href="#section-Main-A">#</a></h3>'
            '<p><a class="wikipage" href="Edit.jsp?page=Main">Main</a></p>',
            'lxml'
        )

        HtmlCleaner().clean(soup)

        heading = soup.find('h3')
        assert heading.get('id') is None
        assert heading.find('a') is None
        link = soup.find('a')
        assert link.get('class') is None
        assert link['href'] == 'Main'

    def test_keeps_plugin_spans(self):
        soup = BeautifulSoup('<p><span class="wikiplugin">X</span><span></span></p>', 'lxml')

        HtmlCleaner().clean(soup)

        assert len(soup.find_all('span')) == 1


class TestConvertMarkup:
    """Test JSPWiki markup to Markdown end to end."""

    def test_page_markup(self, jspwiki_config, markdown_config):
        markup = "!!! Title\n\n__bold__ and [Other Page]\n\n* one\n* two"

        result = convert_markup(markup, 'Main', jspwiki_config, markdown_config)

        assert result == "## Title\n\n**bold** and [Other Page](<Other Page>)\n\n- one\n- two\n"

    def test_plain_prose_round_trips(self, jspwiki_config, markdown_config):
        prose = (
            "The quick brown fox jumps over the lazy dog.\n"
            "It was a bright cold day in April.\n\n"
            "Call me Ishmael, some years ago."
        )

        result = convert_markup(prose, 'Main', jspwiki_config, markdown_config)

        assert result.split() == prose.split()

    def test_prose_lines_do_not_become_markdown_blocks(self, jspwiki_config, markdown_config):
        markup = "- not a list in jspwiki\n\n1. not a list either\n\n> not a quote"

        result = convert_markup(markup, 'Main', jspwiki_config, markdown_config)

        assert result == "\\- not a list in jspwiki\n\n1\\. not a list either\n\n\\> not a quote\n"
