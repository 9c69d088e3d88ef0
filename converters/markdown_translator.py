"""Markdown translator for converting rendered wiki HTML to Markdown."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString
from markdownify import MarkdownConverter as MarkdownifyConverter
from markdownify import chomp

from errors import ErrorKind, MigrationError
from models import EngineConfig

from .base_converter import Translator
from .html_cleaner import HtmlCleaner

# Block markers Markdown honours at the start of a prose line
LINE_START_MARKER_RE = re.compile(r'^([ \t]*)(-+|=+|\+|>|#{1,6}|\d{1,9}[.)])(?=[ \t]|$)', re.MULTILINE)
# Underscores at a word boundary can open or close emphasis; intraword ones cannot
BOUNDARY_UNDERSCORE_RE = re.compile(r'(?<![^\W_])_|_(?![^\W_])')


class MarkdownTranslator(Translator, MarkdownifyConverter):
    """
    Converts rendered wiki HTML to Markdown.

    This class extends markdownify.MarkdownConverter to provide:
    - Cleanup of wiki navigation and editor markup before conversion
    - Plain links (no autolinks) so page names survive as link targets
    - Inert plugin markup in JSPWiki markdown syntax
    - Tables with the first row as header
    - Escaping of prose that Markdown would read as emphasis or block markup
    """

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None, **kwargs):
        """Initialize translator with engine configuration, logger and markdownify options."""
        markdownify_options = {
            'heading_style': 'ATX',  # Use # for headings
            'bullets': '-',  # Use - for unordered lists
            'escape_asterisks': True,
            'escape_underscores': False,
            'newline_style': 'backslash',
            'sup_symbol': '^',
            'sub_symbol': '~',
            'bs4_options': 'lxml'
        }

        # Merge with any additional options from kwargs
        markdownify_options.update(kwargs)

        MarkdownifyConverter.__init__(self, **markdownify_options)
        Translator.__init__(
            self, config,
            logger or logging.getLogger('jspwiki_migrator.converters.markdowntranslator')
        )

        self.html_cleaner = HtmlCleaner(self.logger)

    def translate(self, html_content: str) -> str:
        if html_content is None:
            raise MigrationError(ErrorKind.TRANSLATION, "No HTML to translate")

        if not html_content.strip():
            return ''

        soup = BeautifulSoup(html_content, 'lxml')
        soup = self.html_cleaner.clean(soup)

        raw_text = self.convert_soup(soup)
        text = self._tidy(raw_text)

        self.logger.debug(f"Translated {len(html_content)} chars of HTML to {len(text)} chars")
        return text

    def _tidy(self, markdown: str) -> str:
        """Strip trailing spaces, collapse blank runs and end with a single newline."""
        lines = [line.rstrip() for line in markdown.split('\n')]

        tidied = []
        for line in lines:
            blank = line.strip() in ('', '>')
            if blank and tidied and tidied[-1].strip() in ('', '>'):
                continue
            tidied.append(line)

        text = '\n'.join(tidied).strip('\n')
        return text + '\n' if text else ''

    def escape(self, text, parent_tags):
        text = super().escape(text, parent_tags)
        return BOUNDARY_UNDERSCORE_RE.sub(r'\\_', text)

    def escape_line_starts(self, text: str) -> str:
        """Backslash-escape prose line openings such as ``- ``, ``> `` or ``1. ``."""
        def escape_marker(match):
            indent, marker = match.groups()
            if marker[0].isdigit():
                return f"{indent}{marker[:-1]}\\{marker[-1]}"
            return f"{indent}\\{marker}"

        return LINE_START_MARKER_RE.sub(escape_marker, text)

    def convert_p(self, el, text, parent_tags=None, **kwargs):
        if not parent_tags or '_inline' not in parent_tags:
            text = self.escape_line_starts(text)
        return super().convert_p(el, text, parent_tags)

    def convert_a(self, el, text, parent_tags=None, **kwargs):
        """Handle links as [text](target), never as autolinks."""
        if parent_tags and '_noformat' in parent_tags:
            return text

        prefix, suffix, text = chomp(text)
        if not text:
            return ''

        href = el.get('href')
        if not href:
            return f"{prefix}{text}{suffix}"

        # Page names may contain spaces
        if re.search(r'\s', href):
            href = f"<{href}>"

        title = el.get('title')
        title_part = ' "%s"' % title.replace('"', r'\"') if title else ''
        return f"{prefix}[{text}]({href}{title_part}){suffix}"

    def convert_span(self, el, text, parent_tags=None, **kwargs):
        """Handle span elements, including inert plugin invocations."""
        classes = el.get('class', [])

        if 'wikiplugin' in classes:
            return f"[{{{el.get_text()}}}]()"

        # For other spans, just return the text content
        return text

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Handle images."""
        src = el.get('src', '')
        alt = el.get('alt', '')
        title = el.get('title', '')

        # Use title as alt if alt is missing
        if not alt and title:
            alt = title

        if re.search(r'\s', src):
            src = f"<{src}>"

        return f'![{alt}]({src})'

    def convert_table(self, el, text, parent_tags=None, **kwargs):
        """Custom table converter to ensure proper markdown table syntax."""
        rows = el.find_all('tr')
        if not rows:
            return ''

        table = [
            [self._get_cell_text(cell) for cell in row.find_all(['th', 'td'])]
            for row in rows
        ]
        table = [cells for cells in table if cells]
        if not table:
            return ''

        width = max(len(cells) for cells in table)
        table = [cells + [''] * (width - len(cells)) for cells in table]

        # Header row, separator row, then data rows
        markdown_rows = ['| ' + ' | '.join(table[0]) + ' |']
        markdown_rows.append('| ' + ' | '.join('---' for _ in range(width)) + ' |')
        for cells in table[1:]:
            markdown_rows.append('| ' + ' | '.join(cells) + ' |')

        return '\n\n' + '\n'.join(markdown_rows) + '\n\n'

    def _get_cell_text(self, cell) -> str:
        """Convert the contents of a table cell to single-line markdown."""
        parent_tags = {'table', 'tr', cell.name, '_inline'}
        parts = []
        for child in cell.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString) and not child.strip():
                parts.append(' ')
                continue
            parts.append(self.process_element(child, parent_tags=parent_tags))

        text = re.sub(r'\s+', ' ', ''.join(parts)).strip()
        return text.replace('|', r'\|')


__all__ = ['MarkdownTranslator']
