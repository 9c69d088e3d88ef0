"""Translator for converting rendered wiki HTML to JSPWiki markup."""

import logging
import re
from typing import Optional

from markdownify import chomp

from models import EngineConfig

from .markdown_translator import MarkdownTranslator

# Heading level -> JSPWiki heading marker
HEADING_MARKERS = {1: '!!!', 2: '!!!', 3: '!!', 4: '!', 5: '!', 6: '!'}
STYLE_TAGS = {'sup': 'sup', 'sub': 'sub', 'del': 'strike', 's': 'strike'}
# Line openings JSPWiki treats as markup: list bullets, headings and rules
JSPWIKI_LINE_START_RE = re.compile(r'^([ \t]*)([*#!]|-{4,})', re.MULTILINE)


class JSPWikiTranslator(MarkdownTranslator):
    """
    Converts rendered wiki HTML to JSPWiki markup.

    Reuses the HTML cleanup and whitespace handling of the markdown
    translator and overrides each element conversion with JSPWiki syntax.
    """

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None, **kwargs):
        super().__init__(
            config,
            logger or logging.getLogger('jspwiki_migrator.converters.jspwikitranslator'),
            **kwargs
        )

    def escape(self, text, parent_tags):
        """Escape characters that would start JSPWiki markup."""
        if not text:
            return ''
        text = text.replace('~', '~~')
        text = text.replace('[', '[[')
        text = re.sub(r'__', '~_~_', text)
        text = text.replace("''", "~'~'")
        text = text.replace('{{', '~{~{')
        text = text.replace('\\\\', '~\\~\\')
        return text

    def escape_line_starts(self, text: str) -> str:
        """Tilde-escape prose lines that JSPWiki would read as lists, headings or rules."""
        return JSPWIKI_LINE_START_RE.sub(r'\1~\2', text)

    def convert_hN(self, n, el, text, parent_tags):
        if '_inline' in parent_tags:
            return text
        text = re.sub(r'\s+', ' ', text.strip())
        return f"\n\n{HEADING_MARKERS.get(n, '!')} {text}\n\n"

    def convert_b(self, el, text, parent_tags=None, **kwargs):
        return self._wrap_inline('__', text, parent_tags)

    convert_strong = convert_b

    def convert_i(self, el, text, parent_tags=None, **kwargs):
        return self._wrap_inline("''", text, parent_tags)

    convert_em = convert_i

    def convert_code(self, el, text, parent_tags=None, **kwargs):
        if parent_tags and '_noformat' in parent_tags:
            return text
        prefix, suffix, text = chomp(text)
        if not text:
            return ''
        return f"{prefix}{{{{{text}}}}}{suffix}"

    convert_tt = convert_code
    convert_kbd = convert_code
    convert_samp = convert_code

    def convert_sup(self, el, text, parent_tags=None, **kwargs):
        return self._style_inline(el, text)

    convert_sub = convert_sup
    convert_del = convert_sup
    convert_s = convert_sup

    def convert_pre(self, el, text, parent_tags=None, **kwargs):
        """Handle preformatted blocks."""
        code_el = el.find('code')
        content = code_el.get_text() if code_el else el.get_text()
        content = content.strip('\n')
        if not content:
            return ''
        return f"\n\n{{{{{{\n{content}\n}}}}}}\n\n"

    def convert_br(self, el, text, parent_tags=None, **kwargs):
        if parent_tags and '_inline' in parent_tags:
            return ' '
        return '\\\\\n'

    def convert_hr(self, el, text, parent_tags=None, **kwargs):
        return '\n\n----\n\n'

    def convert_blockquote(self, el, text, parent_tags=None, **kwargs):
        text = (text or '').strip()
        if not text:
            return ''
        return f"\n\n%%quote\n{text}\n/%\n\n"

    def convert_li(self, el, text, parent_tags=None, **kwargs):
        """Handle list items, nesting expressed by repeating the marker."""
        text = (text or '').strip()
        if not text:
            return '\n'

        markers = []
        ancestor = el.parent
        while ancestor is not None:
            if ancestor.name == 'ul':
                markers.append('*')
            elif ancestor.name == 'ol':
                markers.append('#')
            ancestor = ancestor.parent
        marker = ''.join(reversed(markers)) or '*'

        # Paragraphs inside an item collapse onto the item line
        lines = [line for line in text.split('\n') if line.strip()]
        first = [lines[0]] if lines else []
        rest = lines[1:]
        body = first
        for line in rest:
            if re.match(r'^[*#]+ ', line):
                body.append(line)
            else:
                body[-1] = f"{body[-1]} {line.strip()}"

        return f"{marker} " + '\n'.join(body) + '\n'

    def convert_a(self, el, text, parent_tags=None, **kwargs):
        """Handle links as [text|target]."""
        if parent_tags and '_noformat' in parent_tags:
            return text

        prefix, suffix, text = chomp(text)
        classes = el.get('class', [])

        if 'footnote' in classes and el.get('name'):
            number = el['name'].rsplit('-', 1)[-1]
            return f"{prefix}[#{number}]{suffix}"

        href = el.get('href')
        if not href:
            return f"{prefix}{text}{suffix}"

        if 'footnoteref' in classes:
            number = href.rsplit('-', 1)[-1]
            return f"{prefix}[{number}]{suffix}"

        plain = text.replace('[[', '[').replace('~~', '~')
        if not plain or plain == href:
            return f"{prefix}[{href}]{suffix}"
        return f"{prefix}[{text}|{href}]{suffix}"

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        src = el.get('src', '')
        alt = el.get('alt', '') or el.get('title', '')
        if not src:
            return alt
        if not alt or alt == src:
            return f"[{src}]"
        return f"[{alt}|{src}]"

    def convert_span(self, el, text, parent_tags=None, **kwargs):
        classes = el.get('class', [])
        if 'wikiplugin' in classes:
            return f"[{{{el.get_text()}}}]"
        return text

    def convert_div(self, el, text, parent_tags=None, **kwargs):
        """Handle style blocks as %%class ... /%."""
        text = (text or '').strip()
        if parent_tags and '_inline' in parent_tags:
            return f" {text} "
        if not text:
            return ''
        classes = el.get('class', [])
        if classes:
            return f"\n\n%%{classes[0]}\n{text}\n/%\n\n"
        return f"\n\n{text}\n\n"

    def convert_dl(self, el, text, parent_tags=None, **kwargs):
        """Handle definition lists as ;term:definition lines."""
        lines = []
        term = ''
        for child in el.find_all(['dt', 'dd'], recursive=False):
            content = re.sub(r'\s+', ' ', child.get_text()).strip()
            if child.name == 'dt':
                if term:
                    lines.append(f";{term}:")
                term = content
            else:
                lines.append(f";{term}:{content}")
                term = ''
        if term:
            lines.append(f";{term}:")
        return '\n\n' + '\n'.join(lines) + '\n\n' if lines else ''

    def convert_table(self, el, text, parent_tags=None, **kwargs):
        """Handle tables as || header and | cell rows."""
        rows = []
        for row in el.find_all('tr'):
            cells = []
            for cell in row.find_all(['th', 'td']):
                content = self._get_cell_text(cell).replace(r'\|', '~|')
                marker = '||' if cell.name == 'th' else '|'
                cells.append(f"{marker} {content} ")
            if cells:
                rows.append(''.join(cells).rstrip())
        if not rows:
            return ''
        return '\n\n' + '\n'.join(rows) + '\n\n'

    def _wrap_inline(self, markup: str, text: str, parent_tags) -> str:
        if parent_tags and '_noformat' in parent_tags:
            return text
        prefix, suffix, text = chomp(text)
        if not text:
            return ''
        return f"{prefix}{markup}{text}{markup}{suffix}"

    def _style_inline(self, el, text: str) -> str:
        prefix, suffix, text = chomp(text)
        if not text:
            return ''
        return f"{prefix}%%{STYLE_TAGS[el.name]} {text}/%{suffix}"


__all__ = ['JSPWikiTranslator']
