"""Renderer turning JSPWiki markup into HTML."""

import html
import logging
import re
from typing import List, Optional
from urllib.parse import quote, quote_plus

from errors import ErrorKind, MigrationError
from models import EngineConfig, RenderFlags, WikiContext

from .base_converter import Renderer

logger = logging.getLogger('jspwiki_migrator.converters.jspwikirenderer')

HEADING_RE = re.compile(r'^(!{1,3})\s*(.*)$')
RULE_RE = re.compile(r'^-{4,}\s*$')
LIST_ITEM_RE = re.compile(r'^([*#]+)\s*(.*)$')
DEFINITION_RE = re.compile(r'^;([^:]*):(.*)$')
BLOCK_STYLE_RE = re.compile(r'^%%(\([^)]*\)|[A-Za-z][\w-]*)\s*$')
BLOCK_STYLE_END = '/%'
PRE_OPEN = '{{{'
PRE_CLOSE = '}}}'

PLACEHOLDER_RE = re.compile(r'\x00(\d+)\x00')
ESCAPED_CHAR_RE = re.compile(r"~([\[\]{}_'!*#|\\~%^,-])")
INLINE_PRE_RE = re.compile(r'\{\{\{(.*?)\}\}\}')
PLUGIN_RE = re.compile(r'\[\{(.*?)\}\]')
LINK_RE = re.compile(r'\[([^\[\]]+)\]')
BOLD_RE = re.compile(r'__(.+?)__')
ITALIC_RE = re.compile(r"''(.+?)''")
MONOSPACE_RE = re.compile(r'\{\{(.+?)\}\}')
LINE_BREAK_RE = re.compile(r'\\\\\\?')
INLINE_STYLE_RE = re.compile(r'%%(\([^)]*\)|[A-Za-z][\w-]*)\s(.*?)/%')

EXTERNAL_LINK_RE = re.compile(r'^(?:[A-Za-z][A-Za-z0-9+.-]*://|mailto:|news:)')
FOOTNOTE_REF_RE = re.compile(r'^\d+$')
FOOTNOTE_DEF_RE = re.compile(r'^#(\d+)$')
EXTENSION_RE = re.compile(r'\.([A-Za-z0-9]{1,5})$')

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'svg', 'webp', 'bmp'}
ATTACHMENT_EXTENSIONS = IMAGE_EXTENSIONS | {
    'pdf', 'zip', 'gz', 'tgz', 'tar', '7z', 'jar', 'war',
    'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx', 'odt', 'ods', 'odp',
    'txt', 'csv', 'xml', 'json', 'log', 'sql', 'html', 'htm',
    'mp3', 'mp4', 'avi', 'mov', 'wav', 'ogg'
}

INLINE_STYLE_TAGS = {'sup': 'sup', 'sub': 'sub', 'strike': 'del'}


class JSPWikiMarkupParser:
    """
    Line-based parser for one JSPWiki page.

    A parser holds per-page state (open lists, pending paragraph) and is
    created for a single render call.
    """

    def __init__(self, context: WikiContext, flags: RenderFlags, logger: Optional[logging.Logger] = None):
        self.context = context
        self.flags = flags
        self.logger = logger or logging.getLogger('jspwiki_migrator.converters.jspwikirenderer')
        self.page_name = context.page.name
        self.out: List[str] = []
        self.paragraph: List[str] = []
        self.list_stack: List[str] = []
        self.style_depth = 0
        self.table_rows: List[str] = []
        self._placeholders: List[str] = []

    def parse(self, text: str) -> str:
        """Render a whole page to an HTML fragment."""
        text = text.replace('\x00', '').replace('\r\n', '\n').replace('\r', '\n')
        lines = text.split('\n')

        i = 0
        while i < len(lines):
            line = lines[i]
            stripped = line.strip()

            if stripped.startswith(PRE_OPEN) and PRE_CLOSE not in stripped[len(PRE_OPEN):]:
                i = self._parse_preformatted(lines, i)
                continue

            if not stripped:
                self._close_blocks()
                i += 1
                continue

            if line.startswith('|'):
                self._flush_paragraph()
                self._close_lists()
                self.table_rows.append(line)
                i += 1
                continue
            self._flush_table()

            style_match = BLOCK_STYLE_RE.match(stripped)
            if style_match:
                self._close_blocks()
                self.out.append(self._style_open(style_match.group(1), 'div'))
                self.style_depth += 1
            elif stripped == BLOCK_STYLE_END and self.style_depth:
                self._close_blocks()
                self.out.append('</div>')
                self.style_depth -= 1
            elif RULE_RE.match(line):
                self._close_blocks()
                self.out.append('<hr />')
            elif HEADING_RE.match(line):
                self._close_blocks()
                self._heading(HEADING_RE.match(line))
            elif LIST_ITEM_RE.match(line):
                self._flush_paragraph()
                match = LIST_ITEM_RE.match(line)
                self._list_item(match.group(1), self.render_inline(match.group(2)))
            elif DEFINITION_RE.match(line):
                self._close_blocks()
                self._definition(DEFINITION_RE.match(line))
            else:
                self._close_lists()
                self.paragraph.append(self.render_inline(line))
            i += 1

        self._close_blocks()
        while self.style_depth:
            self.out.append('</div>')
            self.style_depth -= 1

        return '\n'.join(self.out)

    def _parse_preformatted(self, lines: List[str], start: int) -> int:
        self._close_blocks()
        first = lines[start].strip()[len(PRE_OPEN):]
        content = [first] if first.strip() else []

        i = start + 1
        while i < len(lines):
            line = lines[i]
            if PRE_CLOSE in line:
                before = line[:line.index(PRE_CLOSE)]
                if before.strip():
                    content.append(before)
                i += 1
                break
            content.append(line)
            i += 1
        else:
            self.logger.debug(f"Unterminated preformatted block on page '{self.page_name}'")

        self.out.append(f"<pre>{html.escape(chr(10).join(content), quote=False)}</pre>")
        return i

    def _heading(self, match) -> None:
        level = {3: 2, 2: 3, 1: 4}[len(match.group(1))]
        title = match.group(2).strip()
        anchor = self._section_id(title)
        self.out.append(
            f'<h{level} id="{anchor}">{self.render_inline(title)}'
            f'<a class="hashlink" href="#{anchor}">#</a></h{level}>'
        )

    def _section_id(self, title: str) -> str:
        plain = re.sub(r'[^\w]', '', title)
        page = re.sub(r'[^\w]', '', self.page_name)
        return html.escape(f"section-{page}-{plain}")

    def _list_item(self, prefix: str, content: str) -> None:
        common = 0
        while (common < len(self.list_stack) and common < len(prefix)
               and self.list_stack[common] == self._list_tag(prefix[common])):
            common += 1

        while len(self.list_stack) > common:
            self.out.append(f"</li></{self.list_stack.pop()}>")

        if self.list_stack and len(self.list_stack) == len(prefix):
            self.out.append('</li>')
        else:
            while len(self.list_stack) < len(prefix):
                tag = self._list_tag(prefix[len(self.list_stack)])
                self.out.append(f"<{tag}>")
                self.list_stack.append(tag)
                if len(self.list_stack) < len(prefix):
                    self.out.append('<li>')

        self.out.append(f"<li>{content}")

    @staticmethod
    def _list_tag(marker: str) -> str:
        return 'ul' if marker == '*' else 'ol'

    def _close_lists(self) -> None:
        while self.list_stack:
            self.out.append(f"</li></{self.list_stack.pop()}>")

    def _definition(self, match) -> None:
        term = match.group(1).strip()
        definition = match.group(2).strip()
        parts = ['<dl>']
        if term:
            parts.append(f"<dt>{self.render_inline(term)}</dt>")
        parts.append(f"<dd>{self.render_inline(definition)}</dd>")
        parts.append('</dl>')
        self.out.append(''.join(parts))

    def _flush_paragraph(self) -> None:
        if self.paragraph:
            self.out.append(f"<p>{chr(10).join(self.paragraph)}</p>")
            self.paragraph = []

    def _flush_table(self) -> None:
        if not self.table_rows:
            return
        rows = []
        for row in self.table_rows:
            cells = []
            for is_header, cell in split_table_row(row):
                tag = 'th' if is_header else 'td'
                cells.append(f"<{tag}>{self.render_inline(cell.strip())}</{tag}>")
            rows.append(f"<tr>{''.join(cells)}</tr>")
        self.out.append(f'<table class="wikitable" border="1">{"".join(rows)}</table>')
        self.table_rows = []

    def _close_blocks(self) -> None:
        self._flush_paragraph()
        self._flush_table()
        self._close_lists()

    def _style_open(self, style: str, tag: str) -> str:
        if style.startswith('('):
            return f'<{tag} style="{html.escape(style[1:-1])}">'
        return f'<{tag} class="{html.escape(style)}">'

    def render_inline(self, text: str) -> str:
        """Render one line of inline markup."""
        self._placeholders = []

        text = ESCAPED_CHAR_RE.sub(lambda m: self._hold(html.escape(m.group(1), quote=False)), text)
        text = text.replace('[[', self._hold('['))
        text = INLINE_PRE_RE.sub(lambda m: self._hold(f"<code>{html.escape(m.group(1), quote=False)}</code>"), text)
        text = PLUGIN_RE.sub(lambda m: self._hold(self._plugin(m.group(1))), text)
        text = LINK_RE.sub(lambda m: self._hold(self._link(m.group(1))), text)

        text = html.escape(text, quote=False)

        text = BOLD_RE.sub(r'<b>\1</b>', text)
        text = ITALIC_RE.sub(r'<i>\1</i>', text)
        text = MONOSPACE_RE.sub(r'<code>\1</code>', text)
        text = INLINE_STYLE_RE.sub(self._inline_style, text)
        text = LINE_BREAK_RE.sub('<br />', text)

        # Placeholders never nest, one pass restores them all
        return PLACEHOLDER_RE.sub(lambda m: self._placeholders[int(m.group(1))], text)

    def _hold(self, fragment: str) -> str:
        self._placeholders.append(fragment)
        return f"\x00{len(self._placeholders) - 1}\x00"

    def _inline_style(self, match) -> str:
        style, content = match.group(1), match.group(2)
        tag = INLINE_STYLE_TAGS.get(style)
        if tag:
            return f"<{tag}>{content}</{tag}>"
        return f"{self._style_open(style, 'span')}{content}</span>"

    def _plugin(self, body: str) -> str:
        if self.flags.plugins_enabled:
            self.logger.warning(
                f"Plugin execution is not supported, keeping '[{{{body}}}]' as markup on page '{self.page_name}'"
            )
        return f'<span class="wikiplugin">{html.escape(body, quote=False)}</span>'

    def _link(self, body: str) -> str:
        parts = body.split('|')
        if len(parts) == 1:
            text = target = parts[0].strip()
        else:
            text, target = parts[0].strip(), parts[1].strip()
            text = text or target

        label = html.escape(text, quote=False)
        footnote = FOOTNOTE_DEF_RE.match(target)
        if footnote:
            return f'<a class="footnote" name="ref-{self._attr(self.page_name)}-{footnote.group(1)}">[#{footnote.group(1)}]</a>'

        if FOOTNOTE_REF_RE.match(target):
            return f'<a class="footnoteref" href="#ref-{self._attr(self.page_name)}-{target}">[{label}]</a>'

        extension = self._extension(target)

        if EXTERNAL_LINK_RE.match(target):
            if extension in IMAGE_EXTENSIONS and text == target:
                return f'<img class="inline" src="{self._attr(target)}" alt="{self._attr(target)}" />'
            return f'<a class="external" href="{self._attr(target)}">{label}</a>'

        if target.startswith('#'):
            return f'<a class="wikipage" href="{self._attr(target)}">{label}</a>'

        if extension in ATTACHMENT_EXTENSIONS:
            href = self._attachment_href(target)
            if extension in IMAGE_EXTENSIONS and text == target:
                return f'<img class="inline" src="{self._attr(href)}" alt="{self._attr(target)}" />'
            return f'<a class="attachment" href="{self._attr(href)}">{label}</a>'

        return f'<a class="wikipage" href="{self._attr(self._page_href(target))}">{label}</a>'

    def _page_href(self, target: str) -> str:
        if self.context.wysiwyg_editor_mode:
            return target
        name, _, section = target.partition('#')
        href = f"Wiki.jsp?page={quote_plus(name)}"
        return f"{href}#{section}" if section else href

    def _attachment_href(self, target: str) -> str:
        if self.context.wysiwyg_editor_mode:
            return target
        path = target if '/' in target else f"{self.page_name}/{target}"
        return f"attach/{quote(path)}"

    @staticmethod
    def _extension(target: str) -> Optional[str]:
        match = EXTENSION_RE.search(target.split('#', 1)[0].split('?', 1)[0])
        return match.group(1).lower() if match else None

    @staticmethod
    def _attr(value: str) -> str:
        return html.escape(value, quote=True)


def split_table_row(row: str):
    """
    Split a JSPWiki table row into ``(is_header, content)`` cells.

    '||' starts a header cell and '|' a data cell. Bars inside ``[...]``
    links do not split cells and '~|' is a literal bar.
    """
    cells = []
    current: List[str] = []
    is_header = False
    started = False
    depth = 0
    i = 0

    while i < len(row):
        char = row[i]
        if char == '~' and i + 1 < len(row) and row[i + 1] == '|':
            current.append('~|')
            i += 2
            continue
        if char == '[':
            depth += 1
        elif char == ']' and depth:
            depth -= 1
        elif char == '|' and depth == 0:
            if started:
                cells.append((is_header, ''.join(current)))
            current = []
            started = True
            is_header = i + 1 < len(row) and row[i + 1] == '|'
            i += 2 if is_header else 1
            continue
        current.append(char)
        i += 1

    if started and ''.join(current).strip():
        cells.append((is_header, ''.join(current)))
    return cells


class JSPWikiRenderer(Renderer):
    """Default renderer for the jspwiki dialect."""

    def __init__(self, config: EngineConfig, logger: Optional[logging.Logger] = None):
        super().__init__(config, logger or logging.getLogger('jspwiki_migrator.converters.jspwikirenderer'))

    def render(self, context: WikiContext, text: str, flags: RenderFlags) -> str:
        if text is None:
            raise MigrationError(
                ErrorKind.TRANSLATION,
                f"No markup to render for page '{context.page.name}'",
                page=context.page.name
            )

        parser = JSPWikiMarkupParser(context, flags, self.logger)
        rendered = parser.parse(text)
        self.logger.debug(f"Rendered {len(text)} chars of markup to {len(rendered)} chars of HTML")
        return rendered


__all__ = ['JSPWikiRenderer', 'JSPWikiMarkupParser', 'split_table_row']
