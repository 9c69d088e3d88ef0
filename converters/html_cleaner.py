"""HTML cleaner for removing JSPWiki editor and navigation markup without losing content."""

import logging
import re
from urllib.parse import unquote, unquote_plus

from bs4 import BeautifulSoup

logger = logging.getLogger('jspwiki_migrator.converters.htmlcleaner')

PAGE_URL_RE = re.compile(r'^(?:.*/)?(?:Wiki|Edit|PageInfo)\.jsp\?page=([^&#]+)[^#]*(#.*)?$')
ATTACHMENT_URL_RE = re.compile(r'^(?:.*/)?attach/([^?#]+)')
SECTION_ID_RE = re.compile(r'^section-')

EDITOR_UI_CLASSES = ['hashlink', 'editsection', 'createpage-marker']
LINK_CLASSES = {'wikipage', 'external', 'attachment', 'createpage'}
COLLAPSIBLE_TAGS = ['div', 'span', 'p']


def normalize_wiki_url(url: str) -> str:
    """
    Turn an engine URL into the plain name a migrated page links to.

    ``Wiki.jsp?page=Some+Page#sec`` becomes ``Some Page#sec`` and
    ``attach/Some%20Page/file.pdf`` becomes ``Some Page/file.pdf``. Any
    other URL is returned unchanged.
    """
    match = PAGE_URL_RE.match(url)
    if match:
        return unquote_plus(match.group(1)) + (match.group(2) or '')

    match = ATTACHMENT_URL_RE.match(url)
    if match:
        return unquote(match.group(1))

    return url


class HtmlCleaner:
    """Removes JSPWiki-specific HTML markup for cleaner conversion."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('jspwiki_migrator.converters.htmlcleaner')

    def clean(self, soup: BeautifulSoup) -> BeautifulSoup:
        """
        Strip editor decoration from rendered page HTML, in place.

        Args:
            soup: BeautifulSoup object with rendered page HTML

        Returns:
            The same soup, cleaned
        """
        self.logger.debug("Cleaning rendered HTML")

        for element in soup.find_all(class_=EDITOR_UI_CLASSES):
            element.decompose()

        # Section anchors are regenerated by the target wiki
        for element in soup.find_all(id=SECTION_ID_RE):
            del element['id']

        self._rewrite_links(soup)
        removed = self._drop_empty_wrappers(soup)

        self.logger.debug(f"HTML cleaned ({removed} empty wrappers dropped)")
        return soup

    def _rewrite_links(self, soup: BeautifulSoup) -> None:
        for img in soup.find_all('img'):
            if img.get('src'):
                img['src'] = normalize_wiki_url(img['src'])
            if not img.get('alt') and img.get('title'):
                img['alt'] = img['title']

        for link in soup.find_all('a'):
            if link.get('href'):
                link['href'] = normalize_wiki_url(link['href'])

            # Link classes carry no meaning once the href is a page name
            kept = [c for c in link.get('class', []) if c not in LINK_CLASSES]
            if kept:
                link['class'] = kept
            elif link.has_attr('class'):
                del link['class']

    def _drop_empty_wrappers(self, soup: BeautifulSoup) -> int:
        """Drop text-less, attribute-less wrappers; plugin spans keep their class."""
        empty = [
            element for element in soup.find_all(COLLAPSIBLE_TAGS)
            if not element.attrs and element.find() is None and not element.get_text(strip=True)
        ]
        for element in empty:
            element.decompose()
        return len(empty)


__all__ = ['HtmlCleaner', 'normalize_wiki_url']
