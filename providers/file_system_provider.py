"""Page store reading and writing the JSPWiki file system page layout."""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from errors import ErrorKind, MigrationError
from models import LATEST_VERSION, EngineConfig, WikiContext, WikiPage

from .base_provider import PageStore, mangle_name, unmangle_name

OLD_DIR = 'OLD'
STAGING_SUFFIX = '.tmp'
VERSION_FILE_PATTERN = re.compile(r'^(\d+)\.[^.]+$')


class FileSystemPageStore(PageStore):
    """
    Page store over ``<page_dir>/<mangled name><ext>``.

    Previous versions live under ``OLD/<mangled name>/<n><ext>``; the
    current version number is one more than the newest archived version.
    """

    def __init__(self, config: EngineConfig, logger=None):
        super().__init__(config, logger or logging.getLogger('jspwiki_migrator.providers.file_system'))
        self.page_dir = Path(config.page_dir)
        self.extension = config.file_extension
        self._text_cache: Dict[str, str] = {}
        self._page_cache: Optional[List[WikiPage]] = None

    def list_all_pages(self) -> List[WikiPage]:
        if self.config.cache_enabled and self._page_cache is not None:
            return list(self._page_cache)

        if not self.page_dir.is_dir():
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Page directory does not exist: {self.page_dir}"
            )

        try:
            entries = sorted(os.listdir(self.page_dir))
        except OSError as e:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Cannot read page directory {self.page_dir}: {e}",
                cause=e
            ) from e

        pages = []
        for entry in entries:
            path = self.page_dir / entry
            if not entry.endswith(self.extension) or not path.is_file():
                continue
            name = unmangle_name(entry[:-len(self.extension)])
            pages.append(WikiPage(name=name, version=self._current_version(name)))

        self.logger.debug(f"Found {len(pages)} pages in {self.page_dir}")

        if self.config.cache_enabled:
            self._page_cache = list(pages)
        return pages

    def get_raw_text(self, name: str, version: int = LATEST_VERSION) -> str:
        cache_key = f"{name}@{version}"
        if self.config.cache_enabled and cache_key in self._text_cache:
            return self._text_cache[cache_key]

        path = self._version_path(name, version)
        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise MigrationError(
                ErrorKind.TRANSLATION,
                f"Page '{name}' is not valid UTF-8: {e}",
                page=name,
                cause=e
            ) from e
        except OSError as e:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Cannot read page '{name}' version {version}: {e}",
                page=name,
                cause=e
            ) from e

        if self.config.cache_enabled:
            self._text_cache[cache_key] = text
        return text

    def save_text(self, context: WikiContext, text: str) -> None:
        name = context.page.name
        target = self._page_path(name)
        tmp_name = None

        try:
            self.page_dir.mkdir(parents=True, exist_ok=True)

            # Staged beside the target so the replace stays on one file system
            with tempfile.NamedTemporaryFile(
                mode='w',
                encoding='utf-8',
                dir=self.page_dir,
                prefix=f".{target.name}.",
                suffix=STAGING_SUFFIX,
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)

            if target.exists():
                self._archive_current(name)

            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Cannot save page '{name}' to {target}: {e}",
                page=name,
                cause=e
            ) from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        self._page_cache = None
        self._text_cache = {
            key: value for key, value in self._text_cache.items()
            if not key.startswith(f"{name}@")
        }
        self.logger.debug(f"Saved page '{name}' to {target}")

    def page_exists(self, name: str) -> bool:
        return self._page_path(name).is_file()

    def _page_path(self, name: str) -> Path:
        return self.page_dir / f"{mangle_name(name)}{self.extension}"

    def _old_dir(self, name: str) -> Path:
        return self.page_dir / OLD_DIR / mangle_name(name)

    def _archived_versions(self, name: str) -> List[int]:
        old_dir = self._old_dir(name)
        if not old_dir.is_dir():
            return []
        versions = []
        for entry in os.listdir(old_dir):
            match = VERSION_FILE_PATTERN.match(entry)
            if match:
                versions.append(int(match.group(1)))
        return versions

    def _current_version(self, name: str) -> int:
        versions = self._archived_versions(name)
        return max(versions) + 1 if versions else 1

    def _version_path(self, name: str, version: int) -> Path:
        if version == LATEST_VERSION or version == self._current_version(name):
            return self._page_path(name)
        return self._old_dir(name) / f"{version}{self.extension}"

    def _archive_current(self, name: str) -> None:
        old_dir = self._old_dir(name)
        old_dir.mkdir(parents=True, exist_ok=True)
        version = self._current_version(name)
        shutil.copy2(self._page_path(name), old_dir / f"{version}{self.extension}")


__all__ = ['FileSystemPageStore']
