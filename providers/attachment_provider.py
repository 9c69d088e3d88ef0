"""Attachment store over the JSPWiki basic attachment directory layout."""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional

from errors import ErrorKind, MigrationError
from models import LATEST_VERSION, EngineConfig, WikiAttachment, WikiPage

from .base_provider import AttachmentStore, mangle_name, unmangle_name

ATTACHMENT_DIR_SUFFIX = '-att'
FILE_DIR_SUFFIX = '-dir'
DEFAULT_EXTENSION = 'bin'
COPY_CHUNK_SIZE = 64 * 1024
STAGING_SUFFIX = '.tmp'

VERSION_FILE_PATTERN = re.compile(r'^(\d+)\.[^.]+$')


def file_extension(filename: str) -> str:
    """
    Extension used for stored attachment versions.

    Args:
        filename: Attachment filename

    Returns:
        Text after the last dot, or 'bin' when there is none
    """
    if '.' not in filename:
        return DEFAULT_EXTENSION
    extension = filename.rsplit('.', 1)[1]
    return mangle_name(extension) if extension else DEFAULT_EXTENSION


class FileSystemAttachmentStore(AttachmentStore):
    """
    Attachment store over
    ``<page_dir>/<mangled page>-att/<mangled file>-dir/<version>.<ext>``.
    """

    def __init__(self, config: EngineConfig, logger=None):
        super().__init__(config, logger or logging.getLogger('jspwiki_migrator.providers.attachments'))
        self.storage_dir = Path(config.page_dir)

    def list_attachments(self, page: WikiPage) -> List[WikiAttachment]:
        page_dir = self._page_dir(page.name)
        if not page_dir.is_dir():
            return []

        try:
            entries = sorted(os.listdir(page_dir))
        except OSError as e:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Cannot list attachments of page '{page.name}': {e}",
                page=page.name,
                cause=e
            ) from e

        attachments = []
        for entry in entries:
            file_dir = page_dir / entry
            if not entry.endswith(FILE_DIR_SUFFIX) or not file_dir.is_dir():
                continue

            filename = unmangle_name(entry[:-len(FILE_DIR_SUFFIX)])
            version = self._latest_version(file_dir)
            if version is None:
                self.logger.warning(f"Attachment '{filename}' of '{page.name}' has no stored versions")
                continue

            path = file_dir / f"{version}.{file_extension(filename)}"
            attachments.append(WikiAttachment(
                filename=filename,
                page_name=page.name,
                version=version,
                size=path.stat().st_size if path.exists() else 0
            ))

        return attachments

    def open_stream(self, page: WikiPage, attachment: WikiAttachment) -> BinaryIO:
        path = self.attachment_path(attachment)
        try:
            return open(path, 'rb')
        except OSError as e:
            raise MigrationError(
                ErrorKind.RESOURCE,
                f"Cannot open attachment '{attachment.filename}' of page '{page.name}': {e}",
                page=page.name,
                cause=e
            ) from e

    def store(self, attachment: WikiAttachment, stream: BinaryIO) -> Optional[int]:
        file_dir = self._file_dir(attachment.page_name, attachment.filename)
        tmp_name = None

        try:
            file_dir.mkdir(parents=True, exist_ok=True)

            latest = self._latest_version(file_dir)
            version = 1 if latest is None else latest + 1
            target = file_dir / f"{version}.{file_extension(attachment.filename)}"

            with tempfile.NamedTemporaryFile(
                dir=file_dir,
                prefix=f".{target.name}.",
                suffix=STAGING_SUFFIX,
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                shutil.copyfileobj(stream, tmp, COPY_CHUNK_SIZE)

            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Cannot store attachment '{attachment.filename}' of page '{attachment.page_name}': {e}",
                page=attachment.page_name,
                cause=e
            ) from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        self.logger.debug(f"Stored {attachment.page_name}/{attachment.filename} as version {version}")
        return version

    def attachment_path(self, attachment: WikiAttachment) -> Path:
        """Path of the stored file for an attachment version (latest if unspecified)."""
        file_dir = self._file_dir(attachment.page_name, attachment.filename)
        version = attachment.version
        if version == LATEST_VERSION:
            version = self._latest_version(file_dir) or 1
        return file_dir / f"{version}.{file_extension(attachment.filename)}"

    def _page_dir(self, page_name: str) -> Path:
        return self.storage_dir / f"{mangle_name(page_name)}{ATTACHMENT_DIR_SUFFIX}"

    def _file_dir(self, page_name: str, filename: str) -> Path:
        return self._page_dir(page_name) / f"{mangle_name(filename)}{FILE_DIR_SUFFIX}"

    @staticmethod
    def _latest_version(file_dir: Path) -> Optional[int]:
        if not file_dir.is_dir():
            return None
        versions = []
        for entry in os.listdir(file_dir):
            match = VERSION_FILE_PATTERN.match(entry)
            if match:
                versions.append(int(match.group(1)))
        return max(versions) if versions else None


__all__ = ['FileSystemAttachmentStore', 'file_extension']
