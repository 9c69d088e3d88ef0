"""Attachment carry-over from the source store to the target store."""

import hashlib
import logging
from typing import BinaryIO, Optional

from tqdm import tqdm

from errors import ErrorKind, MigrationError, error_boundary
from models import LATEST_VERSION, EngineConfig, WikiAttachment, WikiPage
from providers import ProviderRegistry

CHUNK_SIZE = 64 * 1024


class HashingReader:
    """Read-only stream wrapper computing a SHA-256 digest of what is read through it."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.digest = hashlib.sha256()
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self.stream.read(size)
        self.digest.update(chunk)
        self.bytes_read += len(chunk)
        return chunk

    def hexdigest(self) -> str:
        return self.digest.hexdigest()


class AttachmentMigrator:
    """
    Copies every attachment of a page from the source to the target store.

    Each attachment is streamed in chunks, never read whole. The first
    failure abandons the remaining attachments of that page.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        verify_checksums: bool = True,
        dry_run: bool = False,
        show_progress: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the attachment migrator.

        Args:
            providers: Registry handing out the attachment stores
            verify_checksums: Compare SHA-256 of source stream and stored copy
            dry_run: Count attachments without copying them
            show_progress: Show a per-page tqdm bar for attachments
            logger: Logger instance
        """
        self.providers = providers
        self.verify_checksums = verify_checksums
        self.dry_run = dry_run
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger('jspwiki_migrator.orchestrator.attachments')

    def migrate(self, page: WikiPage, source_config: EngineConfig, target_config: EngineConfig) -> int:
        """
        Copy the attachments of ``page``.

        Args:
            page: Owning page
            source_config: Configuration of the source engine
            target_config: Configuration of the target engine

        Returns:
            Number of attachments copied (counted only, in dry-run mode)

        Raises:
            MigrationError: ResourceError when a source stream cannot be opened
                or closed, StorageError when storing or verification fails
        """
        source = self.providers.attachment_store(source_config)
        target = self.providers.attachment_store(target_config)

        with error_boundary(ErrorKind.STORAGE, page.name, "Listing attachments"):
            attachments = list(source.list_attachments(page))

        if not attachments:
            return 0

        if self.dry_run:
            self.logger.info(f"[dry-run] Would copy {len(attachments)} attachment(s) of '{page.name}'")
            return len(attachments)

        self.logger.debug(f"Processing {len(attachments)} attachment(s) for page '{page.name}'")

        attachments_iter = attachments
        if self.show_progress:
            attachments_iter = tqdm(attachments, desc=f"Attachments: {page.name[:30]}", leave=False)

        copied = 0
        for attachment in attachments_iter:
            self._copy(page, attachment, source, target)
            copied += 1

        return copied

    def _copy(self, page: WikiPage, attachment: WikiAttachment, source, target) -> None:
        filename = attachment.filename

        with error_boundary(ErrorKind.RESOURCE, page.name, f"Opening attachment '{filename}'"):
            stream = source.open_stream(page, attachment)

        try:
            reader = HashingReader(stream)
            with error_boundary(ErrorKind.STORAGE, page.name, f"Storing attachment '{filename}'"):
                version = target.store(
                    WikiAttachment(filename=filename, page_name=page.name, size=attachment.size),
                    reader
                )
        except BaseException:
            self._close_after_failure(stream, page, filename)
            raise

        with error_boundary(ErrorKind.RESOURCE, page.name, f"Closing attachment '{filename}'"):
            stream.close()

        if self.verify_checksums:
            stored = WikiAttachment(filename=filename, page_name=page.name, version=version or LATEST_VERSION)
            self._verify(page, stored, target, reader.hexdigest())

        self.logger.debug(f"Copied attachment '{filename}' of '{page.name}' ({reader.bytes_read} bytes)")

    def _verify(self, page: WikiPage, stored: WikiAttachment, target, expected: str) -> None:
        with error_boundary(ErrorKind.STORAGE, page.name, f"Verifying attachment '{stored.filename}'"):
            digest = hashlib.sha256()
            with target.open_stream(page, stored) as copy:
                for chunk in iter(lambda: copy.read(CHUNK_SIZE), b''):
                    digest.update(chunk)

        if digest.hexdigest() != expected:
            raise MigrationError(
                ErrorKind.STORAGE,
                f"Checksum mismatch for attachment '{stored.filename}' of page '{page.name}'",
                page=page.name
            )

    def _close_after_failure(self, stream: BinaryIO, page: WikiPage, filename: str) -> None:
        try:
            stream.close()
        except Exception as e:
            self.logger.warning(f"Failed to close attachment '{filename}' of '{page.name}': {e}")


__all__ = ['AttachmentMigrator', 'HashingReader']
