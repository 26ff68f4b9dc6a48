"""Filesystem blob provider: validated, retrying blob I/O under one root.

Every caller-supplied URL is resolved to a storage path by the URL mapper and
checked against the storage root before any filesystem call touches it.
Entries discovered while walking a folder (search, recursive copy) are checked
the same way, so a symbolic link pointing outside the root is never followed.

Each operation has a blocking form and an awaitable ``*_async`` form running
the same filesystem calls off the event loop. The blocking forms of
``open_write``, ``remove`` and ``move`` drive their coroutine with
``asyncio.run`` because the extension policy and the event publisher are
asynchronous; do not call them from inside a running event loop.

Examples:
    >>> from fsassets.storage import FileSystemBlobProvider, StorageConfig
    >>> provider = FileSystemBlobProvider(
    ...     StorageConfig(root_path="/srv/assets", public_url="https://cdn.example.com/assets")
    ... )
    >>> with provider.open_write("catalog/manual.pdf") as stream:
    ...     stream.write(data)
    >>> provider.get_info("catalog/manual.pdf").url
    'https://cdn.example.com/assets/catalog/manual.pdf'
"""

from __future__ import annotations

import asyncio
import fnmatch
import glob
import logging
import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from fsassets.storage.config import StorageConfig
from fsassets.storage.errors import (
    BlobNotFoundError,
    ExtensionNotAllowedError,
    InvalidArgumentError,
    PathViolationError,
)
from fsassets.storage.events import BlobDeletedEvent, EventPublisher
from fsassets.storage.extensions import AllowListExtensionService, FileExtensionService
from fsassets.storage.models import BlobFolder, BlobInfo, BlobSearchResult, resolve_content_type
from fsassets.storage.retry import ReadRetryPolicy
from fsassets.storage.streams import BlobUploadStream
from fsassets.storage.urls import BlobUrlMapper

if TYPE_CHECKING:
    from fsassets.config import Settings

logger = logging.getLogger(__name__)


def _utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _creation_time(st: os.stat_result) -> float:
    # st_ctime is the inode change time on POSIX; birth time where the OS has it
    return getattr(st, "st_birthtime", st.st_ctime)


class FileSystemBlobProvider:
    """Blob storage, existence checks and URL resolution over a local directory.

    Attributes:
        config: Storage configuration.
        urls: URL mapper anchored to the storage root and public URL.
        extension_service: Extension policy consulted before writes and file moves.
        event_publisher: Optional destination for deletion events.
    """

    PROVIDER_NAME = "FileSystem"

    def __init__(
        self,
        config: StorageConfig,
        extension_service: FileExtensionService | None = None,
        event_publisher: EventPublisher | None = None,
    ) -> None:
        self.config = config
        self.urls = BlobUrlMapper(config.root_path, config.public_url)
        self.extension_service = extension_service or AllowListExtensionService()
        self.event_publisher = event_publisher
        self.read_retry = ReadRetryPolicy(
            max_retries=config.read_retry_count,
            base_delay=config.read_retry_delay_ms / 1000,
        )

        root = Path(self.urls.storage_root)
        root.mkdir(parents=True, exist_ok=True)
        self._canonical_root = root.resolve()

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        event_publisher: EventPublisher | None = None,
    ) -> "FileSystemBlobProvider":
        """Create a provider from application settings."""
        return cls(
            config=settings.get_storage_config(),
            extension_service=AllowListExtensionService(
                allowed_extensions=settings.allowed_extensions,
                blocked_extensions=settings.blocked_extensions,
            ),
            event_publisher=event_publisher,
        )

    @property
    def storage_root(self) -> str:
        return self.urls.storage_root

    @property
    def public_url(self) -> str:
        return self.urls.public_url

    # URL resolution

    def normalize_to_absolute(self, url: str) -> str:
        """Return the escaped absolute URL for any accepted URL form."""
        return self.urls.normalize_to_absolute(url)

    def _is_inside_root(self, canonical: Path) -> bool:
        root = self._canonical_root
        return canonical == root or root in canonical.parents

    def validate_path(self, path: str | Path) -> None:
        """Reject paths that leave the storage root.

        The path is canonicalized first so ``..`` segments and symbolic links
        cannot be used to climb out of the sandbox.

        Raises:
            PathViolationError: If the path is not the root or inside it.
        """
        canonical = Path(path).resolve()
        if not self._is_inside_root(canonical):
            raise PathViolationError(str(canonical))

    def _resolve(self, url: str | None) -> Path:
        path = Path(self.urls.resolve_path(url))
        self.validate_path(path)
        return path

    # Existence and metadata

    def exists(self, url: str) -> bool:
        """Check whether a regular file exists at the URL."""
        return self.get_info(url) is not None

    async def exists_async(self, url: str) -> bool:
        return await self.get_info_async(url) is not None

    def get_info(self, url: str) -> BlobInfo | None:
        """Get blob info by absolute or relative URL.

        Args:
            url: Blob URL.

        Returns:
            BlobInfo, or None when no regular file exists there. Directories
            do not count.

        Raises:
            InvalidArgumentError: If url is empty.
            PathViolationError: If the URL escapes the storage root.
        """
        if not url:
            raise InvalidArgumentError("url")

        path = self._resolve(url)
        if not path.is_file():
            return None
        return self._build_blob_info(path)

    async def get_info_async(self, url: str) -> BlobInfo | None:
        return await asyncio.to_thread(self.get_info, url)

    def _build_blob_info(self, path: Path) -> BlobInfo:
        st = path.stat()
        url = self.urls.to_url(str(path.parent), path.name)
        return BlobInfo(
            name=path.name,
            url=url,
            relative_url=self.urls.to_relative_url(url),
            content_type=resolve_content_type(path.name),
            size=st.st_size,
            created_date=_utc(_creation_time(st)),
            modified_date=_utc(st.st_mtime),
        )

    def _build_blob_folder(self, path: Path) -> BlobFolder:
        st = path.stat()
        url = self.urls.to_url(str(path))
        return BlobFolder(
            name=path.name,
            url=url,
            relative_url=self.urls.to_relative_url(url),
            parent_url=self.urls.to_url(str(path.parent)),
            created_date=_utc(_creation_time(st)),
            modified_date=_utc(st.st_mtime),
        )

    # Read / write

    def _open_for_read(self, path: Path) -> BinaryIO:
        return path.open("rb")

    def open_read(self, url: str) -> BinaryIO:
        """Open a blob for reading by absolute or relative URL.

        Transient I/O failures are retried; a missing file is not.

        Returns:
            Read-only binary stream. The caller closes it.

        Raises:
            InvalidArgumentError: If url is empty.
            PathViolationError: If the URL escapes the storage root.
            BlobNotFoundError: If there is no file at the URL.
            OSError: The last transient failure once retries are exhausted.
        """
        if not url:
            raise InvalidArgumentError("url")

        path = self._resolve(url)
        try:
            return self.read_retry.call(self._open_for_read, path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise BlobNotFoundError(url) from e

    async def open_read_async(self, url: str) -> BinaryIO:
        if not url:
            raise InvalidArgumentError("url")

        path = await asyncio.to_thread(self._resolve, url)

        async def _open() -> BinaryIO:
            return await asyncio.to_thread(self._open_for_read, path)

        try:
            return await self.read_retry.call_async(_open)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise BlobNotFoundError(url) from e

    async def _ensure_extension_allowed(self, path: Path) -> None:
        if not await self.extension_service.is_extension_allowed(str(path)):
            raise ExtensionNotAllowedError(path.suffix)

    def open_write(self, url: str) -> BlobUploadStream:
        """Open a blob for writing, creating or truncating it.

        Returns:
            Write-only stream bound to the blob URL.

        Raises:
            InvalidArgumentError: If url is empty.
            ExtensionNotAllowedError: If the extension policy rejects the file.
            PathViolationError: If the URL escapes the storage root.
        """
        return asyncio.run(self.open_write_async(url))

    async def open_write_async(self, url: str) -> BlobUploadStream:
        if not url:
            raise InvalidArgumentError("url")

        path = Path(self.urls.resolve_path(url))
        await self._ensure_extension_allowed(path)
        await asyncio.to_thread(self.validate_path, path)

        raw = await asyncio.to_thread(self._create_for_write, path)
        return BlobUploadStream(raw, url=url, provider=self.PROVIDER_NAME)

    @staticmethod
    def _create_for_write(path: Path) -> BinaryIO:
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.open("wb")

    # Listing

    def search(self, folder_url: str | None = None, keyword: str | None = None) -> BlobSearchResult:
        """Search folders and blobs in a folder.

        Without a keyword only the immediate children are listed. With a
        keyword every descendant whose name contains it is returned. Symbolic
        links resolving outside the storage root are left out.

        Args:
            folder_url: Absolute or relative folder URL; defaults to the public URL.
            keyword: Optional name fragment.

        Returns:
            Folders first, then blobs. Empty when the folder does not exist.
        """
        if folder_url is None:
            folder_url = self.urls.public_url

        folder_path = self._resolve(folder_url)
        result = BlobSearchResult()
        if not folder_path.is_dir():
            return result

        if keyword:
            candidates = self._find_matching(folder_path, keyword)
        else:
            candidates = list(folder_path.iterdir())

        directories: list[Path] = []
        files: list[Path] = []
        for path in candidates:
            if not self._is_inside_root(path.resolve()):
                logger.warning(f"Skipping entry outside storage root: {path}")
            elif path.is_dir():
                directories.append(path)
            elif path.is_file():
                files.append(path)

        for directory in directories:
            result.results.append(self._build_blob_folder(directory))
        for file_path in files:
            result.results.append(self._build_blob_info(file_path))

        result.total_count = len(result.results)
        return result

    async def search_async(
        self, folder_url: str | None = None, keyword: str | None = None
    ) -> BlobSearchResult:
        return await asyncio.to_thread(self.search, folder_url, keyword)

    @staticmethod
    def _find_matching(folder_path: Path, keyword: str) -> list[Path]:
        pattern = f"*{glob.escape(keyword)}*"
        matches: list[Path] = []
        # symlinked directories are reported but never descended into
        for dirpath, dirnames, filenames in os.walk(folder_path):
            parent = Path(dirpath)
            matches.extend(
                parent / name for name in dirnames + filenames if fnmatch.fnmatch(name, pattern)
            )
        return matches

    # Folders

    def create_folder(self, folder: BlobFolder) -> None:
        """Create a folder under its parent URL, or under the storage root.

        Idempotent when the folder already exists.

        Raises:
            InvalidArgumentError: If folder is None.
            PathViolationError: If the folder would land outside the storage root.
        """
        if folder is None:
            raise InvalidArgumentError("folder")

        parent = Path(self.urls.storage_root)
        if folder.parent_url is not None:
            parent = Path(self.urls.resolve_path(folder.parent_url))
        path = parent / folder.name

        self.validate_path(path)
        if not path.is_dir():
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Folder created: {path}")

    async def create_folder_async(self, folder: BlobFolder) -> None:
        await asyncio.to_thread(self.create_folder, folder)

    # Removal

    def remove(self, urls: list[str]) -> None:
        """Remove folders and blobs by absolute or relative URLs.

        See ``remove_async``.
        """
        asyncio.run(self.remove_async(urls))

    async def remove_async(self, urls: list[str]) -> None:
        """Remove folders and blobs, then publish one deletion event.

        Blank entries are ignored. Deletion stops at the first failure and no
        event is published in that case; entries deleted before the failure
        stay deleted.

        Raises:
            InvalidArgumentError: If urls is None.
            PathViolationError: If any URL escapes the storage root.
            BlobNotFoundError: If any URL points at nothing.
        """
        if urls is None:
            raise InvalidArgumentError("urls")

        urls_to_delete = [url for url in urls if url and url.strip()]
        if not urls_to_delete:
            return

        await asyncio.to_thread(self._delete_entries, urls_to_delete)
        await self._raise_blob_deleted_event(urls_to_delete)

    def _delete_entries(self, urls: list[str]) -> None:
        for url in urls:
            path = self._resolve(url)
            try:
                st = path.stat()
            except FileNotFoundError as e:
                raise BlobNotFoundError(url) from e

            if stat.S_ISDIR(st.st_mode):
                shutil.rmtree(path)
            else:
                path.unlink()
            logger.info(f"Blob removed: {url}")

    async def _raise_blob_deleted_event(self, urls: list[str]) -> None:
        if self.event_publisher is None:
            return
        await self.event_publisher.publish(BlobDeletedEvent.from_urls(urls, self.PROVIDER_NAME))

    # Move / copy

    def move(self, src_url: str, dest_url: str) -> bool:
        """Move a folder or blob. See ``move_async``."""
        return asyncio.run(self.move_async(src_url, dest_url))

    async def move_async(self, src_url: str, dest_url: str) -> bool:
        """Rename a folder or blob inside the storage root.

        An existing destination is never overwritten; the call does nothing
        instead.

        Returns:
            True if something was moved, False if the call was a no-op.

        Raises:
            InvalidArgumentError: If either URL is empty.
            PathViolationError: If either URL escapes the storage root.
            ExtensionNotAllowedError: If a file would get a disallowed extension.
        """
        if not src_url:
            raise InvalidArgumentError("src_url")
        if not dest_url:
            raise InvalidArgumentError("dest_url")

        src_path, dst_path, kind = await asyncio.to_thread(self._plan_move, src_url, dest_url)
        if kind is None:
            logger.info(f"Move skipped, source missing or destination exists: {src_url} -> {dest_url}")
            return False

        if kind == "blob":
            await self._ensure_extension_allowed(dst_path)
        await asyncio.to_thread(src_path.rename, dst_path)
        logger.info(f"{kind.capitalize()} moved: {src_url} -> {dest_url}")
        return True

    def _plan_move(self, src_url: str, dest_url: str) -> tuple[Path, Path, str | None]:
        """Resolve both ends of a move and classify the source.

        The kind is ``"folder"`` or ``"blob"``, or None when the move must not
        happen.
        """
        src_path = self._resolve(src_url)
        dst_path = self._resolve(dest_url)

        if src_path == dst_path or dst_path.exists():
            return src_path, dst_path, None
        if src_path.is_dir():
            return src_path, dst_path, "folder"
        if src_path.is_file():
            return src_path, dst_path, "blob"
        return src_path, dst_path, None

    def copy(self, src_url: str, dest_url: str) -> None:
        """Copy a folder tree or a single blob.

        Folders are copied recursively and files already present at the
        destination are overwritten. The copy is not atomic: a failure part
        way leaves a partially populated destination. The extension policy is
        not consulted.

        Raises:
            InvalidArgumentError: If either URL is empty, or the destination
                lies inside the source folder.
            PathViolationError: If either URL escapes the storage root, or the
                source tree holds a link resolving outside it.
            BlobNotFoundError: If the source does not exist.
        """
        if not src_url:
            raise InvalidArgumentError("src_url")
        if not dest_url:
            raise InvalidArgumentError("dest_url")

        src_path = self._resolve(src_url)
        dst_path = self._resolve(dest_url)

        if src_path.is_file():
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src_path, dst_path)
        elif src_path.is_dir():
            src_real = src_path.resolve()
            dst_real = dst_path.resolve()
            if dst_real == src_real or src_real in dst_real.parents:
                raise InvalidArgumentError("dest_url", "Cannot copy a folder into itself")
            self._copy_directory_recursive(src_path, dst_path)
        else:
            raise BlobNotFoundError(src_url)

        logger.info(f"Copied: {src_url} -> {dest_url}")

    async def copy_async(self, src_url: str, dest_url: str) -> None:
        await asyncio.to_thread(self.copy, src_url, dest_url)

    def _copy_directory_recursive(self, source_path: Path, dest_path: Path) -> None:
        entries = list(source_path.iterdir())
        for entry in entries:
            self.validate_path(entry)

        dest_path.mkdir(parents=True, exist_ok=True)

        for entry in entries:
            if entry.is_file():
                shutil.copy2(entry, dest_path / entry.name)

        for entry in entries:
            if entry.is_dir():
                self._copy_directory_recursive(entry, dest_path / entry.name)
