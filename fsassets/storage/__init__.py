"""Blob storage package for the asset service.

Provides a filesystem-backed blob provider with sandboxed URL resolution,
retried reads, an extension policy and deletion events.

Examples:
    >>> from fsassets.storage import FileSystemBlobProvider, StorageConfig
    >>> provider = FileSystemBlobProvider(
    ...     StorageConfig(root_path="./assets", public_url="http://localhost:8000/assets")
    ... )
    >>> provider.search().total_count
    0
"""

from fsassets.storage.config import StorageConfig
from fsassets.storage.errors import (
    BlobNotFoundError,
    BlobStorageError,
    ExtensionNotAllowedError,
    InvalidArgumentError,
    PathViolationError,
)
from fsassets.storage.events import (
    BlobChangedEntry,
    BlobDeletedEvent,
    BlobEventInfo,
    EntryState,
    EventPublisher,
)
from fsassets.storage.extensions import AllowListExtensionService, FileExtensionService
from fsassets.storage.models import BlobFolder, BlobInfo, BlobSearchResult
from fsassets.storage.provider import FileSystemBlobProvider
from fsassets.storage.retry import ReadRetryPolicy
from fsassets.storage.streams import BlobUploadStream
from fsassets.storage.urls import BlobUrlMapper

__all__ = [
    "AllowListExtensionService",
    "BlobChangedEntry",
    "BlobDeletedEvent",
    "BlobEventInfo",
    "BlobFolder",
    "BlobInfo",
    "BlobNotFoundError",
    "BlobSearchResult",
    "BlobStorageError",
    "BlobUploadStream",
    "BlobUrlMapper",
    "EntryState",
    "EventPublisher",
    "ExtensionNotAllowedError",
    "FileExtensionService",
    "FileSystemBlobProvider",
    "InvalidArgumentError",
    "PathViolationError",
    "ReadRetryPolicy",
    "StorageConfig",
]
