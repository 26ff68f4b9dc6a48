"""Typed failures raised by the filesystem blob provider.

Transient I/O failures are not wrapped: once the read retry policy gives up,
the original ``OSError`` reaches the caller unchanged.
"""

from __future__ import annotations


class BlobStorageError(Exception):
    """Base exception for blob storage errors."""


class InvalidArgumentError(BlobStorageError, ValueError):
    """A required argument was missing or empty.

    Attributes:
        argument: Name of the offending argument.
    """

    def __init__(self, argument: str, message: str | None = None) -> None:
        """Initialize invalid argument error.

        Args:
            argument: Name of the offending argument.
            message: Optional custom message.
        """
        super().__init__(message or f"Argument '{argument}' must not be empty")
        self.argument = argument


class PathViolationError(BlobStorageError):
    """A resolved path escapes the storage root.

    Attributes:
        path: The canonicalized path that was rejected.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid path {path}")
        self.path = path


class BlobNotFoundError(BlobStorageError):
    """Raised when a blob or folder is not found."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Blob not found: {url}")
        self.url = url


class ExtensionNotAllowedError(BlobStorageError):
    """The file extension is rejected by the extension policy."""

    def __init__(self, extension: str) -> None:
        super().__init__(
            f"File extension {extension} is not allowed. Please contact administrator."
        )
        self.extension = extension
