"""File extension policy consulted before blobs are written or renamed."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterable


class FileExtensionService(ABC):
    """Decides whether a file extension may be stored."""

    @abstractmethod
    async def is_extension_allowed(self, path: str) -> bool:
        """Check the extension of a destination path.

        Args:
            path: Storage path or file name.

        Returns:
            True if the extension may be stored.
        """


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and give it a leading dot."""
    extension = extension.strip().lower()
    if extension and not extension.startswith("."):
        extension = "." + extension
    return extension


class AllowListExtensionService(FileExtensionService):
    """Allow/block list policy.

    Blocked extensions always lose. A non-empty allow list restricts writes to
    the listed extensions. With both lists empty everything is allowed.
    """

    def __init__(
        self,
        allowed_extensions: Iterable[str] | None = None,
        blocked_extensions: Iterable[str] | None = None,
    ) -> None:
        self.allowed_extensions = {normalize_extension(e) for e in allowed_extensions or ()}
        self.blocked_extensions = {normalize_extension(e) for e in blocked_extensions or ()}

    async def is_extension_allowed(self, path: str) -> bool:
        extension = normalize_extension(os.path.splitext(path)[1])
        if extension in self.blocked_extensions:
            return False
        if self.allowed_extensions:
            return extension in self.allowed_extensions
        return True
