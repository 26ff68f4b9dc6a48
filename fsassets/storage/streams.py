"""Write stream handed out by ``open_write``."""

from __future__ import annotations

import io
from typing import BinaryIO


class BlobUploadStream(io.RawIOBase):
    """Write-only stream bound to one destination file.

    Associates the blob URL and provider name with the underlying file so
    callers can correlate what they wrote with later events. Closing the
    stream closes the file.

    Attributes:
        url: Blob URL the stream was opened for.
        provider: Name of the provider that opened it.
    """

    def __init__(self, raw: BinaryIO, url: str, provider: str) -> None:
        super().__init__()
        self._raw = raw
        self.url = url
        self.provider = provider

    @property
    def name(self) -> str:
        return self._raw.name

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self._raw.seekable()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._raw.seek(offset, whence)

    def tell(self) -> int:
        return self._raw.tell()

    def write(self, b) -> int:
        return self._raw.write(b)

    def flush(self) -> None:
        if not self._raw.closed:
            self._raw.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            self._raw.close()
