"""Translation between the public URL namespace and storage paths.

Three address forms are in play for the same blob:

- storage path: ``/srv/assets/catalog/151349/epson printer.txt``
- relative URL: ``/catalog/151349/epson%20printer.txt``
- absolute URL: ``https://localhost:5001/assets/catalog/151349/epson%20printer.txt``

The mapper is pure string manipulation. It never touches the filesystem and
never enforces the sandbox; callers validate resolved paths themselves.

Examples:
    >>> mapper = BlobUrlMapper("/srv/assets", "https://localhost:5001/assets")
    >>> mapper.resolve_path("/catalog/epson%20printer.txt")
    '/srv/assets/catalog/epson printer.txt'
    >>> mapper.to_url("/srv/assets/catalog", "epson printer.txt")
    'https://localhost:5001/assets/catalog/epson%20printer.txt'
    >>> mapper.normalize_to_absolute("epson printer.txt")
    'https://localhost:5001/assets/epson%20printer.txt'
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote, unquote, urljoin, urlsplit

from fsassets.storage.errors import InvalidArgumentError

# characters left alone when escaping a whole URI (reserved set plus '%')
_URI_SAFE = "!#$%&'()*+,/:;=?@[]~"

# a '%' that does not start an escape sequence
_LONE_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def escape_uri(value: str) -> str:
    """Percent-escape characters not allowed in a URI.

    Existing ``%XX`` sequences are kept as they are, so escaping is idempotent.
    """
    return quote(_LONE_PERCENT.sub("%25", value), safe=_URI_SAFE)


def is_absolute_url(value: str) -> bool:
    """Check whether a string carries both a scheme and a network location."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


class BlobUrlMapper:
    """Bidirectional mapping between blob URLs and storage paths.

    Attributes:
        storage_root: Storage root without trailing separator.
        public_url: Public base URL without trailing slash, or empty.
    """

    def __init__(self, storage_root: str, public_url: str | None = None) -> None:
        root = storage_root.replace("\\", os.sep).rstrip(os.sep)
        self.storage_root = root or os.sep
        self.public_url = (public_url or "").rstrip("/")

    def resolve_path(self, url: str | None) -> str:
        """Map an absolute URL, rooted path or bare relative path to a storage path.

        Args:
            url: Blob URL in any of the accepted forms. ``None`` maps to the
                storage root.

        Returns:
            Storage path. Not validated against the sandbox.
        """
        if url is None:
            return self.storage_root

        relative = self.to_relative_url(url).split("?", 1)[0]
        relative = unquote(relative).replace("/", os.sep)

        path = self.storage_root + os.sep + relative
        doubled = os.sep * 2
        while doubled in path:
            path = path.replace(doubled, os.sep)
        return path

    def to_url(self, directory_path: str, file_name: str | None = None) -> str:
        """Build the absolute URL of a storage directory or of a file inside it.

        Args:
            directory_path: Storage path of a directory.
            file_name: Optional leaf name, escaped on its own.

        Returns:
            Absolute URL.
        """
        relative = directory_path
        if relative.startswith(self.storage_root):
            relative = relative[len(self.storage_root):]
        # each segment is a literal name; '?', '%' and spaces must not leak into the URL
        segments = [quote(segment, safe="") for segment in relative.split(os.sep) if segment]

        base_path = f"{self.public_url}/{'/'.join(segments)}"
        if not file_name:
            return base_path

        escaped_name = quote(file_name, safe="")
        if not base_path.endswith("/"):
            base_path = f"{base_path}/"
        return f"{base_path}{escaped_name}"

    def to_relative_url(self, url: str) -> str:
        """Strip the public base URL from an absolute URL."""
        if self.public_url and url.startswith(self.public_url):
            return url[len(self.public_url):]
        return url

    def normalize_to_absolute(self, input_url: str) -> str:
        """Turn any accepted URL form into an escaped absolute URL.

        Args:
            input_url: Absolute URL, rooted path or bare relative path,
                optionally with a query string.

        Returns:
            Absolute URL, or the ``./``-prefixed relative form when no public
            base URL is configured.

        Raises:
            InvalidArgumentError: If ``input_url`` is None.
        """
        if input_url is None:
            raise InvalidArgumentError("input_url")

        # a leading slash must not turn the input into a local file path
        candidate = input_url.lstrip("/")
        if is_absolute_url(candidate):
            return escape_uri(candidate)

        if input_url.startswith("/"):
            relative = "." + input_url
        elif not input_url.startswith("."):
            relative = "./" + input_url
        else:
            relative = input_url

        if not self.public_url:
            return relative
        return urljoin(self.public_url + "/", escape_uri(relative))
