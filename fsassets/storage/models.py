"""Blob entry schemas.

Defines the BlobInfo and BlobFolder Pydantic models returned by lookups and
listings, plus the BlobSearchResult container. Records are built fresh on
every call from live filesystem attributes; nothing is cached.

Examples:
    >>> from fsassets.storage.models import BlobFolder
    >>> folder = BlobFolder(name="catalog", parent_url="https://localhost:5001/assets")
"""

from __future__ import annotations

import mimetypes
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class BlobFolder(BaseModel):
    """A directory in the blob store.

    Also serves as the descriptor for folder creation, in which case only
    ``name`` and ``parent_url`` are read.
    """

    type: Literal["folder"] = "folder"
    name: str
    url: str | None = None
    relative_url: str | None = None
    parent_url: str | None = None
    created_date: datetime | None = None
    modified_date: datetime | None = None


class BlobInfo(BaseModel):
    """A single file in the blob store."""

    type: Literal["blob"] = "blob"
    name: str
    url: str | None = None
    relative_url: str | None = None
    content_type: str = DEFAULT_CONTENT_TYPE
    size: int = 0
    created_date: datetime | None = None
    modified_date: datetime | None = None


class BlobSearchResult(BaseModel):
    """Folders first, then files, as produced by a single listing call."""

    results: list[BlobFolder | BlobInfo] = Field(default_factory=list)
    total_count: int = 0


def resolve_content_type(file_name: str) -> str:
    """Guess a MIME type from the file name extension."""
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE
