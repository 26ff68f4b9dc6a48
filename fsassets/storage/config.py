"""Storage configuration model."""

from __future__ import annotations

import os
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

PUBLIC_URL_SCHEMES = ("http", "https", "ftp")


class StorageConfig(BaseModel):
    """Configuration for the filesystem blob provider.

    Attributes:
        root_path: Storage root directory. Relative paths are resolved against
            the current working directory.
        public_url: Public base URL blobs are served under.
        read_retry_count: Extra attempts for a transiently failing read.
        read_retry_delay_ms: First retry delay; doubles on every attempt.
    """

    root_path: str = Field(..., description="Blob storage root directory")
    public_url: str = Field(..., description="Public base URL for blobs")
    read_retry_count: int = Field(default=3, ge=0, le=10, description="Read retries")
    read_retry_delay_ms: int = Field(default=50, ge=0, description="First retry delay (ms)")

    @field_validator("root_path")
    @classmethod
    def validate_root_path(cls, v: str) -> str:
        """Expand and absolutize the storage root."""
        v = v.strip()
        if not v:
            raise ValueError("The root_path field is required.")
        # windows separators may leak in from shared config files
        v = v.replace("\\", os.sep)
        return os.path.abspath(os.path.expanduser(v))

    @field_validator("public_url")
    @classmethod
    def validate_public_url(cls, v: str) -> str:
        """Require a fully-qualified http, https or ftp URL."""
        v = v.strip()
        parts = urlsplit(v)
        if parts.scheme.lower() not in PUBLIC_URL_SCHEMES or not parts.netloc:
            raise ValueError(
                "The public_url field is not a valid fully-qualified http, https, or ftp URL."
            )
        return v.rstrip("/")
