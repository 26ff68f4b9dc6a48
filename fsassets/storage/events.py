"""Blob change events and the publisher boundary.

Only removals raise an event. The publisher is optional; a provider without
one simply skips notification.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class EntryState(str, Enum):
    """State of a changed entry."""

    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"


class BlobEventInfo(BaseModel):
    """Identity of a blob inside an event."""

    id: str
    uri: str
    provider: str


class BlobChangedEntry(BaseModel):
    """One blob and what happened to it."""

    new_entry: BlobEventInfo
    entry_state: EntryState


class BlobDeletedEvent(BaseModel):
    """Batch of blobs removed by a single remove call."""

    changed_entries: list[BlobChangedEntry] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_urls(cls, urls: list[str], provider: str) -> "BlobDeletedEvent":
        """Build a deletion batch with one entry per URL."""
        return cls(
            changed_entries=[
                BlobChangedEntry(
                    new_entry=BlobEventInfo(id=url, uri=url, provider=provider),
                    entry_state=EntryState.DELETED,
                )
                for url in urls
            ]
        )


class EventPublisher(ABC):
    """Destination for blob events."""

    @abstractmethod
    async def publish(self, event: BlobDeletedEvent) -> None:
        """Publish an event.

        Args:
            event: The event to deliver.
        """
