"""
Host Data Models
================

The narrow capability interfaces the plugins need from the feed-reader
host, plus plain in-memory implementations of them. The in-memory versions
back the tests and the developer CLI; a real host adapts its own entry and
configuration objects to the protocols.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field


FeedId = Union[int, str]


@runtime_checkable
class HostEntry(Protocol):
    """What a plugin may read and write on a host entry."""

    feed_id: FeedId
    feed_url: str
    feed_title: str
    link: str
    title: str
    content: str
    date: int


@runtime_checkable
class UserConfiguration(Protocol):
    """Per-user configuration blobs, persisted by the host."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


@runtime_checkable
class EntryStore(Protocol):
    """Access to already stored entries, used by deferred AI conversion."""

    def list_recent(self, limit: int) -> List[HostEntry]:
        ...

    def update_content(self, entry: HostEntry, content: str) -> None:
        ...


class Entry(BaseModel):
    """A feed item as handed to ``entry_before_insert``."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Entry ID")
    feed_id: FeedId = Field(..., description="ID of the feed the entry belongs to")
    feed_url: str = Field(default="", description="URL of the feed")
    feed_title: str = Field(default="", description="Display name of the feed")
    link: str = Field(default="", description="Article URL")
    title: str = Field(default="", description="Article title")
    content: str = Field(default="", description="Article HTML content")
    date: int = Field(default_factory=lambda: int(time.time()), description="Publication date, epoch seconds")

    def __str__(self) -> str:
        return f"Entry({self.title[:50]}:{self.feed_id})"


class InMemoryUserConfiguration:
    """Dict-backed ``UserConfiguration``."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class InMemoryEntryStore:
    """List-backed ``EntryStore``; newest entries are listed first."""

    def __init__(self, entries: Optional[List[Entry]] = None):
        self.entries: List[Entry] = list(entries or [])

    def list_recent(self, limit: int) -> List[Entry]:
        return list(reversed(self.entries))[:limit]

    def update_content(self, entry: Entry, content: str) -> None:
        entry.content = content


def feed_key(feed_id: Optional[FeedId]) -> Optional[str]:
    """Normalize a feed id for lookups in configuration mappings.

    Hosts hand out integer ids while JSON-persisted configuration keys are
    strings, so every mapping keyed by feed is compared on ``str(id)``.
    """
    if feed_id is None:
        return None
    key = str(feed_id).strip()
    return key or None
