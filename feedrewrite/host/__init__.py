"""
FeedRewrite Host Interfaces
===========================

Protocols describing the feed-reader host, in-memory stand-ins for them,
and helpers for host-submitted configuration forms.
"""

from .models import (
    Entry,
    EntryStore,
    FeedId,
    HostEntry,
    InMemoryEntryStore,
    InMemoryUserConfiguration,
    UserConfiguration,
    feed_key,
)
from .forms import decode_form_value, form_list, parse_enabled_feeds

__all__ = [
    "Entry",
    "EntryStore",
    "FeedId",
    "HostEntry",
    "InMemoryEntryStore",
    "InMemoryUserConfiguration",
    "UserConfiguration",
    "feed_key",
    "decode_form_value",
    "form_list",
    "parse_enabled_feeds",
]
