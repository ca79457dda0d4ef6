"""
Placeholder substitution for replacement strings.
"""

import re
from dataclasses import dataclass
from typing import Dict

from ..host.models import FeedId, HostEntry


@dataclass(frozen=True)
class EntryContext:
    """Per-invocation view of the entry being rewritten."""
    feed_id: FeedId
    feed_url: str = ""
    feed_title: str = ""
    entry_url: str = ""
    content: str = ""

    @classmethod
    def from_entry(cls, entry: HostEntry) -> "EntryContext":
        """Snapshot the fields the rewrite pipeline reads from a host entry."""
        return cls(
            feed_id=entry.feed_id,
            feed_url=entry.feed_url or "",
            feed_title=entry.feed_title or "",
            entry_url=entry.link or "",
            content=entry.content or "",
        )

    def placeholder_values(self) -> Dict[str, str]:
        return {
            "{url}": self.entry_url,
            "{feed_url}": self.feed_url,
            "{title}": self.feed_title,
        }


PLACEHOLDER_PATTERN = re.compile(r"\{(?:url|feed_url|title)\}")


def resolve_placeholders(replacement: str, context: EntryContext) -> str:
    """Substitute ``{url}``, ``{feed_url}`` and ``{title}`` in one pass.

    Values are inserted verbatim and never rescanned, so a feed title that
    itself reads ``{url}`` stays as is.
    """
    if not replacement or "{" not in replacement:
        return replacement

    values = context.placeholder_values()
    return PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(0)], replacement)
