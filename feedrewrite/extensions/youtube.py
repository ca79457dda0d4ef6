"""
Replaces YouTube iframe embeds with clickable thumbnails for enabled feeds.
"""

import re
from typing import Any, Dict, Mapping, Tuple

from .base import Extension
from ..host.forms import parse_enabled_feeds
from ..host.models import HostEntry


# Video IDs are exactly 11 characters: alphanumeric, underscore or hyphen
YOUTUBE_IFRAME_PATTERN = re.compile(
    r"""<iframe[^>]*src=["']https?://(?:www\.)?(?:youtube\.com|youtube-nocookie\.com)"""
    r"""/embed/([a-zA-Z0-9_-]{11})[^"']*["'][^>]*>.*?</iframe>""",
    re.IGNORECASE | re.DOTALL,
)

THUMBNAIL_TEMPLATE = (
    '<a href="https://www.youtube.com/watch?v={id}">'
    '<figure><img src="https://i.ytimg.com/vi/{id}/maxresdefault.jpg"></figure></a>'
)


def replace_youtube_embeds(content: str) -> Tuple[str, int]:
    """Swap every YouTube iframe for a linked thumbnail.

    Returns:
        The new content and the number of iframes replaced
    """
    return YOUTUBE_IFRAME_PATTERN.subn(
        lambda m: THUMBNAIL_TEMPLATE.format(id=m.group(1)), content
    )


class FixYoutubeEmbeddingExtension(Extension):
    """Lighter-weight replacement for embedded YouTube players."""

    name = "FixYoutubeEmbedding"
    config_key = "fix_youtube_embedding"

    def process_entry(self, entry: HostEntry) -> HostEntry:
        if not self.is_feed_enabled(entry.feed_id):
            return entry

        content = entry.content or ""
        new_content, count = replace_youtube_embeds(content)
        if count and new_content != content:
            entry.content = new_content
            self.logger.info(
                f"Replaced {count} YouTube iframe(s) with thumbnail(s) for feed ID {entry.feed_id}"
            )
        return entry

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        enabled_feeds = parse_enabled_feeds(form.get("enabled_feeds", {}))
        self.logger.info(f"Configuration saved - {len(enabled_feeds)} feed(s) enabled")
        return {"enabled_feeds": enabled_feeds}
