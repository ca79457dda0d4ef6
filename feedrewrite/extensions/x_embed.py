"""
FixXEmbedding Extension
=======================

X.com embeds frequently arrive as a "Something went wrong" error block.
For enabled feeds this plugin swaps that block for the post's photos,
looked up through the fxtwitter API, wrapped in a link to the original
post. If no media can be found the block becomes a plain "View on X" link.
"""

import html
import re
from typing import Any, Dict, List, Mapping, Optional

import requests

from .base import Extension
from ..config.settings import FeedRewriteSettings
from ..host.forms import parse_enabled_feeds
from ..host.models import HostEntry, UserConfiguration
from ..utils.exceptions import ErrorCode, FetchError
from ..utils.http import build_session
from ..utils.validators import URLValidator


X_ERROR_PATTERN = re.compile(
    r"<div><p><span>Something went wrong.*?</span></p></div>",
    re.IGNORECASE | re.DOTALL,
)


def build_media_markup(entry_url: str, media_urls: List[str]) -> str:
    """Linked images for the post, or a fallback link when there are none."""
    link = html.escape(entry_url, quote=True)
    if not media_urls:
        return f'<a href="{link}">View on X</a>'

    images = [
        f'<img src="{html.escape(url, quote=True)}" alt="X post media" '
        f'style="max-width:100%;height:auto;" />'
        for url in media_urls
    ]
    return f'<a href="{link}">{"<br/>".join(images)}</a>'


def extract_media_urls(data: Any) -> List[str]:
    """Pull photo URLs out of an fxtwitter ``/status`` response.

    ``tweet.media.photos`` is the primary location; ``tweet.media.all``
    (photo entries only) is the fallback.
    """
    if not isinstance(data, dict) or not isinstance(data.get("tweet"), dict):
        raise FetchError(
            "Invalid API response format from fxtwitter",
            error_code=ErrorCode.FETCH_INVALID_RESPONSE,
        )

    media = data["tweet"].get("media")
    if not isinstance(media, dict):
        return []

    urls = [
        photo["url"]
        for photo in media.get("photos") or []
        if isinstance(photo, dict) and photo.get("url")
    ]

    if not urls:
        urls = [
            item["url"]
            for item in media.get("all") or []
            if isinstance(item, dict) and item.get("type") == "photo" and item.get("url")
        ]

    return urls


class FixXEmbeddingExtension(Extension):
    """Replaces broken X.com embeds with media from fxtwitter."""

    name = "FixXEmbedding"
    config_key = "fix_x_embedding"

    def __init__(
        self,
        user_config: UserConfiguration,
        settings: Optional[FeedRewriteSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(user_config, settings)
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = build_session(self.settings)
        return self._session

    def process_entry(self, entry: HostEntry) -> HostEntry:
        if not self.is_feed_enabled(entry.feed_id):
            return entry

        entry_url = entry.link or ""
        if not entry_url:
            return entry

        content = entry.content or ""
        new_content = self.replace_error_message(content, entry_url)
        if new_content != content:
            entry.content = new_content
            self.logger.info(f"Fixed X.com error message for feed ID {entry.feed_id}")
        return entry

    def replace_error_message(self, content: str, entry_url: str) -> str:
        """Replace every X.com error block in ``content``."""
        if not X_ERROR_PATTERN.search(content):
            return content

        self.logger.info("Detected X.com error message in content")

        tweet_id = URLValidator.extract_tweet_id(entry_url)
        media_urls: List[str] = []
        if tweet_id is None:
            self.logger.warning(f"Could not extract tweet ID from URL: {entry_url}")
        else:
            self.logger.info(f"Attempting to fetch media for tweet ID {tweet_id}")
            media_urls = self.get_media_urls(tweet_id)
            if media_urls:
                self.logger.info(
                    f"Embedding {len(media_urls)} media item(s) for tweet ID {tweet_id}"
                )
            else:
                self.logger.warning(
                    f"No media found for tweet ID {tweet_id}, using fallback link"
                )

        replacement = build_media_markup(entry_url, media_urls)
        return X_ERROR_PATTERN.sub(lambda _m: replacement, content)

    def get_media_urls(self, tweet_id: str) -> List[str]:
        """Look up a post's photo URLs; any failure yields an empty list."""
        api_url = f"{self.settings.x_embed.api_base}/status/{tweet_id}"
        try:
            response = self.session.get(
                api_url, timeout=self.settings.x_embed.timeout, allow_redirects=True
            )
            response.raise_for_status()
            return extract_media_urls(response.json())
        except requests.RequestException as e:
            self.logger.warning(f"Failed to fetch data from fxtwitter API: {api_url}: {e}")
        except ValueError as e:
            self.logger.warning(f"Unreadable fxtwitter API response from {api_url}: {e}")
        except FetchError as e:
            self.logger.warning(str(e), extra=e.to_dict())
        return []

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        enabled_feeds = parse_enabled_feeds(form.get("enabled_feeds", {}))
        self.logger.info(f"Configuration saved - {len(enabled_feeds)} feed(s) enabled")
        return {"enabled_feeds": enabled_feeds}
