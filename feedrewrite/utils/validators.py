"""
FeedRewrite Input Validators
============================

Validation helpers for URLs found in entry content and for values
submitted through the plugin configuration forms.
"""

import re
from urllib.parse import urlparse
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation utilities."""

    ALLOWED_SCHEMES = {"http", "https"}

    DATA_URL_PATTERN = re.compile(r"^\s*data:", re.IGNORECASE)
    TWEET_STATUS_PATTERN = re.compile(r"/status/(\d+)")

    @classmethod
    def is_http_url(cls, url: Optional[str]) -> bool:
        """Check that a URL is an absolute http(s) URL with a hostname."""
        if not url or not isinstance(url, str):
            return False
        if any(ch.isspace() for ch in url.strip()):
            return False

        try:
            parsed = urlparse(url.strip())
        except ValueError:
            return False

        return parsed.scheme.lower() in cls.ALLOWED_SCHEMES and bool(parsed.netloc)

    @classmethod
    def is_data_url(cls, url: str) -> bool:
        """Check whether a URL is already an inline ``data:`` URI."""
        return bool(url and cls.DATA_URL_PATTERN.match(url))

    @classmethod
    def extract_tweet_id(cls, url: str) -> Optional[str]:
        """Return the numeric status id from an X.com/Twitter post URL."""
        match = cls.TWEET_STATUS_PATTERN.search(url or "")
        return match.group(1) if match else None


def validate_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ValidationError: If the name is empty or unknown
    """
    if not name or not name.strip():
        raise ValidationError(
            "Timezone name is empty",
            error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            field_name="timezone",
        )

    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(
            f"Unknown timezone '{name}': {e}",
            field_name="timezone",
        ) from e
