"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FeedRewrite tests.
"""

import io
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["FEEDREWRITE_HTTP__MAX_RETRIES"] = "0"
os.environ["FEEDREWRITE_AI__UPDATE_ATTEMPTS"] = "2"
os.environ["FEEDREWRITE_DEBUG"] = "true"


# ============================================================================
# Settings and Host Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Fresh settings built from the test environment."""
    from feedrewrite.config.settings import FeedRewriteSettings

    return FeedRewriteSettings()


@pytest.fixture
def user_config():
    """Empty per-user configuration store."""
    from feedrewrite.host.models import InMemoryUserConfiguration

    return InMemoryUserConfiguration()


@pytest.fixture
def make_entry():
    """Factory for entries with sensible defaults."""
    from feedrewrite.host.models import Entry

    def _make_entry(**overrides):
        fields = {
            "feed_id": 1,
            "feed_url": "https://example.com/feed.xml",
            "feed_title": "Tech",
            "link": "http://x/1",
            "title": "An article",
            "content": "<p>Hello world</p>",
            "date": 1_000_000,
        }
        fields.update(overrides)
        return Entry(**fields)

    return _make_entry


@pytest.fixture
def entry(make_entry):
    """A single default entry."""
    return make_entry()


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def png_bytes():
    """A tiny real PNG image."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (2, 2), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


def make_response(body=b"", status_code=200, headers=None, json_data=None):
    """Build a mock ``requests.Response``."""
    import requests

    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.content = body
    response.iter_content.side_effect = lambda chunk_size=1: iter(
        [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
    )
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    else:
        response.raise_for_status.return_value = None
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


@pytest.fixture
def response_factory():
    """Expose ``make_response`` to tests."""
    return make_response
