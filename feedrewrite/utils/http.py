"""
HTTP session factory shared by the plugins that talk to the network.
"""

from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config.settings import FeedRewriteSettings, get_settings


def build_session(
    settings: Optional[FeedRewriteSettings] = None,
    user_agent: Optional[str] = None,
) -> requests.Session:
    """Create a requests session with retries for idempotent requests.

    Args:
        settings: Settings to read retry policy and User-Agent from
        user_agent: Override for the User-Agent header

    Returns:
        Configured session
    """
    settings = settings or get_settings()

    session = requests.Session()
    retry_strategy = Retry(
        total=settings.http.max_retries,
        backoff_factor=settings.http.backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET", "OPTIONS"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({"User-Agent": user_agent or settings.http.user_agent})
    return session
