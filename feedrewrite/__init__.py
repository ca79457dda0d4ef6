"""
FeedRewrite - Feed Entry Rewriting Plugins
==========================================

Plugins that rewrite feed entries before a feed reader stores them.

Main Components:
- Replacer: per-feed regex rules with {url}, {feed_url} and {title} placeholders
- Embed fixes: YouTube thumbnails, X.com media, inlined images
- UpdatePubDateNow: stamps entries with their ingestion time
- AiConverter: OpenAI-compatible content conversion, inline or deferred
"""

__version__ = "1.0.0"
__author__ = "FeedRewrite Development Team"
__description__ = "Entry rewriting plugins for feed readers"

from .config.settings import get_settings
from .hooks import HookManager
from .plugins import build_extensions, register_extensions
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedRewriteError

__all__ = [
    "get_settings",
    "HookManager",
    "build_extensions",
    "register_extensions",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedRewriteError",
]
