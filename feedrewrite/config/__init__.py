"""Process settings loaded from the environment."""

from .settings import FeedRewriteSettings, get_settings, load_settings

__all__ = ["FeedRewriteSettings", "get_settings", "load_settings"]
