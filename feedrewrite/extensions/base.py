"""
Base Extension
==============

Common plumbing for every plugin: access to the user's configuration blob,
per-feed enablement, hook registration, and the top-level guard that keeps a
failing plugin from ever blocking the host's ingestion.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from ..config.settings import FeedRewriteSettings, get_settings
from ..hooks import ENTRY_BEFORE_INSERT, HookManager
from ..host.models import HostEntry, UserConfiguration, feed_key
from ..utils.exceptions import handle_exception
from ..utils.logging import get_logger_for_component


class Extension(ABC):
    """Abstract base class for ``entry_before_insert`` plugins.

    Subclasses implement ``process_entry``; the host calls ``before_insert``,
    which wraps it so any exception is logged and the entry is returned as
    it stands.
    """

    #: Human readable name, used in log messages
    name: str = "Extension"
    #: Key of this plugin's blob in the user configuration
    config_key: str = ""

    def __init__(
        self,
        user_config: UserConfiguration,
        settings: Optional[FeedRewriteSettings] = None,
    ):
        """Initialize extension.

        Args:
            user_config: The current user's configuration store
            settings: Process settings (default: global settings)
        """
        self.user_config = user_config
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component(self.config_key or self.name.lower())

    def register(self, hooks: HookManager) -> None:
        """Register ``before_insert`` with the host's hook manager."""
        hooks.add_hook(ENTRY_BEFORE_INSERT, self.before_insert)
        self.logger.info(f"{self.name} extension initialized")

    def before_insert(self, entry: HostEntry) -> HostEntry:
        """Hook callback: rewrite an entry before the host stores it."""
        try:
            return self.process_entry(entry)
        except Exception as e:
            logger = self.logger.bind(
                feed_id=getattr(entry, "feed_id", None),
                entry_url=getattr(entry, "link", None),
            )
            handle_exception(e, logger, f"{self.name}.before_insert")
            return entry

    @abstractmethod
    def process_entry(self, entry: HostEntry) -> HostEntry:
        """Rewrite the entry in place and return it."""
        pass

    def handle_configure(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Persist settings submitted through the configuration form.

        Returns:
            The configuration blob that was stored
        """
        data = self.parse_configure_form(form)
        self.user_config.set(self.config_key, data)
        return data

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Turn submitted form data into this plugin's configuration blob."""
        raise NotImplementedError(f"{self.name} has no configuration form")

    # Configuration helpers

    def get_configuration(self) -> Dict[str, Any]:
        """Return this plugin's configuration blob (empty if unset or malformed)."""
        data = self.user_config.get(self.config_key, {})
        return data if isinstance(data, dict) else {}

    def get_configuration_value(self, key: str, default: Any = None) -> Any:
        """Return one value from this plugin's configuration blob."""
        return self.get_configuration().get(key, default)

    def get_enabled_feeds(self) -> Dict[Any, Any]:
        """The ``enabled_feeds`` mapping, or an empty dict if malformed."""
        enabled = self.get_configuration_value("enabled_feeds", {})
        return enabled if isinstance(enabled, dict) else {}

    def is_feed_enabled(self, feed_id: Any) -> bool:
        """Check the per-feed toggle; ids compare as strings."""
        key = feed_key(feed_id)
        if key is None or key == "0":
            return False
        for enabled_id, flag in self.get_enabled_feeds().items():
            if feed_key(enabled_id) == key and flag:
                return True
        return False
