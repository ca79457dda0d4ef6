"""
Sets an entry's publication date to the moment it is ingested.

Configuration (user level):
    timezone: IANA name used to compute "now"; empty means server time
    enabled_feeds: ``{feed_id: true}``; when present only these feeds change
    mode / feed_ids: older setting, used only while ``enabled_feeds`` is unset.
        ``mode`` is ``all`` (default) or ``only_listed``.
"""

import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .base import Extension
from ..host.forms import parse_enabled_feeds
from ..host.models import HostEntry, feed_key
from ..utils.exceptions import ValidationError
from ..utils.validators import validate_timezone


MODE_ALL = "all"
MODE_ONLY_LISTED = "only_listed"


class UpdatePubDateNowExtension(Extension):
    """Overwrites the entry date with the current time."""

    name = "UpdatePubDateNow"
    config_key = "update_pub_date_now"

    def should_update(self, feed_id: Any) -> bool:
        config = self.get_configuration()

        if "enabled_feeds" in config:
            return self.is_feed_enabled(feed_id)

        if config.get("mode", MODE_ALL) != MODE_ONLY_LISTED:
            return True

        key = feed_key(feed_id)
        if key is None or key == "0":
            return True

        listed = config.get("feed_ids", [])
        if not isinstance(listed, (list, tuple)):
            listed = []
        return key in {feed_key(listed_id) for listed_id in listed}

    def current_timestamp(self, timezone: Optional[str]):
        """Return ``(epoch_seconds, timezone_label)`` for now."""
        if not timezone:
            return int(time.time()), "server default"

        try:
            now = datetime.now(validate_timezone(timezone))
        except ValidationError as e:
            self.logger.warning(
                f"Invalid timezone \"{timezone}\" - falling back to server time. Error: {e}"
            )
            return int(time.time()), "server default (fallback)"
        return int(now.timestamp()), timezone

    def process_entry(self, entry: HostEntry) -> HostEntry:
        if not self.should_update(entry.feed_id):
            return entry

        timezone = str(self.get_configuration_value("timezone", "") or "")
        timestamp, timezone_used = self.current_timestamp(timezone)

        entry.date = timestamp
        self.logger.info(
            f"Updated entry date to current time for feed ID {entry.feed_id} "
            f"using timezone: {timezone_used}"
        )
        return entry

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        timezone = str(form.get("timezone", "") or "").strip()
        enabled_feeds = parse_enabled_feeds(form.get("enabled_feeds", {}))

        if timezone:
            try:
                validate_timezone(timezone)
                self.logger.info(f"Valid timezone configured: {timezone}")
            except ValidationError as e:
                self.logger.warning(
                    f"Invalid timezone provided in configuration: {timezone} - {e}"
                )

        self.logger.info(
            f"Configuration saved - {len(enabled_feeds)} feed(s) enabled, "
            f"timezone: {timezone or 'server default'}"
        )
        return {"timezone": timezone, "enabled_feeds": enabled_feeds}
