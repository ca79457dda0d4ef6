"""
AiConverter Extension
=====================

Sends entry content through an OpenAI-compatible chat model and stores the
answer in place of the original content. Feeds are opted in one by one and
may override the default prompt.

With ``defer_processing`` enabled the hook only marks entries with
``<!--AI_PENDING-->`` so ingestion stays fast; ``process_pending`` converts
marked entries later, in small batches.
"""

import html
from typing import Any, Dict, Mapping, Optional

from .client import ChatCompletionClient
from ..extensions.base import Extension
from ..host.forms import form_list
from ..host.models import EntryStore, HostEntry, feed_key
from ..utils.exceptions import AIError, ErrorCode


AI_PENDING_MARKER = "<!--AI_PENDING-->"

_ENABLED_VALUES = ("on", "1")


def build_message(prompt: str, link: str, title: str, content: str) -> str:
    """Compose the single user message sent to the model."""
    return (
        f"{prompt}\n\n"
        f"Article URL: {link}\n"
        f"Article Title: {title}\n\n"
        f"Content:\n{content}"
    )


def strip_pending_marker(content: str) -> str:
    return content.replace(AI_PENDING_MARKER, "")


class AiConverterExtension(Extension):
    """Rewrites entry content with an AI model."""

    name = "AiConverter"
    config_key = "aiconverter"

    def __init__(self, user_config, settings=None, client: Optional[ChatCompletionClient] = None):
        super().__init__(user_config, settings)
        self._client = client

    # Configuration

    @property
    def api_endpoint(self) -> str:
        return self.get_configuration_value("api_endpoint") or self.settings.ai.default_endpoint

    @property
    def api_token(self) -> str:
        return self.get_configuration_value("api_token") or ""

    @property
    def model(self) -> str:
        return self.get_configuration_value("model") or self.settings.ai.default_model

    @property
    def defer_processing(self) -> bool:
        return bool(self.get_configuration_value("defer_processing", False))

    def get_feed_config(self, feed_id: Any) -> Optional[Dict[str, Any]]:
        """Per-feed settings, or None when the feed is not enabled."""
        key = feed_key(feed_id)
        if key is None:
            return None

        feed_configs = self.get_configuration_value("feed_configs", {})
        if not isinstance(feed_configs, dict):
            return None

        for configured_id, feed_config in feed_configs.items():
            if feed_key(configured_id) == key and isinstance(feed_config, dict):
                return feed_config if feed_config.get("enabled") else None
        return None

    def get_prompt(self, feed_config: Dict[str, Any]) -> str:
        """Custom prompt of the feed, else the default prompt."""
        prompt = feed_config.get("custom_prompt") or ""
        if not prompt:
            prompt = self.get_configuration_value("default_prompt") or ""
        return prompt

    def get_client(self) -> ChatCompletionClient:
        if self._client is None:
            self._client = ChatCompletionClient(
                self.api_endpoint, self.api_token, model=self.model, settings=self.settings
            )
        return self._client

    def convert(self, prompt: str, entry: HostEntry, content: str) -> Optional[str]:
        """Ask the model to rewrite ``content``; None when the call fails."""
        message = build_message(prompt, entry.link or "", entry.title or "", content)
        try:
            return self.get_client().complete(message)
        except AIError as e:
            self.logger.error(
                f"Failed to get response from AI API for feed {entry.feed_id}: {e}",
                extra=e.to_dict(),
            )
            return None

    # Hook

    def process_entry(self, entry: HostEntry) -> HostEntry:
        feed_config = self.get_feed_config(entry.feed_id)
        if feed_config is None:
            return entry

        self.logger.info(f"Processing entry from feed {entry.feed_id}")

        if not self.api_token:
            self.logger.warning("No API token configured, skipping processing")
            return entry

        prompt = self.get_prompt(feed_config)
        if not prompt:
            self.logger.warning(f"No prompt configured for feed {entry.feed_id}")
            return entry

        content = entry.content
        if not content:
            self.logger.warning("Entry has no content, skipping")
            return entry

        if self.defer_processing:
            if AI_PENDING_MARKER not in content:
                entry.content = AI_PENDING_MARKER + content
                self.logger.info(f"Marked entry from feed {entry.feed_id} for background processing")
            return entry

        answer = self.convert(prompt, entry, content)
        if answer is not None:
            entry.content = answer
            self.logger.info(f"Successfully processed entry from feed {entry.feed_id}")
        return entry

    # Deferred processing

    def update_entry_with_retry(self, store: EntryStore, entry: HostEntry, content: str) -> bool:
        """Store new content, retrying a few times; True on success."""
        attempts = self.settings.ai.update_attempts
        for attempt in range(1, attempts + 1):
            try:
                store.update_content(entry, content)
                return True
            except Exception as e:
                self.logger.warning(
                    f"Failed to update entry (attempt {attempt}/{attempts}): {e}"
                )
        self.logger.error(f"Giving up on updating entry after {attempts} attempts")
        return False

    def process_pending(self, store: EntryStore, batch_size: Optional[int] = None) -> Dict[str, int]:
        """Convert entries marked for background processing.

        Args:
            store: Access to stored entries
            batch_size: Maximum entries to convert (default from settings)

        Returns:
            ``{"processed": n, "errors": n, "remaining": n}``, where
            ``remaining`` counts marked entries seen but left for later

        Raises:
            AIError: If no API token is configured
        """
        if not self.api_token:
            raise AIError(
                "No API token configured",
                endpoint=self.api_endpoint,
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                recoverable=False,
            )

        batch_size = batch_size or self.settings.ai.pending_batch_size
        processed = errors = remaining = 0

        for entry in store.list_recent(batch_size * 3):
            content = entry.content or ""
            if AI_PENDING_MARKER not in content:
                continue

            if processed >= batch_size:
                remaining += 1
                continue

            clean_content = strip_pending_marker(content)

            feed_config = self.get_feed_config(entry.feed_id)
            if feed_config is None:
                self.update_entry_with_retry(store, entry, clean_content)
                continue

            prompt = self.get_prompt(feed_config)
            if not prompt:
                continue

            answer = self.convert(prompt, entry, clean_content)
            if answer is None:
                self.update_entry_with_retry(store, entry, clean_content)
                errors += 1
                self.logger.error(f"Failed to process entry {getattr(entry, 'id', '?')}")
            elif self.update_entry_with_retry(store, entry, answer):
                processed += 1
                self.logger.info(f"Background processed entry {getattr(entry, 'id', '?')}")
            else:
                errors += 1

        return {"processed": processed, "errors": errors, "remaining": remaining}

    def count_pending(self, store: EntryStore, limit: int = 1000) -> int:
        """Number of recent entries still carrying the pending marker."""
        return sum(
            1 for entry in store.list_recent(limit) if AI_PENDING_MARKER in (entry.content or "")
        )

    # Configuration form

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "api_endpoint": str(form.get("api_endpoint") or self.settings.ai.default_endpoint).strip(),
            "api_token": str(form.get("api_token") or "").strip(),
            "default_prompt": html.unescape(str(form.get("default_prompt") or "")),
            "model": str(form.get("model") or self.settings.ai.default_model).strip(),
            "defer_processing": form.get("defer_processing") in _ENABLED_VALUES + (True,),
            "feed_configs": {},
        }

        for raw_feed_id in form_list(form, "feed_ids"):
            key = feed_key(raw_feed_id)
            if key is None:
                continue

            enabled = form.get(f"aiconverter_enabled_{key}")
            if enabled not in _ENABLED_VALUES:
                continue

            custom_prompt = html.unescape(
                str(form.get(f"aiconverter_custom_prompt_{key}") or "")
            ).strip()
            data["feed_configs"][key] = {"enabled": True, "custom_prompt": custom_prompt}
            self.logger.info(
                f"Feed {key} enabled with custom prompt: {'Yes' if custom_prompt else 'No'}"
            )

        self.logger.info(
            f"Configuration saved successfully with {len(data['feed_configs'])} enabled feeds"
        )
        return data
