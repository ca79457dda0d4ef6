"""
Hook Registry
=============

Minimal model of the host's extension manager. Plugins register callbacks
for named hooks; ``entry_before_insert`` callbacks are chained in
registration order, each receiving the entry returned by the previous one.
"""

from collections import defaultdict
from typing import Callable, Dict, List, Optional

from .host.models import HostEntry
from .utils.logging import get_logger_for_component


ENTRY_BEFORE_INSERT = "entry_before_insert"

EntryHook = Callable[[HostEntry], Optional[HostEntry]]


class HookManager:
    """Registry of hook callbacks keyed by hook name."""

    def __init__(self):
        self._hooks: Dict[str, List[EntryHook]] = defaultdict(list)
        self.logger = get_logger_for_component("hooks")

    def add_hook(self, hook_name: str, callback: EntryHook) -> None:
        """Register a callback for a hook."""
        self._hooks[hook_name].append(callback)
        self.logger.debug(f"Registered {getattr(callback, '__qualname__', callback)} for {hook_name}")

    def callbacks(self, hook_name: str) -> List[EntryHook]:
        """Callbacks registered for a hook, in call order."""
        return list(self._hooks.get(hook_name, []))

    def run_entry_before_insert(self, entry: HostEntry) -> Optional[HostEntry]:
        """Run the ``entry_before_insert`` chain.

        Returns:
            The (possibly rewritten) entry, or None if a callback dropped it
        """
        for callback in self._hooks.get(ENTRY_BEFORE_INSERT, []):
            entry = callback(entry)
            if entry is None:
                self.logger.info(
                    f"Entry dropped by {getattr(callback, '__qualname__', callback)}"
                )
                return None
        return entry
