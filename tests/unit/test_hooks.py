"""
Hook and Plugin Registry Tests
==============================
"""

import logging

import pytest

from feedrewrite.extensions.base import Extension
from feedrewrite.hooks import ENTRY_BEFORE_INSERT, HookManager
from feedrewrite.host.forms import decode_form_value, form_list, parse_enabled_feeds
from feedrewrite.host.models import (
    Entry,
    HostEntry,
    InMemoryEntryStore,
    InMemoryUserConfiguration,
    UserConfiguration,
    feed_key,
)
from feedrewrite.plugins import PLUGIN_CLASSES, build_extensions, register_extensions
from feedrewrite.replacer.extension import ReplacerExtension


class UppercaseExtension(Extension):
    name = "Uppercase"
    config_key = "uppercase"

    def process_entry(self, entry):
        entry.content = entry.content.upper()
        return entry


class FailingExtension(Extension):
    name = "Failing"
    config_key = "failing"

    def process_entry(self, entry):
        raise ValueError("broken plugin")


class TestHookManager:
    """Chaining ``entry_before_insert`` callbacks."""

    def test_callbacks_run_in_order(self, entry):
        hooks = HookManager()
        hooks.add_hook(ENTRY_BEFORE_INSERT, lambda e: setattr(e, "content", e.content + "1") or e)
        hooks.add_hook(ENTRY_BEFORE_INSERT, lambda e: setattr(e, "content", e.content + "2") or e)

        result = hooks.run_entry_before_insert(entry)
        assert result.content.endswith("12")

    def test_none_drops_entry(self, entry):
        calls = []
        hooks = HookManager()
        hooks.add_hook(ENTRY_BEFORE_INSERT, lambda e: None)
        hooks.add_hook(ENTRY_BEFORE_INSERT, lambda e: calls.append(e) or e)

        assert hooks.run_entry_before_insert(entry) is None
        assert calls == []

    def test_no_callbacks(self, entry):
        assert HookManager().run_entry_before_insert(entry) is entry
        assert HookManager().callbacks(ENTRY_BEFORE_INSERT) == []


class TestExtensionBase:
    """Plumbing shared by every plugin."""

    def test_register(self, user_config, settings, entry):
        hooks = HookManager()
        UppercaseExtension(user_config, settings).register(hooks)
        assert len(hooks.callbacks(ENTRY_BEFORE_INSERT)) == 1

        hooks.run_entry_before_insert(entry)
        assert entry.content == "<P>HELLO WORLD</P>"

    def test_failure_is_logged_with_entry_context(self, user_config, settings, make_entry, caplog):
        caplog.set_level(logging.ERROR)
        entry = make_entry(feed_id=9, link="http://x/9")

        FailingExtension(user_config, settings).before_insert(entry)

        record = caplog.records[-1]
        assert record.feed_id == 9
        assert record.entry_url == "http://x/9"
        assert record.component == "failing"
        assert record.context["original_exception_type"] == "ValueError"

    def test_failure_never_blocks_ingestion(self, user_config, settings, entry):
        hooks = HookManager()
        FailingExtension(user_config, settings).register(hooks)
        UppercaseExtension(user_config, settings).register(hooks)

        result = hooks.run_entry_before_insert(entry)
        assert result is entry
        assert entry.content == "<P>HELLO WORLD</P>"

    def test_enabled_feeds_compare_as_strings(self, settings):
        config = InMemoryUserConfiguration({"uppercase": {"enabled_feeds": {"3": True, 4: True, 5: False}}})
        extension = UppercaseExtension(config, settings)
        assert extension.is_feed_enabled(3)
        assert extension.is_feed_enabled("4")
        assert not extension.is_feed_enabled(5)
        assert not extension.is_feed_enabled(6)
        assert not extension.is_feed_enabled(None)

    def test_malformed_configuration(self, settings):
        extension = UppercaseExtension(InMemoryUserConfiguration({"uppercase": "junk"}), settings)
        assert extension.get_configuration() == {}
        assert not extension.is_feed_enabled(1)

    def test_no_configuration_form(self, user_config, settings):
        with pytest.raises(NotImplementedError):
            UppercaseExtension(user_config, settings).handle_configure({})


class TestHostModels:
    """In-memory host stand-ins."""

    def test_entry_satisfies_protocol(self, entry):
        assert isinstance(entry, HostEntry)
        assert isinstance(InMemoryUserConfiguration(), UserConfiguration)

    def test_entry_store_lists_newest_first(self):
        entries = [Entry(feed_id=1, title=str(i)) for i in range(4)]
        store = InMemoryEntryStore(entries)
        assert [e.title for e in store.list_recent(2)] == ["3", "2"]

        store.update_content(entries[0], "new")
        assert entries[0].content == "new"

    def test_feed_key(self):
        assert feed_key(12) == "12"
        assert feed_key(" 12 ") == "12"
        assert feed_key("") is None
        assert feed_key(None) is None


class TestForms:
    """Configuration form helpers."""

    def test_decode_form_value(self):
        assert decode_form_value("%3Ca%3E+b") == "<a> b"
        assert decode_form_value("&quot;x&quot;") == '"x"'
        assert decode_form_value(None) == ""

    def test_form_list(self):
        assert form_list({"ids[]": ["1", "2"]}, "ids") == ["1", "2"]
        assert form_list({"ids": "1"}, "ids") == ["1"]
        assert form_list({}, "ids") == []

    def test_parse_enabled_feeds(self):
        raw = {"1": "on", "2": "1", 3: "on", "abc": "on"}
        assert parse_enabled_feeds(raw) == {1: True, 2: True, 3: True}
        assert parse_enabled_feeds(raw, require_on=True) == {1: True, 3: True}
        assert parse_enabled_feeds("junk") == {}


class TestPluginRegistry:
    """Building the plugin chain for a user."""

    def test_build_all(self, user_config, settings):
        extensions = build_extensions(user_config, settings)
        assert [type(e) for e in extensions] == PLUGIN_CLASSES
        assert isinstance(extensions[0], ReplacerExtension)

    def test_build_subset(self, user_config, settings):
        extensions = build_extensions(user_config, settings, only=["replacer"])
        assert len(extensions) == 1

    def test_unknown_plugin(self, user_config, settings):
        with pytest.raises(KeyError):
            build_extensions(user_config, settings, only=["nope"])

    def test_register_extensions(self, user_config, settings):
        hooks = register_extensions(HookManager(), build_extensions(user_config, settings))
        assert len(hooks.callbacks(ENTRY_BEFORE_INSERT)) == len(PLUGIN_CLASSES)

    def test_unconfigured_chain_leaves_content(self, user_config, settings, entry):
        hooks = register_extensions(HookManager(), build_extensions(user_config, settings))
        original = entry.content
        result = hooks.run_entry_before_insert(entry)
        assert result.content == original
