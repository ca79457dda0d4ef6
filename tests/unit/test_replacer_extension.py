"""
Replacer Extension Tests
========================

The ``entry_before_insert`` plugin and its configuration form.
"""

from unittest.mock import patch

import pytest

from feedrewrite.host.models import InMemoryUserConfiguration
from feedrewrite.replacer.extension import ReplacerExtension


@pytest.fixture
def replacer(settings):
    user_config = InMemoryUserConfiguration({
        "replacer": {
            "replacements": {
                "1": [
                    {"search_regex": "foo", "replace_string": "bar"},
                    {"search_regex": "#<p>(.*?)</p>#s", "replace_string": "<div>$1 ({title})</div>"},
                ],
            }
        }
    })
    return ReplacerExtension(user_config, settings)


class TestProcessEntry:
    """Rewriting entries on insert."""

    def test_rules_applied_in_order(self, replacer, make_entry):
        entry = make_entry(content="<p>foo</p>")
        result = replacer.before_insert(entry)
        assert result is entry
        assert entry.content == "<div>bar (Tech)</div>"

    def test_title_never_touched(self, replacer, make_entry):
        entry = make_entry(title="foo", content="foo")
        replacer.before_insert(entry)
        assert entry.title == "foo"
        assert entry.content == "bar"

    def test_feed_without_rules(self, replacer, make_entry):
        entry = make_entry(feed_id=2, content="<p>foo</p>")
        replacer.before_insert(entry)
        assert entry.content == "<p>foo</p>"

    def test_string_feed_id(self, replacer, make_entry):
        entry = make_entry(feed_id="1", content="foo")
        replacer.before_insert(entry)
        assert entry.content == "bar"

    def test_no_configuration(self, settings, make_entry):
        extension = ReplacerExtension(InMemoryUserConfiguration(), settings)
        entry = make_entry(content="foo")
        extension.before_insert(entry)
        assert entry.content == "foo"

    def test_unexpected_error_returns_entry(self, replacer, make_entry):
        entry = make_entry(content="foo")
        with patch("feedrewrite.replacer.extension.apply_rules", side_effect=RuntimeError("boom")):
            result = replacer.before_insert(entry)
        assert result is entry
        assert entry.content == "foo"

    def test_invalid_rule_keeps_others(self, settings, make_entry):
        user_config = InMemoryUserConfiguration({
            "replacer": {"replacements": {"1": [
                {"search_regex": "(", "replace_string": "x"},
                {"search_regex": "a", "replace_string": "b"},
            ]}}
        })
        entry = make_entry(content="aaa")
        ReplacerExtension(user_config, settings).before_insert(entry)
        assert entry.content == "bbb"


class TestConfigure:
    """Saving rules from the configuration form."""

    def test_form_decoding(self, settings):
        user_config = InMemoryUserConfiguration()
        extension = ReplacerExtension(user_config, settings)

        data = extension.handle_configure({
            "feed_ids[]": ["1", "2"],
            "replacer_search_regex_1[]": ["%3Cb%3E", "  ", "a+b"],
            "replacer_replace_string_1[]": ["&lt;strong&gt;", "ignored", "c"],
            "replacer_search_regex_2[]": [""],
            "replacer_replace_string_2[]": ["x"],
        })

        expected = {
            "replacements": {
                "1": [
                    {"search_regex": "<b>", "replace_string": "<strong>"},
                    {"search_regex": "a b", "replace_string": "c"},
                ]
            }
        }
        assert data == expected
        assert user_config.get("replacer") == expected

    def test_missing_replacement_means_delete(self, settings):
        extension = ReplacerExtension(InMemoryUserConfiguration(), settings)
        data = extension.parse_configure_form({
            "feed_ids": "3",
            "replacer_search_regex_3": "ads",
        })
        assert data == {"replacements": {"3": [{"search_regex": "ads", "replace_string": ""}]}}

    def test_saved_rules_are_used(self, settings, make_entry):
        user_config = InMemoryUserConfiguration()
        extension = ReplacerExtension(user_config, settings)
        extension.handle_configure({
            "feed_ids[]": ["1"],
            "replacer_search_regex_1[]": ["Hello"],
            "replacer_replace_string_1[]": ["Bye"],
        })

        entry = make_entry()
        extension.before_insert(entry)
        assert entry.content == "<p>Bye world</p>"
