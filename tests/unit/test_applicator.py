"""
Rule Applicator Tests
=====================

Ordered application of rules and per-rule outcomes.
"""

import logging

import pytest

from feedrewrite.replacer.applicator import RuleStatus, apply_rule, apply_rules
from feedrewrite.replacer.placeholders import EntryContext
from feedrewrite.replacer.rules import ReplacementTemplate, Rule


@pytest.fixture
def context():
    return EntryContext(
        feed_id=1,
        feed_url="https://example.com/feed.xml",
        feed_title="Tech",
        entry_url="http://x/1",
    )


class TestApplyRules:
    """Behaviour of a feed's whole rule list."""

    def test_no_rules_leaves_content(self, context):
        result = apply_rules([], "<p>unchanged</p>", context)
        assert result.content == "<p>unchanged</p>"
        assert result.outcomes == []

    def test_global_replace(self, context):
        result = apply_rules([Rule("foo", "bar")], "foofoo", context)
        assert result.content == "barbar"
        assert result.applied_count == 1

    def test_placeholders_in_replacement(self, context):
        result = apply_rules([Rule("PLACEHOLDER", "{title}: {url}")], "PLACEHOLDER", context)
        assert result.content == "Tech: http://x/1"

    def test_invalid_pattern_does_not_block_later_rules(self, context):
        rules = [Rule("[bad", "x"), Rule("a", "b")]
        result = apply_rules(rules, "aa", context)

        assert result.content == "bb"
        assert result.outcomes[0].status == RuleStatus.SKIPPED_INVALID
        assert result.outcomes[1].status == RuleStatus.APPLIED
        assert [o.number for o in result.skipped] == [1]

    def test_order_matters(self, context):
        first = Rule("a", "b")
        second = Rule("b", "c")
        assert apply_rules([first, second], "a", context).content == "c"
        assert apply_rules([second, first], "a", context).content == "b"

    def test_replay_is_not_idempotent(self, context):
        rules = [Rule("a", "aa")]
        once = apply_rules(rules, "a", context).content
        twice = apply_rules(rules, once, context).content
        assert once == "aa"
        assert twice == "aaaa"

    def test_failed_replace_reverts_only_that_step(self, context, monkeypatch):
        substitute = ReplacementTemplate.substitute

        def failing_substitute(template, regex, content):
            if template.source == "boom":
                raise RuntimeError("engine failure")
            return substitute(template, regex, content)

        monkeypatch.setattr(ReplacementTemplate, "substitute", failing_substitute)
        rules = [Rule("x", "y"), Rule("(a)", "boom"), Rule("b", "c")]
        result = apply_rules(rules, "xab", context)

        assert result.content == "yac"
        assert [o.status for o in result.outcomes] == [
            RuleStatus.APPLIED,
            RuleStatus.REVERTED,
            RuleStatus.APPLIED,
        ]
        assert result.outcomes[1].reason.startswith("[R002]")
        assert "engine failure" in result.outcomes[1].reason

    def test_missing_group_still_applies(self, context):
        result = apply_rules([Rule("/price/", "costs $5")], "price", context)
        assert result.content == "costs "
        assert result.outcomes[0].status == RuleStatus.APPLIED

    def test_placeholder_value_with_reference_syntax(self):
        context = EntryContext(feed_id=1, feed_title="Tech", entry_url="http://x/?p=$10")
        result = apply_rules([Rule("/LINK/", '<a href="{url}">x</a>')], "LINK", context)

        assert result.outcomes[0].status == RuleStatus.APPLIED
        assert result.content == '<a href="http://x/?p=">x</a>'

    def test_entities_in_stored_replacement_are_decoded(self, context):
        result = apply_rules([Rule("/X/", "&lt;b&gt;{title}&lt;/b&gt;")], "X", context)
        assert result.content == "<b>Tech</b>"

    def test_empty_pattern_skipped(self, context):
        result = apply_rules([Rule("", "x")], "abc", context)
        assert result.content == "abc"
        assert result.outcomes[0].status == RuleStatus.SKIPPED_EMPTY

    def test_no_match_is_unchanged(self, context):
        result = apply_rules([Rule("zzz", "y")], "abc", context)
        assert result.outcomes[0].status == RuleStatus.UNCHANGED
        assert result.outcomes[0].ok
        assert result.applied_count == 0

    def test_delimited_pattern_with_groups(self, context):
        rules = [Rule("#<h1>(.*?)</h1>#i", "<h2>$1</h2>")]
        result = apply_rules(rules, "<H1>Title</H1>", context)
        assert result.content == "<h2>Title</h2>"

    def test_invalid_pattern_logged(self, context, caplog):
        caplog.set_level(logging.ERROR)
        apply_rules([Rule("(", "")], "abc", context)
        assert "Invalid regex pattern for feed 1" in caplog.text


class TestApplyRule:
    """A single rule step."""

    def test_returns_input_on_failure(self, context):
        content, outcome = apply_rule(Rule("(", "x"), "abc", context, index=3)
        assert content == "abc"
        assert outcome.index == 3
        assert outcome.number == 4
        assert not outcome.ok

    def test_delete_match(self, context):
        content, outcome = apply_rule(Rule("#<script.*?</script>#s", ""), "a<script>\nx</script>b", context)
        assert content == "ab"
        assert outcome.status == RuleStatus.APPLIED
