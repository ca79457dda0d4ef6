"""
Replacer Extension
==================

Per-feed regex find-and-replace on entry content. Rules are applied in
their configured order before the entry is stored; only the content is
touched, never the title.

Replacement strings may contain ``{url}`` (entry link), ``{feed_url}`` and
``{title}`` (feed name).
"""

from typing import Any, Dict, List, Mapping

from .applicator import ApplyResult, apply_rules
from .placeholders import EntryContext
from .rules import Rule, RuleSet
from ..extensions.base import Extension
from ..host.forms import decode_form_value, form_list
from ..host.models import HostEntry, feed_key


class ReplacerExtension(Extension):
    """Applies user-defined regex rules to entry content."""

    name = "Replacer"
    config_key = "replacer"

    def load_rule_set(self) -> RuleSet:
        """Read the current user's rules."""
        return RuleSet.from_config(self.get_configuration_value("replacements", {}))

    def process_entry(self, entry: HostEntry) -> HostEntry:
        rules = self.load_rule_set().rules_for(entry.feed_id)
        if not rules:
            return entry

        context = EntryContext.from_entry(entry)
        result = self.rewrite(rules, context)

        if result.applied_count > 0:
            entry.content = result.content
            self.logger.info(
                f"Applied {result.applied_count} rule(s) to entry from feed {context.feed_id}"
            )
        return entry

    def rewrite(self, rules, context: EntryContext) -> ApplyResult:
        """Run the applicator; exposed for previews that must not touch an entry."""
        return apply_rules(rules, context.content, context)

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Collect ``replacer_search_regex_<id>[]`` / ``replacer_replace_string_<id>[]`` rows.

        Rows with a blank pattern are dropped (an empty replacement is fine,
        it deletes the match). Feeds left without rules are omitted.
        """
        replacements: Dict[str, List[Rule]] = {}

        feed_ids = form_list(form, "feed_ids")
        self.logger.info(f"Processing configuration for {len(feed_ids)} feeds")

        for raw_feed_id in feed_ids:
            key = feed_key(raw_feed_id)
            if key is None:
                continue

            patterns = form_list(form, f"replacer_search_regex_{key}")
            replacements_raw = form_list(form, f"replacer_replace_string_{key}")

            rules = []
            for index, pattern in enumerate(patterns):
                replacement = replacements_raw[index] if index < len(replacements_raw) else ""

                pattern = decode_form_value(pattern)
                replacement = decode_form_value(replacement)

                if pattern.strip() == "":
                    continue
                rules.append(Rule(pattern, replacement))

            if rules:
                replacements[key] = rules
                self.logger.info(f"Saved {len(rules)} rule(s) for feed ID {key}")

        rule_set = RuleSet.from_rules(replacements)
        self.logger.info(
            f"Configuration saved with {rule_set.total_rules} total rules across {len(rule_set)} feeds"
        )
        return rule_set.to_config()
