"""
Rule Applicator
===============

Applies a feed's rules, in order, to entry content. Each rule reports an
explicit outcome instead of raising; a bad rule costs only its own step.
"""

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .placeholders import EntryContext, resolve_placeholders
from .rules import ReplacementTemplate, Rule, compile_pattern
from ..utils.exceptions import InvalidPatternError, ReplaceFailureError
from ..utils.logging import get_logger_for_component


class RuleStatus(str, Enum):
    """What happened when a rule was applied."""
    APPLIED = "applied"                  # content changed
    UNCHANGED = "unchanged"              # ran, nothing matched or same text
    SKIPPED_EMPTY = "skipped_empty"      # empty pattern
    SKIPPED_INVALID = "skipped_invalid"  # pattern failed to compile
    REVERTED = "reverted"                # replace failed, step rolled back


@dataclass
class RuleOutcome:
    """Result of one rule step."""
    index: int
    rule: Rule
    status: RuleStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (RuleStatus.APPLIED, RuleStatus.UNCHANGED)

    @property
    def number(self) -> int:
        """One-based rule number, as shown to users."""
        return self.index + 1


@dataclass
class ApplyResult:
    """Final content plus the outcome of every rule."""
    content: str
    outcomes: List[RuleOutcome] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        """Number of rules whose step changed the content."""
        return sum(1 for o in self.outcomes if o.status == RuleStatus.APPLIED)

    @property
    def skipped(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if not o.ok]


def apply_rule(rule: Rule, content: str, context: EntryContext, index: int = 0) -> Tuple[str, RuleOutcome]:
    """Apply one rule to ``content``.

    Returns:
        The content after this step and the step's outcome. On any failure
        the content is returned exactly as it came in.
    """
    if rule.pattern == "":
        return content, RuleOutcome(index, rule, RuleStatus.SKIPPED_EMPTY, "empty pattern")

    try:
        regex = compile_pattern(rule.pattern)
    except InvalidPatternError as e:
        return content, RuleOutcome(index, rule, RuleStatus.SKIPPED_INVALID, str(e))

    # Stored replacements may still carry HTML entities
    replacement = resolve_placeholders(html.unescape(rule.replacement), context)

    try:
        new_content = ReplacementTemplate(replacement).substitute(regex, content)
    except Exception as e:
        error = ReplaceFailureError(f"Replace failed: {e}", pattern=rule.pattern, rule_index=index)
        return content, RuleOutcome(index, rule, RuleStatus.REVERTED, str(error))

    status = RuleStatus.APPLIED if new_content != content else RuleStatus.UNCHANGED
    return new_content, RuleOutcome(index, rule, status)


def apply_rules(
    rules: Sequence[Rule],
    content: str,
    context: EntryContext,
) -> ApplyResult:
    """Apply rules in order, each to the output of the previous one.

    Args:
        rules: The feed's rules, in configured order
        content: Content to rewrite
        context: Entry metadata for placeholder substitution

    Returns:
        ApplyResult with the final content and per-rule outcomes
    """
    logger = get_logger_for_component(
        "replacer", feed_id=context.feed_id, entry_url=context.entry_url
    )
    result = ApplyResult(content=content)

    for index, rule in enumerate(rules):
        logger.debug(f"Applying rule #{index + 1}: {rule.pattern!r} -> {rule.replacement!r}")

        result.content, outcome = apply_rule(rule, result.content, context, index)
        result.outcomes.append(outcome)

        if outcome.status == RuleStatus.SKIPPED_INVALID:
            logger.error(
                f"Invalid regex pattern for feed {context.feed_id} "
                f"(rule #{outcome.number}): {outcome.reason}"
            )
        elif outcome.status == RuleStatus.REVERTED:
            logger.error(
                f"Replace failed for feed {context.feed_id} "
                f"(rule #{outcome.number}), keeping previous content: {outcome.reason}"
            )

    return result
