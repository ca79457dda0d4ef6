"""
FeedRewrite Replacer
====================

Rule-based content rewriting: placeholder resolution, ordered rule
application and the ``entry_before_insert`` plugin that drives them.
"""

from .placeholders import EntryContext, resolve_placeholders
from .rules import Rule, RuleSet, ReplacementTemplate, compile_pattern
from .applicator import ApplyResult, RuleOutcome, RuleStatus, apply_rule, apply_rules
from .extension import ReplacerExtension

__all__ = [
    "EntryContext",
    "resolve_placeholders",
    "Rule",
    "RuleSet",
    "ReplacementTemplate",
    "compile_pattern",
    "ApplyResult",
    "RuleOutcome",
    "RuleStatus",
    "apply_rule",
    "apply_rules",
    "ReplacerExtension",
]
