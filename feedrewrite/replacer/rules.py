"""
Rewrite Rules
=============

Rule and RuleSet models, plus translation of user-written patterns and
replacement strings into Python ``re`` objects.

Users write patterns the way the host's UI documents them, usually with
PCRE delimiters and modifiers (``#<header>.*?</header>#is``); bare
patterns (``foo``) are accepted too. Replacement strings use ``$1``,
``${1}`` or ``\\1`` for groups.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..host.models import FeedId, feed_key
from ..utils.exceptions import ErrorCode, InvalidPatternError
from ..utils.logging import get_logger_for_component


logger = get_logger_for_component("replacer")

# Bracket-style delimiters are not supported: "(a)(b)" must stay a bare pattern.
PATTERN_DELIMITERS = frozenset("/#~!@%|+;:,")

PCRE_MODIFIERS = "imsxuADSUXJn"

MODIFIER_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,  # str patterns are unicode already
    "S": 0,  # study hint
}


def split_delimited(pattern: str) -> Optional[Tuple[str, str]]:
    """Split ``<d>body<d>modifiers`` into ``(body, modifiers)``.

    Returns None when the pattern is not written in delimited form.
    """
    if len(pattern) < 2 or pattern[0] not in PATTERN_DELIMITERS:
        return None

    delimiter = pattern[0]
    end = pattern.rfind(delimiter)
    if end <= 0:
        return None

    modifiers = pattern[end + 1:]
    if any(ch not in PCRE_MODIFIERS for ch in modifiers):
        return None

    return pattern[1:end], modifiers


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a user pattern.

    Raises:
        InvalidPatternError: If the pattern is empty, uses an unsupported
            modifier, or is not a valid regular expression
    """
    if not pattern:
        raise InvalidPatternError(
            "Pattern is empty", error_code=ErrorCode.RULE_EMPTY_PATTERN, pattern=pattern
        )

    flags = 0
    body = pattern
    delimited = split_delimited(pattern)
    if delimited is not None:
        body, modifiers = delimited
        for modifier in modifiers:
            if modifier not in MODIFIER_FLAGS:
                raise InvalidPatternError(
                    f"Unsupported pattern modifier '{modifier}'", pattern=pattern
                )
            flags |= MODIFIER_FLAGS[modifier]

    try:
        return re.compile(body, flags)
    except (re.error, OverflowError, RecursionError) as e:
        raise InvalidPatternError(f"Invalid pattern: {e}", pattern=pattern) from e


# \\ and \$ are escapes; $n, ${n} and \n are group references
_REFERENCE_PATTERN = re.compile(r"\\([\\$])|\$\{(\d{1,2})\}|\$(\d{1,2})|\\(\d{1,2})")


class ReplacementTemplate:
    """A parsed replacement string: literal text interleaved with group numbers."""

    def __init__(self, replacement: str):
        self.source = replacement
        self.parts: List[Union[str, int]] = self._parse(replacement)

    @staticmethod
    def _parse(replacement: str) -> List[Union[str, int]]:
        parts: List[Union[str, int]] = []
        literal: List[str] = []
        position = 0

        for match in _REFERENCE_PATTERN.finditer(replacement):
            literal.append(replacement[position:match.start()])
            position = match.end()

            escaped, *groups = match.groups()
            if escaped is not None:
                literal.append(escaped)
                continue

            text = "".join(literal)
            if text:
                parts.append(text)
            literal = []
            parts.append(int(next(g for g in groups if g is not None)))

        literal.append(replacement[position:])
        tail = "".join(literal)
        if tail:
            parts.append(tail)
        return parts

    @property
    def is_literal(self) -> bool:
        return all(isinstance(part, str) for part in self.parts)

    def expand(self, match: "re.Match[str]") -> str:
        """Build the replacement text for one match.

        Groups the pattern does not define, and groups that did not take
        part in the match, expand to the empty string.
        """
        pieces = []
        for part in self.parts:
            if isinstance(part, str):
                pieces.append(part)
            elif part <= match.re.groups:
                pieces.append(match.group(part) or "")
        return "".join(pieces)

    def substitute(self, regex: "re.Pattern[str]", content: str) -> str:
        """Replace every match of ``regex`` in ``content``."""
        if self.is_literal:
            literal = "".join(self.parts)
            return regex.sub(lambda _m: literal, content)
        return regex.sub(self.expand, content)


@dataclass(frozen=True)
class Rule:
    """One pattern/replacement pair."""
    pattern: str
    replacement: str = ""

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "Rule":
        """Build a rule from its stored ``search_regex``/``replace_string`` form."""
        pattern = data.get("search_regex") or ""
        replacement = data.get("replace_string") or ""
        return cls(pattern=str(pattern), replacement=str(replacement))

    def to_config(self) -> Dict[str, str]:
        return {"search_regex": self.pattern, "replace_string": self.replacement}


@dataclass
class RuleSet:
    """Ordered rules per feed."""
    rules_by_feed: Dict[str, Tuple[Rule, ...]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, replacements: Any) -> "RuleSet":
        """Load the stored ``replacements`` mapping.

        A feed stored in the legacy single-rule shape
        (``{"search_regex": ..., "replace_string": ...}``) becomes a
        one-rule list.
        """
        if not isinstance(replacements, Mapping):
            return cls()

        rules_by_feed: Dict[str, Tuple[Rule, ...]] = {}
        for raw_feed_id, stored in replacements.items():
            key = feed_key(raw_feed_id)
            if key is None:
                continue

            if isinstance(stored, Mapping) and "search_regex" in stored:
                stored = [stored]

            if not isinstance(stored, (list, tuple)):
                logger.warning(f"Ignoring malformed rules for feed {key}")
                continue

            rules = tuple(
                Rule.from_config(item) for item in stored if isinstance(item, Mapping)
            )
            if rules:
                rules_by_feed[key] = rules

        return cls(rules_by_feed)

    @classmethod
    def from_rules(cls, rules: Mapping[FeedId, Iterable[Rule]]) -> "RuleSet":
        return cls({feed_key(k): tuple(v) for k, v in rules.items() if feed_key(k)})

    def rules_for(self, feed_id: FeedId) -> Tuple[Rule, ...]:
        """Rules for a feed in application order (empty if none)."""
        key = feed_key(feed_id)
        if key is None:
            return ()
        return self.rules_by_feed.get(key, ())

    def __contains__(self, feed_id: object) -> bool:
        return bool(self.rules_for(feed_id))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.rules_by_feed)

    @property
    def total_rules(self) -> int:
        return sum(len(rules) for rules in self.rules_by_feed.values())

    def to_config(self) -> Dict[str, Any]:
        return {
            "replacements": {
                key: [rule.to_config() for rule in rules]
                for key, rules in self.rules_by_feed.items()
            }
        }
