"""
Keyword rules for the study-music content filter.

Two groups of lowercase substrings:

* ``educational`` — study-friendly terms (genres, moods, instruments).
  Every hit raises an item's educational value.
* ``blocked`` — terms that keep a playlist out of discovery and make
  the live player skip a track.

The groups are meant to be disjoint but nothing enforces it.  Callers
match them case-insensitively as substrings of an item's text.

``DEFAULT_RULES`` is built once at import time; a deployment can
override either group through ``Config`` with ``from_config``, which is
expected to run once at startup.  Instances are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple


EDUCATIONAL_TERMS: Tuple[str, ...] = (
    "classical",
    "instrumental",
    "study",
    "focus",
    "ambient",
    "meditation",
    "concentration",
    "piano",
    "acoustic",
    "jazz",
    "lo-fi",
    "lofi",
    "chill",
)

BLOCKED_TERMS: Tuple[str, ...] = (
    "party",
    "club",
    "explicit",
    "nsfw",
    "drunk",
    "drugs",
    "violence",
    "twerk",
    "hangover",
)


def _normalise_terms(terms: Iterable[Any]) -> Tuple[str, ...]:
    """Lowercase, strip, drop blanks and repeats; keep first-seen order."""
    seen: list[str] = []
    for term in terms:
        if not isinstance(term, str):
            continue
        t = term.strip().lower()
        if t and t not in seen:
            seen.append(t)
    return tuple(seen)


@dataclass(frozen=True)
class KeywordRuleSet:
    educational: Tuple[str, ...] = EDUCATIONAL_TERMS
    blocked: Tuple[str, ...] = BLOCKED_TERMS

    def __post_init__(self) -> None:
        object.__setattr__(self, "educational", _normalise_terms(self.educational))
        object.__setattr__(self, "blocked", _normalise_terms(self.blocked))

    def educational_matches(self, text: str) -> list[str]:
        """Educational terms found in *text*, in rule order."""
        haystack = text.lower()
        return [t for t in self.educational if t in haystack]

    def blocked_matches(self, text: str) -> list[str]:
        """Blocked terms found in *text*, in rule order."""
        haystack = text.lower()
        return [t for t in self.blocked if t in haystack]

    @classmethod
    def from_config(cls, config: Any) -> "KeywordRuleSet":
        """
        Build the rule set from ``filter.keywords.educational`` /
        ``filter.keywords.blocked``, falling back to the built-in lists
        for any group that is missing or not a list.
        """
        if config is None:
            return DEFAULT_RULES
        educational = config.get("filter.keywords.educational")
        blocked = config.get("filter.keywords.blocked")
        return cls(
            educational=tuple(educational) if isinstance(educational, list) else EDUCATIONAL_TERMS,
            blocked=tuple(blocked) if isinstance(blocked, list) else BLOCKED_TERMS,
        )


DEFAULT_RULES = KeywordRuleSet()
