"""
Heuristic classifier for tracks and playlists.

Scores an item's text against the keyword rules and its explicit flag.
Two rule sets live here and they deliberately disagree:

* **Track level** — informational.  Educational hits raise the score,
  explicit content raises the risk level, and the item stays admitted
  while the educational exemption is on.  Blocked terms are ignored.
* **Playlist level** — an AND-gate.  A playlist is admitted only with
  at least one educational hit, no blocked hits, and no explicit flag.

Classification is total: any input produces a ``ClassificationResult``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models import Playlist, Track
from .keywords import DEFAULT_RULES, KeywordRuleSet

EDUCATIONAL_WEIGHT = 10

REASON_EXPLICIT = "Contains explicit language - requires user consent"
REASON_EXEMPTION = "Allowed under educational exemption with user consent"


class RiskLevel(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ClassificationResult:
    """Outcome of classifying one track or playlist."""
    is_explicit: bool = False
    educational_value: int = 0
    risk_level: RiskLevel = RiskLevel.LOW
    admitted: bool = True
    reasons: List[str] = field(default_factory=list)
    blocked_terms: List[str] = field(default_factory=list)

    @property
    def is_educational(self) -> bool:
        return self.educational_value > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isExplicit": self.is_explicit,
            "educationalValue": self.educational_value,
            "riskLevel": self.risk_level.value,
            "allowedWithConsent": self.admitted,
            "reasons": list(self.reasons),
        }


def search_text(*fields: Optional[str], genres: Any = ()) -> str:
    """
    Lowercased, newline-joined text of *fields* plus *genres*.

    Newlines keep a term from matching across two fields.
    """
    parts = [f.lower() for f in fields if f]
    parts.extend(g.lower() for g in genres if isinstance(g, str) and g)
    return "\n".join(parts)


class ContentClassifier:
    """
    Stateless scorer.

    ``classify_track`` and ``classify_playlist`` accept either the model
    objects or raw vendor dicts.
    """

    def __init__(
        self,
        rules: Optional[KeywordRuleSet] = None,
        allow_explicit: bool = True,
    ):
        self.rules = rules or DEFAULT_RULES
        self.allow_explicit = allow_explicit

    # ── Track level ──────────────────────────────────────────

    def classify_track(self, track: Track | Dict[str, Any]) -> ClassificationResult:
        if not isinstance(track, Track):
            track = Track.from_dict(track)

        result = ClassificationResult(is_explicit=track.explicit)
        text = search_text(track.name, track.primary_artist, genres=track.genres)
        self._score_educational(result, text)

        if result.is_explicit:
            result.risk_level = RiskLevel.MEDIUM
            result.reasons.append(REASON_EXPLICIT)
            if self.allow_explicit:
                result.reasons.append(REASON_EXEMPTION)
            else:
                result.admitted = False

        return result

    # ── Playlist level ───────────────────────────────────────

    def classify_playlist(self, playlist: Playlist | Dict[str, Any]) -> ClassificationResult:
        if not isinstance(playlist, Playlist):
            playlist = Playlist.from_dict(playlist)

        result = ClassificationResult(is_explicit=playlist.explicit)
        text = search_text(playlist.name, playlist.description, genres=playlist.genres)
        self._score_educational(result, text)

        if result.is_explicit:
            result.risk_level = RiskLevel.MEDIUM
            result.reasons.append(REASON_EXPLICIT)

        result.blocked_terms = self.rules.blocked_matches(text)
        for term in result.blocked_terms:
            result.reasons.append(f"Blocked term: {term}")
        if result.blocked_terms:
            result.risk_level = RiskLevel.HIGH

        result.admitted = (
            result.is_educational
            and not result.blocked_terms
            and not result.is_explicit
        )
        if not result.is_educational:
            result.reasons.append("No educational keywords found")

        return result

    # ── Internal ─────────────────────────────────────────────

    def _score_educational(self, result: ClassificationResult, text: str) -> None:
        for term in self.rules.educational_matches(text):
            result.educational_value += EDUCATIONAL_WEIGHT
            result.reasons.append(f"Educational content: {term}")
