"""
Filtering pipeline — the main entry point for content decisions.

Three independent paths:
    1. **Batch** — annotate every track with its classification, log
       each decision, summarise, and pick recommendations.  Nothing is
       removed.
    2. **Live** — one currently-playing track → play or skip.  A hard
       boolean gate with no scoring.
    3. **Playlist discovery** — keep only playlists passing the
       playlist AND-gate; if none survive, hand back the fallback
       catalog instead.

Policy switches come from ``Config`` (``filter.*``).  They are read at
construction and again whenever a ``filter.*`` key changes on the bus.
An override of the wrong type is ignored in favour of the default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import DEFAULTS
from ..events import CONFIG_CHANGED
from ..models import Playlist, Track
from .classifier import ClassificationResult, ContentClassifier, RiskLevel, search_text
from .compliance_log import ComplianceLogger, build_log_entry
from .fallback import fallback_playlists
from .keywords import KeywordRuleSet

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10

_POLICY_DEFAULTS: Dict[str, Any] = DEFAULTS["filter"]


class InvalidBatchError(ValueError):
    """The request did not carry a list of items to classify."""


# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------

@dataclass
class FilterSummary:
    total: int = 0
    explicit_count: int = 0
    educational_count: int = 0
    average_educational_value: float = 0.0

    @classmethod
    def from_results(cls, results: Sequence[ClassificationResult]) -> "FilterSummary":
        total = len(results)
        if total == 0:
            return cls()
        return cls(
            total=total,
            explicit_count=sum(1 for r in results if r.is_explicit),
            educational_count=sum(1 for r in results if r.is_educational),
            average_educational_value=sum(r.educational_value for r in results) / total,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTracks": self.total,
            "explicitTracks": self.explicit_count,
            "educationalTracks": self.educational_count,
            "averageEducationalValue": self.average_educational_value,
        }


@dataclass
class BatchResult:
    """Annotated batch; ``items[i]`` pairs with ``results[i]``."""
    items: List[Dict[str, Any]]
    results: List[ClassificationResult]
    recommendations: List[Dict[str, Any]]
    summary: FilterSummary
    compliance_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filteredTracks": self.items,
            "educationalRecommendations": self.recommendations,
            "complianceInfo": self.compliance_info,
            "summary": self.summary.to_dict(),
        }


@dataclass
class PlaylistDiscovery:
    playlists: List[Dict[str, Any]]
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"playlists": self.playlists, "fallback": self.used_fallback}


def top_recommendations(
    items: Sequence[Dict[str, Any]],
    results: Sequence[ClassificationResult],
    limit: int = MAX_RECOMMENDATIONS,
) -> List[Dict[str, Any]]:
    """
    Items with a positive educational value, highest first.

    ``sorted`` is stable, so equal scores keep their input order.
    """
    scored = [(item, r.educational_value) for item, r in zip(items, results) if r.is_educational]
    scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
    return [item for item, _ in scored[:limit]]


# ------------------------------------------------------------------
# Pipeline
# ------------------------------------------------------------------

class FilteringPipeline:
    """
    Usage::

        pipeline = FilteringPipeline(compliance_logger=ComplianceLogger(bus), config=config, event_bus=bus)

        batch = pipeline.filter_tracks(body.get("tracks"))
        respond(batch.to_dict())

        if not pipeline.check_live_track(current_track):
            player.next_track()
    """

    def __init__(
        self,
        classifier: Optional[ContentClassifier] = None,
        compliance_logger: Optional[ComplianceLogger] = None,
        config: Optional[Any] = None,
        event_bus: Optional[Any] = None,
    ):
        self.config = config
        self.bus = event_bus
        self.policy: Dict[str, Any] = self._read_policy()

        self._owns_classifier = classifier is None
        self.classifier = classifier or self._build_classifier()
        self.compliance_logger = compliance_logger

        # Policy edits made through Config take effect without a restart
        if self.bus is not None:
            self.bus.subscribe(CONFIG_CHANGED, self._on_config_changed)

    @property
    def rules(self) -> KeywordRuleSet:
        return self.classifier.rules

    def reload_policy(self) -> None:
        """Re-read ``filter.*`` and rebuild the classifier if this pipeline made it."""
        self.policy = self._read_policy()
        if self._owns_classifier:
            self.classifier = self._build_classifier()

    # ── Batch path ───────────────────────────────────────────

    def filter_tracks(self, tracks: Any, user_info: Any = None) -> BatchResult:
        """Classify, log, and annotate every track in *tracks*."""
        if not isinstance(tracks, (list, tuple)):
            raise InvalidBatchError("Tracks array is required")

        items: List[Dict[str, Any]] = []
        results: List[ClassificationResult] = []
        entries: List[Dict[str, Any]] = []

        for raw in tracks:
            track = Track.from_dict(raw)
            analysis = self.classifier.classify_track(track)
            entries.append(self._entry("track", track.id, track.name, analysis, track.primary_artist, user_info))

            item = dict(raw) if isinstance(raw, dict) else {}
            item["contentAnalysis"] = analysis.to_dict()
            item["cipaCompliant"] = True
            item["educationalContext"] = self.policy["context_note"]
            items.append(item)
            results.append(analysis)

        self._emit(entries)

        summary = FilterSummary.from_results(results)
        logger.debug(
            "Filtered %d tracks (%d explicit, %d educational)",
            summary.total, summary.explicit_count, summary.educational_count,
        )
        return BatchResult(
            items=items,
            results=results,
            recommendations=top_recommendations(items, results),
            summary=summary,
            compliance_info=self.compliance_info(),
        )

    def compliance_info(self) -> Dict[str, Any]:
        return {
            "cipaCompliant": True,
            "filteringActive": True,
            "educationalContext": True,
            "userConsentRequired": bool(self.policy["require_user_consent"]),
            "institution": self.policy["institution"],
            "complianceStandards": list(self.policy["compliance_standards"]),
        }

    # ── Live path ────────────────────────────────────────────

    def check_live_track(self, track: Track | Dict[str, Any]) -> bool:
        """True to keep playing, False to skip."""
        if not isinstance(track, Track):
            track = Track.from_dict(track)

        blocked = self.rules.blocked_matches(search_text(track.name, *track.artist_names))
        allowed = not track.explicit and not blocked

        if self.policy["log_content_access"]:
            reasons = []
            risk = RiskLevel.LOW
            if track.explicit:
                reasons.append("Explicit track skipped by live player")
                risk = RiskLevel.MEDIUM
            if blocked:
                reasons.extend(f"Blocked term: {t}" for t in blocked)
                risk = RiskLevel.HIGH
            snapshot = ClassificationResult(
                is_explicit=track.explicit,
                risk_level=risk,
                admitted=allowed,
                reasons=reasons,
                blocked_terms=blocked,
            )
            self._emit([self._entry("live", track.id, track.name, snapshot, track.primary_artist)])

        return allowed

    # ── Playlist path ────────────────────────────────────────

    def filter_playlists(self, playlists: Any) -> PlaylistDiscovery:
        """Admitted playlists, or the full fallback catalog when none pass."""
        if not isinstance(playlists, (list, tuple)):
            raise InvalidBatchError("Playlists array is required")

        admitted: List[Dict[str, Any]] = []
        entries: List[Dict[str, Any]] = []
        for raw in playlists:
            playlist = Playlist.from_dict(raw)
            analysis = self.classifier.classify_playlist(playlist)
            entries.append(self._entry("playlist", playlist.id, playlist.name, analysis))
            if analysis.admitted:
                item = dict(raw) if isinstance(raw, dict) else {}
                item["contentAnalysis"] = analysis.to_dict()
                admitted.append(item)

        self._emit(entries)

        if not admitted:
            logger.info("No playlists admitted out of %d; using fallback catalog", len(playlists))
            return PlaylistDiscovery(playlists=fallback_playlists(), used_fallback=True)
        return PlaylistDiscovery(playlists=admitted)

    # ── Logging ──────────────────────────────────────────────

    def _entry(
        self,
        kind: str,
        subject_id: str,
        subject_name: str,
        analysis: ClassificationResult,
        artist: str = "",
        user_info: Any = None,
    ) -> Dict[str, Any]:
        return build_log_entry(
            kind=kind,
            subject_id=subject_id,
            subject_name=subject_name,
            analysis=analysis,
            artist=artist,
            educational_context=self.policy["educational_context"],
            user_info=user_info,
        )

    def _emit(self, entries: List[Dict[str, Any]]) -> None:
        if self.compliance_logger is None or not self.policy["log_content_access"] or not entries:
            return
        try:
            if len(entries) == 1:
                self.compliance_logger.log(entries[0])
            else:
                self.compliance_logger.log_many(entries)
        except Exception as e:
            logger.warning("Compliance logging failed, continuing: %s", e)

    # ── Config ───────────────────────────────────────────────

    def _read_policy(self) -> Dict[str, Any]:
        policy = dict(_POLICY_DEFAULTS)
        if self.config is None:
            return policy
        for key, default in _POLICY_DEFAULTS.items():
            value = self.config.get(f"filter.{key}")
            if value is None:
                continue
            if isinstance(default, list):
                ok = isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
            else:
                ok = isinstance(value, type(default))
            if ok:
                policy[key] = list(value) if isinstance(default, list) else value
            else:
                logger.warning("Ignoring filter.%s=%r; expected %s", key, value, type(default).__name__)
        return policy

    def _build_classifier(self) -> ContentClassifier:
        return ContentClassifier(
            KeywordRuleSet.from_config(self.config),
            allow_explicit=self.policy["allow_explicit_with_educational_context"],
        )

    def _on_config_changed(self, data: Dict[str, Any]) -> None:
        key = str(data.get("key") or "")
        if key == "filter" or key.startswith("filter."):
            self.reload_policy()
            logger.info("Filter policy reloaded after %s changed", key)
