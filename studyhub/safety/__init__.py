"""
Content-safety filter — keyword rules, track/playlist classification,
compliance logging, and the batch / live / playlist filtering paths.
"""

from .keywords import DEFAULT_RULES, KeywordRuleSet
from .classifier import ClassificationResult, ContentClassifier, RiskLevel
from .compliance_log import ComplianceLogger, build_log_entry
from .fallback import FALLBACK_CATALOG, FallbackPlaylist, fallback_playlists
from .pipeline import (
    BatchResult, FilteringPipeline, FilterSummary, InvalidBatchError, PlaylistDiscovery,
)
from .live_gate import LiveTrackGate
