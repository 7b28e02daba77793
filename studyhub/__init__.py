from .events import EventBus
from .config import Config, ServerSettings, load_settings
from .models import Artist, Playlist, Track
from .safety import (
    ComplianceLogger, ContentClassifier, FilteringPipeline, KeywordRuleSet,
    LiveTrackGate, RiskLevel,
)
from .spotify import SpotifyAuthRelay, SpotifyError, SpotifyWebClient
