"""
Live player gate.

Player state changes reach the gate two ways: as ``player_state_changed``
events on the bus, or directly through ``evaluate()`` when the HTTP
layer forwards a state posted by the playback SDK.  Either way the gate
publishes ``skip_track`` whenever the current track fails the live
check.  The SDK fires state changes constantly while a track plays, so
each track id is skipped at most once per consecutive run.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Mapping, Optional

from ..events import PLAYER_STATE_CHANGED, SKIP_TRACK
from .pipeline import FilteringPipeline

logger = logging.getLogger(__name__)


def current_track(state: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Pull the playing track out of a state payload, if there is one."""
    track = state.get("track")
    if isinstance(track, Mapping):
        return dict(track)
    window = state.get("track_window")
    if isinstance(window, Mapping) and isinstance(window.get("current_track"), Mapping):
        return dict(window["current_track"])
    return None


class LiveTrackGate:
    def __init__(self, event_bus: Any, pipeline: Optional[FilteringPipeline] = None):
        self.bus = event_bus
        self.pipeline = pipeline or FilteringPipeline()
        self._lock = threading.Lock()
        self._last_track_id: Optional[str] = None
        self.bus.subscribe(PLAYER_STATE_CHANGED, self._on_player_state)

    def detach(self) -> None:
        self.bus.unsubscribe(PLAYER_STATE_CHANGED, self._on_player_state)

    def evaluate(self, state: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Check the track in *state*.

        Returns the published ``skip_track`` payload, or ``None`` when
        there is no track, the track may play, or it was already handled.
        """
        track = current_track(state)
        if track is None:
            return None

        track_id = str(track.get("id") or track.get("uri") or "")
        with self._lock:
            if track_id and track_id == self._last_track_id:
                return None
            self._last_track_id = track_id or None

        if self.pipeline.check_live_track(track):
            return None

        name = track.get("name") or ""
        reason = "explicit" if track.get("explicit") is True else "blocked term"
        logger.info("Skipping %s (%s)", name or track_id, reason)
        payload = {"track_id": track_id, "name": name, "reason": reason}
        self.bus.publish(SKIP_TRACK, payload)
        return payload

    def _on_player_state(self, data: Dict[str, Any]) -> None:
        self.evaluate(data)
