"""
Tests for studyhub/safety/live_gate.py — player-state driven skipping.

Covers:
* current_track() — both payload shapes, missing track
* skip_track published for explicit / blocked tracks only
* Repeated state notifications for one track skip once
* detach() stops listening
* evaluate() — direct calls return the skip payload
"""

from __future__ import annotations

import pytest

from conftest import make_track
from studyhub.events import PLAYER_STATE_CHANGED, SKIP_TRACK
from studyhub.safety.live_gate import LiveTrackGate, current_track
from studyhub.safety.pipeline import FilteringPipeline


@pytest.fixture
def skips(bus):
    received = []
    bus.subscribe(SKIP_TRACK, received.append)
    return received


@pytest.fixture
def gate(bus):
    return LiveTrackGate(bus, FilteringPipeline())


def sdk_state(track: dict) -> dict:
    """Playback SDK ``player_state_changed`` shape."""
    return {"paused": False, "position": 0, "track_window": {"current_track": track}}


# ── current_track ─────────────────────────────────────────────────────

class TestCurrentTrack:
    def test_flat_shape(self):
        assert current_track({"track": {"id": "a"}}) == {"id": "a"}

    def test_sdk_shape(self):
        assert current_track(sdk_state({"id": "b"})) == {"id": "b"}

    @pytest.mark.parametrize("state", [{}, {"track": None}, {"track_window": {}}, {"track_window": "x"}])
    def test_missing(self, state):
        assert current_track(state) is None


# ── Gate behaviour ────────────────────────────────────────────────────

class TestLiveTrackGate:
    def test_clean_track_not_skipped(self, bus, gate, skips):
        bus.publish(PLAYER_STATE_CHANGED, sdk_state(make_track("Nocturne", "Chopin", track_id="n")))
        assert skips == []

    def test_explicit_track_skipped(self, bus, gate, skips):
        bus.publish(PLAYER_STATE_CHANGED, sdk_state(make_track("Piano Study", explicit=True, track_id="e")))
        assert skips == [{"track_id": "e", "name": "Piano Study", "reason": "explicit"}]

    def test_blocked_track_skipped(self, bus, gate, skips):
        bus.publish(PLAYER_STATE_CHANGED, {"track": make_track("Club Mix", track_id="c")})
        assert len(skips) == 1
        assert skips[0]["reason"] == "blocked term"

    def test_repeated_state_skips_once(self, bus, gate, skips):
        state = sdk_state(make_track("Club Mix", track_id="c"))
        bus.publish(PLAYER_STATE_CHANGED, state)
        bus.publish(PLAYER_STATE_CHANGED, state)
        assert len(skips) == 1

    def test_new_track_evaluated_again(self, bus, gate, skips):
        bus.publish(PLAYER_STATE_CHANGED, sdk_state(make_track("Club Mix", track_id="c")))
        bus.publish(PLAYER_STATE_CHANGED, sdk_state(make_track("Nocturne", track_id="n")))
        bus.publish(PLAYER_STATE_CHANGED, sdk_state(make_track("Club Mix", track_id="c")))
        assert [s["track_id"] for s in skips] == ["c", "c"]

    def test_state_without_track_ignored(self, bus, gate, skips):
        bus.publish(PLAYER_STATE_CHANGED, {"paused": True})
        assert skips == []

    def test_detach(self, bus, gate, skips):
        gate.detach()
        bus.publish(PLAYER_STATE_CHANGED, {"track": make_track("Club Mix", track_id="c")})
        assert skips == []


# ── evaluate() ────────────────────────────────────────────────────────

class TestEvaluate:
    def test_returns_skip_payload(self, gate, skips):
        payload = gate.evaluate({"track": make_track("Song", explicit=True, track_id="e")})
        assert payload == {"track_id": "e", "name": "Song", "reason": "explicit"}
        assert skips == [payload]

    def test_clean_track_returns_none(self, gate, skips):
        assert gate.evaluate(sdk_state(make_track("Nocturne", track_id="n"))) is None
        assert skips == []

    def test_repeat_returns_none(self, gate):
        state = {"track": make_track("Club Mix", track_id="c")}
        assert gate.evaluate(state) is not None
        assert gate.evaluate(state) is None

    def test_no_track_returns_none(self, gate):
        assert gate.evaluate({"paused": True}) is None

    def test_logs_live_entry(self, bus, compliance_logger):
        gate = LiveTrackGate(bus, FilteringPipeline(compliance_logger=compliance_logger))
        gate.evaluate({"track": make_track("Song", explicit=True, track_id="e")})
        entry = compliance_logger.read_recent()[-1]
        assert entry["kind"] == "live"
        assert entry["riskLevel"] == "medium"
