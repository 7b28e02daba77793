"""
Shared pytest fixtures.

A session-scoped QCoreApplication backs every test that creates a PyQt6
object (EventBus, Config, LiveTrackGate).  The offscreen platform keeps
the suite headless on CI / servers without a display.
"""

from __future__ import annotations

import os
import sys
import pytest

# Force Qt to run without a display before any Qt import happens.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """One QCoreApplication for the entire test session."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    yield app


@pytest.fixture
def bus(qapp):
    """Fresh EventBus for each test."""
    from studyhub.events import EventBus

    return EventBus()


@pytest.fixture
def compliance_logger(tmp_path):
    """ComplianceLogger writing into a per-test directory, no bus."""
    from studyhub.safety.compliance_log import ComplianceLogger

    return ComplianceLogger(log_dir=tmp_path / "logs")


def make_track(
    name: str = "",
    artist: str | None = None,
    explicit: bool = False,
    genres: list[str] | None = None,
    track_id: str = "t1",
) -> dict:
    """Vendor-shaped track dict."""
    track: dict = {"id": track_id, "name": name, "explicit": explicit}
    if artist is not None:
        track["artists"] = [{"name": artist}]
    if genres is not None:
        track["genres"] = genres
    return track


def make_playlist(
    name: str = "",
    description: str = "",
    explicit: bool = False,
    playlist_id: str = "p1",
    total: int = 0,
) -> dict:
    """Vendor-shaped playlist dict (Web API ``/me/playlists`` item)."""
    return {
        "id": playlist_id,
        "name": name,
        "description": description,
        "explicit": explicit,
        "tracks": {"total": total},
        "uri": f"spotify:playlist:{playlist_id}",
        "images": [{"url": f"https://img.example/{playlist_id}.jpg"}],
    }
