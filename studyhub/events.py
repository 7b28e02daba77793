"""
Event bus shared by the player-facing components.

The live track gate listens for ``player_state_changed`` and answers
with ``skip_track``.  The filtering pipeline reloads its policy on
``config_changed``.

HTTP handlers publish from worker threads that run no Qt event loop,
so every subscription is a direct connection: the callback runs in the
publishing thread before ``publish`` returns.
"""

from __future__ import annotations

import threading
from typing import Any, Callable
from PyQt6.QtCore import QObject, Qt, pyqtSignal

# Well-known channel names
PLAYER_STATE_CHANGED = "player_state_changed"
SKIP_TRACK = "skip_track"
COMPLIANCE_ENTRY = "compliance_entry"
CONFIG_CHANGED = "config_changed"

WELL_KNOWN = (PLAYER_STATE_CHANGED, SKIP_TRACK, COMPLIANCE_ENTRY, CONFIG_CHANGED)


class _Channel(QObject):
    """One named channel; carries a dict payload."""
    fired = pyqtSignal(dict)


class EventBus(QObject):
    """
    Named publish/subscribe channels.

    Usage
    -----
    bus = EventBus()
    bus.subscribe(SKIP_TRACK, lambda d: player.next_track())
    bus.publish(PLAYER_STATE_CHANGED, {"track": {...}})
    """

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._lock = threading.Lock()
        # Channels are unparented: a parent must live in the creating
        # thread, and ad-hoc channels may be created from any thread.
        self._channels: dict[str, _Channel] = {name: _Channel() for name in WELL_KNOWN}

    def _channel(self, event: str) -> _Channel:
        with self._lock:
            channel = self._channels.get(event)
            if channel is None:
                channel = self._channels[event] = _Channel()
            return channel

    def subscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        self._channel(event).fired.connect(callback, Qt.ConnectionType.DirectConnection)

    def unsubscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        with self._lock:
            channel = self._channels.get(event)
        if channel is None:
            return
        try:
            channel.fired.disconnect(callback)
        except TypeError:
            pass

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        self._channel(event).fired.emit(dict(data or {}))
