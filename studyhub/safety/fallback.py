"""
Pre-approved playlists shown when discovery admits nothing.

These are vetted by hand and never run through the classifier.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class FallbackPlaylist:
    id: str
    name: str
    description: str
    image: str
    uri: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


FALLBACK_CATALOG: Tuple[FallbackPlaylist, ...] = (
    FallbackPlaylist(
        id="37i9dQZF1DWZeKCadgRdKQ",
        name="Focus & Concentration",
        description="Instrumental music for deep focus",
        image="icons/focus-playlist.png",
        uri="spotify:playlist:37i9dQZF1DWZeKCadgRdKQ",
    ),
    FallbackPlaylist(
        id="37i9dQZF1DX3Ogo9pFvBkY",
        name="Study Ambient",
        description="Ambient sounds for studying",
        image="icons/ambient-playlist.png",
        uri="spotify:playlist:37i9dQZF1DX3Ogo9pFvBkY",
    ),
    FallbackPlaylist(
        id="37i9dQZF1DWWEJlAGA9gs0",
        name="Classical Study",
        description="Classical music for learning",
        image="icons/classical-playlist.png",
        uri="spotify:playlist:37i9dQZF1DWWEJlAGA9gs0",
    ),
)


def fallback_playlists() -> List[Dict[str, Any]]:
    """The whole catalog as fresh dicts, in catalog order."""
    return [p.to_dict() for p in FALLBACK_CATALOG]
