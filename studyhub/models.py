"""
Track and playlist records as the filter sees them.

Vendor payloads are loose: any field may be missing, ``None``, or the
wrong type.  ``from_dict`` never raises; absent values become empty
strings, ``False``, zero, or empty tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _flag(value: Any) -> bool:
    return value is True


def _strings(values: Any) -> Tuple[str, ...]:
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(v for v in values if isinstance(v, str))


@dataclass(frozen=True)
class Artist:
    name: str = ""
    id: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Artist":
        if isinstance(data, str):
            return cls(name=data)
        if not isinstance(data, Mapping):
            return cls()
        return cls(name=_text(data.get("name")), id=_text(data.get("id")))


@dataclass(frozen=True)
class Track:
    id: str = ""
    name: str = ""
    artists: Tuple[Artist, ...] = ()
    explicit: bool = False
    genres: Tuple[str, ...] = ()

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else ""

    @property
    def artist_names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.artists)

    @classmethod
    def from_dict(cls, data: Any) -> "Track":
        if not isinstance(data, Mapping):
            return cls()
        raw_artists = data.get("artists")
        artists = (
            tuple(Artist.from_dict(a) for a in raw_artists)
            if isinstance(raw_artists, (list, tuple)) else ()
        )
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            artists=artists,
            explicit=_flag(data.get("explicit")),
            genres=_strings(data.get("genres")),
        )


@dataclass(frozen=True)
class Playlist:
    id: str = ""
    name: str = ""
    description: str = ""
    explicit: bool = False
    track_count: int = 0
    tracks: Tuple[Track, ...] = ()
    genres: Tuple[str, ...] = ()
    uri: str = ""
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Playlist":
        if not isinstance(data, Mapping):
            return cls()

        # The Web API nests tracks as {"total": n, "items": [{"track": {...}}]};
        # request bodies may send a plain list of tracks instead.
        raw_tracks = data.get("tracks")
        track_count = 0
        items: Any = ()
        if isinstance(raw_tracks, Mapping):
            total = raw_tracks.get("total")
            track_count = total if isinstance(total, int) and total >= 0 else 0
            items = raw_tracks.get("items") or ()
        elif isinstance(raw_tracks, (list, tuple)):
            items = raw_tracks
            track_count = len(raw_tracks)

        tracks = []
        if isinstance(items, (list, tuple)):
            for item in items:
                if isinstance(item, Mapping) and isinstance(item.get("track"), Mapping):
                    item = item["track"]
                tracks.append(Track.from_dict(item))
        if not track_count:
            track_count = len(tracks)

        image = None
        images = data.get("images")
        if isinstance(images, (list, tuple)) and images and isinstance(images[0], Mapping):
            image = images[0].get("url") or None

        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            explicit=_flag(data.get("explicit")),
            track_count=track_count,
            tracks=tuple(tracks),
            genres=_strings(data.get("genres")),
            uri=_text(data.get("uri")),
            image=image,
        )
