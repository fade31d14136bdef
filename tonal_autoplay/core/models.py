#!/usr/bin/env python3
"""
Data models for Tonal Autoplay.

This module contains dataclasses that define the structure of data exchanged
with the catalog collaborators and with the playback layer, so loosely typed
JSON never flows past the provider boundary.
"""

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from tonal_autoplay.core.errors import MissingMetadata, TransientFetchError

TrackId = str


@dataclass
class AudioVariant:
    """A single streamable rendition of a track."""

    quality: str
    url: str


@dataclass
class Track:
    """Represents a catalog track with the metadata autoplay relies on."""

    id: TrackId
    name: str = ""
    language: Optional[str] = None
    year: Optional[int] = None
    artists: List[str] = field(default_factory=list)
    album: Optional[str] = None
    audio_variants: List[AudioVariant] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Any) -> "Track":
        """
        Build a Track from a catalog song payload.

        Args:
            data: Song object as returned by the catalog API

        Returns:
            Parsed Track

        Raises:
            TransientFetchError: If the payload is not a JSON object
            MissingMetadata: If the payload carries no track id
        """
        if not isinstance(data, dict):
            raise TransientFetchError(
                f"Expected a song object, got {type(data).__name__}"
            )

        track_id = data.get("id")
        if not track_id:
            raise MissingMetadata("", "Song payload has no id")

        language = data.get("language")
        album = data.get("album")
        if isinstance(album, dict):
            album = album.get("name")

        return cls(
            id=str(track_id),
            name=html.unescape(str(data.get("name") or "")),
            language=language.lower() if isinstance(language, str) else None,
            year=_parse_year(data.get("year")),
            artists=_parse_artists(data.get("artists")),
            album=html.unescape(album) if isinstance(album, str) else None,
            audio_variants=[
                AudioVariant(quality=str(v.get("quality", "")), url=v["url"])
                for v in data.get("downloadUrl") or []
                if isinstance(v, dict) and v.get("url")
            ],
        )

    def stream_url(self, preferred_quality: str = "320kbps") -> Optional[str]:
        """Pick the variant matching the preferred quality, else the last one."""
        for variant in self.audio_variants:
            if variant.quality == preferred_quality:
                return variant.url
        if self.audio_variants:
            return self.audio_variants[-1].url
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert Track to dictionary, excluding None values."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def _parse_year(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_artists(value: Any) -> List[str]:
    # Catalog groups artists as {"primary": [...], "featured": [...]}
    if isinstance(value, dict):
        names = []
        for group in ("primary", "featured"):
            for artist in value.get(group) or []:
                if isinstance(artist, dict) and artist.get("name"):
                    names.append(html.unescape(artist["name"]))
        return names
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return []


@dataclass
class EmbeddingPayload:
    """Precomputed embedding table as produced by the offline trainer."""

    ids: List[TrackId]
    vectors: np.ndarray


class EventKind(str, Enum):
    """Playback events that ask the orchestrator for a decision."""

    ENDED = "ended"
    EXPLICIT_SELECT = "explicit_select"
    BACK = "back"


@dataclass
class PlayEvent:
    """An event from the playback layer."""

    kind: EventKind
    track_id: Optional[TrackId] = None

    @classmethod
    def ended(cls) -> "PlayEvent":
        return cls(EventKind.ENDED)

    @classmethod
    def select(cls, track_id: TrackId) -> "PlayEvent":
        return cls(EventKind.EXPLICIT_SELECT, track_id)

    @classmethod
    def back(cls) -> "PlayEvent":
        return cls(EventKind.BACK)


@dataclass
class Decision:
    """Outcome of one decide call, with the tier that produced it."""

    track_id: Optional[TrackId]
    tier: str
    epoch: int = 0


@dataclass
class AutoplaySettings:
    """Tunables for the autoplay engine."""

    enabled: bool = True
    preferred_quality: str = "320kbps"
    max_history_size: int = 200
    min_history_before_repeat: int = 40
    embedding_neighbors: int = 30
    preferred_languages: List[str] = field(
        default_factory=lambda: ["malayalam", "tamil"]
    )
    year_offsets: List[int] = field(default_factory=lambda: [-3, 3])
    current_year_offsets: List[int] = field(default_factory=lambda: [-3])
    year_tolerance: int = 3
    diversity_years: int = 20
    search_limit: int = 50
    popular_query: str = "popular"
    diversity_thresholds: Dict[str, int] = field(
        default_factory=lambda: {"hindi": 4, "telugu": 3, "marathi": 3}
    )
