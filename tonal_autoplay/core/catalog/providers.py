#!/usr/bin/env python3
"""
Collaborator contracts consumed by the autoplay engine.

Anything that satisfies these protocols can back a session: the HTTP
catalog client, a cached wrapper, or plain mocks in tests.
"""

from typing import Dict, List, Protocol

from loguru import logger

from tonal_autoplay.core.models import EmbeddingPayload, Track, TrackId


class TrackMetadataProvider(Protocol):
    """Resolves a track id to its metadata."""

    def fetch(self, track_id: TrackId) -> Track:
        """Return the track or raise MissingMetadata."""
        ...


class SuggestionProvider(Protocol):
    """Upstream 'songs like this' recommendations."""

    def fetch_suggestions(self, track_id: TrackId) -> List[TrackId]:
        """Return a ranked list of suggested track ids."""
        ...


class CatalogSearchProvider(Protocol):
    """Free-text catalog search."""

    def search(self, query: str, limit: int) -> List[Track]:
        """Return tracks matching the query."""
        ...


class EmbeddingSource(Protocol):
    """Source of the precomputed embedding table."""

    def load(self) -> EmbeddingPayload:
        """Fetch the table or raise EmbeddingUnavailable/TransientFetchError."""
        ...


class CachingMetadataProvider:
    """Memoizes metadata lookups for the lifetime of the wrapper."""

    def __init__(self, provider: TrackMetadataProvider) -> None:
        self.provider = provider
        self._cache: Dict[TrackId, Track] = {}

    def fetch(self, track_id: TrackId) -> Track:
        track = self._cache.get(track_id)
        if track is None:
            track = self.provider.fetch(track_id)
            self._cache[track_id] = track
        return track

    def remember(self, track: Track) -> None:
        """Seed the cache with a track already seen in search results."""
        self._cache.setdefault(track.id, track)

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        logger.debug(f"Dropping {len(self._cache)} cached tracks")
        self._cache.clear()
