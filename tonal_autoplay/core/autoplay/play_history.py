#!/usr/bin/env python3
"""
Bounded play history with anti-repeat queries
"""

from collections import deque
from typing import Deque, Iterator, Optional, Set

from loguru import logger

from tonal_autoplay.core.errors import EmptyHistory
from tonal_autoplay.core.models import TrackId


class PlayHistory:
    """Ordered record of played tracks, oldest first."""

    def __init__(self, max_size: int = 200):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: Deque[TrackId] = deque()

    def append(self, track_id: TrackId) -> None:
        """Record a play, skipping immediate duplicates and evicting the oldest."""
        if self._entries and self._entries[-1] == track_id:
            return

        self._entries.append(track_id)
        while len(self._entries) > self.max_size:
            self._entries.popleft()

        logger.debug(f"📚 Added to history: {track_id}. Total history: {len(self)}")

    def is_recently_played(self, track_id: TrackId, min_gap: int) -> bool:
        """
        Check whether a track fails the anti-repeat gate.

        Args:
            track_id: Track to check
            min_gap: Plays that must have happened since its last occurrence

        Returns:
            True if the track was last played fewer than min_gap plays ago,
            counting the newest entry as one play ago
        """
        for plays_ago, entry in enumerate(reversed(self._entries), start=1):
            if entry == track_id:
                return plays_ago < min_gap
        return False

    def exclusion_snapshot(self) -> Set[TrackId]:
        return set(self._entries)

    def pop_last(self) -> TrackId:
        """Remove and return the most recent entry."""
        if not self._entries:
            raise EmptyHistory("No previous track in history")
        return self._entries.pop()

    @property
    def last(self) -> Optional[TrackId]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TrackId]:
        return iter(list(self._entries))

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._entries
