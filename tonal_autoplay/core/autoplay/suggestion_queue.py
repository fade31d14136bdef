#!/usr/bin/env python3
"""
Suggestion queue for the current autoplay thread
"""

from typing import Iterable, List, Optional

from tonal_autoplay.core.models import TrackId


class SuggestionQueue:
    """
    Ordered, not-yet-played candidates sourced from one base track.

    ``cursor`` points at the entry most recently handed out; -1 means nothing
    from the current queue has been consumed yet.
    """

    def __init__(self) -> None:
        self.base_track_id: Optional[TrackId] = None
        self.queue: List[TrackId] = []
        self.cursor = -1

    def has_next(self) -> bool:
        return self.cursor < len(self.queue) - 1

    def advance(self) -> TrackId:
        """Move to and return the next queued track."""
        if not self.has_next():
            raise IndexError("Suggestion queue exhausted")
        self.cursor += 1
        return self.queue[self.cursor]

    def replace(
        self,
        track_ids: Iterable[TrackId],
        base_track_id: TrackId,
        consume_first: bool = True,
    ) -> None:
        """
        Swap in a fresh queue.

        Args:
            track_ids: Candidates already filtered against the exclusion set
            base_track_id: Track the suggestions were fetched for
            consume_first: Point the cursor at the first entry (it is being
                played now) instead of before it
        """
        queue = list(track_ids)
        if not queue:
            raise ValueError("Cannot replace the queue with an empty list")
        self.base_track_id = base_track_id
        self.queue = queue
        self.cursor = 0 if consume_first else -1

    def reset(self, base_track_id: Optional[TrackId] = None) -> None:
        """Drop queued candidates, optionally rebasing on a new track."""
        if base_track_id is not None:
            self.base_track_id = base_track_id
        self.queue = []
        self.cursor = -1

    def clear(self) -> None:
        self.reset()
        self.base_track_id = None

    @property
    def current(self) -> Optional[TrackId]:
        if 0 <= self.cursor < len(self.queue):
            return self.queue[self.cursor]
        return None

    @property
    def tail(self) -> Optional[TrackId]:
        return self.queue[-1] if self.queue else None

    def __len__(self) -> int:
        return len(self.queue)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self.queue
