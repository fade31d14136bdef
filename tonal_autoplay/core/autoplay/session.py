#!/usr/bin/env python3
"""
Per-listener autoplay state
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from tonal_autoplay.core.autoplay.language_tracker import LanguageDiversityTracker
from tonal_autoplay.core.autoplay.play_history import PlayHistory
from tonal_autoplay.core.autoplay.suggestion_queue import SuggestionQueue
from tonal_autoplay.core.models import AutoplaySettings, TrackId


@dataclass
class AutoplaySession:
    """Everything the orchestrator mutates for one listening session."""

    history: PlayHistory
    suggestions: SuggestionQueue = field(default_factory=SuggestionQueue)
    languages: LanguageDiversityTracker = field(
        default_factory=LanguageDiversityTracker
    )
    last_played_id: Optional[TrackId] = None
    # Bumped on every explicit selection so in-flight decisions can be dropped
    epoch: int = 0

    @classmethod
    def create(
        cls,
        settings: Optional[AutoplaySettings] = None,
        thresholds: Optional[Dict[str, int]] = None,
    ) -> "AutoplaySession":
        settings = settings or AutoplaySettings()
        return cls(
            history=PlayHistory(settings.max_history_size),
            languages=LanguageDiversityTracker(
                thresholds if thresholds is not None else settings.diversity_thresholds
            ),
        )

    def exclusion_set(self) -> Set[TrackId]:
        """Last played, queued and historical ids, computed fresh."""
        excluded = self.history.exclusion_snapshot()
        excluded.update(self.suggestions.queue)
        if self.last_played_id:
            excluded.add(self.last_played_id)
        return excluded

    def clear(self) -> None:
        """Forget history and the suggestion thread."""
        self.history.clear()
        self.suggestions.clear()
