#!/usr/bin/env python3
"""
Autoplay continuation engine.

Decides what plays after a track ends: replay the suggestion queue, refill it
from the catalog, and fall back through search tiers when upstream data runs
dry. A decision is always made, even if it is "nothing to play".
"""

import random
from typing import Callable, List, Optional

from loguru import logger

from tonal_autoplay.core.autoplay.fallback_strategy import FallbackSearchStrategy
from tonal_autoplay.core.autoplay.session import AutoplaySession
from tonal_autoplay.core.catalog.providers import (
    CachingMetadataProvider,
    CatalogSearchProvider,
    EmbeddingSource,
    SuggestionProvider,
    TrackMetadataProvider,
)
from tonal_autoplay.core.embeddings.embedding_index import EmbeddingIndex
from tonal_autoplay.core.errors import (
    EmptyHistory,
    ExhaustionError,
    MissingMetadata,
    TransientFetchError,
)
from tonal_autoplay.core.models import (
    AutoplaySettings,
    Decision,
    EventKind,
    PlayEvent,
    Track,
    TrackId,
)


class RecommendationOrchestrator:
    """
    Stateless decision engine shared by any number of sessions.

    All mutable state lives in the AutoplaySession passed to each call, so a
    single orchestrator (and its collaborators) can serve many listeners.
    """

    def __init__(
        self,
        metadata: TrackMetadataProvider,
        suggestions: SuggestionProvider,
        search: CatalogSearchProvider,
        index: Optional[EmbeddingIndex] = None,
        settings: Optional[AutoplaySettings] = None,
        rng: Optional[random.Random] = None,
        current_year: Optional[Callable[[], int]] = None,
    ):
        self.metadata = metadata
        self.suggestions = suggestions
        self.index = index or EmbeddingIndex()
        self.settings = settings or AutoplaySettings()
        self.fallback = FallbackSearchStrategy(
            metadata,
            search,
            index=self.index,
            settings=self.settings,
            rng=rng,
            current_year=current_year,
        )

    def new_session(self) -> AutoplaySession:
        return AutoplaySession.create(self.settings)

    def load_embeddings(self, source: EmbeddingSource) -> bool:
        """Load the embedding table once; failures disable the embedding tier."""
        return self.index.load(source)

    def decide_next(
        self, session: AutoplaySession, event: PlayEvent
    ) -> Optional[TrackId]:
        """Return the track to play for an event, or None if nothing fits."""
        return self.decide(session, event).track_id

    def decide(self, session: AutoplaySession, event: PlayEvent) -> Decision:
        """
        Make one decision for a playback event.

        Args:
            session: State for the listener the event belongs to
            event: Track ended, explicit selection, or back navigation

        Returns:
            Decision carrying the chosen track and the tier that produced it
        """
        if event.kind == EventKind.EXPLICIT_SELECT:
            return self._select(session, event.track_id)
        if event.kind == EventKind.BACK:
            return Decision(self.go_back(session), "history", session.epoch)

        epoch = session.epoch
        if not self.settings.enabled:
            logger.info("🔕 Autoplay disabled in settings; stopping after this track")
            return Decision(None, "disabled", epoch)

        candidate = self._next_from_queue(session)
        if candidate is not None:
            logger.info(f"▶️ Autoplay from suggestions → {candidate}")
            return Decision(candidate, "queue", epoch)

        base_id = self._resolve_base(session)
        if base_id is not None:
            candidate = self._refill(session, base_id)
            if candidate is not None:
                logger.info(f"▶️ Autoplay from new suggestions → {candidate}")
                return Decision(candidate, "refill", epoch)
        else:
            logger.warning("⚠️  No base track for new suggestions; using fallback")

        base_track = self._safe_fetch(base_id) if base_id is not None else None
        prefer_diversity = (
            base_track is not None
            and session.languages.should_diversify(base_track.language)
        )

        try:
            tier, track = self.fallback.run(session, base_track, prefer_diversity)
        except ExhaustionError:
            logger.warning(
                "❌ No fallback available; clearing history to break potential loop"
            )
            session.clear()
            return Decision(None, "none", epoch)

        if isinstance(self.metadata, CachingMetadataProvider):
            self.metadata.remember(track)
        return Decision(track.id, tier, epoch)

    def record_played(
        self,
        session: AutoplaySession,
        track_id: TrackId,
        language: Optional[str] = None,
    ) -> None:
        """
        Note that playback of a track has started.

        Args:
            session: Listener state to update
            track_id: Track now playing
            language: Track language if the caller already knows it; looked up
                otherwise
        """
        session.history.append(track_id)
        session.last_played_id = track_id

        if language is None:
            track = self._safe_fetch(track_id)
            language = track.language if track is not None else None
        if language is not None:
            session.languages.record(language)

        session.suggestions.base_track_id = session.suggestions.tail or track_id

    def go_back(self, session: AutoplaySession) -> Optional[TrackId]:
        """
        Step back to the track before the current one.

        Returns:
            The previous track id, or None if there is nothing to go back to
        """
        history = session.history
        current = session.last_played_id
        if current is not None and history.last == current:
            if len(history) < 2:
                logger.info("🔙 No previous song in history")
                return None
            history.pop_last()

        try:
            previous = history.pop_last()
        except EmptyHistory:
            logger.info("🔙 No previous song in history")
            return None

        logger.info(f"🔙 Going back to: {previous}")
        return previous

    def is_stale(self, session: AutoplaySession, decision: Decision) -> bool:
        """True if an explicit selection happened after the decision started."""
        return decision.epoch != session.epoch

    def _select(
        self, session: AutoplaySession, track_id: Optional[TrackId]
    ) -> Decision:
        if not track_id:
            raise ValueError("Explicit selection needs a track id")

        session.epoch += 1
        session.suggestions.reset(base_track_id=track_id)

        fresh = self._fetch_fresh_suggestions(session, track_id)
        if fresh:
            session.suggestions.replace(fresh, track_id, consume_first=False)
            logger.info(f"📋 Suggestion queue prepared: {len(fresh)} items")

        return Decision(track_id, "selected", session.epoch)

    def _next_from_queue(self, session: AutoplaySession) -> Optional[TrackId]:
        queue = session.suggestions
        min_gap = self.settings.min_history_before_repeat
        # Each pass consumes one entry, so this ends within len(queue) steps
        while queue.has_next():
            candidate = queue.advance()
            if session.history.is_recently_played(candidate, min_gap):
                logger.info(f"🚫 Skipping too-recent suggestion: {candidate}")
                continue
            return candidate
        return None

    def _resolve_base(self, session: AutoplaySession) -> Optional[TrackId]:
        return (
            session.suggestions.tail
            or session.last_played_id
            or session.history.last
            or session.suggestions.base_track_id
        )

    def _refill(self, session: AutoplaySession, base_id: TrackId) -> Optional[TrackId]:
        fresh = self._fetch_fresh_suggestions(session, base_id)
        if not fresh:
            # Next base becomes the last played track, not the spent tail
            session.suggestions.reset()
            return None

        session.suggestions.replace(fresh, base_id)
        logger.info(f"📋 Suggestion queue prepared: {len(fresh)} items")

        first = fresh[0]
        if session.history.is_recently_played(
            first, self.settings.min_history_before_repeat
        ):
            logger.info(f"🚫 Skipping too-recent suggestion: {first}")
            return self._next_from_queue(session)
        return first

    def _fetch_fresh_suggestions(
        self, session: AutoplaySession, base_id: TrackId
    ) -> List[TrackId]:
        logger.info(f"🔮 Prefetching suggestions for: {base_id}")
        try:
            suggested = self.suggestions.fetch_suggestions(base_id)
        except (TransientFetchError, MissingMetadata) as e:
            logger.warning(f"⚠️  Suggestion fetch failed, using fallback: {e}")
            return []

        excluded = session.exclusion_set()
        excluded.add(base_id)
        fresh: List[TrackId] = []
        for track_id in suggested:
            if track_id and track_id not in excluded and track_id not in fresh:
                fresh.append(track_id)

        if not fresh:
            logger.warning("⚠️  No usable suggestions returned")
        return fresh

    def _safe_fetch(self, track_id: TrackId) -> Optional[Track]:
        try:
            return self.metadata.fetch(track_id)
        except (TransientFetchError, MissingMetadata) as e:
            logger.warning(f"⚠️  No metadata for {track_id}: {e}")
            return None
