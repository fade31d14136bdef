#!/usr/bin/env python3
"""
Fallback cascade used when the suggestion queue cannot supply a track.

Tiers are tried in order and the first one that yields a playable track
wins. Collaborator failures inside a tier count as an empty result for that
tier only.
"""

import random
from datetime import date
from typing import Callable, List, Optional, Set, Tuple

from loguru import logger

from tonal_autoplay.core.autoplay.session import AutoplaySession
from tonal_autoplay.core.catalog.providers import (
    CatalogSearchProvider,
    TrackMetadataProvider,
)
from tonal_autoplay.core.embeddings.embedding_index import EmbeddingIndex
from tonal_autoplay.core.errors import (
    ExhaustionError,
    MissingMetadata,
    TransientFetchError,
)
from tonal_autoplay.core.models import AutoplaySettings, Track, TrackId

EMBEDDING = "embedding"
YEAR_LANGUAGE = "year_language"
DIVERSITY = "diversity"
POPULARITY = "popularity"

DEFAULT_ORDER = [EMBEDDING, YEAR_LANGUAGE, DIVERSITY, POPULARITY]
DIVERSE_ORDER = [EMBEDDING, DIVERSITY, YEAR_LANGUAGE, POPULARITY]


def _current_year() -> int:
    return date.today().year


class FallbackSearchStrategy:
    """Walks similarity, language/year, diversity and popularity searches."""

    def __init__(
        self,
        metadata: TrackMetadataProvider,
        search: CatalogSearchProvider,
        index: Optional[EmbeddingIndex] = None,
        settings: Optional[AutoplaySettings] = None,
        rng: Optional[random.Random] = None,
        current_year: Optional[Callable[[], int]] = None,
    ):
        self.metadata = metadata
        self.catalog = search
        self.index = index
        self.settings = settings or AutoplaySettings()
        self.rng = rng or random.Random()
        self.current_year = current_year or _current_year

    def tier_order(self, prefer_diversity: bool) -> List[str]:
        return list(DIVERSE_ORDER if prefer_diversity else DEFAULT_ORDER)

    def run(
        self,
        session: AutoplaySession,
        base_track: Optional[Track],
        prefer_diversity: bool = False,
    ) -> Tuple[str, Track]:
        """
        Try each tier until one produces a track.

        Args:
            session: Session whose exclusion set filters every tier
            base_track: Metadata of the track the thread is based on, if known
            prefer_diversity: Try the diversity sweep before language/year

        Returns:
            (tier name, chosen track)

        Raises:
            ExhaustionError: If every tier came back empty
        """
        for tier in self.tier_order(prefer_diversity):
            try:
                if tier == EMBEDDING:
                    track = self.embedding_candidate(session)
                elif tier == YEAR_LANGUAGE:
                    track = self.year_language_candidate(session, base_track)
                elif tier == DIVERSITY:
                    track = self.diverse_candidate(session)
                else:
                    track = self.popular_candidate(session)
            except (TransientFetchError, MissingMetadata) as e:
                logger.warning(f"⚠️  Fallback tier '{tier}' failed: {e}")
                track = None

            if track is not None:
                logger.info(f"🎯 Fallback ({tier}) → {track.name or track.id}")
                return tier, track

        raise ExhaustionError("No fallback candidate found at all")

    def embedding_candidate(self, session: AutoplaySession) -> Optional[Track]:
        """Nearest neighbor of the last played track in a preferred language."""
        if self.index is None or not self.index.ready or not session.last_played_id:
            return None

        excluded = session.exclusion_set()
        neighbors = self.index.nearest_neighbors(
            session.last_played_id, self.settings.embedding_neighbors, excluded
        )
        preferred = {lang.lower() for lang in self.settings.preferred_languages}
        for neighbor_id in neighbors:
            try:
                track = self.metadata.fetch(neighbor_id)
            except (TransientFetchError, MissingMetadata) as e:
                logger.debug(f"Skipping neighbor {neighbor_id}: {e}")
                continue
            if track.language and track.language.lower() in preferred:
                return track
        return None

    def year_language_candidate(
        self, session: AutoplaySession, base_track: Optional[Track]
    ) -> Optional[Track]:
        """Same language as the base track, a few years either side."""
        if base_track is None or not base_track.language:
            return None

        language = base_track.language.lower()
        this_year = self.current_year()
        base_year = base_track.year or this_year
        offsets = (
            self.settings.current_year_offsets
            if base_year == this_year
            else self.settings.year_offsets
        )
        target_year = base_year + self.rng.choice(offsets)
        logger.debug(f"Year search: {language} {target_year}")

        excluded = session.exclusion_set()
        tolerance = self.settings.year_tolerance
        pool = [
            t
            for t in self.catalog.search(
                f"{language} {target_year}", self.settings.search_limit
            )
            if t.id not in excluded
            and (t.year is None or abs(t.year - target_year) <= tolerance)
        ]

        if not pool:
            logger.debug(f"No songs for {target_year} {language}; trying {language}")
            pool = [
                t
                for t in self.catalog.search(language, self.settings.search_limit)
                if t.id not in excluded
                and t.language is not None
                and t.language.lower() == language
            ]

        return self._pick(pool, excluded)

    def diverse_candidate(self, session: AutoplaySession) -> Optional[Track]:
        """First preferred language and recent year with anything unplayed."""
        excluded = session.exclusion_set()
        this_year = self.current_year()
        years = range(this_year, this_year - self.settings.diversity_years - 1, -1)

        for language in self.settings.preferred_languages:
            for year in years:
                track = self._pick(
                    self.catalog.search(
                        f"{language} {year}", self.settings.search_limit
                    ),
                    excluded,
                )
                if track is not None:
                    return track
        return None

    def popular_candidate(self, session: AutoplaySession) -> Optional[Track]:
        excluded = session.exclusion_set()
        return self._pick(
            self.catalog.search(
                self.settings.popular_query, self.settings.search_limit
            ),
            excluded,
        )

    def _pick(self, tracks: List[Track], excluded: Set[TrackId]) -> Optional[Track]:
        fresh = [t for t in tracks if t.id and t.id not in excluded]
        if not fresh:
            return None
        return self.rng.choice(fresh)
