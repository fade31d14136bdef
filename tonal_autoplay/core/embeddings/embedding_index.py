#!/usr/bin/env python3
"""
Nearest-neighbor search over precomputed track embeddings.

Rows are L2-normalized once at load time, so cosine similarity reduces to a
matrix-vector dot product. A brute-force scan is fine for the table sizes the
offline trainer produces.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from loguru import logger

from tonal_autoplay.core.catalog.providers import EmbeddingSource
from tonal_autoplay.core.errors import EmbeddingUnavailable, TransientFetchError
from tonal_autoplay.core.models import TrackId


class EmbeddingIndex:
    """In-memory similarity index over a precomputed embedding table."""

    def __init__(self) -> None:
        self.ids: List[TrackId] = []
        self.id_to_index: Dict[TrackId, int] = {}
        self.embeddings: Optional[np.ndarray] = None
        self.ready = False
        self.attempted = False

    def load(self, source: EmbeddingSource) -> bool:
        """
        Load the embedding table once for this session.

        Failures are soft: the index stays unready and later calls do not
        retry.

        Args:
            source: Collaborator that returns the raw embedding payload

        Returns:
            True if the index is ready for queries
        """
        if self.attempted:
            return self.ready
        self.attempted = True

        try:
            payload = source.load()
            matrix = np.asarray(payload.vectors, dtype=np.float32)
            if not payload.ids or matrix.ndim != 2 or matrix.shape[0] != len(
                payload.ids
            ):
                raise EmbeddingUnavailable("Embedding table is empty or misshapen")

            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            self.embeddings = matrix / norms
            self.ids = list(payload.ids)
            self.id_to_index = {track_id: i for i, track_id in enumerate(self.ids)}
            self.ready = True
            logger.info(
                f"✅ Embedding index loaded: {len(self.ids)} tracks, dim {matrix.shape[1]}"
            )
        except (EmbeddingUnavailable, TransientFetchError) as e:
            logger.warning(f"⚠️  Embeddings unavailable for this session: {e}")
            self.ready = False
        except (ValueError, TypeError, AttributeError, OSError) as e:
            logger.warning(f"⚠️  Could not load embedding table: {e}")
            self.ready = False

        return self.ready

    @property
    def dimension(self) -> int:
        if self.embeddings is None:
            return 0
        return int(self.embeddings.shape[1])

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self.id_to_index

    def similar_tracks(
        self, track_id: TrackId, k: int, exclude: Iterable[TrackId] = ()
    ) -> List[Tuple[TrackId, float]]:
        """
        Rank catalog tracks by similarity to a track.

        Args:
            track_id: Query track
            k: Maximum number of results
            exclude: Ids that must not appear in the results

        Returns:
            (track id, similarity) pairs, most similar first
        """
        if not self.ready or self.embeddings is None or k <= 0:
            return []
        idx = self.id_to_index.get(track_id)
        if idx is None:
            return []

        excluded = set(exclude)
        excluded.add(track_id)

        similarities = self.embeddings @ self.embeddings[idx]
        # Stable sort keeps catalog order among equal scores
        order = np.argsort(-similarities, kind="stable")

        results: List[Tuple[TrackId, float]] = []
        for i in order:
            candidate = self.ids[i]
            if candidate in excluded:
                continue
            results.append((candidate, float(similarities[i])))
            if len(results) >= k:
                break
        return results

    def nearest_neighbors(
        self, track_id: TrackId, k: int, exclude: Iterable[TrackId] = ()
    ) -> List[TrackId]:
        """Return up to k ids most similar to track_id, excluding exclude."""
        return [tid for tid, _ in self.similar_tracks(track_id, k, exclude)]
