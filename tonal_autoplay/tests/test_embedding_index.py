#!/usr/bin/env python3
"""
Tests for tonal_autoplay.core.embeddings and the embedding source
"""

import json
import os
import tempfile
import unittest
from unittest.mock import Mock, patch

import numpy as np
import pytest
import requests

from tonal_autoplay.core.catalog.embedding_source import (
    JsonEmbeddingSource,
    parse_embedding_payload,
)
from tonal_autoplay.core.embeddings.embedding_index import EmbeddingIndex
from tonal_autoplay.core.errors import EmbeddingUnavailable, TransientFetchError
from tonal_autoplay.core.models import EmbeddingPayload


def _source(ids, vectors) -> Mock:
    source = Mock()
    source.load.return_value = EmbeddingPayload(
        ids=ids, vectors=np.asarray(vectors, dtype=np.float32)
    )
    return source


class TestEmbeddingIndex(unittest.TestCase):
    """Test EmbeddingIndex"""

    def setUp(self) -> None:
        self.index = EmbeddingIndex()
        self.index.load(
            _source(
                ["a", "b", "c", "d", "e"],
                [
                    [1.0, 0.0],
                    [3.0, 0.1],
                    [0.0, 2.0],
                    [1.0, 1.0],
                    [1.0, 1.0],
                ],
            )
        )

    def test_load_normalizes_rows(self) -> None:
        """Test every row is unit length after load"""
        self.assertTrue(self.index.ready)
        self.assertEqual(len(self.index), 5)
        self.assertEqual(self.index.dimension, 2)
        norms = np.linalg.norm(self.index.embeddings, axis=1)
        np.testing.assert_allclose(norms, np.ones(5), rtol=1e-5)

    def test_nearest_neighbors_ranking(self) -> None:
        """Test neighbors come back most similar first"""
        result = self.index.nearest_neighbors("a", 3)
        self.assertEqual(result, ["b", "d", "e"])

    def test_ties_keep_catalog_order(self) -> None:
        """Test equal similarities keep catalog order"""
        result = self.index.nearest_neighbors("c", 4)
        # d and e point the same way, so d (earlier) wins the tie
        self.assertEqual(result[:2], ["d", "e"])

    def test_never_returns_query_or_excluded(self) -> None:
        """Test the query id and exclusions are filtered"""
        excluded = {"b", "d"}
        for track_id in self.index.ids:
            result = self.index.nearest_neighbors(track_id, 10, excluded)
            self.assertNotIn(track_id, result)
            self.assertFalse(excluded & set(result))

    def test_k_limits_results(self) -> None:
        self.assertEqual(len(self.index.nearest_neighbors("a", 2)), 2)
        self.assertEqual(self.index.nearest_neighbors("a", 0), [])

    def test_unknown_id(self) -> None:
        self.assertEqual(self.index.nearest_neighbors("zzz", 5), [])

    def test_similar_tracks_scores(self) -> None:
        """Test scores are descending cosine similarities"""
        results = self.index.similar_tracks("a", 4)
        scores = [score for _, score in results]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertAlmostEqual(dict(results)["c"], 0.0, places=5)

    def test_contains(self) -> None:
        self.assertIn("a", self.index)
        self.assertNotIn("zzz", self.index)


class TestEmbeddingIndexLoadFailures(unittest.TestCase):
    """Test soft load failures"""

    def test_not_ready_returns_empty(self) -> None:
        index = EmbeddingIndex()
        self.assertFalse(index.ready)
        self.assertEqual(index.nearest_neighbors("a", 5), [])

    def test_unreachable_source(self) -> None:
        """Test a transient failure leaves the index unready"""
        source = Mock()
        source.load.side_effect = TransientFetchError("connection refused")
        index = EmbeddingIndex()

        self.assertFalse(index.load(source))
        self.assertFalse(index.ready)

    def test_malformed_payload(self) -> None:
        source = Mock()
        source.load.side_effect = EmbeddingUnavailable("bad")
        index = EmbeddingIndex()

        self.assertFalse(index.load(source))

    def test_mismatched_shapes(self) -> None:
        """Test ids and rows must line up"""
        index = EmbeddingIndex()
        self.assertFalse(index.load(_source(["a", "b"], [[1.0, 0.0]])))

    def test_not_retried(self) -> None:
        """Test a failed load is never attempted again"""
        source = Mock()
        source.load.side_effect = TransientFetchError("down")
        index = EmbeddingIndex()

        index.load(source)
        index.load(source)

        source.load.assert_called_once()
        self.assertFalse(index.ready)

    def test_ragged_vectors_from_source(self) -> None:
        """Test uneven rows from a source leave the index unready"""
        source = Mock()
        source.load.return_value = EmbeddingPayload(
            ids=["a", "b"], vectors=[[1.0, 0.0], [1.0]]
        )
        index = EmbeddingIndex()

        self.assertFalse(index.load(source))
        self.assertFalse(index.ready)

    def test_source_raising_connection_error(self) -> None:
        source = Mock()
        source.load.side_effect = ConnectionError("reset by peer")
        index = EmbeddingIndex()

        self.assertFalse(index.load(source))
        self.assertTrue(index.attempted)
        self.assertEqual(index.nearest_neighbors("a", 3), [])

    def test_zero_vector_row(self) -> None:
        """Test an all-zero row does not poison the table"""
        index = EmbeddingIndex()
        index.load(_source(["a", "b", "z"], [[1.0, 0.0], [1.0, 0.1], [0.0, 0.0]]))

        self.assertTrue(index.ready)
        self.assertFalse(np.isnan(index.embeddings).any())
        self.assertEqual(index.nearest_neighbors("a", 2), ["b", "z"])


class TestJsonEmbeddingSource(unittest.TestCase):
    """Test JsonEmbeddingSource"""

    def test_parse_accepts_embeddings_key(self) -> None:
        payload = parse_embedding_payload(
            {"ids": [1, 2], "embeddings": [[1, 0], [0, 1]]}
        )
        self.assertEqual(payload.ids, ["1", "2"])
        self.assertEqual(payload.vectors.shape, (2, 2))

    def test_parse_accepts_vectors_key(self) -> None:
        payload = parse_embedding_payload({"ids": ["x"], "vectors": [[0.5, 0.5]]})
        self.assertEqual(payload.ids, ["x"])

    def test_parse_rejects_missing_keys(self) -> None:
        with pytest.raises(EmbeddingUnavailable):
            parse_embedding_payload({"ids": ["x"]})

    def test_parse_rejects_length_mismatch(self) -> None:
        with pytest.raises(EmbeddingUnavailable):
            parse_embedding_payload({"ids": ["x", "y"], "embeddings": [[1.0]]})

    def test_parse_rejects_ragged_rows(self) -> None:
        with pytest.raises(EmbeddingUnavailable):
            parse_embedding_payload(
                {"ids": ["x", "y"], "embeddings": [[1.0], [1.0, 2.0]]}
            )

    def test_parse_rejects_non_object(self) -> None:
        with pytest.raises(EmbeddingUnavailable):
            parse_embedding_payload([1, 2, 3])

    def test_load_from_file(self) -> None:
        """Test loading a local JSON table"""
        with tempfile.NamedTemporaryFile(
            "w", suffix=".json", delete=False, encoding="utf-8"
        ) as f:
            json.dump({"ids": ["a", "b"], "embeddings": [[1, 0], [0, 1]]}, f)
            path = f.name
        try:
            payload = JsonEmbeddingSource(path).load()
            self.assertEqual(payload.ids, ["a", "b"])
        finally:
            os.unlink(path)

    def test_load_missing_file(self) -> None:
        with pytest.raises(TransientFetchError):
            JsonEmbeddingSource("/nonexistent/embeddings.json").load()

    def test_load_invalid_json_file(self) -> None:
        with tempfile.NamedTemporaryFile(
            "w", suffix=".json", delete=False, encoding="utf-8"
        ) as f:
            f.write("{not json")
            path = f.name
        try:
            with pytest.raises(EmbeddingUnavailable):
                JsonEmbeddingSource(path).load()
        finally:
            os.unlink(path)

    def test_load_from_url(self) -> None:
        """Test loading over HTTP with an injected session"""
        session = Mock()
        response = Mock()
        response.json.return_value = {"ids": ["a"], "embeddings": [[1.0, 2.0]]}
        session.get.return_value = response

        payload = JsonEmbeddingSource(
            "https://example.com/recs/embeddings.json", session=session
        ).load()

        self.assertEqual(payload.ids, ["a"])
        session.get.assert_called_once_with(
            "https://example.com/recs/embeddings.json", timeout=30.0
        )

    def test_load_from_url_network_error(self) -> None:
        session = Mock()
        session.get.side_effect = requests.ConnectionError("down")

        with pytest.raises(TransientFetchError):
            JsonEmbeddingSource("http://example.com/e.json", session=session).load()

    @patch("tonal_autoplay.core.catalog.embedding_source.requests.get")
    def test_load_from_url_without_session(self, mock_get: Mock) -> None:
        """Test a plain GET is used when no session is injected"""
        mock_get.return_value.json.return_value = {
            "ids": ["a"],
            "vectors": [[0.5, 0.5]],
        }

        payload = JsonEmbeddingSource("https://example.com/e.json").load()

        self.assertEqual(payload.ids, ["a"])
        mock_get.assert_called_once_with("https://example.com/e.json", timeout=30.0)


if __name__ == "__main__":
    unittest.main()
