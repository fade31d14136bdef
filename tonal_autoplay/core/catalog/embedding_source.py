#!/usr/bin/env python3
"""
Loader for the precomputed embedding table.

The trainer writes a JSON document of the form
``{"ids": [...], "embeddings": [[...], ...]}``; ``vectors`` is accepted as an
alias for ``embeddings``.
"""

import json
from pathlib import Path
from typing import Any, Optional

import numpy as np
import requests
from loguru import logger

from tonal_autoplay.core.errors import EmbeddingUnavailable, TransientFetchError
from tonal_autoplay.core.models import EmbeddingPayload


class JsonEmbeddingSource:
    """Reads an embedding table from an http(s) URL or a local file."""

    def __init__(
        self,
        location: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.location = location
        self.timeout = timeout
        self.session = session

    def _read(self) -> Any:
        if self.location.startswith(("http://", "https://")):
            get = self.session.get if self.session is not None else requests.get
            try:
                response = get(self.location, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except requests.RequestException as e:
                raise TransientFetchError(
                    f"Could not fetch embeddings from {self.location}: {e}"
                ) from e
            except ValueError as e:
                raise EmbeddingUnavailable(
                    f"Embeddings at {self.location} are not valid JSON"
                ) from e

        try:
            with open(Path(self.location), "r", encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise TransientFetchError(
                f"Could not read embeddings from {self.location}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise EmbeddingUnavailable(
                f"Embeddings at {self.location} are not valid JSON"
            ) from e

    def load(self) -> EmbeddingPayload:
        """
        Load and validate the embedding table.

        Returns:
            EmbeddingPayload with string ids and a 2-D float32 matrix

        Raises:
            EmbeddingUnavailable: If the document is malformed
            TransientFetchError: If the source cannot be reached
        """
        data = self._read()
        return parse_embedding_payload(data)


def parse_embedding_payload(data: Any) -> EmbeddingPayload:
    """Validate a decoded embedding document."""
    if not isinstance(data, dict):
        raise EmbeddingUnavailable("Embedding document must be a JSON object")

    ids = data.get("ids")
    vectors = data.get("vectors", data.get("embeddings"))
    if not isinstance(ids, list) or not isinstance(vectors, list):
        raise EmbeddingUnavailable("Embedding document needs 'ids' and 'embeddings'")
    if len(ids) != len(vectors):
        raise EmbeddingUnavailable(
            f"Got {len(ids)} ids for {len(vectors)} embedding rows"
        )

    try:
        matrix = np.asarray(vectors, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise EmbeddingUnavailable(f"Embedding rows are not numeric: {e}") from e

    if ids and matrix.ndim != 2:
        raise EmbeddingUnavailable("Embedding rows must share one dimension")

    logger.debug(f"Parsed embedding table: {len(ids)} rows")
    return EmbeddingPayload(ids=[str(i) for i in ids], vectors=matrix)
