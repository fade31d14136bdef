#!/usr/bin/env python3
"""
Tonal Autoplay - continuation engine for a proxied music catalog

Decides what plays next when a track ends, using the catalog's suggestions,
precomputed track embeddings and metadata search fallbacks.
"""

__version__ = "0.3.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"

from .core.autoplay.orchestrator import RecommendationOrchestrator
from .core.autoplay.session import AutoplaySession
from .core.catalog.catalog_client import CatalogClient
from .core.embeddings.embedding_index import EmbeddingIndex

__all__ = [
    "AutoplaySession",
    "CatalogClient",
    "EmbeddingIndex",
    "RecommendationOrchestrator",
]
