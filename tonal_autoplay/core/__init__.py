"""
Core functionality for Tonal Autoplay
"""

from .autoplay.orchestrator import RecommendationOrchestrator
from .autoplay.session import AutoplaySession
from .embeddings.embedding_index import EmbeddingIndex

__all__ = [
    "AutoplaySession",
    "EmbeddingIndex",
    "RecommendationOrchestrator",
]
