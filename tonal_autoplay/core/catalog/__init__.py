"""
Catalog collaborators: protocols, HTTP client and embedding source
"""

from .catalog_client import CatalogClient
from .embedding_source import JsonEmbeddingSource
from .providers import (
    CachingMetadataProvider,
    CatalogSearchProvider,
    EmbeddingSource,
    SuggestionProvider,
    TrackMetadataProvider,
)

__all__ = [
    "CatalogClient",
    "JsonEmbeddingSource",
    "CachingMetadataProvider",
    "CatalogSearchProvider",
    "EmbeddingSource",
    "SuggestionProvider",
    "TrackMetadataProvider",
]
