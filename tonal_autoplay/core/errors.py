#!/usr/bin/env python3
"""
Exception types for Tonal Autoplay.

Collaborator failures are expressed as typed errors at the provider boundary
so the orchestrator can degrade to the next fallback tier instead of letting
half-parsed payloads flow downstream.
"""


class AutoplayError(Exception):
    """Base class for all autoplay engine errors."""


class TransientFetchError(AutoplayError):
    """A collaborator call failed or returned a malformed payload."""


class MissingMetadata(AutoplayError):
    """The catalog has no metadata for the requested track id."""

    def __init__(self, track_id: str, message: str = "") -> None:
        self.track_id = track_id
        super().__init__(message or f"No metadata for track {track_id}")


class EmbeddingUnavailable(AutoplayError):
    """Precomputed embeddings could not be loaded for this session."""


class ExhaustionError(AutoplayError):
    """Every fallback tier came back empty."""


class EmptyHistory(AutoplayError):
    """pop_last() was called on an empty play history."""
