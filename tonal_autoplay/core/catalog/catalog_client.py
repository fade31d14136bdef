#!/usr/bin/env python3
"""
HTTP client for the proxied music catalog API.

Implements the metadata, suggestion and search collaborator contracts on top
of a single requests session.
"""

from typing import Any, List, Optional
from urllib.parse import quote

import requests
from loguru import logger

from tonal_autoplay.core.errors import MissingMetadata, TransientFetchError
from tonal_autoplay.core.models import Track, TrackId


class CatalogClient:
    """Client for the catalog's song, suggestion and search endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientFetchError(f"GET {url} failed: {e}") from e

        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            raise TransientFetchError(f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise TransientFetchError(f"GET {url} returned invalid JSON") from e

    def fetch(self, track_id: TrackId) -> Track:
        """
        Fetch metadata for a single track.

        Args:
            track_id: Catalog id of the track

        Returns:
            Parsed Track

        Raises:
            MissingMetadata: If the catalog does not know the id
            TransientFetchError: On network or payload errors
        """
        payload = self._get(f"/songs/{quote(str(track_id), safe='')}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            raise MissingMetadata(track_id)
        if isinstance(data, list):
            data = data[0]
        return Track.from_api(data)

    def fetch_suggestions(self, track_id: TrackId) -> List[TrackId]:
        """Fetch the catalog's ranked suggestions for a track."""
        payload = self._get(f"/songs/{quote(str(track_id), safe='')}/suggestions")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            logger.debug(f"No suggestions payload for {track_id}")
            return []

        ids: List[TrackId] = []
        for item in data:
            if isinstance(item, dict) and item.get("id"):
                ids.append(str(item["id"]))
            elif isinstance(item, (str, int)) and item:
                ids.append(str(item))
        return ids

    def search(self, query: str, limit: int = 50) -> List[Track]:
        """Search songs by free text."""
        payload = self._get("/search/songs", params={"query": query, "limit": limit})
        tracks = []
        for item in extract_songs(payload):
            try:
                tracks.append(Track.from_api(item))
            except (MissingMetadata, TransientFetchError):
                continue
        return tracks


def extract_songs(payload: Any) -> List[Any]:
    """Pull the song list out of the catalog's varying search envelopes."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("songs", "results"):
            songs = data.get(key)
            if isinstance(songs, list):
                return songs
            if isinstance(songs, dict) and isinstance(songs.get("results"), list):
                return songs["results"]
    return []
