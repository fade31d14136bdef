#!/usr/bin/env python3
"""
Tests for tonal_autoplay.core.models
"""

import unittest

import pytest

from tonal_autoplay.core.errors import MissingMetadata, TransientFetchError
from tonal_autoplay.core.models import AudioVariant, EventKind, PlayEvent, Track


class TestTrack(unittest.TestCase):
    """Test Track parsing and helpers"""

    def test_from_api_full_payload(self) -> None:
        track = Track.from_api(
            {
                "id": "x1",
                "name": "Naan Pizhai &amp; More",
                "language": "Tamil",
                "year": "2016",
                "album": {"name": "Kaathuvaakula &quot;Rendu&quot;"},
                "artists": {
                    "primary": [{"name": "Anirudh"}],
                    "featured": [{"name": "Shakthisree"}],
                },
                "downloadUrl": [
                    {"quality": "160kbps", "url": "u160"},
                    {"quality": "x"},
                ],
            }
        )

        self.assertEqual(track.name, "Naan Pizhai & More")
        self.assertEqual(track.language, "tamil")
        self.assertEqual(track.year, 2016)
        self.assertEqual(track.album, 'Kaathuvaakula "Rendu"')
        self.assertEqual(track.artists, ["Anirudh", "Shakthisree"])
        self.assertEqual(track.audio_variants, [AudioVariant("160kbps", "u160")])

    def test_from_api_minimal_payload(self) -> None:
        track = Track.from_api({"id": 42, "year": "unknown", "artists": "A, B"})

        self.assertEqual(track.id, "42")
        self.assertIsNone(track.year)
        self.assertIsNone(track.language)
        self.assertEqual(track.artists, ["A", "B"])

    def test_from_api_missing_id(self) -> None:
        with pytest.raises(MissingMetadata):
            Track.from_api({"name": "No id"})

    def test_from_api_not_an_object(self) -> None:
        with pytest.raises(TransientFetchError):
            Track.from_api(["not", "a", "song"])

    def test_stream_url_prefers_quality(self) -> None:
        """Test bitrate selection falls back to the last variant"""
        track = Track(
            id="x",
            audio_variants=[
                AudioVariant("96kbps", "u96"),
                AudioVariant("160kbps", "u160"),
                AudioVariant("320kbps", "u320"),
            ],
        )

        self.assertEqual(track.stream_url("160kbps"), "u160")
        self.assertEqual(track.stream_url("999kbps"), "u320")
        self.assertIsNone(Track(id="y").stream_url())

    def test_to_dict_drops_none(self) -> None:
        data = Track(id="x", name="Song").to_dict()
        self.assertNotIn("language", data)
        self.assertEqual(data["name"], "Song")


class TestPlayEvent(unittest.TestCase):
    """Test PlayEvent constructors"""

    def test_constructors(self) -> None:
        self.assertEqual(PlayEvent.ended().kind, EventKind.ENDED)
        self.assertEqual(PlayEvent.back().kind, EventKind.BACK)
        selected = PlayEvent.select("abc")
        self.assertEqual(selected.kind, EventKind.EXPLICIT_SELECT)
        self.assertEqual(selected.track_id, "abc")
        self.assertEqual(EventKind("ended"), EventKind.ENDED)


if __name__ == "__main__":
    unittest.main()
