#!/usr/bin/env python3
"""
Tests for CLI modules
"""

import unittest
from unittest.mock import Mock, patch

from typer.testing import CliRunner

from tonal_autoplay.cli.main import app
from tonal_autoplay.core.models import AudioVariant, Decision, Track


class TestCLI(unittest.TestCase):
    """Test CLI functionality"""

    def setUp(self) -> None:
        self.runner = CliRunner()

    @patch("tonal_autoplay.cli.main.build_orchestrator")
    def test_play_runs_session(self, mock_build: Mock) -> None:
        """Test play records every decided track until nothing is left"""
        orchestrator = Mock()
        orchestrator.settings.preferred_quality = "160kbps"
        orchestrator.decide_next.return_value = "seed"
        orchestrator.decide.side_effect = [
            Decision("next", "refill"),
            Decision(None, "none"),
        ]
        orchestrator.metadata.fetch.side_effect = lambda track_id: Track(
            id=track_id,
            name=f"Song {track_id}",
            language="tamil",
            year=2020,
            audio_variants=[
                AudioVariant("160kbps", f"http://cdn/{track_id}_160"),
                AudioVariant("320kbps", f"http://cdn/{track_id}_320"),
            ],
        )
        mock_build.return_value = orchestrator

        result = self.runner.invoke(app, ["play", "seed", "--steps", "5"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(orchestrator.record_played.call_count, 2)
        self.assertIn("Song next", result.output)
        self.assertIn("next_160", result.output)
        self.assertNotIn("next_320", result.output)
        self.assertIn("Nothing left to play", result.output)

    @patch("tonal_autoplay.cli.main.JsonEmbeddingSource")
    @patch("tonal_autoplay.cli.main.EmbeddingIndex")
    def test_neighbors(self, mock_index_class: Mock, mock_source: Mock) -> None:
        index = Mock()
        index.load.return_value = True
        index.similar_tracks.return_value = [("b", 0.9), ("c", 0.5)]
        mock_index_class.return_value = index

        result = self.runner.invoke(
            app, ["neighbors", "a", "-e", "emb.json", "-k", "2"]
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("0.900", result.output)
        index.similar_tracks.assert_called_once_with("a", 2)

    @patch("tonal_autoplay.cli.main.JsonEmbeddingSource")
    @patch("tonal_autoplay.cli.main.EmbeddingIndex")
    def test_neighbors_unavailable(
        self, mock_index_class: Mock, mock_source: Mock
    ) -> None:
        index = Mock()
        index.load.return_value = False
        mock_index_class.return_value = index

        result = self.runner.invoke(app, ["neighbors", "a", "-e", "emb.json"])

        self.assertEqual(result.exit_code, 1)

    def test_settings(self) -> None:
        result = self.runner.invoke(app, ["settings"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("min_history_before_repeat", result.output)


if __name__ == "__main__":
    unittest.main()
