# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for the transcript replay tool.
"""

import io
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from saycheck.replay import load_sentence, load_transcript, main, replay_transcript


@pytest.fixture
def transcript_file(tmp_path: Path) -> Path:
    path = tmp_path / "transcript.txt"
    path.write_text(
        "=== Transcript started 2025-01-01 ===\n"
        "\n"
        "the quick\n"
        "brown fox\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def sentence_file(tmp_path: Path) -> Path:
    path = tmp_path / "sentence.txt"
    path.write_text("The quick brown fox.\n", encoding="utf-8")
    return path


class TestLoading:
    """Reading input files."""

    def test_load_transcript_skips_metadata(self, transcript_file: Path) -> None:
        assert load_transcript(transcript_file) == ["the quick", "brown fox"]

    def test_load_sentence(self, sentence_file: Path) -> None:
        assert load_sentence(sentence_file).strip() == "The quick brown fox."


class TestReplayTranscript:
    """Replaying utterances through a tracker."""

    def test_lines_accumulate_to_completion(self) -> None:
        output = io.StringIO()

        events = replay_transcript(["the quick", "brown fox"], "The quick brown fox.", output)

        assert [e.event_type for e in events] == ["advance", "complete"]
        assert [e.snapshot for e in events] == ["the quick", "the quick brown fox"]
        assert events[-1].matched_count == 4
        log = output.getvalue()
        assert "TRANSCRIPT REPLAY LOG" in log
        assert "Complete: yes" in log

    def test_stalled_passes_are_counted(self) -> None:
        output = io.StringIO()

        events = replay_transcript(["the slow", "slow again"], "the quick fox", output)

        assert [e.event_type for e in events] == ["advance", "stall"]
        assert events[-1].furthest_match == 0
        log = output.getvalue()
        assert "Stalled passes: 1" in log
        assert "Complete: no" in log
        assert "(mismatch, similarity" in log

    def test_word_by_word(self) -> None:
        events = replay_transcript(
            ["the quick brown"], "the quick brown", io.StringIO(), word_by_word=True)

        assert [e.snapshot for e in events] == ["the", "the quick", "the quick brown"]
        assert [e.furthest_match for e in events] == [0, 1, 2]

    def test_other_strategy(self) -> None:
        output = io.StringIO()
        events = replay_transcript(["the fox"], "the quick fox", output, strategy="lcs")

        assert events[-1].furthest_match == 2
        assert "Strategy: lcs" in output.getvalue()

    def test_sentence_without_words(self) -> None:
        output = io.StringIO()

        assert replay_transcript(["hello"], "...", output) == []
        assert "nothing to replay" in output.getvalue()


class TestMain:
    """Command line entry point."""

    def test_writes_log_file(self, transcript_file: Path, sentence_file: Path,
                             tmp_path: Path, capsys) -> None:
        out_path = tmp_path / "replay.log"
        argv = ["saycheck-replay", str(transcript_file), str(sentence_file), "-o", str(out_path)]

        with patch.object(sys, "argv", argv):
            main()

        assert "Complete: yes" in out_path.read_text(encoding="utf-8")
        assert "Replay log written to" in capsys.readouterr().out

    def test_missing_file_exits(self, sentence_file: Path, tmp_path: Path) -> None:
        argv = ["saycheck-replay", str(tmp_path / "missing.txt"), str(sentence_file)]

        with patch.object(sys, "argv", argv), pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
