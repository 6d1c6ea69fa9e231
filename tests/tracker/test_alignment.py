# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for the sequential cursor alignment.
"""

import pytest

from saycheck.alignment import AlignmentResult, align, get_strategy


class TestSequentialMatching:
    """Correct words advance the cursor; wrong words stall it."""

    def test_exact_transcript_matches_everything(self) -> None:
        target = ["the", "quick", "brown", "fox"]
        result: AlignmentResult = align(target, list(target), set())

        assert result.target_status == ["matched"] * 4
        assert result.furthest_match == 3
        assert [m.status for m in result.recognized_matches] == ["match"] * 4
        assert [m.target_index for m in result.recognized_matches] == [0, 1, 2, 3]

    def test_wrong_words_stall_on_same_target(self) -> None:
        result = align(["hello", "world"], ["goodbye", "goodbye"], set())

        assert [m.status for m in result.recognized_matches] == ["mismatch", "mismatch"]
        assert [m.target_index for m in result.recognized_matches] == [0, 0]
        assert result.furthest_match == -1
        assert "matched" not in result.target_status
        assert result.target_status == ["current", "pending"]

    def test_words_after_the_end_are_extra(self) -> None:
        result = align(["hi"], ["hi", "there"], set())

        first, second = result.recognized_matches
        assert (first.status, first.target_index) == ("match", 0)
        assert (second.status, second.target_index) == ("extra", None)
        assert result.furthest_match == 0

    def test_correct_word_after_mismatch(self) -> None:
        """A retry of the same word resolves it."""
        result = align(["hello", "world"], ["helo", "hello", "world"], set())

        assert [m.status for m in result.recognized_matches] == ["mismatch", "match", "match"]
        assert [m.target_index for m in result.recognized_matches] == [0, 0, 1]
        assert result.target_status == ["matched", "matched"]

    def test_never_skips_ahead_on_its_own(self) -> None:
        """Saying a later word does not jump past the current one."""
        result = align(["the", "quick", "brown"], ["the", "brown"], set())

        assert result.recognized_matches[1].status == "mismatch"
        assert result.recognized_matches[1].target_index == 1
        assert result.target_status == ["matched", "current", "pending"]
        assert result.furthest_match == 0


class TestSkipSet:
    """Skipped indices count as resolved."""

    def test_skip_without_recognition(self) -> None:
        result = align(["a", "b"], [], {0})

        assert result.furthest_match == 0
        assert result.target_status == ["skipped-mismatch", "current"]

    def test_skipped_word_is_stepped_over(self) -> None:
        result = align(["a", "b", "c"], ["a", "c"], {1})

        assert result.target_status == ["matched", "skipped-mismatch", "matched"]
        assert [m.target_index for m in result.recognized_matches] == [0, 2]
        assert result.furthest_match == 2

    def test_skipped_word_is_never_matched(self) -> None:
        """Saying a skipped word compares it with the next open word instead."""
        result = align(["a", "b"], ["a", "b"], {1})

        assert result.target_status == ["matched", "skipped-mismatch"]
        assert result.recognized_matches[1].status == "extra"

    def test_out_of_range_skips_ignored(self) -> None:
        result = align(["a", "b"], [], {5, -1})
        assert result.furthest_match == -1
        assert result.target_status == ["current", "pending"]


class TestResolvedWords:
    """Words matched by an earlier snapshot stay matched."""

    def test_resolved_words_reported_as_matched(self) -> None:
        result = align(["the", "cat", "sat"], ["a", "cat"], set(), {0, 1})

        assert result.target_status == ["matched", "matched", "current"]
        assert result.furthest_match == 1

    def test_wrong_word_moves_past_resolved_words(self) -> None:
        """A revised word is compared with the next word still to be said."""
        result = align(["the", "cat", "sat"], ["a", "cat", "sat"], set(), {0, 1})

        assert [(m.word, m.target_index, m.status) for m in result.recognized_matches] == [
            ("a", 2, "mismatch"),
            ("cat", 2, "mismatch"),
            ("sat", 2, "match"),
        ]
        assert result.target_status == ["matched"] * 3

    def test_resolved_word_can_be_matched_again(self) -> None:
        result = align(["the", "cat", "sat"], ["the", "cat"], set(), {0})

        assert [m.status for m in result.recognized_matches] == ["match", "match"]
        assert [m.target_index for m in result.recognized_matches] == [0, 1]

    def test_resolved_is_not_skipped(self) -> None:
        result = align(["a", "b"], [], set(), {0})

        assert result.target_status == ["matched", "current"]
        assert "skipped-mismatch" not in result.target_status

    def test_out_of_range_resolved_ignored(self) -> None:
        result = align(["a"], [], set(), {3})
        assert result.target_status == ["current"]


class TestEdgeCases:
    """Degenerate inputs still give well-formed results."""

    def test_empty_target(self) -> None:
        result = align([], ["anything", "said"], set())

        assert result.target_status == []
        assert all(m.status == "extra" for m in result.recognized_matches)
        assert all(m.target_index is None for m in result.recognized_matches)
        assert result.furthest_match == -1

    def test_empty_recognized(self) -> None:
        result = align(["a", "b"], [], set())
        assert result.recognized_matches == []
        assert result.target_status == ["current", "pending"]
        assert result.furthest_match == -1

    def test_deterministic(self) -> None:
        args = (["one", "two", "three"], ["one", "too", "two", "four"], {2})
        assert align(*args) == align(*args)

    def test_default_skip_set(self) -> None:
        assert align(["a"], ["a"]).furthest_match == 0


class TestResultDetails:
    """Similarity hints and serialization."""

    def test_mismatch_similarity(self) -> None:
        result = align(["hello"], ["helo", "banana"], set())

        close, far = result.recognized_matches
        assert close.similarity > 80
        assert far.similarity < close.similarity

    def test_match_similarity_is_full(self) -> None:
        assert align(["hi"], ["hi"], set()).recognized_matches[0].similarity == 100.0

    def test_current_index(self) -> None:
        assert align(["a", "b"], ["a"], set()).current_index == 1
        assert align(["a"], ["a"], set()).current_index is None

    def test_to_dict(self) -> None:
        data = align(["hi"], ["hi", "there"], set()).to_dict()

        assert data["targetStatus"] == ["matched"]
        assert data["furthestMatch"] == 0
        assert data["recognized"] == [
            {"word": "hi", "targetIndex": 0, "status": "match", "similarity": 100.0},
            {"word": "there", "targetIndex": None, "status": "extra", "similarity": 0.0},
        ]


class TestStrategyRegistry:
    """Strategies are looked up by name."""

    def test_default_strategy(self) -> None:
        assert get_strategy("sequential") is align

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError, match="Unknown alignment strategy"):
            get_strategy("phonetic")
