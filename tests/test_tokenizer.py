# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for word normalization and sentence parsing.
"""

from saycheck.tokenizer import TargetWord, normalize_word, parse_text, tokenize


class TestNormalizeWord:
    """Tests for single-token normalization."""

    def test_strips_punctuation_and_lowercases(self) -> None:
        assert normalize_word("Hello!") == "hello"

    def test_keeps_accented_letters(self) -> None:
        assert normalize_word("Café") == "café"

    def test_keeps_digits_and_joins_parts(self) -> None:
        assert normalize_word("Room-101") == "room101"

    def test_non_latin_scripts(self) -> None:
        """Letters from any script survive normalization."""
        assert normalize_word("Привет,") == "привет"
        assert normalize_word("«日本»") == "日本"

    def test_apostrophes_removed(self) -> None:
        assert normalize_word("don't") == "dont"

    def test_punctuation_only_is_empty(self) -> None:
        assert normalize_word("...") == ""
        assert normalize_word("—") == ""


class TestTokenize:
    """Tests for splitting text into comparison tokens."""

    def test_splits_on_whitespace_runs(self) -> None:
        assert tokenize("  The quick\tbrown\n\nfox ") == ["the", "quick", "brown", "fox"]

    def test_drops_empty_tokens(self) -> None:
        """Tokens that normalize to nothing do not take a position."""
        assert tokenize("wait - what ?") == ["wait", "what"]

    def test_empty_and_whitespace_input(self) -> None:
        assert tokenize("") == []
        assert tokenize("   \n ") == []


class TestParseText:
    """Tests for building target words."""

    def test_keeps_original_text(self) -> None:
        words = parse_text("Hello, world!")
        assert words == [
            TargetWord(original_text="Hello,", normalized_text="hello"),
            TargetWord(original_text="world!", normalized_text="world"),
        ]

    def test_positions_skip_punctuation_tokens(self) -> None:
        words = parse_text("one — two")
        assert [w.normalized_text for w in words] == ["one", "two"]

    def test_empty_text(self) -> None:
        assert parse_text("  ") == []
