# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Text normalization for comparing practice sentences with recognized speech.

Both the target sentence and every recognizer snapshot pass through the same
normalization, so that "Hello," and "hello" compare equal.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TargetWord:
    """A word from the practice sentence."""
    original_text: str  # As typed by the user, punctuation included
    normalized_text: str  # Form used for comparison


def normalize_word(word: str) -> str:
    """Normalize a single token for matching.

    Drops every character that is not a Unicode letter or number, then
    lowercases what is left. May return an empty string.

    Examples:
        "Hello!" -> "hello"
        "café" -> "café"
        "Room-101" -> "room101"
    """
    return ''.join(ch for ch in word if ch.isalnum()).lower()


def tokenize(text: str) -> list[str]:
    """Split raw text into normalized tokens, dropping empty ones."""
    tokens: list[str] = []
    for raw in text.split():
        normalized = normalize_word(raw)
        if normalized:
            tokens.append(normalized)
    return tokens


def parse_text(text: str) -> list[TargetWord]:
    """Parse a practice sentence into target words.

    Tokens that normalize to nothing (a lone "-" or "…") are dropped and do
    not occupy a target position.
    """
    words: list[TargetWord] = []
    for raw in text.split():
        normalized = normalize_word(raw)
        if normalized:
            words.append(TargetWord(original_text=raw, normalized_text=normalized))
    return words
