# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Progress tracking for one practice sentence.

Keeps the skip set, the words matched so far, the furthest-match cursor and
the last recognized words across recognition events, and decides when the
sentence is complete.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from . import debug_log
from .alignment import AlignFunction, AlignmentResult, get_strategy
from .tokenizer import TargetWord, parse_text, tokenize

logger = logging.getLogger(__name__)


@dataclass
class SessionProgress:
    """How far the speaker has got through the sentence."""
    matched_count: int
    total: int
    is_complete: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "matchedCount": self.matched_count,
            "total": self.total,
            "isComplete": self.is_complete,
        }


class ProgressTracker:
    """
    Tracks a speaker's progress through a practice sentence.

    Lifecycle:
        submit_text() starts a session on a new sentence.
        record_recognition() is called with every recognizer snapshot.
        skip_current() moves past the current word without a match.
        reset_session() starts over on the same sentence.

    The alignment itself is delegated to a stateless strategy; everything
    that must persist between snapshots lives here.
    """

    strategy_name: str
    on_complete: Callable[[SessionProgress], None] | None

    _align: AlignFunction
    _target_words: list[TargetWord]
    _normalized: list[str]
    skip_set: set[int]
    matched_set: set[int]
    furthest_match: int
    cached_words: list[str] | None
    _completed: bool
    _last_result: AlignmentResult

    def __init__(
        self,
        strategy: str = "sequential",
        on_complete: Callable[[SessionProgress], None] | None = None
    ) -> None:
        """
        Initialize the tracker.

        Args:
            strategy: Alignment strategy name (see alignment.STRATEGY_REGISTRY)
            on_complete: Called once per session when every word is matched

        Raises:
            ValueError: If the strategy name is unknown
        """
        self.strategy_name = strategy
        self._align = get_strategy(strategy)
        self.on_complete = on_complete

        self._target_words = []
        self._normalized = []
        self._clear_state()

    def _clear_state(self) -> None:
        self.skip_set = set()
        self.matched_set = set()
        self.furthest_match = -1
        self.cached_words = None
        self._completed = False
        self._last_result = self._align(self._normalized, [], self.skip_set, self.matched_set)

    @property
    def target_words(self) -> list[TargetWord]:
        """Words of the current practice sentence."""
        return list(self._target_words)

    @property
    def words(self) -> list[str]:
        """Normalized target words."""
        return list(self._normalized)

    @property
    def total(self) -> int:
        return len(self._normalized)

    @property
    def last_result(self) -> AlignmentResult:
        """The most recent alignment."""
        return self._last_result

    @property
    def progress(self) -> SessionProgress:
        """Current session progress."""
        return SessionProgress(
            matched_count=self._last_result.matched_count,
            total=self.total,
            is_complete=self._completed,
        )

    def submit_text(self, text: str) -> bool:
        """
        Start a new session on the given sentence.

        Returns:
            False (leaving any previous session untouched) if the text
            contains no words; True otherwise
        """
        words: list[TargetWord] = parse_text(text)
        if not words:
            logger.info("Submitted text has no valid words; keeping previous session")
            return False

        self._target_words = words
        self._normalized = [w.normalized_text for w in words]
        self._clear_state()
        logger.info("New practice sentence: %d words", len(words))
        debug_log.clear_logs(self._normalized)
        return True

    def record_recognition(self, snapshot: str) -> AlignmentResult:
        """
        Align a full-transcript snapshot against the sentence.

        A snapshot with no words changes nothing and returns the last result.
        """
        tokens: list[str] = tokenize(snapshot)
        debug_log.log_recognition(snapshot, tokens)
        if not tokens:
            return self._last_result

        self.cached_words = tokens
        return self._run_alignment(tokens)

    def skip_current(self) -> AlignmentResult | None:
        """
        Move past the current word without requiring it to be said.

        Returns:
            The refreshed alignment, or None if there is no word to skip
        """
        next_index: int = self.furthest_match + 1
        if next_index < 0 or next_index >= self.total:
            return None

        self.skip_set.add(next_index)
        logger.debug("Skipping word %d (%s)", next_index, self._normalized[next_index])
        debug_log.log_skip(next_index, self._normalized[next_index])
        return self._run_alignment(self.cached_words or [])

    def reset_session(self) -> None:
        """Start the same sentence again from the beginning."""
        self._clear_state()
        debug_log.clear_logs(self._normalized)
        logger.debug("Session reset")

    def _run_alignment(self, tokens: list[str]) -> AlignmentResult:
        result: AlignmentResult = self._align(
            self._normalized, tokens, self.skip_set, self.matched_set)

        for match in result.recognized_matches:
            debug_log.log_word(match.target_index, match.word, match.status)

        # A word once matched stays matched for the session, even when the
        # recognizer revises it out of its hypothesis, so the cursor never
        # moves back.
        self.matched_set |= result.matched_indices
        old_cursor: int = self.furthest_match
        self.furthest_match = result.furthest_match
        if self.furthest_match != old_cursor:
            debug_log.log_cursor_update(old_cursor, self.furthest_match, "alignment")

        self._last_result = result
        self._check_completion(result)
        return result

    def _check_completion(self, result: AlignmentResult) -> None:
        if self._completed:
            return
        matched: int = result.matched_count
        if self.total > 0 and matched == self.total:
            self._completed = True
            logger.info("Sentence complete: %d/%d words", matched, self.total)
            debug_log.log_completion(matched, self.total)
            if self.on_complete:
                self.on_complete(self.progress)
