# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Alignment of recognized speech against the target sentence.

The default strategy is a strict sequential cursor: a target word only
counts once it has been said correctly, in order, and a wrong attempt keeps
the cursor on the same word. Two whole-sequence strategies (longest common
subsequence and edit distance) are available behind the same interface.

Every strategy is a pure function of (target, recognized, skip set,
resolved set). Session state lives in the tracker, never here.
"""

from collections.abc import Callable, Sequence, Set
from dataclasses import dataclass
from typing import Literal

from rapidfuzz import fuzz

TargetStatus = Literal["pending", "current", "matched", "skipped-mismatch"]
MatchStatus = Literal["match", "mismatch", "extra"]


@dataclass
class RecognizedMatch:
    """How one recognized token relates to the target sentence."""
    word: str
    target_index: int | None
    status: MatchStatus
    # Closeness to the target word it was compared with (0-100)
    similarity: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "word": self.word,
            "targetIndex": self.target_index,
            "status": self.status,
            "similarity": round(self.similarity, 1),
        }


@dataclass
class AlignmentResult:
    """Outcome of one alignment pass."""
    target_status: list[TargetStatus]
    recognized_matches: list[RecognizedMatch]
    furthest_match: int = -1

    @property
    def matched_count(self) -> int:
        """Number of target words pronounced correctly."""
        return sum(1 for status in self.target_status if status == "matched")

    @property
    def matched_indices(self) -> set[int]:
        """Target positions reported as matched."""
        return {i for i, status in enumerate(self.target_status) if status == "matched"}

    @property
    def current_index(self) -> int | None:
        """Index of the word the speaker should say next, if any."""
        nxt = self.furthest_match + 1
        return nxt if nxt < len(self.target_status) else None

    def to_dict(self) -> dict[str, object]:
        """Serialize for the web UI."""
        return {
            "targetStatus": list(self.target_status),
            "recognized": [m.to_dict() for m in self.recognized_matches],
            "furthestMatch": self.furthest_match,
        }


AlignFunction = Callable[
    [Sequence[str], Sequence[str], Set[int], Set[int]], AlignmentResult]


def _fold_indices(furthest: int, indices: Set[int], total: int) -> int:
    """Skipped or already-resolved words count even if nothing aligned with them."""
    for index in indices:
        if 0 <= index < total:
            furthest = max(furthest, index)
    return furthest


def _derive_statuses(matched: list[bool], furthest: int) -> list[TargetStatus]:
    statuses: list[TargetStatus] = []
    for index, is_matched in enumerate(matched):
        if is_matched:
            statuses.append("matched")
        elif index <= furthest:
            statuses.append("skipped-mismatch")
        elif index == furthest + 1:
            statuses.append("current")
        else:
            statuses.append("pending")
    return statuses


def _finish(
    matched: list[bool],
    matches: list[RecognizedMatch],
    furthest: int,
    skip_set: Set[int],
    resolved: Set[int]
) -> AlignmentResult:
    total: int = len(matched)
    for index in resolved:
        if 0 <= index < total and index not in skip_set:
            matched[index] = True
    furthest = _fold_indices(furthest, skip_set, total)
    furthest = _fold_indices(furthest, resolved, total)
    return AlignmentResult(
        target_status=_derive_statuses(matched, furthest),
        recognized_matches=matches,
        furthest_match=furthest,
    )


def align(
    target_words: Sequence[str],
    recognized_words: Sequence[str],
    skip_set: Set[int] = frozenset(),
    resolved: Set[int] = frozenset()
) -> AlignmentResult:
    """
    Align recognized words to target words with a strict sequential cursor.

    Recognized words are consumed left to right. Each one is compared with
    the first unresolved target word: a correct word resolves it and moves the
    cursor on, a wrong word is reported as a mismatch against it and the
    cursor stays put. Words in the skip set are stepped over without needing
    a match. Once every target is resolved, further words are extras.

    Words in the resolved set were matched by an earlier snapshot of the
    same attempt. They can be matched again, but a wrong word does not stall
    on them: it is compared with the next word that still needs saying. They
    are always reported as matched.

    Args:
        target_words: Normalized target words
        recognized_words: Normalized recognized words, full transcript so far
        skip_set: Target indices the user chose to move past
        resolved: Target indices matched earlier in the session

    Returns:
        AlignmentResult for this snapshot
    """
    total: int = len(target_words)
    matched: list[bool] = [False] * total
    matches: list[RecognizedMatch] = []
    furthest: int = -1
    cursor: int = 0

    def step_over(index: int, include_resolved: bool) -> int:
        nonlocal furthest
        while index < total and (
                matched[index] or index in skip_set
                or (include_resolved and index in resolved)):
            furthest = max(furthest, index)
            index += 1
        return index

    for word in recognized_words:
        cursor = step_over(cursor, include_resolved=False)
        if cursor < total and word != target_words[cursor] and cursor in resolved:
            cursor = step_over(cursor, include_resolved=True)

        if cursor >= total:
            matches.append(RecognizedMatch(word, None, "extra"))
            continue

        expected: str = target_words[cursor]
        if word == expected:
            matched[cursor] = True
            matches.append(RecognizedMatch(word, cursor, "match", 100.0))
            furthest = max(furthest, cursor)
            cursor += 1
        else:
            matches.append(RecognizedMatch(
                word, cursor, "mismatch", fuzz.ratio(word, expected)))

    return _finish(matched, matches, furthest, skip_set, resolved)


def _open_indices(total: int, skip_set: Set[int]) -> list[int]:
    """Target indices still needing a match (skipped ones are resolved)."""
    return [i for i in range(total) if i not in skip_set]


def align_lcs(
    target_words: Sequence[str],
    recognized_words: Sequence[str],
    skip_set: Set[int] = frozenset(),
    resolved: Set[int] = frozenset()
) -> AlignmentResult:
    """
    Align using the longest common subsequence of the two word lists.

    Matches may land anywhere in the target, so words can be passed over
    without being said. Recognized words outside the subsequence are extras.
    Skipped target words take no part in the subsequence; words in the
    resolved set are reported as matched whatever this snapshot says.
    """
    total: int = len(target_words)
    open_idx: list[int] = _open_indices(total, skip_set)
    targets: list[str] = [target_words[i] for i in open_idx]
    n: int = len(targets)
    m: int = len(recognized_words)

    dp: list[list[int]] = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        for j in range(1, m + 1):
            if targets[i - 1] == recognized_words[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    matched: list[bool] = [False] * total
    pairs: dict[int, int] = {}  # recognized index -> target index
    i, j = n, m
    while i > 0 and j > 0:
        if targets[i - 1] == recognized_words[j - 1]:
            pairs[j - 1] = open_idx[i - 1]
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    furthest: int = -1
    matches: list[RecognizedMatch] = []
    for rec_idx, word in enumerate(recognized_words):
        target_idx = pairs.get(rec_idx)
        if target_idx is None:
            matches.append(RecognizedMatch(word, None, "extra"))
            continue
        matched[target_idx] = True
        furthest = max(furthest, target_idx)
        matches.append(RecognizedMatch(word, target_idx, "match", 100.0))

    return _finish(matched, matches, furthest, skip_set, resolved)


# Preferred operation when several give the same edit cost
_OPERATION_PRIORITY: dict[str, int] = {
    "match": 3,
    "substitute": 2,
    "delete": 1,
    "insert": 0,
}


def align_edit_distance(
    target_words: Sequence[str],
    recognized_words: Sequence[str],
    skip_set: Set[int] = frozenset(),
    resolved: Set[int] = frozenset()
) -> AlignmentResult:
    """
    Align using a minimal word-level edit script.

    Substitutions are reported as mismatches against the target word they
    replace, insertions as extras, and deletions leave the target unmatched.
    Among equal-cost scripts, match beats substitute beats delete beats insert.
    Words in the resolved set are reported as matched.
    """
    total: int = len(target_words)
    open_idx: list[int] = _open_indices(total, skip_set)
    targets: list[str] = [target_words[i] for i in open_idx]
    n: int = len(targets)
    m: int = len(recognized_words)

    cost: list[list[int]] = [[0] * (m + 1) for _ in range(n + 1)]
    ops: list[list[str | None]] = [[None] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        cost[i][0] = i
        ops[i][0] = "delete"
    for j in range(1, m + 1):
        cost[0][j] = j
        ops[0][j] = "insert"

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            same: bool = targets[i - 1] == recognized_words[j - 1]
            options: list[tuple[int, str]] = [
                (cost[i - 1][j - 1] + (0 if same else 1),
                 "match" if same else "substitute"),
                (cost[i - 1][j] + 1, "delete"),
                (cost[i][j - 1] + 1, "insert"),
            ]
            best_cost, best_op = min(
                options, key=lambda opt: (opt[0], -_OPERATION_PRIORITY[opt[1]]))
            cost[i][j] = best_cost
            ops[i][j] = best_op

    matched: list[bool] = [False] * total
    matches: list[RecognizedMatch | None] = [None] * m
    i, j = n, m
    while i > 0 or j > 0:
        op = ops[i][j]
        if op in ("match", "substitute"):
            target_idx = open_idx[i - 1]
            word = recognized_words[j - 1]
            if op == "match":
                matched[target_idx] = True
                matches[j - 1] = RecognizedMatch(word, target_idx, "match", 100.0)
            else:
                matches[j - 1] = RecognizedMatch(
                    word, target_idx, "mismatch", fuzz.ratio(word, targets[i - 1]))
            i -= 1
            j -= 1
        elif op == "delete":
            i -= 1
        else:
            matches[j - 1] = RecognizedMatch(recognized_words[j - 1], None, "extra")
            j -= 1

    furthest: int = max((idx for idx, ok in enumerate(matched) if ok), default=-1)
    return _finish(
        matched, [match for match in matches if match is not None],
        furthest, skip_set, resolved)


# Registry of available alignment strategies
STRATEGY_REGISTRY: dict[str, AlignFunction] = {
    "sequential": align,
    "lcs": align_lcs,
    "edit_distance": align_edit_distance,
}


def get_strategy(name: str) -> AlignFunction:
    """
    Look up an alignment strategy by name.

    Raises:
        ValueError: If the name is not registered
    """
    strategy = STRATEGY_REGISTRY.get(name)
    if strategy is None:
        available = ", ".join(STRATEGY_REGISTRY.keys())
        raise ValueError(
            f"Unknown alignment strategy: {name}. Available strategies: {available}")
    return strategy
