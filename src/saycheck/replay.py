# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Debug tool for replaying a transcript through the progress tracker.

Takes a transcript file (one recognizer utterance per line) and a sentence
file, feeds the utterances to the tracker as they would arrive from the
recognizer, and writes a log of how each recognized word was classified.
"""

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal, TextIO

from .alignment import STRATEGY_REGISTRY, AlignmentResult
from .tracker import ProgressTracker

EventType = Literal["advance", "stall", "complete"]


@dataclass
class ReplayEvent:
    """A single alignment pass during transcript replay."""
    transcript_line: int
    snapshot: str
    furthest_match: int
    matched_count: int
    event_type: EventType


def load_transcript(path: Path) -> list[str]:
    """Load transcript file and extract transcript lines.

    Filters out metadata lines (starting with '===') and blank lines.
    """
    lines: list[str] = []
    with open(path, encoding='utf-8') as f:
        for line in f:
            stripped_line: str = line.strip()
            if stripped_line.startswith('===') or not stripped_line:
                continue
            lines.append(stripped_line)
    return lines


def load_sentence(path: Path) -> str:
    """Load the practice sentence."""
    with open(path, encoding='utf-8') as f:
        return f.read()


def _write_result(output: TextIO, tracker: ProgressTracker, result: AlignmentResult) -> None:
    for match in result.recognized_matches:
        if match.target_index is None:
            output.write(f"    \"{match.word}\" (extra)\n")
            continue
        expected: str = tracker.words[match.target_index]
        line = f"    \"{match.word}\" -> [{match.target_index:3d}] \"{expected}\" ({match.status}"
        if match.status == "mismatch":
            line += f", similarity {match.similarity:.0f}"
        output.write(line + ")\n")


def replay_transcript(
    transcript_lines: list[str],
    sentence: str,
    output: TextIO,
    strategy: str = "sequential",
    word_by_word: bool = False,
    verbose: bool = False
) -> list[ReplayEvent]:
    """Replay transcript lines through a tracker and log each pass.

    Each line is treated as a finished utterance appended to the running
    transcript. In word-by-word mode every line is also built up one word at
    a time first, the way interim results arrive.

    Args:
        transcript_lines: Lines of transcript text
        sentence: The practice sentence
        output: File handle to write log output
        strategy: Alignment strategy name
        word_by_word: Also replay interim snapshots
        verbose: Log every recognized word of every pass

    Returns:
        List of all replay events
    """
    tracker: ProgressTracker = ProgressTracker(strategy)
    events: list[ReplayEvent] = []

    if not tracker.submit_text(sentence):
        output.write("Sentence contains no words; nothing to replay.\n")
        return events

    output.write("=" * 80 + "\n")
    output.write("TRANSCRIPT REPLAY LOG\n")
    output.write(f"Generated: {datetime.now().isoformat()}\n")
    output.write(f"Strategy: {strategy}\n")
    output.write(f"Sentence words: {tracker.total}\n")
    output.write(f"Transcript lines: {len(transcript_lines)}\n")
    output.write("=" * 80 + "\n\n")

    output.write("SENTENCE WORDS:\n")
    output.write("-" * 40 + "\n")
    for i, word in enumerate(tracker.target_words):
        output.write(f"  [{i:4d}] {word.normalized_text} ({word.original_text})\n")
    output.write("\n" + "=" * 80 + "\n\n")

    carried: str = ""
    for line_num, line in enumerate(transcript_lines, start=1):
        output.write(f"--- Line {line_num}: \"{line[:60]}{'...' if len(line) > 60 else ''}\" ---\n")

        snapshots: list[str] = []
        if word_by_word:
            words: list[str] = line.split()
            snapshots.extend(
                f"{carried} {' '.join(words[:i])}".strip() for i in range(1, len(words)))
        carried = f"{carried} {line}".strip()
        snapshots.append(carried)

        for idx, snapshot in enumerate(snapshots):
            before: int = tracker.furthest_match
            was_complete: bool = tracker.progress.is_complete
            result: AlignmentResult = tracker.record_recognition(snapshot)
            progress = tracker.progress

            event_type: EventType
            if progress.is_complete and not was_complete:
                event_type = "complete"
            elif tracker.furthest_match > before:
                event_type = "advance"
            else:
                event_type = "stall"

            output.write(
                f"  {event_type:8} cursor {before} -> {tracker.furthest_match} "
                f"({progress.matched_count}/{progress.total} matched)\n")
            if verbose or idx == len(snapshots) - 1:
                _write_result(output, tracker, result)

            events.append(ReplayEvent(
                transcript_line=line_num,
                snapshot=snapshot,
                furthest_match=tracker.furthest_match,
                matched_count=progress.matched_count,
                event_type=event_type,
            ))
        output.write("\n")

    progress = tracker.progress
    output.write("=" * 80 + "\n")
    output.write("SUMMARY:\n")
    output.write("-" * 40 + "\n")
    output.write(f"Passes: {len(events)}\n")
    output.write(f"Matched: {progress.matched_count} / {progress.total}\n")
    output.write(f"Complete: {'yes' if progress.is_complete else 'no'}\n")
    stalls: int = sum(1 for e in events if e.event_type == "stall")
    output.write(f"Stalled passes: {stalls}\n")

    return events


def main() -> None:
    """CLI entry point for the replay tool."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Replay a transcript against a practice sentence"
    )

    parser.add_argument(
        "transcript",
        type=Path,
        help="Path to transcript file"
    )

    parser.add_argument(
        "sentence",
        type=Path,
        help="Path to file containing the practice sentence"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output log file path (default: stdout)"
    )

    parser.add_argument(
        "-s", "--strategy",
        default="sequential",
        choices=sorted(STRATEGY_REGISTRY.keys()),
        help="Alignment strategy (default: sequential)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every word of every pass"
    )

    parser.add_argument(
        "-w", "--word-by-word",
        action="store_true",
        help="Also replay interim snapshots word by word"
    )

    args: argparse.Namespace = parser.parse_args()

    for path in (args.transcript, args.sentence):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)

    try:
        transcript_lines: list[str] = load_transcript(args.transcript)
        sentence: str = load_sentence(args.sentence)
    except OSError as e:
        print(f"Error loading files: {e}", file=sys.stderr)
        sys.exit(1)

    if not transcript_lines:
        print("Error: No transcript lines found", file=sys.stderr)
        sys.exit(1)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            replay_transcript(transcript_lines, sentence, f, args.strategy,
                              args.word_by_word, args.verbose)
        print(f"Replay log written to: {args.output}")
    else:
        replay_transcript(transcript_lines, sentence, sys.stdout, args.strategy,
                          args.word_by_word, args.verbose)


if __name__ == "__main__":
    main()
