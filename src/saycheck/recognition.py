# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Model of the external speech recognizer.

Speech-to-text runs in the browser (Web Speech API). It sends the full list
of results it holds on every event; this module turns that list into the
transcript snapshot the tracker expects, and translates recognizer errors
and end-of-stream notifications into status updates and restart decisions.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

StatusVariant = Literal["idle", "ready", "listening", "error", "complete"]

ALLOWED_VARIANTS: frozenset[str] = frozenset(
    ["idle", "ready", "listening", "error", "complete"])

# Messages shown in the recognized-speech panel
IDLE_MESSAGE: str = "Say the sentence once listening starts."
READY_MESSAGE: str = "Press “Start Listening” and repeat the sentence."
LISTENING_MESSAGE: str = "Listening…"
NO_SPEECH_MESSAGE: str = "No speech detected. Try again."
NO_VALID_WORDS_MESSAGE: str = "Add text to practice first."


@dataclass
class RecognitionResult:
    """One entry of the recognizer's result list."""

    text: str
    is_final: bool

    def __repr__(self) -> str:
        status: str = "final" if self.is_final else "interim"
        return f"RecognitionResult({status}: '{self.text}')"


@dataclass
class RecognitionEvent:
    """A recognizer notification carrying every result known so far."""

    results: list[RecognitionResult] = field(default_factory=list)
    # Index of the result that changed; defaults to the last one
    result_index: int | None = None

    @classmethod
    def from_message(cls, data: dict[str, Any]) -> 'RecognitionEvent':
        """
        Build an event from a WebSocket message.

        Accepts either a result list:
            {"results": [{"transcript": "...", "isFinal": true}, ...],
             "resultIndex": 0}
        or a single transcript:
            {"transcript": "...", "isFinal": false}
        """
        raw_results = data.get("results")
        results: list[RecognitionResult] = []
        if isinstance(raw_results, list):
            for item in raw_results:
                if not isinstance(item, dict):
                    continue
                results.append(RecognitionResult(
                    text=str(item.get("transcript") or ""),
                    is_final=bool(item.get("isFinal", False)),
                ))
        elif "transcript" in data:
            results.append(RecognitionResult(
                text=str(data.get("transcript") or ""),
                is_final=bool(data.get("isFinal", False)),
            ))

        raw_index = data.get("resultIndex")
        result_index: int | None = raw_index if isinstance(raw_index, int) else None
        return cls(results=results, result_index=result_index)

    @property
    def current(self) -> RecognitionResult | None:
        """The result this event is about."""
        if not self.results:
            return None
        index: int = self.result_index if self.result_index is not None else len(self.results) - 1
        if 0 <= index < len(self.results):
            return self.results[index]
        return None

    @property
    def is_final(self) -> bool:
        current = self.current
        return current is not None and current.is_final

    def aggregate_transcript(self) -> str:
        """All results joined, interim ones included."""
        return ' '.join(r.text for r in self.results if r.text).strip()

    def final_transcript(self) -> str:
        """Only the finalized results joined."""
        return ' '.join(r.text for r in self.results if r.is_final and r.text).strip()

    def snapshot(self) -> str:
        """The transcript to align: finals only once the current result is final."""
        if self.is_final:
            return self.final_transcript()
        current = self.current
        return self.aggregate_transcript() or (current.text.strip() if current else "")


@dataclass
class StatusIndicator:
    """Status line shown above the practice sentence."""

    label: str = "Idle"
    variant: StatusVariant = "idle"

    def update(self, label: str, variant: str = "idle") -> None:
        """Set the status; unknown variants fall back to idle."""
        self.label = label
        self.variant = variant if variant in ALLOWED_VARIANTS else "idle"  # type: ignore[assignment]

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "variant": self.variant}


@dataclass
class RecognizerErrorInfo:
    """How the session should react to a recognizer error."""

    message: str | None
    fatal: bool = False
    ignored: bool = False


# Error keys reported by browsers, mapped to user-facing messages
_FATAL_ERROR_MESSAGES: dict[str, str] = {
    "not-allowed": "Microphone access was denied.",
    "notallowederror": "Microphone access was denied.",
    "audio-capture": "No microphone was found.",
    "notfounderror": "No microphone was found.",
}

GENERIC_ERROR_MESSAGE: str = "Speech recognition error. Please try again."


def describe_recognizer_error(error_key: object) -> RecognizerErrorInfo:
    """
    Translate a recognizer error key into a session reaction.

    Examples:
        "no-speech" -> keep listening, show a hint
        "aborted" -> ignored (raised by our own stop)
        "not-allowed" -> fatal, microphone denied
    """
    key: str = str(error_key or "unknown").lower()

    if key == "no-speech":
        return RecognizerErrorInfo(message="No speech detected. Still listening…")
    if key == "aborted":
        return RecognizerErrorInfo(message=None, ignored=True)

    return RecognizerErrorInfo(
        message=_FATAL_ERROR_MESSAGES.get(key, GENERIC_ERROR_MESSAGE),
        fatal=True,
    )


class RestartPolicy:
    """
    Decides whether to restart the recognizer after it ends on its own.

    Browsers stop continuous recognition after a pause. While the session is
    listening we ask for a restart after a short fixed backoff; once the user
    stops listening, no restart is attempted.
    """

    def __init__(self, backoff_ms: int = 250) -> None:
        self.backoff_ms = backoff_ms
        self.restarts: int = 0

    async def wait_for_restart(self, is_listening: Callable[[], bool]) -> bool:
        """
        Wait out the backoff, then report whether to restart.

        Args:
            is_listening: Checked before and after the backoff

        Returns:
            True if the recognizer should be started again
        """
        if not is_listening():
            return False
        await asyncio.sleep(self.backoff_ms / 1000)
        if not is_listening():
            logger.debug("Listening stopped during backoff; not restarting")
            return False
        self.restarts += 1
        logger.debug("Restarting recognizer (restart #%d)", self.restarts)
        return True
