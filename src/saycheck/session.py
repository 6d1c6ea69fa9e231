# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
A practice session: one sentence, one speaker, one recognizer.

Ties the progress tracker to the recognizer event stream. All methods run on
the event loop thread, one event at a time, so no locking is needed.
Outgoing updates are handed to a listener as JSON-ready dicts.
"""

import asyncio
import logging
from collections.abc import Callable

from .recognition import (
    IDLE_MESSAGE,
    LISTENING_MESSAGE,
    NO_SPEECH_MESSAGE,
    NO_VALID_WORDS_MESSAGE,
    READY_MESSAGE,
    RecognitionEvent,
    RestartPolicy,
    StatusIndicator,
    describe_recognizer_error,
)
from .scheduler import SilenceMonitor, UpdateScheduler
from .tokenizer import parse_text
from .tracker import ProgressTracker, SessionProgress

logger = logging.getLogger(__name__)

Message = dict[str, object]


class PracticeSession:
    """
    Coordinates tracker, debounce timer, silence timer and recognizer state.

    Interim snapshots are debounced; final snapshots are aligned at once.
    Starting a new sentence or resetting cancels any pending alignment so a
    stale snapshot can never land on the new session.
    """

    def __init__(
        self,
        strategy: str = "sequential",
        debounce_ms: int = 100,
        silence_timeout_ms: int = 8000,
        restart_backoff_ms: int = 250,
        listener: Callable[[Message], None] | None = None
    ) -> None:
        self.strategy = strategy
        self.listener = listener

        self.tracker: ProgressTracker = self._new_tracker()
        self.scheduler: UpdateScheduler[str] = UpdateScheduler(
            self._apply_snapshot, delay_ms=debounce_ms)
        self.silence: SilenceMonitor = SilenceMonitor(
            self._on_silence, timeout_ms=silence_timeout_ms)
        self.restart_policy: RestartPolicy = RestartPolicy(restart_backoff_ms)

        self.status: StatusIndicator = StatusIndicator()
        self.recognized_message: str = IDLE_MESSAGE
        self.is_listening: bool = False

        # Text from recognizer runs that have already ended; prefixed to new
        # snapshots so each snapshot still covers the whole attempt.
        self._carried_transcript: str = ""
        self._last_snapshot: str = ""
        self._restart_task: asyncio.Task[None] | None = None

    def _new_tracker(self) -> ProgressTracker:
        return ProgressTracker(self.strategy, on_complete=self._on_complete)

    # -- outgoing ---------------------------------------------------------

    def _emit(self, message: Message) -> None:
        if self.listener:
            self.listener(message)

    def _set_status(self, label: str, variant: str) -> None:
        self.status.update(label, variant)
        self._emit({"type": "status", "status": self.status.to_dict(),
                    "message": self.recognized_message})

    def _emit_alignment(self) -> None:
        result = self.tracker.last_result
        message: Message = {"type": "alignment"}
        message.update(result.to_dict())
        message["progress"] = self.tracker.progress.to_dict()
        message["status"] = self.status.to_dict()
        self._emit(message)

    def state(self) -> Message:
        """Full session state, sent to clients when they connect."""
        return {
            "words": [
                {"original": w.original_text, "normalized": w.normalized_text}
                for w in self.tracker.target_words
            ],
            "alignment": self.tracker.last_result.to_dict(),
            "progress": self.tracker.progress.to_dict(),
            "skipped": sorted(self.tracker.skip_set),
            "status": self.status.to_dict(),
            "message": self.recognized_message,
            "isListening": self.is_listening,
            "strategy": self.strategy,
        }

    # -- session boundaries -----------------------------------------------

    def submit_text(self, text: str) -> bool:
        """
        Start practising a new sentence.

        Returns:
            False if the text had no words (previous sentence is kept)
        """
        self.stop_listening()

        if not parse_text(text):
            # The current sentence stays, so whatever was heard still counts
            self.scheduler.flush()
            self.recognized_message = IDLE_MESSAGE
            self._set_status(NO_VALID_WORDS_MESSAGE, "error")
            return False

        self.scheduler.cancel()
        self.tracker.submit_text(text)
        self._carried_transcript = ""
        self._last_snapshot = ""
        self.recognized_message = READY_MESSAGE
        self._emit({"type": "text_submitted", **self.state()})
        self._set_status("Ready", "ready")
        return True

    def reset_session(self) -> None:
        """Start the current sentence over."""
        self.scheduler.cancel()
        self._carried_transcript = ""
        self._last_snapshot = ""
        self.tracker.reset_session()
        self._emit_alignment()

    def clear(self) -> None:
        """Forget the sentence entirely."""
        self.scheduler.cancel()
        self.stop_listening()
        self.tracker = self._new_tracker()
        self._carried_transcript = ""
        self._last_snapshot = ""
        self.recognized_message = IDLE_MESSAGE
        self._emit({"type": "text_submitted", **self.state()})
        self._set_status("Idle", "idle")

    # -- listening --------------------------------------------------------

    def start_listening(self) -> bool:
        """Begin an attempt. Returns False if there is nothing to practise."""
        if not self.tracker.total:
            self._set_status(NO_VALID_WORDS_MESSAGE, "error")
            return False
        if self.is_listening:
            return False

        self.reset_session()
        self.is_listening = True
        self.recognized_message = LISTENING_MESSAGE
        self.silence.touch()
        self._set_status("Listening…", "listening")
        return True

    def stop_listening(self) -> None:
        if not self.is_listening:
            return
        self.is_listening = False
        self.silence.cancel()
        if self._restart_task and not self._restart_task.done():
            self._restart_task.cancel()
        # Whatever was last heard still counts
        self.scheduler.flush()
        self._set_status("Ready", "ready")

    # -- recognizer events ------------------------------------------------

    def handle_recognition(self, event: RecognitionEvent) -> None:
        """Feed a recognizer event into the session."""
        if not self.tracker.total:
            return

        if self.is_listening:
            self.silence.touch()

        transcript: str = event.snapshot()
        if not transcript:
            if event.is_final:
                self.recognized_message = NO_SPEECH_MESSAGE
            else:
                self.recognized_message = LISTENING_MESSAGE
            self._set_status(*self._idle_status())
            return

        snapshot: str = f"{self._carried_transcript} {transcript}".strip()
        self._last_snapshot = snapshot
        self.recognized_message = snapshot.lower()

        self.scheduler.submit(snapshot)
        if event.is_final:
            self.scheduler.flush()

    def skip_current(self) -> bool:
        """Skip the current word. Returns False if there was nothing to skip."""
        # Align any pending snapshot first so the skip hits the right word
        self.scheduler.flush()
        if self.tracker.skip_current() is None:
            return False
        self._emit_alignment()
        return True

    def handle_recognizer_end(self) -> asyncio.Task[None] | None:
        """
        The recognizer stopped on its own.

        While listening, keep what was heard and schedule a restart after
        the backoff. Returns the restart task, if any.
        """
        if not self.is_listening:
            self._set_status("Ready", "ready")
            return None

        self.scheduler.flush()
        self._carried_transcript = self._last_snapshot
        self._set_status("Listening…", "listening")
        self._restart_task = asyncio.get_running_loop().create_task(self._restart())
        return self._restart_task

    async def _restart(self) -> None:
        if await self.restart_policy.wait_for_restart(lambda: self.is_listening):
            self._emit({"type": "restart_recognizer"})

    def handle_recognizer_error(self, error_key: object) -> None:
        info = describe_recognizer_error(error_key)
        if info.ignored:
            return
        if info.message:
            self.recognized_message = info.message
        if not info.fatal:
            self._set_status("Listening…", "listening")
            return

        logger.warning("Recognizer error: %s", error_key)
        self.is_listening = False
        self.silence.cancel()
        self.scheduler.cancel()
        self._set_status("Error", "error")

    # -- callbacks --------------------------------------------------------

    def _apply_snapshot(self, snapshot: str) -> None:
        self.tracker.record_recognition(snapshot)
        self._emit_alignment()
        if not self.tracker.progress.is_complete:
            self._set_status(*self._idle_status())

    def _idle_status(self) -> tuple[str, str]:
        if self.tracker.progress.is_complete:
            return "Complete", "complete"
        if self.is_listening:
            return "Listening…", "listening"
        return "Ready", "ready"

    def _on_complete(self, progress: SessionProgress) -> None:
        self._emit({"type": "complete", "progress": progress.to_dict()})
        self._set_status("Complete", "complete")

    def _on_silence(self) -> None:
        if self.is_listening:
            self._set_status("Waiting for speech…", "listening")
