# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Timers that run on the asyncio event loop alongside the web server.

UpdateScheduler coalesces bursts of interim recognizer snapshots into a
single alignment pass (trailing-edge debounce). SilenceMonitor fires when no
speech has been recognized for a while. Neither blocks the caller, and both
can be cancelled at session boundaries.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UpdateScheduler(Generic[T]):
    """
    Trailing-edge debounce for recognizer snapshots.

    Each submit() replaces the pending snapshot and restarts the quiet-period
    timer. When the timer expires the callback runs once with the latest
    snapshot. This is not a rate limiter: a steady stream of events closer
    together than the delay keeps postponing the pass.

    Usage:
        scheduler = UpdateScheduler(session.apply_snapshot, delay_ms=100)
        scheduler.submit(transcript)   # from each interim event
        scheduler.cancel()             # on reset or new text
    """

    def __init__(self, callback: Callable[[T], None], delay_ms: int = 100) -> None:
        """
        Args:
            callback: Run with the latest snapshot after the quiet period
            delay_ms: Quiet period in milliseconds
        """
        self.callback = callback
        self.delay_ms = delay_ms
        self._timer: asyncio.TimerHandle | None = None
        self._pending: T | None = None
        self._has_pending: bool = False
        self.runs: int = 0

    @property
    def pending(self) -> bool:
        """True while a snapshot is waiting for the timer."""
        return self._has_pending

    def submit(self, snapshot: T) -> None:
        """Queue a snapshot, superseding any snapshot not yet applied.

        Must be called from within the running event loop.
        """
        self._pending = snapshot
        self._has_pending = True
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_ms / 1000, self._fire)

    def flush(self) -> None:
        """Apply the pending snapshot now instead of waiting."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._has_pending:
            self._fire()

    def cancel(self) -> None:
        """Drop the pending snapshot and stop the timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._has_pending:
            logger.debug("Discarding pending snapshot")
        self._pending = None
        self._has_pending = False

    def _fire(self) -> None:
        self._timer = None
        if not self._has_pending:
            return
        snapshot = self._pending
        self._pending = None
        self._has_pending = False
        self.runs += 1
        self.callback(snapshot)  # type: ignore[arg-type]


class SilenceMonitor:
    """
    Reports a long stretch with no recognized speech.

    Only meant to drive a status indicator; it never touches alignment state.
    """

    def __init__(self, on_silence: Callable[[], None], timeout_ms: int = 8000) -> None:
        self.on_silence = on_silence
        self.timeout_ms = timeout_ms
        self._timer: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._timer is not None

    def touch(self) -> None:
        """Restart the silence countdown (call on every recognition event)."""
        self.cancel()
        if self.timeout_ms <= 0:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.timeout_ms / 1000, self._fire)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        logger.debug("No speech for %d ms", self.timeout_ms)
        self.on_silence()
