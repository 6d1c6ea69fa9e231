"""
Debug logging for following a practice session word by word.

Writes one log file:
- session_words.log: recognitions, matches, skips and cursor moves

Logging is disabled by default. Call enable() to turn it on.
"""

from datetime import datetime
from pathlib import Path

# Log files location (in project root)
LOG_DIR: Path = Path(__file__).parent.parent.parent / "logs"
SESSION_LOG: Path = LOG_DIR / "session_words.log"

# Global flag to control whether debug logging is enabled
_ENABLED: bool = False  # pylint: disable=invalid-name


def enable() -> None:
    """Enable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = True


def disable() -> None:
    """Disable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = False


def is_enabled() -> bool:
    """Check if debug logging is enabled."""
    return _ENABLED


def _ensure_log_dir() -> None:
    """Create log directory if it doesn't exist."""
    LOG_DIR.mkdir(exist_ok=True)


def _timestamp() -> str:
    """Get current timestamp."""
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


def _append(line: str) -> None:
    _ensure_log_dir()
    with open(SESSION_LOG, 'a', encoding='utf-8') as f:
        f.write(f"[{_timestamp()}] {line}\n")


def clear_logs(target_words: list[str] | None = None) -> None:
    """Start a fresh log for a new practice sentence."""
    if not _ENABLED:
        return
    _ensure_log_dir()
    with open(SESSION_LOG, 'w', encoding='utf-8') as f:
        f.write(
            f"=== New session started at {datetime.now().isoformat()} ===\n")
        if target_words:
            f.write(f"    target: {target_words}\n")
        f.write("\n")


def log_recognition(snapshot: str, tokens: list[str]) -> None:
    """Log a recognizer snapshot and the tokens extracted from it."""
    if not _ENABLED:
        return
    _append(f"snapshot: \"{snapshot[-60:]}\" tokens={tokens}")


def log_word(target_index: int | None, word: str, event: str = "match") -> None:
    """
    Log how a recognized word was classified.

    Args:
        target_index: The target position it was compared with, or None
        word: The recognized word
        event: Classification (match, mismatch, extra)
    """
    if not _ENABLED:
        return
    pos: int = -1 if target_index is None else target_index
    _append(f"{event:15} pos={pos:4d} word=\"{word}\"")


def log_cursor_update(old_pos: int, new_pos: int, reason: str) -> None:
    """Log a change of the furthest-match cursor."""
    if not _ENABLED:
        return
    _append(f"CURSOR: {old_pos} -> {new_pos} ({reason})")


def log_skip(target_index: int, word: str) -> None:
    """Log a skip of the current target word."""
    if not _ENABLED:
        return
    _append(f"{'skip':15} pos={target_index:4d} word=\"{word}\"")


def log_completion(matched: int, total: int) -> None:
    """Log that every target word has been matched."""
    if not _ENABLED:
        return
    _append(f"COMPLETE: {matched}/{total} words matched")
