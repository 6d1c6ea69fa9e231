"""Tests for the debug_log module enable/disable functionality."""

from pathlib import Path
from unittest import mock

import pytest

from saycheck import debug_log
from saycheck.tracker import ProgressTracker


@pytest.fixture
def log_dir(tmp_path: Path):
    """Point the debug log at a temporary directory and enable it."""
    with mock.patch.object(debug_log, "LOG_DIR", tmp_path), \
            mock.patch.object(debug_log, "SESSION_LOG", tmp_path / "session_words.log"):
        debug_log.enable()
        yield tmp_path
    debug_log.disable()


class TestDebugLogEnableDisable:
    """Test the enable/disable functionality of debug logging."""

    def setup_method(self):
        """Reset debug log state before each test."""
        debug_log.disable()

    def test_disabled_by_default(self):
        """Debug logging should be disabled by default."""
        assert not debug_log.is_enabled()

    def test_enable(self):
        """enable() should turn on debug logging."""
        debug_log.enable()
        assert debug_log.is_enabled()
        debug_log.disable()

    def test_disable(self):
        """disable() should turn off debug logging."""
        debug_log.enable()
        debug_log.disable()
        assert not debug_log.is_enabled()

    @pytest.mark.parametrize("call", [
        lambda: debug_log.clear_logs(["a"]),
        lambda: debug_log.log_recognition("a b", ["a", "b"]),
        lambda: debug_log.log_word(0, "a", "match"),
        lambda: debug_log.log_cursor_update(-1, 0, "alignment"),
        lambda: debug_log.log_skip(0, "a"),
        lambda: debug_log.log_completion(1, 1),
    ])
    def test_no_op_when_disabled(self, call):
        """Nothing is written while logging is disabled."""
        with mock.patch.object(debug_log, '_ensure_log_dir') as mock_ensure:
            call()
            mock_ensure.assert_not_called()


class TestDebugLogWriting:
    """Test what gets written when logging is enabled."""

    def test_clear_logs_writes_header(self, log_dir):
        """clear_logs() should start a fresh file with the target words."""
        debug_log.clear_logs(["hello", "world"])

        content = debug_log.SESSION_LOG.read_text(encoding="utf-8")
        assert "New session started" in content
        assert "['hello', 'world']" in content

    def test_log_word(self, log_dir):
        debug_log.log_word(42, "hello", "match")
        debug_log.log_word(None, "extra", "extra")

        content = debug_log.SESSION_LOG.read_text(encoding="utf-8")
        assert "pos=  42" in content
        assert 'word="hello"' in content
        assert "pos=  -1" in content

    def test_tracker_session_is_logged(self, log_dir):
        """A tracker session writes snapshots, cursor moves, skips and completion."""
        tracker = ProgressTracker()
        tracker.submit_text("hi there")
        tracker.skip_current()
        tracker.record_recognition("hi there")
        tracker.reset_session()
        tracker.record_recognition("hi there")

        content = debug_log.SESSION_LOG.read_text(encoding="utf-8")
        assert 'snapshot: "hi there"' in content
        assert "CURSOR: -1 -> 1 (alignment)" in content
        assert "COMPLETE: 2/2 words matched" in content
        # reset_session() started a fresh file
        assert "skip" not in content
