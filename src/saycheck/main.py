"""
Main Saycheck application.
Runs the practice session and the web UI on one event loop.
"""

import argparse
import asyncio
import contextlib
import logging
import signal

from . import debug_log
from .alignment import STRATEGY_REGISTRY
from .config import (
    DEFAULT_CONFIG,
    AlignmentSettings,
    Config,
    RecognitionSettings,
    get_alignment_settings,
    get_config_path,
    get_recognition_settings,
    load_config,
    save_config,
)
from .server import WebServer
from .session import PracticeSession

logger = logging.getLogger(__name__)


class SaycheckApp:
    """
    Main application that coordinates the session and the web server.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8000,
        locale: str | None = None,
        alignment_settings: AlignmentSettings | None = None,
        recognition_settings: RecognitionSettings | None = None
    ) -> None:
        self.host: str = host
        self.port: int = port
        self.locale: str | None = locale
        # type: ignore[assignment]
        self.alignment_settings: AlignmentSettings = (
            alignment_settings or DEFAULT_CONFIG["alignment"]
        )
        # type: ignore[assignment]
        self.recognition_settings: RecognitionSettings = (
            recognition_settings or DEFAULT_CONFIG["recognition"]
        )

        self.session: PracticeSession = PracticeSession(
            strategy=self.alignment_settings.get("strategy", "sequential"),
            debounce_ms=self.alignment_settings.get("debounce_ms", 100),
            silence_timeout_ms=self.recognition_settings.get("silence_timeout_ms", 8000),
            restart_backoff_ms=self.recognition_settings.get("restart_backoff_ms", 250),
        )
        self.server: WebServer | None = None
        self._stopped: asyncio.Event | None = None

    async def start(self) -> None:
        """Start the server and wait until stop() is called."""
        print("Starting Saycheck...")
        self._stopped = asyncio.Event()

        self.server = WebServer(
            session=self.session,
            host=self.host,
            port=self.port,
            locale=self.locale,
            interim_results=self.recognition_settings.get("interim_results", True),
        )
        await self.server.start()

        print("\n✓ Saycheck ready!")
        print(f"  Open http://{self.host}:{self.port} in your browser")
        print(f"  Alignment strategy: {self.session.strategy}")
        print("  Press Ctrl+C to stop\n")

        await self._stopped.wait()

    async def stop(self) -> None:
        """Stop the application."""
        if self._stopped:
            self._stopped.set()
        if self.server is None:
            return
        print("\nStopping Saycheck...")
        server, self.server = self.server, None
        await server.stop()
        print("Saycheck stopped.")


def main() -> None:
    """Main entry point."""
    # Load config first to use as defaults
    config: Config = load_config()
    alignment = get_alignment_settings(config)
    recognition = get_recognition_settings(config)

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Saycheck - Pronunciation practice with live speech recognition"
    )

    parser.add_argument(
        "--host",
        default=config.get("host", "127.0.0.1"),
        help="Web server host (default: from config or 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=config.get("port", 8000),
        help="Web server port (default: from config or 8000)"
    )

    parser.add_argument(
        "--locale", "-l",
        default=config.get("locale"),
        help="Recognizer language tag, e.g. en-GB (default: browser language)"
    )

    parser.add_argument(
        "--strategy", "-s",
        default=alignment.get("strategy", "sequential"),
        choices=sorted(STRATEGY_REGISTRY.keys()),
        help="Alignment strategy (default: from config or 'sequential')"
    )

    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=alignment.get("debounce_ms", 100),
        help="Quiet period before interim results are aligned (default: 100)"
    )

    parser.add_argument(
        "--silence-timeout-ms",
        type=int,
        default=recognition.get("silence_timeout_ms", 8000),
        help="Show a hint after this long without speech; 0 disables (default: 8000)"
    )

    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Save current CLI options to config file and exit"
    )

    parser.add_argument(
        "--debug-log",
        action="store_true",
        help="Enable word-by-word debug logging to ./logs/"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show info-level log messages"
    )

    args: argparse.Namespace = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )

    alignment["strategy"] = args.strategy
    alignment["debounce_ms"] = args.debounce_ms
    recognition["silence_timeout_ms"] = args.silence_timeout_ms

    if args.save_config:
        config["host"] = args.host
        config["port"] = args.port
        config["locale"] = args.locale
        config["alignment"] = alignment
        config["recognition"] = recognition
        if save_config(config):
            print(f"Configuration saved to {get_config_path()}")
        return

    if args.debug_log:
        debug_log.enable()
        print("Debug logging enabled (logs will be saved to ./logs/)")

    app: SaycheckApp = SaycheckApp(
        host=args.host,
        port=args.port,
        locale=args.locale,
        alignment_settings=alignment,
        recognition_settings=recognition,
    )

    loop: asyncio.AbstractEventLoop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def shutdown(sig: int, frame: object) -> None:
        """Handle shutdown signals (SIGINT, SIGTERM) gracefully."""
        print("\nReceived shutdown signal...")
        loop.call_soon_threadsafe(lambda: loop.create_task(app.stop()))

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        pass
    finally:
        with contextlib.suppress(Exception):
            loop.run_until_complete(app.stop())
        # Cancel any remaining tasks
        pending: set[asyncio.Task[object]] = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(
                *pending, return_exceptions=True))
        loop.close()


if __name__ == "__main__":
    main()
