# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Web server for the Saycheck interface.
Serves the HTML UI and handles WebSocket connections that carry recognizer
events in and alignment results out.
"""

import asyncio
import contextlib
import json
import logging
from pathlib import Path

from aiohttp import web

from .config import load_config, save_config, update_config_locale
from .recognition import RecognitionEvent
from .session import Message, PracticeSession

logger = logging.getLogger(__name__)


class WebServer:
    """
    Serves the practice interface and manages WebSocket connections.

    Every connected client sees the same session: updates produced by the
    session are broadcast to all of them.
    """

    def __init__(
        self,
        session: PracticeSession | None = None,
        host: str = "127.0.0.1",
        port: int = 8000,
        locale: str | None = None,
        interim_results: bool = True
    ) -> None:
        self.host: str = host
        self.port: int = port
        self.locale: str | None = locale
        self.interim_results: bool = interim_results
        self.app: web.Application = web.Application()
        self.websockets: set[web.WebSocketResponse] = set()
        self.runner: web.AppRunner | None = None

        self.session: PracticeSession = session or PracticeSession()
        self.session.listener = self._queue_broadcast
        self._pending_sends: set[asyncio.Task[None]] = set()

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Set up HTTP routes."""
        self.app.router.add_get('/', self._handle_index)
        self.app.router.add_get('/ws', self._handle_websocket)
        self.app.router.add_post('/text', self._handle_text_upload)
        self.app.router.add_get('/status', self._handle_get_status)
        self.app.router.add_post('/save-config', self._handle_save_config)

    def _client_settings(self) -> dict[str, object]:
        return {
            "locale": self.locale,
            "interimResults": self.interim_results,
        }

    async def _handle_index(self, request: web.Request) -> web.Response:
        """Serve the main HTML page."""
        html = self._get_html()
        return web.Response(text=html, content_type='text/html')

    async def _handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle WebSocket connections for real-time updates."""
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        self.websockets.add(ws)
        logger.info("WebSocket connected. Total: %d", len(self.websockets))

        try:
            # Send current state
            await ws.send_json({
                "type": "init",
                "settings": self._client_settings(),
                **self.session.state(),
            })

            async for msg in ws:
                if msg.type == web.WSMsgType.TEXT:
                    try:
                        data = json.loads(msg.data)
                    except json.JSONDecodeError:
                        logger.warning("Ignoring malformed WebSocket message")
                        continue
                    if isinstance(data, dict):
                        await self._handle_ws_message(ws, data)
                elif msg.type == web.WSMsgType.ERROR:
                    logger.warning("WebSocket error: %s", ws.exception())
        finally:
            self.websockets.discard(ws)
            logger.info("WebSocket disconnected. Total: %d", len(self.websockets))

        return ws

    async def _handle_ws_message(self, ws: web.WebSocketResponse, data: dict[str, object]) -> None:
        """Handle incoming WebSocket messages using dispatch pattern."""
        msg_type: object | None = data.get("type")
        if not msg_type:
            return

        # Message type to handler dispatch
        handlers: dict[str, object] = {
            "submit_text": self._on_submit_text_message,
            "recognition": self._on_recognition_message,
            "skip": self._on_skip_message,
            "reset": self._on_reset_message,
            "clear": self._on_clear_message,
            "start_listening": self._on_start_listening_message,
            "stop_listening": self._on_stop_listening_message,
            "recognizer_end": self._on_recognizer_end_message,
            "recognizer_error": self._on_recognizer_error_message,
            "set_locale": self._on_set_locale_message,
        }

        handler: object | None = handlers.get(
            msg_type)  # type: ignore[arg-type]
        if not handler:
            logger.warning("Unhandled WebSocket message: %s", msg_type)
            return

        try:
            await handler(ws, data)  # type: ignore[operator]
        except Exception as e:
            logger.exception("Error handling %s message", msg_type)
            await ws.send_json({"type": "error", "message": str(e)})

    async def _on_submit_text_message(
        self,
        ws: web.WebSocketResponse,
        data: dict[str, object]
    ) -> None:
        """Handle new practice sentence."""
        accepted: bool = self.session.submit_text(str(data.get("text", "")))
        await ws.send_json({"type": "submit_result", "success": accepted})

    async def _on_recognition_message(
        self,
        _ws: web.WebSocketResponse,
        data: dict[str, object]
    ) -> None:
        """Handle a recognizer result event."""
        self.session.handle_recognition(RecognitionEvent.from_message(data))

    async def _on_skip_message(self, _ws: web.WebSocketResponse, _data: dict[str, object]) -> None:
        """Handle skip of the current word."""
        self.session.skip_current()

    async def _on_reset_message(self, _ws: web.WebSocketResponse, _data: dict[str, object]) -> None:
        """Handle reset message."""
        self.session.reset_session()

    async def _on_clear_message(self, _ws: web.WebSocketResponse, _data: dict[str, object]) -> None:
        """Handle clear message."""
        self.session.clear()

    async def _on_start_listening_message(
        self,
        _ws: web.WebSocketResponse,
        _data: dict[str, object]
    ) -> None:
        """Handle start listening message."""
        if self.session.start_listening():
            logger.info("Listening started")

    async def _on_stop_listening_message(
        self,
        _ws: web.WebSocketResponse,
        _data: dict[str, object]
    ) -> None:
        """Handle stop listening message."""
        self.session.stop_listening()
        logger.info("Listening stopped")

    async def _on_recognizer_end_message(
        self,
        _ws: web.WebSocketResponse,
        _data: dict[str, object]
    ) -> None:
        """Handle the recognizer ending its run."""
        self.session.handle_recognizer_end()

    async def _on_recognizer_error_message(
        self,
        _ws: web.WebSocketResponse,
        data: dict[str, object]
    ) -> None:
        """Handle a recognizer error report."""
        self.session.handle_recognizer_error(data.get("error"))

    async def _on_set_locale_message(
        self,
        ws: web.WebSocketResponse,
        data: dict[str, object]
    ) -> None:
        """Handle recognizer locale change, persisting it to the config file."""
        raw_locale: object | None = data.get("locale")
        locale: str | None = str(raw_locale) if raw_locale else None
        try:
            config = update_config_locale(load_config(), locale)
            success = save_config(config)
            if success:
                self.locale = locale
                await self.broadcast({
                    "type": "settings_updated",
                    "settings": self._client_settings()
                })
            await ws.send_json({
                "type": "locale_updated",
                "success": success,
                "locale": self.locale
            })
        except Exception as e:
            logger.error("Error setting locale: %s", e)
            await ws.send_json({
                "type": "locale_updated",
                "success": False,
                "error": str(e)
            })

    async def _handle_text_upload(self, request: web.Request) -> web.Response:
        """Handle practice sentence upload via POST."""
        try:
            data: object = await request.json()
        except json.JSONDecodeError:
            return web.json_response(
                {"status": "error", "message": "Invalid JSON"}, status=400)
        text: str = str(data.get("text", "")) if isinstance(data, dict) else ""
        if not self.session.submit_text(text):
            return web.json_response(
                {"status": "error", "message": "No valid words"}, status=400)
        return web.json_response({"status": "ok", "total": self.session.tracker.total})

    async def _handle_get_status(self, request: web.Request) -> web.Response:
        """Get the current session state."""
        return web.json_response(self.session.state())

    async def _handle_save_config(self, request: web.Request) -> web.Response:
        """Save current client settings to config file."""
        try:
            config = update_config_locale(load_config(), self.locale)
            if save_config(config):
                return web.json_response({"status": "ok", "message": "Settings saved"})
            return web.json_response(
                {"status": "error", "message": "Failed to save config"},
                status=500
            )
        except Exception as e:
            return web.json_response(
                {"status": "error", "message": str(e)},
                status=500
            )

    def _queue_broadcast(self, message: Message) -> None:
        """Session listener: send a message without blocking the caller."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; dropping %s message", message.get("type"))
            return
        task = loop.create_task(self.broadcast(message))
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)

    async def broadcast(self, message: dict[str, object]) -> None:
        """Send a message to all connected WebSocket clients."""
        if not self.websockets:
            return

        dead: set[web.WebSocketResponse] = set()
        for ws in list(self.websockets):
            try:
                await ws.send_json(message)
            except (ConnectionError, ConnectionResetError, RuntimeError) as e:
                logger.warning("Error sending to WebSocket: %s", e)
                dead.add(ws)

        self.websockets -= dead

    async def start(self) -> None:
        """Start the web server."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site: web.TCPSite = web.TCPSite(self.runner, self.host, self.port)
        await site.start()
        print(f"Web server running at http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the web server."""
        self.session.stop_listening()
        self.session.scheduler.cancel()
        self.session.silence.cancel()

        # Close all WebSocket connections
        for ws in list(self.websockets):
            with contextlib.suppress(Exception):
                await ws.close()
        self.websockets.clear()

        if self.runner:
            await self.runner.cleanup()

    def _get_html(self) -> str:
        """Load and return the HTML for the interface from static/index.html."""
        static_dir: Path = Path(__file__).parent / "static"
        html_path: Path = static_dir / "index.html"
        return html_path.read_text(encoding="utf-8")
