"""
display_bridge.py - Local WebSocket Bridge for the Kiosk UI

Pushes display directives (navigate, reload, fullscreen, screensaver,
multiview) to every connected kiosk page and receives the page's reports
(fullscreen results, prompt clicks).
"""

import asyncio
import json
import logging
from typing import Callable, Optional, Set

import websockets

from ..display.surface import DisplaySurface

logger = logging.getLogger("DisplayBridge")


def _log_task_error(task: asyncio.Future):
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Display bridge task failed: {task.exception()}")


class DisplayBridge(DisplaySurface):
    def __init__(self, host: str = "0.0.0.0", port: int = 8002, fullscreen_timeout: float = 3.0):
        super().__init__("DisplayBridge")
        self.host = host
        self.port = port
        self.fullscreen_timeout = fullscreen_timeout
        self.clients: Set = set()
        self.server = None

        # Last applied state; repeating an already-applied directive is a no-op.
        self.current_path: Optional[str] = None
        self.screensaver_active = False
        self.is_fullscreen = False
        self.overlay_visible = False
        self.prompt_visible = False
        self.reloading = False

        self._fullscreen_waiter: Optional[asyncio.Future] = None
        self._on_prompt_click: Optional[Callable] = None
        self._status_provider: Optional[Callable] = None

    # ==================== Wiring ====================

    def set_prompt_click_handler(self, handler: Callable):
        """Coroutine function invoked when the user clicks the fullscreen prompt."""
        self._on_prompt_click = handler

    def set_status_provider(self, provider: Callable):
        self._status_provider = provider

    def reset(self):
        """Forget applied state once a fresh session is ready."""
        self.current_path = None
        self.reloading = False
        if self.overlay_visible:
            self.overlay_visible = False
            self._send({"type": "overlay", "visible": False})
        self.hide_fullscreen_prompt()

    def notify_session(self, state: str):
        """Tell status pages the session moved on so they re-render."""
        self._send({"type": "session", "state": state})

    # ==================== Broadcasting ====================

    def _send(self, message: dict):
        """Fire-and-forget broadcast from synchronous effects."""
        if not self.clients:
            logger.debug(f"No kiosk pages connected, dropping {message.get('type')}")
            return
        asyncio.ensure_future(self.broadcast(message))

    async def broadcast(self, message: dict):
        if not self.clients:
            return
        payload = json.dumps(message)
        await asyncio.gather(
            *[client.send(payload) for client in list(self.clients)],
            return_exceptions=True
        )

    # ==================== DisplaySurface ====================

    def navigate(self, path: str):
        if path == self.current_path:
            return
        self.current_path = path
        logger.info(f"Navigate -> {path}")
        self._send({"type": "navigate", "path": path})

    def reload(self):
        if self.reloading:
            return
        self.reloading = True
        logger.info("Reloading kiosk pages")
        self._send({"type": "reload"})

    def show_reload_overlay(self):
        if self.overlay_visible:
            return
        self.overlay_visible = True
        self._send({"type": "overlay", "visible": True, "message": "Refreshing kiosk..."})

    def reload_photos(self):
        self._send({"type": "reload_photos"})

    def refresh_data(self):
        logger.info("Asking kiosk pages to refetch their data")
        self._send({"type": "refetch"})

    def set_screensaver(self, active: bool):
        if active == self.screensaver_active:
            return
        self.screensaver_active = active
        logger.info(f"Screensaver {'activated' if active else 'deactivated'}")
        self._send({"type": "screensaver", "active": active})

    async def request_fullscreen(self) -> bool:
        if self.is_fullscreen:
            return True
        if not self.clients:
            logger.warning("Fullscreen requested with no kiosk page connected")
            return False

        loop = asyncio.get_running_loop()
        if self._fullscreen_waiter is None or self._fullscreen_waiter.done():
            self._fullscreen_waiter = loop.create_future()
        waiter = self._fullscreen_waiter

        await self.broadcast({"type": "fullscreen", "action": "enter"})
        try:
            accepted = await asyncio.wait_for(asyncio.shield(waiter), self.fullscreen_timeout)
        except asyncio.TimeoutError:
            logger.warning("No fullscreen result from kiosk page")
            return False

        self.is_fullscreen = bool(accepted)
        return self.is_fullscreen

    def exit_fullscreen(self):
        if not self.is_fullscreen:
            return
        self.is_fullscreen = False
        self._send({"type": "fullscreen", "action": "exit"})

    def show_fullscreen_prompt(self):
        # Kept as state: a page that connects later still gets the prompt.
        if self.prompt_visible:
            return
        self.prompt_visible = True
        self._send({"type": "fullscreen_prompt", "visible": True})

    def hide_fullscreen_prompt(self):
        if not self.prompt_visible:
            return
        self.prompt_visible = False
        self._send({"type": "fullscreen_prompt", "visible": False})

    def forward_multiview(self, command: dict):
        self._send({"type": "multiview", "command": command})

    # ==================== Incoming ====================

    async def handle_message(self, websocket, raw):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.error("Invalid JSON received")
            await websocket.send(json.dumps({"type": "error", "error": "Invalid JSON format"}))
            return

        if not isinstance(data, dict):
            await websocket.send(json.dumps({"type": "error", "error": "Expected an object"}))
            return

        msg_type = data.get("type")

        if msg_type == "fullscreen_result":
            accepted = data.get("accepted") is True
            if self._fullscreen_waiter is not None and not self._fullscreen_waiter.done():
                self._fullscreen_waiter.set_result(accepted)
            else:
                # User toggled fullscreen themselves (e.g. Esc)
                self.is_fullscreen = accepted

        elif msg_type == "fullscreen_prompt_click":
            accepted = data.get("accepted")
            if isinstance(accepted, bool):
                self.is_fullscreen = accepted
            else:
                accepted = None
            if self._on_prompt_click is not None:
                task = asyncio.ensure_future(self._on_prompt_click(accepted))
                task.add_done_callback(_log_task_error)

        elif msg_type == "screensaver_state":
            # Idle activation or a tap-to-dismiss on the page itself
            active = data.get("active")
            if isinstance(active, bool):
                self.screensaver_active = active

        elif msg_type == "get_status":
            status = self._status_provider() if self._status_provider else {}
            await websocket.send(json.dumps({"type": "status", "data": status}))

        elif msg_type == "ping":
            await websocket.send(json.dumps({"type": "pong", "timestamp": data.get("timestamp")}))

        else:
            logger.warning(f"Unknown message type: {msg_type}")

    async def handler(self, websocket):
        logger.info(f"Kiosk page connected: {getattr(websocket, 'remote_address', None)}")
        self.clients.add(websocket)

        try:
            await websocket.send(json.dumps({
                "type": "state",
                "path": self.current_path,
                "screensaver": self.screensaver_active,
                "overlay": self.overlay_visible,
                "fullscreen_prompt": self.prompt_visible,
            }))
            async for message in websocket:
                await self.handle_message(websocket, message)
        except websockets.exceptions.ConnectionClosed:
            logger.info("Kiosk page disconnected")
        finally:
            self.clients.discard(websocket)

    # ==================== Server ====================

    async def start(self):
        self.server = await websockets.serve(self.handler, self.host, self.port)
        logger.info(f"Display bridge started on ws://{self.host}:{self.port}")

    async def stop(self):
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Display bridge stopped")
