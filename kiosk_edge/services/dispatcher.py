"""
dispatcher.py - Command Dispatcher

Maps each remote command to exactly one idempotent effect. This is the
only component that mutates remote-driven state (navigation, fullscreen,
screensaver, refresh flags).
"""

import logging
from typing import Callable, Optional

from ..models import KioskCommand, KioskCommandType, MULTIVIEW_COMMANDS
from .state_store import REFRESHING, RELOAD_OVERLAY

logger = logging.getLogger("CommandDispatcher")

APPLIED = "applied"
DISCARDED = "discarded"
FAILED = "failed"


class CommandDispatcher:
    def __init__(
        self,
        store,
        surface,
        navigate: Callable[[str], None],
        fullscreen,
        multiview_queue,
        reload: Optional[Callable[[], None]] = None,
        screensaver_locked: bool = False,
    ):
        self.store = store
        self.surface = surface
        self.navigate = navigate
        self.fullscreen = fullscreen
        self.multiview_queue = multiview_queue
        self.reload = reload or surface.reload
        # Screensaver-only kiosks show a permanent screensaver
        self.screensaver_locked = screensaver_locked

        self._handlers = {
            KioskCommandType.REFRESH: self._refresh,
            KioskCommandType.RELOAD_PHOTOS: self._reload_photos,
            KioskCommandType.NAVIGATE: self._navigate,
            KioskCommandType.FULLSCREEN: self._fullscreen,
            KioskCommandType.SCREENSAVER: self._screensaver,
        }
        for command_type in MULTIVIEW_COMMANDS:
            self._handlers[command_type] = self._forward_multiview

    def dispatch(self, command: KioskCommand) -> str:
        """
        Apply a single command. Never raises: payload problems and effect
        failures are logged and reported through the returned status.
        """
        handler = self._handlers.get(command.type)
        if handler is None:
            logger.warning(f"Unknown command type discarded: {command.raw_type or command.type.value!r}")
            return self._record(command, DISCARDED, "unknown type")

        try:
            applied = handler(command)
        except Exception as e:
            logger.error(f"Command {command.type.value}@{command.timestamp} failed: {e}")
            return self._record(command, FAILED, str(e))

        if applied is False:
            logger.warning(f"Malformed {command.type.value} payload discarded: {command.payload!r}")
            return self._record(command, DISCARDED, "malformed payload")
        if isinstance(applied, str):
            logger.info(f"{command.type.value} command ignored: {applied}")
            return self._record(command, DISCARDED, applied)

        logger.info(f"Applied {command.type.value} command ({command.timestamp})")
        return self._record(command, APPLIED)

    def _record(self, command: KioskCommand, status: str, details: str = None) -> str:
        label = command.raw_type or command.type.value
        text = f"{label}@{command.timestamp}"
        if details:
            text = f"{text}: {details}"
        try:
            self.store.log_activity('command', status, text)
        except Exception as e:
            logger.error(f"Failed to record command activity: {e}")
        return status

    # ==================== Effects ====================

    def _refresh(self, command):
        self.store.set(REFRESHING, True)
        self.store.set(RELOAD_OVERLAY, True)
        self.surface.show_reload_overlay()
        logger.info("Kiosk refresh command received, reloading...")
        self.reload()

    def _reload_photos(self, command):
        self.surface.reload_photos()

    def _navigate(self, command):
        path = command.payload.get("path")
        if not isinstance(path, str) or not path.strip():
            return False
        self.navigate(path.strip())

    def _fullscreen(self, command):
        enabled = command.payload.get("enabled")
        if enabled is True:
            self.fullscreen.enter()
        elif enabled is False:
            self.fullscreen.exit()
        else:
            return False

    def _screensaver(self, command):
        enabled = command.payload.get("enabled")
        if not isinstance(enabled, bool):
            return False
        if not enabled and self.screensaver_locked:
            return "screensaver is permanent in this display mode"
        self.surface.set_screensaver(enabled)

    def _forward_multiview(self, command):
        self.multiview_queue.push(command)
