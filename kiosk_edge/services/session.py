"""
session.py - Kiosk Session Bootstrap

Gates the rest of the kiosk on a device token and a loaded configuration.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from ..models import KioskConfig
from .state_store import REFRESHING, RELOAD_OVERLAY

logger = logging.getLogger("KioskSession")

LOADING_MESSAGE = "Loading kiosk..."
REFRESHING_MESSAGE = "Refreshing kiosk..."
INVALID_MESSAGE = "No token provided"
NOT_FOUND_MESSAGE = "This kiosk URL is invalid or has been disabled."


class SessionState(Enum):
    INVALID = "invalid"        # no token; terminal
    LOADING = "loading"
    NOT_FOUND = "not_found"    # config fetch failed or was empty
    READY = "ready"


class KioskSession:
    def __init__(self, token: Optional[str], api, store):
        self.token = token or None
        self.api = api
        self.store = store
        self.config: Optional[KioskConfig] = None
        self.error: Optional[str] = None
        self.state = SessionState.INVALID if not self.token else SessionState.LOADING
        self._on_ready_callbacks: List[Callable] = []
        self._ready_once = False

    @property
    def is_ready(self) -> bool:
        return self.state == SessionState.READY

    @property
    def loading_message(self) -> str:
        if self.store.get(REFRESHING):
            return REFRESHING_MESSAGE
        return LOADING_MESSAGE

    def on_ready(self, callback: Callable):
        """Callback signature: (config: KioskConfig)"""
        self._on_ready_callbacks.append(callback)

    async def bootstrap(self) -> SessionState:
        if self.state == SessionState.INVALID:
            logger.error("Invalid kiosk URL: no token provided")
            return self.state
        if self.state == SessionState.READY:
            return self.state

        self.state = SessionState.LOADING
        logger.info(self.loading_message)

        # The config client is blocking (requests); keep the event loop free.
        success, config, error_msg = await asyncio.to_thread(self.api.get_kiosk_config, self.token)

        if not success or config is None:
            self.state = SessionState.NOT_FOUND
            self.error = error_msg or "Kiosk not found or disabled"
            logger.error(f"Kiosk bootstrap failed: {self.error}")
            return self.state

        self.config = config
        self.error = None
        self.state = SessionState.READY
        self._complete_refresh()

        for callback in self._on_ready_callbacks:
            try:
                callback(config)
            except Exception as e:
                logger.error(f"Session ready callback error: {e}")

        return self.state

    async def refetch(self) -> SessionState:
        """Retry a failed bootstrap, e.g. after the connection comes back."""
        if self.state == SessionState.NOT_FOUND:
            logger.info("Retrying kiosk config fetch")
            return await self.bootstrap()
        return self.state

    def _complete_refresh(self):
        """Clear whatever a previous `refresh` command left behind."""
        if self._ready_once:
            return
        self._ready_once = True
        if self.store.is_set(REFRESHING) or self.store.is_set(RELOAD_OVERLAY):
            logger.info("Refresh complete, clearing reload state")
        self.store.clear(REFRESHING)
        self.store.clear(RELOAD_OVERLAY)

    def get_status(self) -> dict:
        return {
            "state": self.state.value,
            "token_present": self.token is not None,
            "kiosk_name": self.config.name if self.config else None,
            "error": self.error,
        }
