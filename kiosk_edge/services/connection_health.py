"""
connection_health.py - Connection Health Monitor

Classifies the kiosk's reachability of the server as online, offline or
reconnecting, probing the health endpoint with exponential backoff while
the server is unreachable.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

import aiohttp

from ..models import ConnectionStatus

logger = logging.getLogger("ConnectionHealth")


class ConnectionMonitor:
    """
    Tracks connection status from periodic health probes.

    The first failed probe moves the kiosk offline; further failures while
    still unreachable report reconnecting. A successful probe after an
    outage fires the reconnect callbacks.
    """

    def __init__(
        self,
        health_url: str,
        poll_interval: float = 30.0,
        initial_retry_interval: float = 10.0,
        max_retry_interval: float = 60.0,
        probe_timeout: float = 5.0,
    ):
        self.health_url = health_url
        self.poll_interval = poll_interval
        self.initial_retry_interval = initial_retry_interval
        self.max_retry_interval = max_retry_interval
        self.probe_timeout = probe_timeout

        self.status: ConnectionStatus = ConnectionStatus.ONLINE
        self.last_online_at: Optional[datetime] = datetime.now()
        self.retry_interval: float = initial_retry_interval
        self._was_offline = False
        self._task: Optional[asyncio.Task] = None

        self._on_status_change_callbacks: List[Callable] = []
        self._on_reconnect_callbacks: List[Callable] = []

    # ==================== Status ====================

    def is_online(self) -> bool:
        return self.status == ConnectionStatus.ONLINE

    def is_offline(self) -> bool:
        return self.status == ConnectionStatus.OFFLINE

    def _set_status(self, new_status: ConnectionStatus, reason: str = ""):
        if new_status == self.status:
            return

        old_status = self.status
        self.status = new_status
        logger.info(f"Connection: {old_status.value} -> {new_status.value} | Reason: {reason}")

        for callback in self._on_status_change_callbacks:
            try:
                callback(old_status, new_status)
            except Exception as e:
                logger.error(f"Status change callback error: {e}")

    # ==================== Probe Results ====================

    def record_success(self):
        """Apply a successful probe. Returns the delay before the next probe."""
        was_offline = self._was_offline
        self._was_offline = False
        self.retry_interval = self.initial_retry_interval
        self.last_online_at = datetime.now()
        self._set_status(ConnectionStatus.ONLINE, "Health check succeeded")

        if was_offline:
            for callback in self._on_reconnect_callbacks:
                try:
                    callback()
                except Exception as e:
                    logger.error(f"Reconnect callback error: {e}")

        return self.poll_interval

    def record_failure(self, error: str = ""):
        """Apply a failed probe. Returns the backed-off delay before the next probe."""
        if not self._was_offline:
            self._was_offline = True
            self._set_status(ConnectionStatus.OFFLINE, error or "Health check failed")
        else:
            self._set_status(ConnectionStatus.RECONNECTING, error or "Still unreachable")

        self.retry_interval = min(self.retry_interval * 2, self.max_retry_interval)
        return self.retry_interval

    def mark_offline(self, reason: str = "Link down"):
        """External offline signal, e.g. from the OS network stack."""
        self._was_offline = True
        self._set_status(ConnectionStatus.OFFLINE, reason)

    # ==================== Probing ====================

    async def probe(self) -> bool:
        try:
            timeout = aiohttp.ClientTimeout(total=self.probe_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.health_url) as response:
                    return 200 <= response.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Health probe failed: {e}")
            return False

    async def check_now(self) -> bool:
        """
        Probe once outside the schedule. A failure marks the kiosk offline
        but leaves the retry interval alone, so a manual check never grows
        the backoff or reports reconnecting.
        """
        online = await self.probe()
        if online:
            self.record_success()
        elif not self._was_offline:
            self._was_offline = True
            self._set_status(ConnectionStatus.OFFLINE, "Health check failed")
        return online

    async def _run(self):
        delay = self.poll_interval if await self.check_now() else self.retry_interval
        while True:
            await asyncio.sleep(delay)
            if await self.probe():
                delay = self.record_success()
            else:
                delay = self.record_failure()

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info(f"Connection monitor started ({self.health_url})")

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    # ==================== Callbacks ====================

    def on_status_change(self, callback: Callable):
        """
        Register a callback for status changes.

        Callback signature: (old_status: ConnectionStatus, new_status: ConnectionStatus)
        """
        self._on_status_change_callbacks.append(callback)

    def on_reconnect(self, callback: Callable):
        """Register a callback for when the server becomes reachable again."""
        self._on_reconnect_callbacks.append(callback)

    # ==================== Status Report ====================

    def get_status(self) -> dict:
        return {
            "status": self.status.value,
            "is_online": self.is_online(),
            "last_online_at": self.last_online_at.isoformat() if self.last_online_at else None,
            "retry_interval": self.retry_interval,
        }
