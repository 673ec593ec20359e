"""
command_poller.py - Remote Command Poller

Periodically asks the server for commands newer than a cursor and hands
every returned command to the dispatcher. Delivery is at-least-once: the
cursor only moves after a successful poll, so nothing issued while the
kiosk is offline or a request fails is lost.
"""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from ..models import ConnectionStatus, KioskCommand, now_ms

logger = logging.getLogger("CommandPoller")


class CommandFetcher:
    """HTTP side of the poll: GET /kiosks/public/{token}/commands?since=cursor."""

    def __init__(self, server_url: str, timeout: float = 30.0):
        self.server_url = server_url.rstrip('/')
        self.timeout = timeout

    def endpoint(self, token: str) -> str:
        return f"{self.server_url}/kiosks/public/{token}/commands"

    async def fetch(self, token: str, since: int) -> List[dict]:
        """
        Returns the raw command entries newer than `since`.

        Raises:
            aiohttp.ClientError: on network failure or a non-2xx status
            asyncio.TimeoutError: when the request exceeds the timeout
            ValueError: when the body has no command list
        """
        async with aiohttp.ClientSession() as session:
            async with session.get(
                self.endpoint(token),
                params={"since": str(since)},
                headers={"Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                response.raise_for_status()
                body = await response.json()

        return parse_commands_body(body)


def parse_commands_body(body) -> List[dict]:
    """Accept both the enveloped ({data: {commands}}) and bare ({commands}) shapes."""
    if not isinstance(body, dict):
        raise ValueError("Command poll response is not an object")

    data = body.get("data") if isinstance(body.get("data"), dict) else body
    commands = data.get("commands")
    if commands is None:
        raise ValueError("Command poll response has no 'commands' field")
    if not isinstance(commands, list):
        raise ValueError("'commands' is not a list")
    return commands


class CommandPoller:
    def __init__(self, token, fetcher, dispatcher, monitor=None, interval: float = 10.0, cursor: Optional[int] = None):
        self.token = token
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.monitor = monitor
        self.interval = interval
        self.cursor: int = now_ms() if cursor is None else cursor
        self.is_stopped = False
        self._task: Optional[asyncio.Task] = None

    def _is_offline(self) -> bool:
        return self.monitor is not None and self.monitor.status == ConnectionStatus.OFFLINE

    async def poll_once(self) -> int:
        """
        Run a single poll cycle. Returns the number of commands dispatched.
        """
        if self.is_stopped or not self.token:
            return 0

        if self._is_offline():
            logger.debug("Offline - skipping command poll")
            return 0

        try:
            entries = await self.fetcher.fetch(self.token, self.cursor)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Failed to poll kiosk commands: {e}")
            return 0

        # Torn down while the request was in flight.
        if self.is_stopped:
            return 0

        dispatched = 0
        for entry in entries:
            try:
                command = KioskCommand.from_dict(entry)
            except ValueError as e:
                logger.warning(f"Discarding malformed command: {e}")
                continue

            if command.timestamp > self.cursor:
                self.cursor = command.timestamp

            # Dispatch even when an earlier entry in this batch already moved
            # the cursor past this one.
            self.dispatcher.dispatch(command)
            dispatched += 1

            if self.is_stopped:
                break

        if dispatched:
            logger.info(f"Processed {dispatched} command(s), cursor={self.cursor}")
        return dispatched

    async def _run(self):
        while not self.is_stopped:
            await asyncio.sleep(self.interval)
            await self.poll_once()

    def start(self):
        if not self.token:
            logger.warning("No kiosk token - command polling disabled")
            return
        if self._task is None or self._task.done():
            self.is_stopped = False
            self._task = asyncio.create_task(self._run())
            logger.info(f"Command polling started (every {self.interval}s, since={self.cursor})")

    def stop(self):
        """Tear down the loop. No command is dispatched after this returns."""
        self.is_stopped = True
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Command polling stopped")

    def get_status(self) -> dict:
        return {
            "running": self._task is not None and not self.is_stopped,
            "cursor": self.cursor,
            "interval": self.interval,
        }
