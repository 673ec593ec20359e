"""
fullscreen.py - Fullscreen Lifecycle Manager

Browsers often reject fullscreen requests made outside a user gesture.
On startup the manager tries once, after a short settle delay, and falls
back to a click-to-enter prompt instead of retrying.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Set

logger = logging.getLogger("Fullscreen")


class FullscreenState(Enum):
    NOT_ATTEMPTED = "not_attempted"
    ATTEMPTING = "attempting"
    ENTERED = "entered"
    PROMPT_SHOWN = "prompt_shown"
    PROMPT_DISMISSED = "prompt_dismissed"


class FullscreenManager:
    def __init__(self, surface, delay: float = 0.5):
        self.surface = surface
        self.delay = delay
        self.state = FullscreenState.NOT_ATTEMPTED
        self.has_attempted = False
        self._auto_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # ==================== Auto Entry ====================

    def start(self, start_fullscreen: bool):
        """Schedule the one-time auto-entry attempt on session readiness."""
        if not start_fullscreen or self.has_attempted:
            return
        self.has_attempted = True
        self._auto_task = asyncio.create_task(self._auto_enter())
        self._auto_task.add_done_callback(self._on_task_done)

    async def _auto_enter(self):
        await asyncio.sleep(self.delay)
        self.state = FullscreenState.ATTEMPTING
        logger.info("Attempting automatic fullscreen entry")

        try:
            entered = await self.surface.request_fullscreen()
        except Exception as e:
            logger.warning(f"Fullscreen request error: {e}")
            entered = False

        if entered:
            self.state = FullscreenState.ENTERED
            logger.info("Entered fullscreen")
        else:
            self.state = FullscreenState.PROMPT_SHOWN
            logger.info("Fullscreen rejected, showing click-to-enter prompt")
            self.surface.show_fullscreen_prompt()

    # ==================== Manual Entry ====================

    async def on_prompt_click(self, accepted: Optional[bool] = None) -> bool:
        """
        Handle a click on the prompt (a real user gesture). Pages attempt
        entry inside their click handler and report `accepted`; without a
        report the surface is asked directly. The prompt is dismissed
        whether or not entry succeeds.
        """
        if self.state != FullscreenState.PROMPT_SHOWN:
            return False

        if accepted is not None:
            entered = accepted
        else:
            try:
                entered = await self.surface.request_fullscreen()
            except Exception as e:
                logger.warning(f"Fullscreen request error: {e}")
                entered = False

        self.surface.hide_fullscreen_prompt()
        if entered:
            self.state = FullscreenState.ENTERED
        else:
            self.state = FullscreenState.PROMPT_DISMISSED
            logger.info("Manual fullscreen entry failed, prompt dismissed")
        return entered

    # ==================== Command Driven ====================

    def enter(self):
        """Fire-and-forget fullscreen entry, independent of the auto-entry state."""
        task = asyncio.create_task(self.surface.request_fullscreen())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Fullscreen request error: {task.exception()}")

    def exit(self):
        self.surface.exit_fullscreen()

    def cancel(self):
        if self._auto_task is not None and not self._auto_task.done():
            self._auto_task.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def get_status(self) -> dict:
        return {
            "state": self.state.value,
            "has_attempted": self.has_attempted,
        }
