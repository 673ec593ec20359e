"""
agent.py - Kiosk Edge Agent

Owns one kiosk session at a time and the components that hang off it:
the command poller, the dispatcher, the display plan and the fullscreen
manager. A `refresh` command tears the session down and bootstraps a
fresh one.
"""

import asyncio
import logging
from typing import Optional

import uvicorn

from .config import KioskSettings
from .display.app import create_app
from .display.fullscreen import FullscreenManager
from .display.router import DisplayModeRouter, KioskNavigator
from .network.display_bridge import DisplayBridge
from .services.api_client import KioskApiClient
from .services.command_poller import CommandFetcher, CommandPoller
from .services.connection_health import ConnectionMonitor
from .services.dispatcher import CommandDispatcher
from .services.multiview_queue import MultiviewCommandQueue
from .services.session import KioskSession, SessionState
from .services.state_store import get_state_store
from .utils.browser_manager import BrowserManager

logger = logging.getLogger("KioskAgent")


class KioskAgent:
    def __init__(
        self,
        settings: KioskSettings,
        api=None,
        store=None,
        surface=None,
        monitor=None,
        fetcher=None,
        browser=None,
    ):
        self.settings = settings
        self.api = api or KioskApiClient(settings.server_url)
        self.store = store or get_state_store(settings.state_db)
        self.surface = surface or DisplayBridge(port=settings.bridge_port)
        self.monitor = monitor or ConnectionMonitor(
            f"{settings.server_url}/health",
            poll_interval=settings.health_interval,
            initial_retry_interval=settings.health_retry_interval,
            max_retry_interval=settings.health_max_retry_interval,
        )
        self.fetcher = fetcher or CommandFetcher(settings.server_url, timeout=settings.poll_timeout)
        self.browser = browser
        self.router = DisplayModeRouter()
        self.multiview_queue = MultiviewCommandQueue()
        self.multiview_queue.subscribe(lambda command: self.surface.forward_multiview(command.to_dict()))

        self.session: Optional[KioskSession] = None
        self.plan = None
        self.navigator: Optional[KioskNavigator] = None
        self.dispatcher: Optional[CommandDispatcher] = None
        self.poller: Optional[CommandPoller] = None
        self.fullscreen: Optional[FullscreenManager] = None

        self._once = False
        self._reload_requested = asyncio.Event()
        self._stop_requested = asyncio.Event()
        self._web_server: Optional[uvicorn.Server] = None
        self._web_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None

        self.monitor.on_reconnect(self._on_reconnect)
        if hasattr(self.surface, "set_status_provider"):
            self.surface.set_status_provider(self.get_status)

    # ==================== Session Lifecycle ====================

    async def start_session(self) -> SessionState:
        self.session = KioskSession(self.settings.token, self.api, self.store)
        self.session.on_ready(self._on_session_ready)
        state = await self.session.bootstrap()
        self._notify_session(state)
        return state

    def _on_session_ready(self, config):
        self.plan = self.router.plan(config)
        logger.info(
            f"Display plan: mode={self.plan.display_mode.value} home={self.plan.home_path} "
            f"routes={self.plan.route_keys}"
        )

        self.navigator = KioskNavigator(self.plan, self.surface)
        self.fullscreen = FullscreenManager(self.surface, delay=self.settings.fullscreen_delay)
        if hasattr(self.surface, "set_prompt_click_handler"):
            self.surface.set_prompt_click_handler(self.fullscreen.on_prompt_click)
        if hasattr(self.surface, "reset"):
            self.surface.reset()
        screensaver_locked = self.plan.fixed_view == "screensaver"
        if screensaver_locked:
            self.surface.set_screensaver(True)

        self.dispatcher = CommandDispatcher(
            store=self.store,
            surface=self.surface,
            navigate=self.navigator.navigate,
            fullscreen=self.fullscreen,
            multiview_queue=self.multiview_queue,
            reload=self.request_reload,
            screensaver_locked=screensaver_locked,
        )
        self.poller = CommandPoller(
            config.token,
            self.fetcher,
            self.dispatcher,
            monitor=self.monitor,
            interval=self.settings.poll_interval,
        )
        if not self._once:
            self.poller.start()
        self.fullscreen.start(config.start_fullscreen)

    def stop_session(self):
        if self.poller is not None:
            self.poller.stop()
        if self.fullscreen is not None:
            self.fullscreen.cancel()

    def _notify_session(self, state: SessionState):
        if hasattr(self.surface, "notify_session"):
            self.surface.notify_session(state.value)

    def request_reload(self):
        """Full reload of the kiosk. Repeated requests before it happens are no-ops."""
        if self._reload_requested.is_set():
            return
        self._reload_requested.set()

    async def reload(self) -> SessionState:
        self.stop_session()
        self.surface.reload()
        self._reload_requested.clear()
        return await self.start_session()

    def _on_reconnect(self):
        logger.info("Connection restored")
        if self.session is None:
            return
        if self.session.state == SessionState.READY:
            # Data shown during the outage may be stale
            self.surface.refresh_data()
        elif self.session.state == SessionState.NOT_FOUND:
            if self._reconnect_task is None or self._reconnect_task.done():
                self._reconnect_task = asyncio.ensure_future(self._refetch_session())
                self._reconnect_task.add_done_callback(self._on_refetch_done)

    def _on_refetch_done(self, task: asyncio.Future):
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Kiosk config refetch failed: {task.exception()}")

    async def _refetch_session(self):
        state = await self.session.refetch()
        self._notify_session(state)

    # ==================== Services ====================

    async def _start_web(self):
        app = create_app(self)
        config = uvicorn.Config(
            app,
            host=self.settings.display_host,
            port=self.settings.display_port,
            log_level="info",
        )
        self._web_server = uvicorn.Server(config)
        self._web_task = asyncio.create_task(self._web_server.serve())
        logger.info(f"Display app on http://{self.settings.display_host}:{self.settings.display_port}")

    async def _stop_web(self):
        if self._web_server is not None:
            self._web_server.should_exit = True
            await self._web_task
            self._web_server = None
            self._web_task = None

    async def run(self, once: bool = False):
        """
        Start every component and keep the session alive until stopped.
        With `once`, bootstrap, poll a single time and return.
        """
        self._once = once
        if hasattr(self.surface, "start"):
            await self.surface.start()
        await self._start_web()
        self.monitor.start()

        if self.settings.launch_browser and not once:
            self.browser = self.browser or BrowserManager(self.settings.browser)
            self.browser.launch_kiosk(self.settings.display_url)

        try:
            state = await self.start_session()
            if once:
                if state == SessionState.READY:
                    await self.poller.poll_once()
                return

            while not self._stop_requested.is_set():
                reload_wait = asyncio.create_task(self._reload_requested.wait())
                stop_wait = asyncio.create_task(self._stop_requested.wait())
                await asyncio.wait({reload_wait, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
                reload_wait.cancel()
                stop_wait.cancel()

                if self._reload_requested.is_set() and not self._stop_requested.is_set():
                    await self.reload()
        finally:
            await self.shutdown()

    def stop(self):
        self._stop_requested.set()

    async def shutdown(self):
        logger.info("Shutting down kiosk agent...")
        self.stop_session()
        await self.monitor.stop()
        await self._stop_web()
        if hasattr(self.surface, "stop"):
            await self.surface.stop()
        if self.browser is not None:
            self.browser.close_kiosk()
        if hasattr(self.api, "close"):
            self.api.close()

    # ==================== Status Report ====================

    def get_status(self) -> dict:
        return {
            "session": self.session.get_status() if self.session else None,
            "connection": self.monitor.get_status(),
            "display": {
                "mode": self.plan.display_mode.value,
                "home": self.plan.home_path,
                "routes": self.plan.route_keys,
                "show_navigation": self.plan.show_navigation,
            } if self.plan else None,
            "poller": self.poller.get_status() if self.poller else None,
            "fullscreen": self.fullscreen.get_status() if self.fullscreen else None,
            "multiview_pending": len(self.multiview_queue),
        }
