import json

import pytest

from kiosk_edge.display.surface import DisplaySurface
from kiosk_edge.models import KioskConfig
from kiosk_edge.services.state_store import KioskStateStore


class FakeSurface(DisplaySurface):
    """Records effects and keeps the same idempotent state the bridge keeps."""

    def __init__(self, accept_fullscreen=True):
        super().__init__("FakeSurface")
        self.accept_fullscreen = accept_fullscreen
        self.calls = []
        self.current_path = None
        self.screensaver_active = False
        self.is_fullscreen = False
        self.overlay_visible = False
        self.reloads = 0
        self.photo_reloads = 0
        self.data_refreshes = 0
        self.prompt_visible = False
        self.fullscreen_requests = 0
        self.multiview = []

    def navigate(self, path):
        self.calls.append(("navigate", path))
        self.current_path = path

    def reload(self):
        self.calls.append(("reload",))
        self.reloads += 1

    def show_reload_overlay(self):
        self.calls.append(("overlay",))
        self.overlay_visible = True

    def reload_photos(self):
        self.calls.append(("reload_photos",))
        self.photo_reloads += 1

    def refresh_data(self):
        self.calls.append(("refresh_data",))
        self.data_refreshes += 1

    def set_screensaver(self, active):
        self.calls.append(("screensaver", active))
        self.screensaver_active = active

    async def request_fullscreen(self):
        self.calls.append(("request_fullscreen",))
        self.fullscreen_requests += 1
        if self.accept_fullscreen:
            self.is_fullscreen = True
        return self.accept_fullscreen

    def exit_fullscreen(self):
        self.calls.append(("exit_fullscreen",))
        self.is_fullscreen = False

    def show_fullscreen_prompt(self):
        self.calls.append(("show_prompt",))
        self.prompt_visible = True

    def hide_fullscreen_prompt(self):
        self.calls.append(("hide_prompt",))
        self.prompt_visible = False

    def forward_multiview(self, command):
        self.multiview.append(command)


class FakeSocket:
    """A connected kiosk page; records the decoded messages sent to it."""

    def __init__(self):
        self.sent = []

    async def send(self, payload):
        self.sent.append(json.loads(payload))


class FakeApi:
    def __init__(self, config=None, error="Kiosk not found or disabled"):
        self.config = config
        self.error = error
        self.calls = 0

    def get_kiosk_config(self, token):
        self.calls += 1
        if self.config is None:
            return False, None, self.error
        return True, self.config, None


class FakeFetcher:
    """Serves queued poll responses; an Exception instance is raised instead."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    async def fetch(self, token, since):
        self.requests.append((token, since))
        if not self.responses:
            return []
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingDispatcher:
    def __init__(self):
        self.dispatched = []

    def dispatch(self, command):
        self.dispatched.append(command)
        return "applied"


@pytest.fixture
def store(tmp_path):
    return KioskStateStore(tmp_path / "state.db")


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def kiosk_config():
    return KioskConfig(token="tok-123", name="Kitchen")
