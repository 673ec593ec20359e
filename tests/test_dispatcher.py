from unittest.mock import MagicMock

import pytest

from kiosk_edge.display.router import DisplayModeRouter, KioskNavigator
from kiosk_edge.models import KioskCommand, KioskConfig
from kiosk_edge.services.dispatcher import APPLIED, DISCARDED, FAILED, CommandDispatcher
from kiosk_edge.services.multiview_queue import MultiviewCommandQueue
from kiosk_edge.services.state_store import REFRESHING, RELOAD_OVERLAY


class StubFullscreen:
    def __init__(self, surface):
        self.surface = surface

    def enter(self):
        self.surface.is_fullscreen = True
        self.surface.calls.append(("enter",))

    def exit(self):
        self.surface.exit_fullscreen()


@pytest.fixture
def queue():
    return MultiviewCommandQueue()


@pytest.fixture
def reload_hook():
    state = {"pending": False, "count": 0}

    def reload():
        if state["pending"]:
            return
        state["pending"] = True
        state["count"] += 1

    reload.state = state
    return reload


@pytest.fixture
def dispatcher(store, surface, queue, reload_hook):
    plan = DisplayModeRouter().plan(KioskConfig(token="t", enabled_features={"spotify": False}))
    navigator = KioskNavigator(plan, surface)
    return CommandDispatcher(
        store=store,
        surface=surface,
        navigate=navigator.navigate,
        fullscreen=StubFullscreen(surface),
        multiview_queue=queue,
        reload=reload_hook,
    )


def command(type_, timestamp=1000, **payload):
    return KioskCommand.from_dict({"type": type_, "timestamp": timestamp, "payload": payload})


def snapshot(store, surface, queue, reload_hook):
    return {
        "refreshing": store.get(REFRESHING),
        "overlay": store.get(RELOAD_OVERLAY),
        "path": surface.current_path,
        "screensaver": surface.screensaver_active,
        "fullscreen": surface.is_fullscreen,
        "reloads": reload_hook.state["count"],
        "multiview": len(queue),
    }


@pytest.mark.parametrize("cmd", [
    command("refresh"),
    command("navigate", path="tasks"),
    command("fullscreen", enabled=True),
    command("fullscreen", enabled=False),
    command("screensaver", enabled=True),
    command("screensaver", enabled=False),
    command("multiview-add", camera="front-door"),
    command("multiview-clear"),
])
def test_redelivery_is_idempotent(dispatcher, store, surface, queue, reload_hook, cmd):
    dispatcher.dispatch(cmd)
    once = snapshot(store, surface, queue, reload_hook)
    dispatcher.dispatch(cmd)
    assert snapshot(store, surface, queue, reload_hook) == once


def test_refresh_sets_flags_shows_overlay_and_reloads(dispatcher, store, surface, reload_hook):
    assert dispatcher.dispatch(command("refresh")) == APPLIED
    assert store.get(REFRESHING) is True
    assert store.get(RELOAD_OVERLAY) is True
    assert surface.overlay_visible
    assert reload_hook.state["count"] == 1


def test_reload_photos_signals_surface(dispatcher, surface):
    dispatcher.dispatch(command("reload-photos"))
    dispatcher.dispatch(command("reloadPhotos"))
    assert surface.photo_reloads == 2


def test_navigate_to_enabled_route(dispatcher, surface):
    assert dispatcher.dispatch(command("navigate", path="/photos/album-1")) == APPLIED
    assert surface.current_path == "photos/album-1"


def test_navigate_to_disabled_route_lands_on_home(dispatcher, surface):
    dispatcher.dispatch(command("navigate", path="spotify"))
    assert surface.current_path == "calendar"


@pytest.mark.parametrize("payload", [{}, {"path": ""}, {"path": "   "}, {"path": 42}])
def test_navigate_without_path_is_discarded(dispatcher, surface, payload):
    cmd = KioskCommand.from_dict({"type": "navigate", "timestamp": 1, "payload": payload})
    assert dispatcher.dispatch(cmd) == DISCARDED
    assert surface.current_path is None


def test_fullscreen_toggles(dispatcher, surface):
    dispatcher.dispatch(command("fullscreen", enabled=True))
    assert surface.is_fullscreen
    dispatcher.dispatch(command("fullscreen", enabled=False))
    assert not surface.is_fullscreen


@pytest.mark.parametrize("value", ["true", 1, None])
def test_fullscreen_ignores_non_boolean(dispatcher, surface, value):
    assert dispatcher.dispatch(command("fullscreen", enabled=value)) == DISCARDED
    assert surface.calls == []


def test_screensaver_requires_boolean(dispatcher, surface):
    assert dispatcher.dispatch(command("screensaver", enabled="yes")) == DISCARDED
    assert dispatcher.dispatch(command("screensaver", enabled=True)) == APPLIED
    assert surface.screensaver_active is True


def test_multiview_commands_forwarded_verbatim(dispatcher, queue):
    cmd = command("multiview-set", layout="2x2", cameras=["a", "b"])
    dispatcher.dispatch(cmd)
    assert queue.drain() == [cmd]


def test_unknown_type_is_logged_and_discarded(dispatcher, store, surface):
    cmd = KioskCommand.from_dict({"type": "widget-control", "timestamp": 5})
    assert dispatcher.dispatch(cmd) == DISCARDED
    assert surface.calls == []
    assert store.get_recent_logs(1)[0]["details"] == "widget-control@5: unknown type"


def test_effect_failure_is_contained(store, queue):
    surface = MagicMock()
    surface.reload_photos.side_effect = RuntimeError("photo layer down")
    dispatcher = CommandDispatcher(store, surface, MagicMock(), MagicMock(), queue)

    assert dispatcher.dispatch(command("reload-photos")) == FAILED
    assert store.get_recent_logs(1)[0]["status"] == FAILED


def test_default_reload_uses_surface(store, surface, queue):
    dispatcher = CommandDispatcher(store, surface, surface.navigate, MagicMock(), queue)
    dispatcher.dispatch(command("refresh"))
    assert surface.reloads == 1


def test_permanent_screensaver_cannot_be_dismissed(store, surface, queue):
    dispatcher = CommandDispatcher(
        store, surface, surface.navigate, StubFullscreen(surface), queue, screensaver_locked=True
    )
    assert dispatcher.dispatch(command("screensaver", timestamp=1, enabled=True)) == APPLIED
    assert dispatcher.dispatch(command("screensaver", timestamp=2, enabled=False)) == DISCARDED

    assert surface.calls == [("screensaver", True)]
    assert surface.screensaver_active is True
    assert store.get_recent_logs(1)[0]["details"] == "screensaver@2: screensaver is permanent in this display mode"
