import pytest

from kiosk_edge.models import (
    DisplayMode,
    DisplayType,
    KioskCommand,
    KioskCommandType,
    KioskConfig,
)


@pytest.mark.parametrize("raw, expected", [
    ("refresh", KioskCommandType.REFRESH),
    ("reload-photos", KioskCommandType.RELOAD_PHOTOS),
    ("reloadPhotos", KioskCommandType.RELOAD_PHOTOS),
    ("multiviewSet", KioskCommandType.MULTIVIEW_SET),
    ("iptv-play", KioskCommandType.UNKNOWN),
    (None, KioskCommandType.UNKNOWN),
])
def test_command_type_parsing(raw, expected):
    assert KioskCommand.from_dict({"type": raw, "timestamp": 1}).type == expected


@pytest.mark.parametrize("entry", [
    {"type": "refresh"},
    {"type": "refresh", "timestamp": 1.5},
    {"type": "refresh", "timestamp": True},
    ["refresh", 1],
])
def test_command_requires_integer_timestamp(entry):
    with pytest.raises(ValueError):
        KioskCommand.from_dict(entry)


def test_command_keeps_wire_type_for_forwarding():
    command = KioskCommand.from_dict({"type": "multiview-add", "timestamp": 9, "payload": {"id": "cam"}})
    assert command.to_dict() == {"type": "multiview-add", "payload": {"id": "cam"}, "timestamp": 9}
    assert command.identity == ("multiview-add", 9)


def test_non_object_payload_becomes_empty():
    assert KioskCommand.from_dict({"type": "navigate", "timestamp": 1, "payload": "tasks"}).payload == {}


def test_config_defaults():
    config = KioskConfig.from_dict("tok", {})
    assert config.display_mode == DisplayMode.FULL
    assert config.display_type == DisplayType.TOUCH
    assert config.home_page == "calendar"
    assert config.enabled_features == {}
    assert config.start_fullscreen is False


def test_config_from_wire():
    config = KioskConfig.from_dict("tok", {
        "name": "Hallway",
        "displayMode": "calendarOnly",
        "displayType": "display",
        "homePage": "photos",
        "enabledFeatures": {"spotify": False},
        "startFullscreen": True,
        "colorScheme": "ocean",
        "screensaverTimeout": 300,
    })
    assert config.display_mode == DisplayMode.CALENDAR_ONLY
    assert config.display_type == DisplayType.DISPLAY_ONLY
    assert config.start_fullscreen is True
    assert config.screensaver == {"screensaverTimeout": 300}
    assert config.is_feature_enabled("spotify") is False
    assert config.is_feature_enabled("calendar") is True


def test_screensaver_settings_defaults():
    settings = KioskConfig.from_dict("tok", {}).screensaver_settings()
    assert settings["enabled"] is True
    assert settings["idleTimeout"] == 300
    assert settings["slideInterval"] == 15


def test_screensaver_settings_from_wire():
    config = KioskConfig.from_dict("tok", {
        "screensaverEnabled": False,
        "screensaverTimeout": 60,
        "screensaverInterval": "fast",
        "screensaverLayout": "grid",
    })
    settings = config.screensaver_settings()
    assert settings["enabled"] is False
    assert settings["idleTimeout"] == 60
    assert settings["slideInterval"] == 15
    assert settings["layout"] == "grid"


def test_unknown_modes_fall_back():
    config = KioskConfig.from_dict("tok", {"displayMode": "weird", "displayType": "hologram"})
    assert config.display_mode == DisplayMode.FULL
    assert config.display_type == DisplayType.TOUCH
