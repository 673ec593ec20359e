"""
models.py - Kiosk data model

Configuration and command types exchanged with the server, plus the
connection status enum shared by the poller and the display.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DisplayMode(Enum):
    """How much of the navigation surface a kiosk exposes."""
    FULL = "full"
    SCREENSAVER_ONLY = "screensaver-only"
    CALENDAR_ONLY = "calendar-only"
    DASHBOARD_ONLY = "dashboard-only"


class DisplayType(Enum):
    """Interaction affordances of the physical device."""
    TOUCH = "touch"
    TV = "tv"
    DISPLAY_ONLY = "display"


class ConnectionStatus(Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    RECONNECTING = "reconnecting"


class KioskCommandType(Enum):
    """Remote command types understood by the kiosk."""
    REFRESH = "refresh"
    RELOAD_PHOTOS = "reload-photos"
    NAVIGATE = "navigate"
    FULLSCREEN = "fullscreen"
    SCREENSAVER = "screensaver"
    MULTIVIEW_ADD = "multiview-add"
    MULTIVIEW_REMOVE = "multiview-remove"
    MULTIVIEW_CLEAR = "multiview-clear"
    MULTIVIEW_SET = "multiview-set"
    UNKNOWN = "unknown"


MULTIVIEW_COMMANDS = frozenset({
    KioskCommandType.MULTIVIEW_ADD,
    KioskCommandType.MULTIVIEW_REMOVE,
    KioskCommandType.MULTIVIEW_CLEAR,
    KioskCommandType.MULTIVIEW_SET,
})

# camelCase spellings accepted alongside the kebab-case wire names
_COMMAND_ALIASES = {
    "reloadPhotos": KioskCommandType.RELOAD_PHOTOS,
    "multiviewAdd": KioskCommandType.MULTIVIEW_ADD,
    "multiviewRemove": KioskCommandType.MULTIVIEW_REMOVE,
    "multiviewClear": KioskCommandType.MULTIVIEW_CLEAR,
    "multiviewSet": KioskCommandType.MULTIVIEW_SET,
}

_DISPLAY_MODE_ALIASES = {
    "screensaverOnly": DisplayMode.SCREENSAVER_ONLY,
    "calendarOnly": DisplayMode.CALENDAR_ONLY,
    "dashboardOnly": DisplayMode.DASHBOARD_ONLY,
}

_DISPLAY_TYPE_ALIASES = {
    "displayOnly": DisplayType.DISPLAY_ONLY,
}


def parse_command_type(value) -> KioskCommandType:
    if not isinstance(value, str):
        return KioskCommandType.UNKNOWN
    if value in _COMMAND_ALIASES:
        return _COMMAND_ALIASES[value]
    try:
        command_type = KioskCommandType(value)
    except ValueError:
        return KioskCommandType.UNKNOWN
    return command_type


def parse_display_mode(value) -> DisplayMode:
    if value in _DISPLAY_MODE_ALIASES:
        return _DISPLAY_MODE_ALIASES[value]
    try:
        return DisplayMode(value)
    except ValueError:
        return DisplayMode.FULL


def parse_display_type(value) -> DisplayType:
    if value in _DISPLAY_TYPE_ALIASES:
        return _DISPLAY_TYPE_ALIASES[value]
    try:
        return DisplayType(value)
    except ValueError:
        return DisplayType.TOUCH


DEFAULT_SCREENSAVER_TIMEOUT = 300  # seconds idle before the screensaver starts
DEFAULT_SCREENSAVER_INTERVAL = 15  # seconds between slides


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds (the server's timestamp unit)."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class KioskCommand:
    """A single remotely issued instruction. Read-only on the client."""
    type: KioskCommandType
    timestamp: int
    payload: Dict[str, Any] = field(default_factory=dict)
    raw_type: str = ""

    @property
    def identity(self):
        """Key used by downstream consumers to de-duplicate redeliveries."""
        return (self.raw_type or self.type.value, self.timestamp)

    @classmethod
    def from_dict(cls, data: dict) -> "KioskCommand":
        """
        Build a command from its wire representation.

        Raises:
            ValueError: if the entry is not an object or carries no integer timestamp.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Command entry is not an object: {data!r}")

        timestamp = data.get("timestamp")
        # bool is an int subclass but never a valid timestamp
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError(f"Command has no integer timestamp: {data!r}")

        payload = data.get("payload")
        if not isinstance(payload, dict):
            payload = {}

        raw_type = data.get("type")
        return cls(
            type=parse_command_type(raw_type),
            timestamp=timestamp,
            payload=payload,
            raw_type=raw_type if isinstance(raw_type, str) else "",
        )

    def to_dict(self) -> dict:
        return {
            "type": self.raw_type or self.type.value,
            "payload": dict(self.payload),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class KioskConfig:
    """Declarative description of one device's allowed surface."""
    token: str
    display_mode: DisplayMode = DisplayMode.FULL
    display_type: DisplayType = DisplayType.TOUCH
    home_page: str = "calendar"
    enabled_features: Dict[str, bool] = field(default_factory=dict)
    start_fullscreen: bool = False
    name: Optional[str] = None
    color_scheme: str = "default"
    selected_calendar_ids: Optional[List[str]] = None
    screensaver: Dict[str, Any] = field(default_factory=dict)

    def is_feature_enabled(self, key: str) -> bool:
        """Opt-out policy: a feature with no entry is enabled."""
        return self.enabled_features.get(key) is not False

    def screensaver_settings(self) -> dict:
        """Idle screensaver behaviour for the page, with server defaults filled in."""
        timeout = self.screensaver.get("screensaverTimeout")
        interval = self.screensaver.get("screensaverInterval")
        return {
            "enabled": self.screensaver.get("screensaverEnabled") is not False,
            "idleTimeout": timeout if _is_number(timeout) else DEFAULT_SCREENSAVER_TIMEOUT,
            "slideInterval": interval if _is_number(interval) else DEFAULT_SCREENSAVER_INTERVAL,
            "layout": self.screensaver.get("screensaverLayout"),
            "transition": self.screensaver.get("screensaverTransition"),
            "layoutConfig": self.screensaver.get("screensaverLayoutConfig"),
        }

    @classmethod
    def from_dict(cls, token: str, data: dict) -> "KioskConfig":
        features = data.get("enabledFeatures")
        if not isinstance(features, dict):
            features = {}

        screensaver = {
            key: data[key]
            for key in (
                "screensaverEnabled",
                "screensaverTimeout",
                "screensaverInterval",
                "screensaverLayout",
                "screensaverTransition",
                "screensaverLayoutConfig",
            )
            if key in data
        }

        return cls(
            token=token,
            display_mode=parse_display_mode(data.get("displayMode")),
            display_type=parse_display_type(data.get("displayType")),
            home_page=data.get("homePage") or "calendar",
            enabled_features={str(k): v for k, v in features.items()},
            start_fullscreen=data.get("startFullscreen") is True,
            name=data.get("name"),
            color_scheme=data.get("colorScheme") or "default",
            selected_calendar_ids=data.get("selectedCalendarIds"),
            screensaver=screensaver,
        )
