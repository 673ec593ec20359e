"""
router.py - Display Mode Router

Derives the navigable surface of a kiosk from its configuration: which
routes exist, where the kiosk lands, and whether navigation chrome is
shown at all.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..models import DisplayMode, DisplayType, KioskConfig

logger = logging.getLogger("DisplayRouter")

DEFAULT_HOME = "calendar"


@dataclass(frozen=True)
class Route:
    key: str
    path: str
    view: str
    nested: bool = False

    def matches(self, path: str) -> bool:
        if path == self.path:
            return True
        return self.nested and path.startswith(self.path + "/")


# Declared route order; home-page fallback walks this list, not the alphabet.
ROUTES: Tuple[Route, ...] = (
    Route("calendar", "calendar", "calendar"),
    Route("dashboard", "dashboard", "dashboard"),
    Route("tasks", "tasks", "tasks"),
    Route("photos", "photos", "photos", nested=True),
    Route("spotify", "spotify", "spotify"),
    Route("iptv", "iptv", "iptv"),
    Route("cameras", "cameras", "cameras"),
    Route("homeassistant", "homeassistant", "homeassistant", nested=True),
    Route("map", "map", "map"),
    Route("recipes", "recipes", "recipes"),
)

# Restricted modes render one fixed view: (view, screensaver dismissible)
FIXED_VIEWS = {
    DisplayMode.SCREENSAVER_ONLY: ("screensaver", False),
    DisplayMode.CALENDAR_ONLY: ("calendar", True),
    DisplayMode.DASHBOARD_ONLY: ("dashboard", True),
}


def normalize_path(path: Optional[str]) -> str:
    """Kiosk-relative form of a path: no leading/trailing slashes, no query."""
    if not path:
        return ""
    path = path.split("?", 1)[0].split("#", 1)[0]
    return path.strip().strip("/")


@dataclass(frozen=True)
class DisplayPlan:
    display_mode: DisplayMode
    routes: Tuple[Route, ...]
    home_path: str
    show_navigation: bool
    fixed_view: Optional[str] = None
    screensaver_dismissible: bool = True

    @property
    def route_keys(self):
        return [route.key for route in self.routes]

    def find_route(self, path: str) -> Optional[Route]:
        path = normalize_path(path)
        for route in self.routes:
            if route.matches(path):
                return route
        return None

    def resolve(self, path: Optional[str]) -> str:
        """
        Map a requested path onto the navigable surface. Anything outside
        the enabled route set resolves to the home path.
        """
        if self.fixed_view is not None:
            return self.home_path

        normalized = normalize_path(path)
        if self.find_route(normalized) is not None:
            return normalized
        return self.home_path


class DisplayModeRouter:
    def __init__(self, routes: Tuple[Route, ...] = ROUTES, default_home: str = DEFAULT_HOME):
        self.routes = routes
        self.default_home = default_home

    def enabled_routes(self, config: KioskConfig) -> Tuple[Route, ...]:
        if config.display_mode != DisplayMode.FULL:
            return ()
        return tuple(route for route in self.routes if config.is_feature_enabled(route.key))

    def resolve_home(self, config: KioskConfig, enabled: Tuple[Route, ...]) -> str:
        home = normalize_path(config.home_page)
        for route in enabled:
            if route.key == home:
                return route.path
        if enabled:
            logger.info(f"Home page '{home}' is disabled, falling back to '{enabled[0].path}'")
            return enabled[0].path
        return self.default_home

    def plan(self, config: KioskConfig) -> DisplayPlan:
        fixed = FIXED_VIEWS.get(config.display_mode)
        if fixed is not None:
            view, dismissible = fixed
            return DisplayPlan(
                display_mode=config.display_mode,
                routes=(),
                home_path=view,
                show_navigation=False,
                fixed_view=view,
                screensaver_dismissible=dismissible,
            )

        enabled = self.enabled_routes(config)
        return DisplayPlan(
            display_mode=config.display_mode,
            routes=enabled,
            home_path=self.resolve_home(config, enabled),
            show_navigation=config.display_type != DisplayType.DISPLAY_ONLY,
        )


class KioskNavigator:
    """Navigation primitive shared by the hosting router and the `navigate` command."""

    def __init__(self, plan: DisplayPlan, surface):
        self.plan = plan
        self.surface = surface

    def navigate(self, path: str) -> str:
        target = self.plan.resolve(path)
        if target != normalize_path(path):
            logger.info(f"Path '{path}' is not navigable, redirecting to '{target}'")
        self.surface.navigate(target)
        return target
