import logging


class DisplaySurface:
    """
    Base class for whatever renders the kiosk (the local browser bridge in
    production, fakes in tests). Every operation must be safe to repeat.
    """

    def __init__(self, name="DisplaySurface"):
        self.name = name
        self.logger = logging.getLogger(name)

    def navigate(self, path: str):
        """Client-side navigation to a kiosk-relative path."""
        raise NotImplementedError

    def reload(self):
        """Force a full reload of the rendered kiosk."""
        raise NotImplementedError

    def show_reload_overlay(self):
        raise NotImplementedError

    def reload_photos(self):
        """Ask the photo data layer to refetch."""
        raise NotImplementedError

    def refresh_data(self):
        """Ask every data layer to refetch, e.g. after an outage."""
        raise NotImplementedError

    def set_screensaver(self, active: bool):
        raise NotImplementedError

    async def request_fullscreen(self) -> bool:
        """Attempt fullscreen entry. Returns False when the platform rejects it."""
        raise NotImplementedError

    def exit_fullscreen(self):
        raise NotImplementedError

    def show_fullscreen_prompt(self):
        raise NotImplementedError

    def hide_fullscreen_prompt(self):
        raise NotImplementedError

    def forward_multiview(self, command: dict):
        """Hand a multiview directive to the rendered multiview feature."""
        raise NotImplementedError
