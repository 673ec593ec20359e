"""
Kiosk Display App - Local Frontend for the Kiosk Browser

This FastAPI application is what the kiosk browser loads. It renders the
session's status pages (invalid URL, loading, not found) and, once the
session is ready, the views allowed by the display plan:
- Redirects any path outside the enabled route set to the home path
- Renders a single fixed view in restricted display modes
- Connects the page to the local display bridge for remote directives

Serve on port 8001 (bridge on 8002)
"""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from ..services.session import INVALID_MESSAGE, NOT_FOUND_MESSAGE, SessionState
from ..services.state_store import RELOAD_OVERLAY

logger = logging.getLogger("DisplayApp")

BASE_DIR = Path(__file__).parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_app(agent) -> FastAPI:
    """
    Build the display app around a running agent. The agent supplies the
    current session, display plan, connection monitor and state store.
    """
    app = FastAPI(title="Kiosk Display")
    app.state.agent = agent

    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    def render_status(request: Request, title: str, message: str, status_code: int = 200):
        session = agent.session
        return templates.TemplateResponse(request, "status.html", {
            "title": title,
            "message": message,
            "session_state": session.state.value if session else SessionState.INVALID.value,
            "connection": agent.monitor.get_status(),
            "bridge_url": agent.settings.bridge_url,
        }, status_code=status_code)

    @app.get("/")
    async def index():
        return RedirectResponse(url="/kiosk")

    @app.get("/kiosk", response_class=HTMLResponse)
    @app.get("/kiosk/{path:path}", response_class=HTMLResponse)
    async def kiosk_page(request: Request, path: str = ""):
        session = agent.session

        if session is None or session.state == SessionState.INVALID:
            return render_status(request, "Invalid Kiosk URL", INVALID_MESSAGE, status_code=400)

        if session.state == SessionState.LOADING:
            return render_status(request, "", session.loading_message)

        if session.state == SessionState.NOT_FOUND:
            return render_status(
                request, "Kiosk Not Found", session.error or NOT_FOUND_MESSAGE, status_code=404
            )

        plan = agent.plan
        if plan.fixed_view is not None:
            view = plan.fixed_view
        else:
            target = plan.resolve(path)
            if target != path.strip("/"):
                return RedirectResponse(url=f"/kiosk/{target}", status_code=307)
            route = plan.find_route(target)
            view = route.view if route else target

        config = session.config
        return templates.TemplateResponse(request, "kiosk.html", {
            "kiosk_name": config.name or "Kiosk",
            "color_scheme": config.color_scheme,
            "display_type": config.display_type.value,
            "view": view,
            "current_path": path.strip("/") or view,
            "routes": plan.routes,
            "show_navigation": plan.show_navigation,
            "fixed_view": plan.fixed_view,
            "screensaver_dismissible": plan.screensaver_dismissible,
            "screensaver_active": agent.surface.screensaver_active or view == "screensaver",
            "fullscreen_prompt": getattr(agent.surface, "prompt_visible", False),
            "reload_overlay": agent.store.get(RELOAD_OVERLAY),
            "page_config": {
                "screensaver": config.screensaver_settings(),
                "selectedCalendarIds": config.selected_calendar_ids,
            },
            "connection": agent.monitor.get_status(),
            "bridge_url": agent.settings.bridge_url,
        })

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        session = agent.session
        return {"status": "ok", "session": session.state.value if session else "invalid"}

    @app.get("/api/status")
    async def get_status():
        return agent.get_status()

    @app.get("/api/activity")
    async def get_activity(limit: int = 50):
        return {"logs": agent.store.get_recent_logs(min(max(limit, 1), 500))}

    return app
