"""
config.py - Agent settings

Settings come from the process environment. An optional env file
(config/kiosk.env) is loaded into the environment first.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = BASE_DIR / "config"
ENV_PATH = CONFIG_DIR / "kiosk.env"
DATA_DIR = BASE_DIR / "data"

DEFAULT_SERVER_URL = "http://localhost:3001/api/v1"

_KIOSK_URL_TOKEN = re.compile(r"/kiosk/([^/?#]+)")


def load_env_file(path):
    """Simple replacement for load_dotenv to avoid external dependency."""
    if not os.path.exists(path):
        return False
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, val = line.split('=', 1)
            os.environ[key.strip()] = val.strip().strip('"').strip("'")
    return True


def token_from_url(url: Optional[str]) -> Optional[str]:
    """Extract the device token from a kiosk URL such as https://host/kiosk/<token>."""
    if not url:
        return None
    match = _KIOSK_URL_TOKEN.search(url)
    return match.group(1) if match else None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class KioskSettings:
    server_url: str = DEFAULT_SERVER_URL
    token: Optional[str] = None
    poll_interval: float = 10.0
    poll_timeout: float = 30.0
    fullscreen_delay: float = 0.5
    health_interval: float = 30.0
    health_retry_interval: float = 10.0
    health_max_retry_interval: float = 60.0
    display_host: str = "0.0.0.0"
    display_port: int = 8001
    bridge_port: int = 8002
    state_db: str = str(DATA_DIR / "kiosk_state.db")
    launch_browser: bool = True
    browser: str = "auto"

    @property
    def display_url(self) -> str:
        return f"http://localhost:{self.display_port}/kiosk"

    @property
    def bridge_url(self) -> str:
        return f"ws://localhost:{self.bridge_port}"

    @classmethod
    def from_env(cls) -> "KioskSettings":
        token = os.getenv("KIOSK_TOKEN") or token_from_url(os.getenv("KIOSK_URL"))
        return cls(
            server_url=os.getenv("KIOSK_SERVER_URL", DEFAULT_SERVER_URL).rstrip('/'),
            token=token or None,
            poll_interval=_env_float("KIOSK_POLL_INTERVAL", 10.0),
            poll_timeout=_env_float("KIOSK_POLL_TIMEOUT", 30.0),
            fullscreen_delay=_env_float("KIOSK_FULLSCREEN_DELAY", 0.5),
            health_interval=_env_float("KIOSK_HEALTH_INTERVAL", 30.0),
            health_retry_interval=_env_float("KIOSK_HEALTH_RETRY", 10.0),
            health_max_retry_interval=_env_float("KIOSK_HEALTH_MAX_RETRY", 60.0),
            display_host=os.getenv("KIOSK_DISPLAY_HOST", "0.0.0.0"),
            display_port=_env_int("KIOSK_DISPLAY_PORT", 8001),
            bridge_port=_env_int("KIOSK_BRIDGE_PORT", 8002),
            state_db=os.getenv("KIOSK_STATE_DB", str(DATA_DIR / "kiosk_state.db")),
            launch_browser=_env_bool("KIOSK_LAUNCH_BROWSER", True),
            browser=os.getenv("KIOSK_BROWSER", "auto"),
        )
