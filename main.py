import sys
import asyncio
import logging

from kiosk_edge import __version__
from kiosk_edge.agent import KioskAgent
from kiosk_edge.config import ENV_PATH, KioskSettings, load_env_file


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    print(f"=== Kiosk Edge Agent v{__version__} ===")

    # 1. Load configuration
    if load_env_file(ENV_PATH):
        print(f"[*] Loaded settings from {ENV_PATH}")
    settings = KioskSettings.from_env()

    if not settings.token:
        # The display app still starts so the screen can say what is wrong.
        print("[!] No kiosk token configured (set KIOSK_TOKEN or KIOSK_URL).")

    print(f"[*] Server: {settings.server_url}")
    print(f"[*] Token: {settings.token or '-'}")
    print(f"[*] Display: {settings.display_url} (bridge {settings.bridge_url})")

    # 2. Run the agent
    once = "--once" in sys.argv
    if once:
        print("[*] --once flag detected. Bootstrapping and polling a single time.")

    agent = KioskAgent(settings)
    try:
        asyncio.run(agent.run(once=once))
    except KeyboardInterrupt:
        print("\n[!] Shutting down...")

    if agent.session is not None and agent.session.state.value != "ready":
        sys.exit(1)


if __name__ == "__main__":
    main()
