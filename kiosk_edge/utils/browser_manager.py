import os
import shutil
import signal
import subprocess
import logging

logger = logging.getLogger("BrowserManager")

BROWSER_CANDIDATES = ("chromium-browser", "chromium", "google-chrome", "firefox")


class BrowserManager:
    """Manages the lifecycle of the kiosk browser."""

    def __init__(self, browser_pref="auto"):
        self.browser_pref = browser_pref
        self.process = None

    def find_browser(self):
        if self.browser_pref and self.browser_pref != "auto":
            return shutil.which(self.browser_pref)
        for candidate in BROWSER_CANDIDATES:
            path = shutil.which(candidate)
            if path:
                return path
        return None

    def build_command(self, browser, url):
        if "firefox" in os.path.basename(browser):
            return [browser, "--kiosk", url]
        return [
            browser,
            "--kiosk",
            "--noerrdialogs",
            "--disable-infobars",
            "--check-for-update-interval=31536000",
            url,
        ]

    def launch_kiosk(self, url):
        """Executes the kiosk browser in the background."""
        browser = self.find_browser()
        if not browser:
            logger.error(f"No kiosk browser found (preference: {self.browser_pref})")
            return False

        cmd = self.build_command(browser, url)
        try:
            logger.info(f"Launching Kiosk Browser at: {url}")
            # Own session so the browser survives an agent restart
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True
            )
            return True
        except OSError as e:
            logger.error(f"Failed to launch browser: {e}")
            return False

    def close_kiosk(self):
        """Force close the browser process if needed."""
        if self.process:
            try:
                os.killpg(os.getpgid(self.process.pid), signal.SIGTERM)
                self.process = None
                return True
            except OSError as e:
                logger.error(f"Failed to stop browser: {e}")
        return False
