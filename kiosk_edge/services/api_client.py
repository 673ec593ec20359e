import logging
import platform

import requests

from .. import __version__
from ..models import KioskConfig

logger = logging.getLogger("KioskApiClient")


class KioskApiClient:
    def __init__(self, base_url, name=None, ssl_verify=True):
        self.base_url = base_url.rstrip('/')
        self.name = name or platform.node()
        self.session = requests.Session()
        self.session.verify = ssl_verify
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': f'kiosk-edge/{__version__} ({self.name})'
        })

    def config_endpoint(self, token):
        return f"{self.base_url}/kiosks/public/{token}"

    def get_kiosk_config(self, token):
        """
        Resolves a device token into its kiosk configuration.

        Returns:
            (success, config, error_msg). A 404 or 403 means the kiosk is
            unknown or disabled; both are reported the same way.
        """
        if not token:
            return False, None, "No token provided"

        endpoint = self.config_endpoint(token)
        try:
            logger.info(f"Fetching kiosk config from {endpoint}")
            response = self.session.get(endpoint, timeout=15)

            if response.status_code in (403, 404):
                logger.warning(f"Kiosk not found or disabled (HTTP {response.status_code})")
                return False, None, "Kiosk not found or disabled"

            response.raise_for_status()
            body = response.json()

        except requests.exceptions.RequestException as e:
            logger.error(f"Network error fetching kiosk config: {e}")
            return False, None, str(e)
        except ValueError as e:
            logger.error(f"Invalid kiosk config response: {e}")
            return False, None, "Invalid response from server"

        data = body.get('data') if isinstance(body, dict) else None
        if not data or not isinstance(data, dict):
            logger.warning("Kiosk config response was empty")
            return False, None, "Kiosk not found or disabled"

        config = KioskConfig.from_dict(token, data)
        logger.info(
            f"Kiosk config loaded: {config.name or token} "
            f"(mode={config.display_mode.value}, home={config.home_page})"
        )
        return True, config, None

    def close(self):
        self.session.close()
