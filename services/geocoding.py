from typing import Optional

import requests

from core.exceptions import IntegrationError
from core.logger import integration_logger


class GeocodingClient:
    """Reverse geocoding against a Nominatim-compatible endpoint."""

    def __init__(self, base_url: str, user_agent: str, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def reverse(self, latitude: float, longitude: float) -> dict:
        params = {"format": "jsonv2", "lat": latitude, "lon": longitude, "zoom": 10}
        integration_logger.log_request("geocoding", "reverse", params)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            integration_logger.log_error("geocoding", e)
            raise IntegrationError(f"Reverse geocoding failed: {e}")

        address = data.get("address") or {}
        return {
            "city": address.get("city") or address.get("town") or address.get("village"),
            "country": address.get("country"),
        }
