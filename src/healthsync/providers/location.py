"""Location providers.

HttpLocationProvider polls a position endpoint (a phone companion app, a
gpsd HTTP bridge, ...) that answers with::

    {"latitude": 52.52, "longitude": 13.405}

An empty object, or one without both coordinates, means "no fix".
"""

from __future__ import annotations

import logging

import httpx

from src.healthsync.base import GeoFix
from src.healthsync.errors import ProviderUnavailable
from src.healthsync.providers.base import LocationProvider

logger = logging.getLogger("healthsync.providers.location")


class HttpLocationProvider(LocationProvider):
    """Fetch a position fix from an HTTP endpoint.

    Permission is granted whenever an endpoint URL is configured.
    """

    NAME = "http"

    def __init__(self, url: str, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the provider.

        Args:
            url:         Position endpoint.
            http_client: Optional pre-configured httpx client (for testing).
        """
        self._url = url
        self._http_client = http_client

    async def request_permission(self) -> bool:
        return bool(self._url)

    async def get_current_position(
        self, timeout: float, high_accuracy: bool = True
    ) -> GeoFix | None:
        params = {"accuracy": "high" if high_accuracy else "balanced"}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self._url, params=params, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(self._url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderUnavailable(self.NAME, f"timed out after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(self.NAME, f"HTTP error: {exc}") from exc
        except ValueError as exc:
            raise ProviderUnavailable(self.NAME, f"invalid JSON: {exc}") from exc

        return self._parse_fix(data)

    def _parse_fix(self, data: object) -> GeoFix | None:
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.NAME, f"unexpected payload: {data!r}")
        lat, lon = data.get("latitude"), data.get("longitude")
        if lat is None or lon is None:
            logger.debug("Location endpoint returned no fix")
            return None
        try:
            return GeoFix(latitude=float(lat), longitude=float(lon))
        except (TypeError, ValueError) as exc:
            raise ProviderUnavailable(self.NAME, f"invalid coordinates: {exc}") from exc
