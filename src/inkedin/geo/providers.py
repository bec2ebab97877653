"""Coordinate providers: the HTTP geocoding service and the device position.

The geocoder answers ``GET <base>?q=<text>&apiKey=<key>`` with
``{"items": [{"position": {"lat": ..., "lng": ...}}, ...]}``; the first
item wins. Device providers stand in for the platform's position API.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, ValidationError

from inkedin.constants import DEFAULT_HTTP_TIMEOUT
from inkedin.exceptions import (
    DeviceLocationDenied,
    GeocodeNotFound,
    GeocodeServiceError,
    PositionUnavailable,
)
from inkedin.models import Coordinates

logger = logging.getLogger(__name__)


class GeocodePosition(BaseModel):
    lat: float
    lng: float


class GeocodeItem(BaseModel):
    title: str | None = None
    position: GeocodePosition


class GeocodeResponse(BaseModel):
    """Geocoding service response envelope."""

    items: list[GeocodeItem] = []


class GeocodingProvider(Protocol):
    async def geocode(self, query: str) -> Coordinates: ...


class GeocodingClient:
    """Async HTTP client for the geocoding service.

    Owns its ``httpx.AsyncClient`` unless one is injected; call ``aclose()``
    when done with an owned client.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self._api_key = api_key
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def geocode(self, query: str) -> Coordinates:
        """Resolve free text to the first matching position.

        Raises:
            GeocodeNotFound: The service answered with no items.
            GeocodeServiceError: Transport failure, timeout, non-2xx status,
                or a body that does not match the expected envelope.
        """
        params = {"q": query}
        if self._api_key:
            params["apiKey"] = self._api_key

        try:
            response = await self.http.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            raise GeocodeServiceError(f"Geocoding timed out for {query!r}") from exc
        except httpx.HTTPError as exc:
            raise GeocodeServiceError(f"Geocoding request failed: {exc}") from exc

        if response.status_code != 200:
            raise GeocodeServiceError(
                f"Geocoding failed with status {response.status_code}"
            )

        try:
            payload = GeocodeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GeocodeServiceError(f"Malformed geocoding response: {exc}") from exc

        if not payload.items:
            raise GeocodeNotFound(query)

        position = payload.items[0].position
        try:
            coords = Coordinates(position.lat, position.lng)
        except ValueError as exc:
            raise GeocodeServiceError(str(exc)) from exc
        logger.debug("Geocoded %r -> %s", query, coords)
        return coords


class DeviceLocationProvider(Protocol):
    async def current_position(self) -> Coordinates: ...


class FixedDeviceLocation:
    """Device provider backed by a known position.

    Used by the CLI and TUI, where the terminal has no position API, and
    by tests. ``coordinates=None`` behaves like a device that cannot get a
    fix; ``permitted=False`` like a viewer who refused the prompt.
    """

    def __init__(self, coordinates: Coordinates | None = None, permitted: bool = True) -> None:
        self.coordinates = coordinates
        self.permitted = permitted

    async def current_position(self) -> Coordinates:
        if not self.permitted:
            raise DeviceLocationDenied("Location permission denied")
        if self.coordinates is None:
            raise PositionUnavailable("Device position is not available")
        return self.coordinates
