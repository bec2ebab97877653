"""Latest-wins coordinate resolution for location inputs.

Every resolution is tagged with a per-field, monotonically increasing
request id. When a reply arrives, it is only handed back if its id is
still the newest one issued for that field; anything older is logged and
dropped, whether it succeeded or failed. Nothing is cancelled in flight.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from inkedin.exceptions import GeolocationError
from inkedin.geo.providers import DeviceLocationProvider, GeocodingProvider
from inkedin.models import Coordinates, GeocodeRequest
from inkedin.telemetry import Telemetry, get_telemetry

logger = logging.getLogger(__name__)

TEXT_FIELD = "location"
DEVICE_FIELD = "device"


class GeolocationResolver:
    """Resolve location text or the device position to Coordinates."""

    def __init__(
        self,
        geocoder: GeocodingProvider,
        device: DeviceLocationProvider,
        clock: Callable[[], float] = time.monotonic,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._geocoder = geocoder
        self._device = device
        self._clock = clock
        self._telemetry = telemetry
        self._next_id = 0
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, GeocodeRequest] = {}

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry if self._telemetry is not None else get_telemetry()

    def _issue(self, field: str, query_text: str) -> GeocodeRequest:
        self._next_id += 1
        request = GeocodeRequest(
            query_text=query_text,
            request_id=self._next_id,
            issued_at=self._clock(),
            field=field,
        )
        self._latest[field] = request.request_id
        return request

    def is_latest(self, request: GeocodeRequest) -> bool:
        return self._latest.get(request.field) == request.request_id

    def invalidate(self, field: str = TEXT_FIELD) -> None:
        """Make every outstanding request for *field* stale."""
        self._next_id += 1
        self._latest[field] = self._next_id
        self._in_flight.pop(field, None)

    async def resolve_text(self, query: str, field: str = TEXT_FIELD) -> Coordinates | None:
        """Geocode *query* for *field*.

        Returns:
            Coordinates when this request is still the latest on completion.
            None when it was superseded, or when an identical query for the
            same field is already in flight (that request will deliver).

        Raises:
            GeocodeNotFound, GeocodeServiceError: Only for the latest request.
        """
        pending = self._in_flight.get(field)
        if pending is not None and pending.query_text == query and self.is_latest(pending):
            logger.debug("Geocode for %r already in flight (id=%d)", query, pending.request_id)
            return None

        request = self._issue(field, query)
        self._in_flight[field] = request
        attributes = {
            "geo.field": field,
            "geo.request_id": request.request_id,
            "geo.issued_at": request.issued_at,
        }
        with self.telemetry.span("geo.resolve_text", attributes) as span:
            try:
                coords = await self._geocoder.geocode(query)
            except GeolocationError as exc:
                if not self.is_latest(request):
                    span.set_attribute("geo.stale", True)
                    logger.debug(
                        "Dropping stale geocode failure id=%d query=%r: %s",
                        request.request_id, query, exc,
                    )
                    return None
                span.record_exception(exc)
                self.telemetry.log.warning(f"geocode failed query={query!r} error={exc}")
                raise
            finally:
                if self._in_flight.get(field) is request:
                    del self._in_flight[field]

            if not self.is_latest(request):
                span.set_attribute("geo.stale", True)
                logger.debug(
                    "Dropping stale geocode id=%d query=%r (latest=%d)",
                    request.request_id, query, self._latest.get(field, 0),
                )
                return None
            span.set_attribute("geo.stale", False)
            return coords

    async def resolve_device_location(self) -> Coordinates | None:
        """Read the device position.

        Returns None when a newer device read (or an invalidation) has
        superseded this one.

        Raises:
            DeviceLocationDenied, PositionUnavailable: Only for the latest read.
        """
        request = self._issue(DEVICE_FIELD, "")
        with self.telemetry.span("geo.resolve_device", {"geo.request_id": request.request_id}) as span:
            try:
                coords = await self._device.current_position()
            except GeolocationError as exc:
                if not self.is_latest(request):
                    logger.debug("Dropping stale device failure id=%d: %s", request.request_id, exc)
                    return None
                span.record_exception(exc)
                self.telemetry.log.warning(f"device location failed error={exc}")
                raise
            if not self.is_latest(request):
                logger.debug("Dropping stale device position id=%d", request.request_id)
                return None
            return coords
