"""Exception hierarchy for the discovery engine.

Nothing here is fatal to a browsing session. Validation errors are
recovered by dropping the offending field, geolocation errors leave the
last good coordinates in place, and network errors keep already loaded
pages visible. Stale responses are not errors at all: they are logged
and dropped where they are detected.
"""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for all discovery engine errors."""


class InputValidationError(DiscoveryError, ValueError):
    """A URL parameter or coordinate string could not be parsed."""


class InvalidFilterError(DiscoveryError, ValueError):
    """A filter mutation was given a value outside its allowed domain."""


class GeolocationError(DiscoveryError):
    """Base class for coordinate resolution failures."""


class GeocodeNotFound(GeolocationError):
    """The geocoder returned no match for the location text."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"No results found for this location: {query!r}")


class GeocodeServiceError(GeolocationError):
    """The geocoder could not be reached or returned an unusable response."""


class DeviceLocationError(GeolocationError):
    """Base class for device position failures."""


class DeviceLocationDenied(DeviceLocationError):
    """The viewer withheld permission to read the device position."""


class PositionUnavailable(DeviceLocationError):
    """The device position is not known."""


class NetworkError(DiscoveryError):
    """The query service failed to return a page.

    Attributes:
        status_code: HTTP status when the server answered, else None.
        timed_out: True when the request exceeded its timeout.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(message)


class TransitionNotAllowedError(DiscoveryError):
    """An event was triggered from a state that does not accept it."""
