"""Geolocation: coordinate strings, providers and the latest-wins resolver."""

from .coords import format_lat_lng, is_valid, parse_lat_lng
from .providers import (
    DeviceLocationProvider,
    FixedDeviceLocation,
    GeocodeResponse,
    GeocodingClient,
    GeocodingProvider,
)
from .resolver import DEVICE_FIELD, TEXT_FIELD, GeolocationResolver

__all__ = [
    "DEVICE_FIELD",
    "DeviceLocationProvider",
    "FixedDeviceLocation",
    "GeocodeResponse",
    "GeocodingClient",
    "GeocodingProvider",
    "GeolocationResolver",
    "TEXT_FIELD",
    "format_lat_lng",
    "is_valid",
    "parse_lat_lng",
]
