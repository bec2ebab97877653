"""Parsing and formatting of ``"lat,lng"`` coordinate strings."""

from __future__ import annotations

import math

from inkedin.constants import LATITUDE_RANGE, LONGITUDE_RANGE
from inkedin.exceptions import InputValidationError
from inkedin.models import Coordinates


def is_valid(lat: float, lng: float) -> bool:
    """True when both values are finite and inside WGS84 bounds."""
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return (
        LATITUDE_RANGE[0] <= lat <= LATITUDE_RANGE[1]
        and LONGITUDE_RANGE[0] <= lng <= LONGITUDE_RANGE[1]
    )


def parse_lat_lng(raw: str) -> Coordinates:
    """Parse ``"lat,lng"`` into Coordinates.

    Raises:
        InputValidationError: If the string does not hold exactly two
            finite numbers within range.
    """
    parts = raw.split(",")
    if len(parts) != 2:
        raise InputValidationError(f"Expected 'lat,lng', got {raw!r}")
    try:
        lat, lng = float(parts[0].strip()), float(parts[1].strip())
    except ValueError as exc:
        raise InputValidationError(f"Non-numeric coordinates {raw!r}") from exc
    if not is_valid(lat, lng):
        raise InputValidationError(f"Coordinates out of range {raw!r}")
    return Coordinates(lat, lng)


def format_lat_lng(coords: Coordinates) -> str:
    return f"{coords.lat},{coords.lng}"
