"""Data models and enums for the discovery engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from inkedin.constants import DEFAULT_DISTANCE, LATITUDE_RANGE, LONGITUDE_RANGE
from inkedin.exceptions import InputValidationError


class LocationMode(str, Enum):
    """Where results are anchored geographically. Exactly one is active."""

    MY = "my"
    CUSTOM = "custom"
    ANY = "any"


class DistanceUnit(str, Enum):
    """Unit for the search radius."""

    MILES = "mi"
    KILOMETERS = "km"


class ResultKind(str, Enum):
    """Kind of card in the result stream."""

    TATTOO = "tattoo"
    UNCLAIMED_STUDIO = "unclaimed_studio"


class BadgeKind(str, Enum):
    """Filter dimension an active-filter badge represents."""

    SEARCH = "search"
    STYLE = "style"
    TAG = "tag"
    LOCATION = "location"
    DISTANCE = "distance"
    BOOKS_OPEN = "booksOpen"
    STUDIO = "studio"


class EmptyState(str, Enum):
    """Message shown when the first page comes back empty."""

    FOUNDING_ARTIST = "founding_artist"
    NO_RESULTS = "no_results"


class FallbackPolicy(str, Enum):
    """When an empty location-scoped first page is retried as 'anywhere'."""

    ANY_LOCATION = "any"
    NEW_VIEWER = "new_viewer"
    OFF = "off"


@dataclass(frozen=True, slots=True)
class Coordinates:
    """A WGS84 position. Construction rejects out-of-range values."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        lat_min, lat_max = LATITUDE_RANGE
        lng_min, lng_max = LONGITUDE_RANGE
        if not (lat_min <= self.lat <= lat_max) or not (lng_min <= self.lng <= lng_max):
            raise InputValidationError(
                f"Coordinates out of range: lat={self.lat!r} lng={self.lng!r}"
            )

    def __str__(self) -> str:
        return f"{self.lat},{self.lng}"


@dataclass(frozen=True, slots=True)
class FilterState:
    """Canonical filter criteria for a discovery session.

    Immutable: every change produces a new instance through the
    mutation functions in ``inkedin.filters.mutations``, which keep the
    location invariants intact (no coordinates or text under ``any``,
    no text under ``my``).
    """

    search_string: str = ""
    style_ids: frozenset[int] = frozenset()
    tag_ids: frozenset[int] = frozenset()
    distance: int = DEFAULT_DISTANCE
    distance_unit: DistanceUnit = DistanceUnit.MILES
    location_mode: LocationMode = LocationMode.ANY
    location_text: str = ""
    coordinates: Coordinates | None = None
    apply_saved_styles: bool = False
    dismissed_style_ids: frozenset[int] = frozenset()
    studio_id: int | None = None
    books_open: bool = False


@dataclass(frozen=True, slots=True)
class LocationDefaults:
    """Location mode and radius a fresh or cleared session starts from."""

    location_mode: LocationMode = LocationMode.ANY
    distance: int = DEFAULT_DISTANCE


@dataclass(frozen=True)
class ViewerProfile:
    """What the engine knows about the signed-in viewer."""

    has_home_location: bool = False
    saved_style_ids: frozenset[int] = frozenset()
    studio_id: int | None = None
    studio_name: str | None = None
    is_new: bool = False


@dataclass(frozen=True, slots=True)
class GeocodeRequest:
    """One geocoding attempt. Only the latest request_id per field counts."""

    query_text: str
    request_id: int
    issued_at: float
    field: str = "location"


@dataclass(frozen=True)
class ResultItem:
    """A card in the result stream.

    ``data`` is the backend record, passed through untouched. Only ``id``
    is interpreted, for deduplication and keying.
    """

    kind: ResultKind
    id: Any
    data: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> tuple[str, Any]:
        return (self.kind.value, self.id)


@dataclass
class ResultPage:
    """One page as returned by the query service, already wrapped.

    ``items`` holds the page's tattoos followed by its promos, in backend
    order; interleaving happens later, across pages.
    """

    items: list[ResultItem]
    page: int
    has_more: bool
    total: int | None = None

    def of_kind(self, kind: ResultKind) -> list[ResultItem]:
        return [item for item in self.items if item.kind is kind]


@dataclass(frozen=True, slots=True)
class ActiveFilterBadge:
    """A removable chip describing one active filter."""

    label: str
    kind: BadgeKind
    value: Any = None
    is_default: bool = False
