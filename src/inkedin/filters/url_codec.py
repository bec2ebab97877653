"""FilterState <-> address-bar query parameters.

Canonical parameter names written by ``encode``:

  searchString, styles, tags, distance, distanceUnit, location,
  locationCoords, useMyLocation, useAnyLocation, studio_id, booksOpen

``decode`` also accepts the historical spellings (``search``, ``style``,
``tag``, ``studio``, ``studioId``), repeated or comma-separated list
values, and ``styleSearch=<style name>``. Malformed values are dropped
one field at a time; the rest of the URL still applies.

``dismissed_style_ids`` and ``apply_saved_styles`` are session-local and
never written. Coordinates are written whenever the state carries them,
including a device fix under ``my``. ``custom`` mode is marked with
``useAnyLocation=false`` so that a custom search with nothing typed yet
still decodes as ``custom``. Location text is kept verbatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence
from urllib.parse import parse_qs, urlencode

from inkedin.exceptions import InputValidationError
from inkedin.filters.mutations import hydrate
from inkedin.geo.coords import format_lat_lng, parse_lat_lng
from inkedin.models import Coordinates, DistanceUnit, FilterState, LocationMode

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, "str | Sequence[str]"]

SEARCH_KEYS = ("searchString", "search")
STYLE_KEYS = ("styles", "style")
TAG_KEYS = ("tags", "tag")
STUDIO_KEYS = ("studio_id", "studioId", "studio")

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class UrlFilters:
    """URL-persisted filter fields. None means the URL did not say."""

    search_string: str | None = None
    style_ids: frozenset[int] | None = None
    tag_ids: frozenset[int] | None = None
    distance: int | None = None
    distance_unit: DistanceUnit | None = None
    location_mode: LocationMode | None = None
    location_text: str | None = None
    coordinates: Coordinates | None = None
    studio_id: int | None = None
    books_open: bool | None = None


def encode(state: FilterState) -> dict[str, str]:
    """Canonical query parameters for *state*. Empty fields are omitted."""
    params: dict[str, str] = {}
    if state.search_string:
        params["searchString"] = state.search_string
    if state.style_ids:
        params["styles"] = ",".join(str(i) for i in sorted(state.style_ids))
    if state.tag_ids:
        params["tags"] = ",".join(str(i) for i in sorted(state.tag_ids))
    params["distance"] = str(state.distance)
    params["distanceUnit"] = state.distance_unit.value

    if state.location_mode is LocationMode.MY:
        params["useMyLocation"] = "true"
    elif state.location_mode is LocationMode.ANY:
        params["useAnyLocation"] = "true"
    else:
        params["useAnyLocation"] = "false"
        if state.location_text:
            params["location"] = state.location_text
    if state.coordinates is not None and state.location_mode is not LocationMode.ANY:
        params["locationCoords"] = format_lat_lng(state.coordinates)

    if state.studio_id is not None:
        params["studio_id"] = str(state.studio_id)
    if state.books_open:
        params["booksOpen"] = "true"
    return params


def _values(params: QueryParams, keys: Iterable[str]) -> list[str]:
    out: list[str] = []
    for key in keys:
        raw = params.get(key)
        if raw is None:
            continue
        if isinstance(raw, str):
            out.append(raw)
        else:
            out.extend(raw)
    return out


def _last(params: QueryParams, keys: Iterable[str], strip: bool = True) -> str | None:
    values = [v for v in _values(params, keys) if v.strip()]
    if not values:
        return None
    return values[-1].strip() if strip else values[-1]


def _parse_int(token: str, field: str) -> int:
    try:
        value = int(token.strip())
    except ValueError as exc:
        raise InputValidationError(f"{field}: {token!r} is not an integer") from exc
    if value <= 0:
        raise InputValidationError(f"{field}: {token!r} must be positive")
    return value


def _parse_ids(params: QueryParams, keys: Sequence[str]) -> frozenset[int] | None:
    tokens = [t for v in _values(params, keys) for t in v.split(",") if t.strip()]
    ids: set[int] = set()
    for token in tokens:
        try:
            ids.add(_parse_int(token, keys[0]))
        except InputValidationError as exc:
            logger.debug("Dropping malformed URL token: %s", exc)
    return frozenset(ids) if ids else None


def _flag(params: QueryParams, key: str) -> bool | None:
    """True or False when *key* is present, None when it is absent."""
    value = _last(params, (key,))
    if value is None:
        return None
    return value.lower() in _TRUE


def decode(
    params: QueryParams,
    style_names: Mapping[str, int] | None = None,
) -> UrlFilters:
    """Read URL-persisted fields out of *params*.

    Args:
        params: Query parameters; values may be strings or lists of strings
            (as returned by ``parse_query_string``).
        style_names: Style name -> id, used to resolve ``styleSearch``.
            Matching is case-insensitive; unknown names are dropped.
    """
    search = _last(params, SEARCH_KEYS)

    styles = _parse_ids(params, STYLE_KEYS)
    style_search = _last(params, ("styleSearch",))
    if style_search and style_names:
        by_name = {name.lower(): sid for name, sid in style_names.items()}
        sid = by_name.get(style_search.lower())
        if sid is not None:
            styles = (styles or frozenset()) | {sid}
        else:
            logger.debug("Dropping unknown styleSearch %r", style_search)

    tags = _parse_ids(params, TAG_KEYS)

    distance: int | None = None
    raw_distance = _last(params, ("distance",))
    if raw_distance is not None:
        try:
            distance = _parse_int(raw_distance, "distance")
        except InputValidationError as exc:
            logger.debug("Dropping malformed URL field: %s", exc)

    unit: DistanceUnit | None = None
    raw_unit = _last(params, ("distanceUnit",))
    if raw_unit is not None:
        try:
            unit = DistanceUnit(raw_unit.lower())
        except ValueError:
            logger.debug("Dropping unknown distanceUnit %r", raw_unit)

    coords: Coordinates | None = None
    raw_coords = _last(params, ("locationCoords",))
    if raw_coords is not None:
        try:
            coords = parse_lat_lng(raw_coords)
        except InputValidationError as exc:
            logger.debug("Dropping malformed URL field: %s", exc)

    location_text = _last(params, ("location",), strip=False)

    use_any = _flag(params, "useAnyLocation")
    mode: LocationMode | None = None
    if use_any:
        mode = LocationMode.ANY
    elif _flag(params, "useMyLocation"):
        mode = LocationMode.MY
    elif use_any is False or location_text or coords is not None:
        mode = LocationMode.CUSTOM

    if mode is LocationMode.ANY:
        coords = None
    if mode is not None and mode is not LocationMode.CUSTOM:
        location_text = None

    studio_id: int | None = None
    raw_studio = _last(params, STUDIO_KEYS)
    if raw_studio is not None:
        try:
            studio_id = _parse_int(raw_studio, "studio_id")
        except InputValidationError as exc:
            logger.debug("Dropping malformed URL field: %s", exc)

    books_open = True if _flag(params, "booksOpen") else None

    return UrlFilters(
        search_string=search,
        style_ids=styles,
        tag_ids=tags,
        distance=distance,
        distance_unit=unit,
        location_mode=mode,
        location_text=location_text,
        coordinates=coords,
        studio_id=studio_id,
        books_open=books_open,
    )


def decode_state(
    params: QueryParams,
    base: FilterState,
    style_names: Mapping[str, int] | None = None,
) -> FilterState:
    """Apply decoded URL fields on top of *base*."""
    return hydrate(base, decode(params, style_names))


def parse_query_string(query: str) -> dict[str, list[str]]:
    return parse_qs(query.lstrip("?"), keep_blank_values=True)


def to_query_string(params: Mapping[str, str]) -> str:
    """Serialize with keys sorted, so equal params give equal strings."""
    return urlencode(sorted(params.items()))
