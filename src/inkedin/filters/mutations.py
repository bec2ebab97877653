"""Pure FilterState mutations.

Each function takes the current state plus one change and returns the next
state, already normalized. They never touch I/O and never mutate their
input; ``FilterStore`` is the only caller that commits the result.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable

from inkedin.exceptions import InvalidFilterError
from inkedin.models import (
    Coordinates,
    DistanceUnit,
    FilterState,
    LocationDefaults,
    LocationMode,
)

if TYPE_CHECKING:
    from inkedin.filters.url_codec import UrlFilters


def normalize(state: FilterState) -> FilterState:
    """Enforce the location invariants and trim the search string."""
    changes: dict[str, object] = {}
    search = state.search_string.strip()
    if search != state.search_string:
        changes["search_string"] = search
    if state.location_mode is LocationMode.ANY:
        if state.coordinates is not None:
            changes["coordinates"] = None
        if state.location_text:
            changes["location_text"] = ""
    elif state.location_mode is LocationMode.MY and state.location_text:
        changes["location_text"] = ""
    return replace(state, **changes) if changes else state


def initial_state(defaults: LocationDefaults) -> FilterState:
    return FilterState(location_mode=defaults.location_mode, distance=defaults.distance)


def _check_id(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidFilterError(f"{what} must be a positive integer, got {value!r}")
    return value


def set_search_string(state: FilterState, text: str) -> FilterState:
    return normalize(replace(state, search_string=text))


def toggle_style(state: FilterState, style_id: int) -> FilterState:
    """Add or remove a style. Removing it records an explicit dismissal."""
    _check_id(style_id, "Style id")
    if style_id in state.style_ids:
        return dismiss_style(state, style_id)
    return replace(state, style_ids=state.style_ids | {style_id})


def dismiss_style(state: FilterState, style_id: int) -> FilterState:
    """Remove a style and remember that the viewer rejected it this session."""
    _check_id(style_id, "Style id")
    return replace(
        state,
        style_ids=state.style_ids - {style_id},
        dismissed_style_ids=state.dismissed_style_ids | {style_id},
    )


def toggle_tag(state: FilterState, tag_id: int) -> FilterState:
    _check_id(tag_id, "Tag id")
    if tag_id in state.tag_ids:
        return replace(state, tag_ids=state.tag_ids - {tag_id})
    return replace(state, tag_ids=state.tag_ids | {tag_id})


def set_distance(state: FilterState, distance: int) -> FilterState:
    if isinstance(distance, bool) or not isinstance(distance, int) or distance <= 0:
        raise InvalidFilterError(f"Distance must be a positive integer, got {distance!r}")
    return replace(state, distance=distance)


def set_distance_unit(state: FilterState, unit: DistanceUnit | str) -> FilterState:
    try:
        unit = DistanceUnit(unit)
    except ValueError as exc:
        raise InvalidFilterError(f"Unknown distance unit {unit!r}") from exc
    return replace(state, distance_unit=unit)


def set_location_mode(state: FilterState, mode: LocationMode | str) -> FilterState:
    """Switch location mode, clearing whatever the new mode cannot carry.

    ``my`` starts without coordinates; the device resolver fills them in.
    ``custom`` keeps the typed text but drops coordinates from a previous
    mode until the text is geocoded.
    """
    try:
        mode = LocationMode(mode)
    except ValueError as exc:
        raise InvalidFilterError(f"Unknown location mode {mode!r}") from exc
    if mode is state.location_mode:
        return state
    if mode is LocationMode.CUSTOM:
        return replace(state, location_mode=mode, coordinates=None)
    return replace(state, location_mode=mode, location_text="", coordinates=None)


def set_location_text(state: FilterState, text: str) -> FilterState:
    """Record typed location text. Ignored outside ``custom`` mode.

    Clearing the text clears coordinates. Any other edit keeps the last
    good coordinates until a new geocode lands.
    """
    if state.location_mode is not LocationMode.CUSTOM:
        return state
    if not text.strip():
        return replace(state, location_text="", coordinates=None)
    return replace(state, location_text=text)


def set_coordinates(
    state: FilterState,
    coordinates: Coordinates | None,
    *,
    for_mode: LocationMode | None = None,
    for_text: str | None = None,
) -> FilterState:
    """Store a resolved position.

    ``for_mode``/``for_text`` describe what the resolution was started for;
    if the state has since moved on, the coordinates are not applied.
    """
    if for_mode is not None and state.location_mode is not for_mode:
        return state
    if for_text is not None and state.location_text != for_text:
        return state
    if state.location_mode is LocationMode.ANY and coordinates is not None:
        return state
    if coordinates is not None and not isinstance(coordinates, Coordinates):
        raise InvalidFilterError(f"Expected Coordinates, got {coordinates!r}")
    return replace(state, coordinates=coordinates)


def set_apply_saved_styles(
    state: FilterState, enabled: bool, saved_style_ids: Iterable[int]
) -> FilterState:
    """Merge the viewer's saved styles into the selection.

    The merge is one-way: turning the flag off leaves merged styles
    selected. Styles dismissed this session are never re-added.
    """
    if not enabled:
        return replace(state, apply_saved_styles=False)
    merged = (state.style_ids | frozenset(saved_style_ids)) - state.dismissed_style_ids
    return replace(state, apply_saved_styles=True, style_ids=merged)


def set_books_open(state: FilterState, books_open: bool) -> FilterState:
    return replace(state, books_open=bool(books_open))


def set_studio_id(state: FilterState, studio_id: int | None) -> FilterState:
    if studio_id is not None:
        _check_id(studio_id, "Studio id")
    return replace(state, studio_id=studio_id)


def clear_all(state: FilterState, defaults: LocationDefaults) -> FilterState:
    """Reset every field, including session dismissals, to viewer defaults."""
    return initial_state(defaults)


def hydrate(state: FilterState, url: "UrlFilters") -> FilterState:
    """Overwrite URL-persisted fields with those present in *url*.

    Fields missing from the URL keep their current values, as do the
    session-local ``dismissed_style_ids`` and ``apply_saved_styles``.
    """
    changes: dict[str, object] = {}
    for name in (
        "search_string",
        "style_ids",
        "tag_ids",
        "distance",
        "distance_unit",
        "location_mode",
        "location_text",
        "coordinates",
        "studio_id",
        "books_open",
    ):
        value = getattr(url, name)
        if value is not None:
            changes[name] = value

    mode = changes.get("location_mode", state.location_mode)
    if "location_mode" in changes and mode is not state.location_mode:
        # A mode switch carries no leftover position from the old mode.
        changes.setdefault("coordinates", None)
        if mode is not LocationMode.CUSTOM:
            changes.setdefault("location_text", "")
    return normalize(replace(state, **changes))
