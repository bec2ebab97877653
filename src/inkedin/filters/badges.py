"""Active-filter badges: one removable chip per active filter.

Badges are derived, never stored. ``remove_badge`` maps each badge to
exactly one state mutation, so removing a badge and re-deriving never
shows that badge again (the default ``Anywhere`` badge excepted).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from inkedin.filters import mutations
from inkedin.models import ActiveFilterBadge, BadgeKind, FilterState, LocationMode


@dataclass(frozen=True)
class BadgeLookups:
    """Display names for ids referenced by the filter state."""

    style_names: Mapping[int, str] = field(default_factory=dict)
    tag_names: Mapping[int, str] = field(default_factory=dict)
    studio_names: Mapping[int, str] = field(default_factory=dict)
    viewer_studio_id: int | None = None
    viewer_studio_name: str | None = None

    def studio_label(self, studio_id: int) -> str:
        if studio_id in self.studio_names:
            return self.studio_names[studio_id]
        if studio_id == self.viewer_studio_id and self.viewer_studio_name:
            return self.viewer_studio_name
        return f"Studio #{studio_id}"


def derive_badges(state: FilterState, lookups: BadgeLookups | None = None) -> list[ActiveFilterBadge]:
    """Badges in display order: search, styles, tags, location, distance, books open, studio.

    Style and tag ids without a known name are skipped.
    """
    lookups = lookups or BadgeLookups()
    badges: list[ActiveFilterBadge] = []

    if state.search_string:
        badges.append(ActiveFilterBadge(f'"{state.search_string}"', BadgeKind.SEARCH, state.search_string))

    for style_id in sorted(state.style_ids):
        name = lookups.style_names.get(style_id)
        if name:
            badges.append(ActiveFilterBadge(name, BadgeKind.STYLE, style_id))

    for tag_id in sorted(state.tag_ids):
        name = lookups.tag_names.get(tag_id)
        if name:
            badges.append(ActiveFilterBadge(name, BadgeKind.TAG, tag_id))

    if state.location_mode is LocationMode.MY:
        badges.append(ActiveFilterBadge("Near me", BadgeKind.LOCATION, LocationMode.MY))
    elif state.location_mode is LocationMode.CUSTOM and state.location_text:
        badges.append(ActiveFilterBadge(state.location_text, BadgeKind.LOCATION, LocationMode.CUSTOM))
    elif state.location_mode is LocationMode.ANY:
        badges.append(
            ActiveFilterBadge("Anywhere", BadgeKind.LOCATION, LocationMode.ANY, is_default=True)
        )

    if state.location_mode is not LocationMode.ANY:
        badges.append(
            ActiveFilterBadge(
                f"Within {state.distance} {state.distance_unit.value}",
                BadgeKind.DISTANCE,
                state.distance,
            )
        )

    if state.books_open:
        badges.append(ActiveFilterBadge("Books Open", BadgeKind.BOOKS_OPEN, True))

    if state.studio_id is not None:
        badges.append(
            ActiveFilterBadge(lookups.studio_label(state.studio_id), BadgeKind.STUDIO, state.studio_id)
        )

    return badges


def remove_badge(state: FilterState, badge: ActiveFilterBadge) -> FilterState:
    """Apply the single mutation that removes *badge*.

    Removing the distance badge switches to ``any`` mode; the caller is
    responsible for remembering that distance was dismissed.
    """
    if badge.is_default:
        return state
    if badge.kind is BadgeKind.SEARCH:
        return mutations.set_search_string(state, "")
    if badge.kind is BadgeKind.STYLE:
        return mutations.dismiss_style(state, badge.value)
    if badge.kind is BadgeKind.TAG:
        if badge.value in state.tag_ids:
            return mutations.toggle_tag(state, badge.value)
        return state
    if badge.kind in (BadgeKind.LOCATION, BadgeKind.DISTANCE):
        return mutations.set_location_mode(state, LocationMode.ANY)
    if badge.kind is BadgeKind.BOOKS_OPEN:
        return mutations.set_books_open(state, False)
    if badge.kind is BadgeKind.STUDIO:
        return mutations.set_studio_id(state, None)
    raise ValueError(f"Unknown badge kind {badge.kind!r}")


def has_active_filters(badges: list[ActiveFilterBadge]) -> bool:
    return any(not b.is_default for b in badges)
