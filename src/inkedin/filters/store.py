"""The single writer of FilterState.

``FilterStore`` holds the current state and a list of subscriber
callbacks. Every named operation runs the matching pure mutation and, if
the result differs from the current state, commits it and calls each
subscriber synchronously in subscription order. A mutation that changes
nothing publishes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable

from inkedin.filters import mutations
from inkedin.filters.badges import remove_badge as _remove_badge
from inkedin.filters.preferences import DistancePreferences
from inkedin.filters.url_codec import UrlFilters
from inkedin.models import (
    ActiveFilterBadge,
    BadgeKind,
    Coordinates,
    DistanceUnit,
    FilterState,
    LocationDefaults,
    LocationMode,
    ViewerProfile,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[FilterState], None]


class FilterStore:
    """Canonical filter state plus its change notifications."""

    def __init__(
        self,
        viewer: ViewerProfile | None = None,
        preferences: DistancePreferences | None = None,
        initial: FilterState | None = None,
    ) -> None:
        self.viewer = viewer or ViewerProfile()
        self.preferences = preferences or DistancePreferences()
        self._state = initial if initial is not None else mutations.initial_state(self.defaults())
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> FilterState:
        return self._state

    def defaults(self) -> LocationDefaults:
        return self.preferences.default_location_settings(self.viewer.has_home_location)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, new_state: FilterState, reason: str) -> bool:
        if new_state == self._state:
            return False
        self._state = new_state
        logger.debug("filter commit reason=%s", reason)
        for callback in list(self._subscribers):
            callback(new_state)
        return True

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------

    def set_search_string(self, text: str) -> bool:
        return self._commit(mutations.set_search_string(self._state, text), "search_string")

    def toggle_style(self, style_id: int) -> bool:
        return self._commit(mutations.toggle_style(self._state, style_id), "toggle_style")

    def toggle_tag(self, tag_id: int) -> bool:
        return self._commit(mutations.toggle_tag(self._state, tag_id), "toggle_tag")

    def set_distance(self, distance: int) -> bool:
        return self._commit(mutations.set_distance(self._state, distance), "distance")

    def set_distance_unit(self, unit: DistanceUnit | str) -> bool:
        return self._commit(mutations.set_distance_unit(self._state, unit), "distance_unit")

    def set_location_mode(self, mode: LocationMode | str) -> bool:
        return self._commit(mutations.set_location_mode(self._state, mode), "location_mode")

    def set_location_text(self, text: str) -> bool:
        return self._commit(mutations.set_location_text(self._state, text), "location_text")

    def set_coordinates(
        self,
        coordinates: Coordinates | None,
        *,
        for_mode: LocationMode | None = None,
        for_text: str | None = None,
    ) -> bool:
        new_state = mutations.set_coordinates(
            self._state, coordinates, for_mode=for_mode, for_text=for_text
        )
        return self._commit(new_state, "coordinates")

    def set_apply_saved_styles(self, enabled: bool, saved_style_ids: Iterable[int] | None = None) -> bool:
        saved = self.viewer.saved_style_ids if saved_style_ids is None else saved_style_ids
        return self._commit(
            mutations.set_apply_saved_styles(self._state, enabled, saved), "apply_saved_styles"
        )

    def set_books_open(self, books_open: bool) -> bool:
        return self._commit(mutations.set_books_open(self._state, books_open), "books_open")

    def set_studio_id(self, studio_id: int | None) -> bool:
        return self._commit(mutations.set_studio_id(self._state, studio_id), "studio_id")

    def clear_all(self) -> bool:
        return self._commit(mutations.clear_all(self._state, self.defaults()), "clear_all")

    def remove_badge(self, badge: ActiveFilterBadge) -> bool:
        """Remove one badge. Removing distance also remembers the dismissal."""
        if badge.kind is BadgeKind.DISTANCE:
            self.preferences.set_distance_dismissed(True)
        return self._commit(_remove_badge(self._state, badge), f"remove_badge:{badge.kind.value}")

    def hydrate(self, url: UrlFilters) -> bool:
        """Overlay the fields present in *url* onto the current state."""
        return self._commit(mutations.hydrate(self._state, url), "hydrate")

    def navigate(self, url: UrlFilters) -> bool:
        """Replace URL-persisted fields wholesale with *url*.

        Fields the URL leaves out fall back to viewer defaults. Session-local
        dismissals and the saved-styles flag are carried over.
        """
        base = replace(
            mutations.initial_state(self.defaults()),
            dismissed_style_ids=self._state.dismissed_style_ids,
            apply_saved_styles=self._state.apply_saved_styles,
        )
        return self._commit(mutations.hydrate(base, url), "navigate")
