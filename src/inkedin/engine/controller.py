"""Debounced synchronization between raw input events and the filter store.

Free-text fields are debounced: search text commits 500 ms after the last
keystroke, location text is committed at once but only geocoded after one
second of quiet. Discrete controls (toggles, selects, switches) commit
immediately.

Each debounced field keeps a generation counter. Scheduling a timer bumps
the counter and captures the new value; a timer callback whose captured
generation is no longer current does nothing. Only a newer event for the
same field supersedes an older one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from inkedin.constants import LOCATION_DEBOUNCE_SECONDS, SEARCH_DEBOUNCE_SECONDS
from inkedin.engine.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from inkedin.exceptions import DeviceLocationError, GeolocationError
from inkedin.filters.store import FilterStore
from inkedin.geo.resolver import DEVICE_FIELD, TEXT_FIELD, GeolocationResolver
from inkedin.models import ActiveFilterBadge, BadgeKind, DistanceUnit, LocationMode
from inkedin.telemetry import Telemetry, get_telemetry

logger = logging.getLogger(__name__)

SEARCH = "search"
LOCATION = "location"


class DebounceSyncController:
    """Turns UI events into store mutations and geolocation work."""

    def __init__(
        self,
        store: FilterStore,
        resolver: GeolocationResolver,
        scheduler: Scheduler | None = None,
        search_delay: float = SEARCH_DEBOUNCE_SECONDS,
        location_delay: float = LOCATION_DEBOUNCE_SECONDS,
        telemetry: Telemetry | None = None,
        on_location_error: Callable[[GeolocationError | None], None] | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.scheduler = scheduler or AsyncioScheduler()
        self.search_delay = search_delay
        self.location_delay = location_delay
        self._telemetry = telemetry
        self.on_location_error = on_location_error
        self.location_error: GeolocationError | None = None
        self._timers: dict[str, TimerHandle] = {}
        self._generations: dict[str, int] = {SEARCH: 0, LOCATION: 0}
        self._tasks: set[asyncio.Task] = set()

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry if self._telemetry is not None else get_telemetry()

    # ------------------------------------------------------------------
    # Debounce plumbing
    # ------------------------------------------------------------------

    def _cancel(self, field: str) -> None:
        timer = self._timers.pop(field, None)
        if timer is not None:
            timer.cancel()
        self._generations[field] += 1

    def _debounce(self, field: str, delay: float, fn: Callable[[], None]) -> None:
        self._cancel(field)
        gen = self._generations[field]
        self._timers[field] = self.scheduler.call_later(delay, lambda: self._fire(field, gen, fn))

    def _fire(self, field: str, gen: int, fn: Callable[[], None]) -> None:
        if gen != self._generations[field]:
            return
        self._timers.pop(field, None)
        fn()

    def has_pending(self, field: str) -> bool:
        return field in self._timers

    def cancel_pending(self) -> None:
        for field in list(self._generations):
            self._cancel(field)

    # ------------------------------------------------------------------
    # Task tracking
    # ------------------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule *coro* on the running loop and track it until done."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.telemetry.log.error(f"background task failed error={exc!r}")

    @property
    def busy(self) -> bool:
        return bool(self._tasks)

    async def drain(self) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Search text
    # ------------------------------------------------------------------

    def input_search(self, text: str) -> None:
        """Keystroke in the search field: commit after the quiet period."""
        self._debounce(SEARCH, self.search_delay, lambda: self._commit_search(text))

    def submit_search(self, text: str) -> None:
        """Enter in the search field: commit now, dropping any pending timer."""
        self._cancel(SEARCH)
        self._commit_search(text)

    def _commit_search(self, text: str) -> None:
        if self.store.set_search_string(text):
            self.telemetry.log.info(f"search committed query={text.strip()!r}")

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    def _set_location_error(self, error: GeolocationError | None) -> None:
        if error is None and self.location_error is None:
            return
        self.location_error = error
        if self.on_location_error is not None:
            self.on_location_error(error)

    def input_location_text(self, text: str) -> None:
        """Keystroke in the custom location field.

        The text is stored immediately so the field and URL reflect it.
        Geocoding waits for the quiet period and is skipped if the mode or
        text changed in the meantime.
        """
        self.store.set_location_text(text)
        if self.store.state.location_mode is not LocationMode.CUSTOM:
            return
        if not text.strip():
            self._cancel(LOCATION)
            self.resolver.invalidate(TEXT_FIELD)
            self._set_location_error(None)
            return
        self._debounce(LOCATION, self.location_delay, lambda: self._geocode_if_current(text))

    def geocode_now(self, text: str) -> None:
        """Geocode *text* without waiting, e.g. after URL rehydration."""
        self._cancel(LOCATION)
        self._geocode_if_current(text)

    def _geocode_if_current(self, text: str) -> None:
        state = self.store.state
        if state.location_mode is not LocationMode.CUSTOM or state.location_text != text:
            logger.debug("Skipping geocode for superseded text %r", text)
            return
        self.spawn(self._resolve_text(text))

    async def _resolve_text(self, text: str) -> None:
        try:
            coords = await self.resolver.resolve_text(text)
        except GeolocationError as exc:
            state = self.store.state
            if state.location_mode is LocationMode.CUSTOM and state.location_text == text:
                self._set_location_error(exc)
            return
        if coords is None:
            return
        if self.store.set_coordinates(coords, for_mode=LocationMode.CUSTOM, for_text=text):
            self._set_location_error(None)

    def select_location_mode(self, mode: LocationMode | str) -> None:
        """Switch location mode. Entering ``my`` reads the device position."""
        mode = LocationMode(mode)
        previous = self.store.state.location_mode
        if mode is not LocationMode.CUSTOM:
            self._cancel(LOCATION)
            self.resolver.invalidate(TEXT_FIELD)
        if mode is not LocationMode.MY:
            self.resolver.invalidate(DEVICE_FIELD)
        self.store.set_location_mode(mode)
        if mode is not previous:
            self._set_location_error(None)
        if mode is LocationMode.MY and self.store.state.coordinates is None:
            self.request_device_location()

    def request_device_location(self) -> None:
        self.spawn(self._resolve_device())

    async def _resolve_device(self) -> None:
        try:
            coords = await self.resolver.resolve_device_location()
        except DeviceLocationError as exc:
            if self.store.state.location_mode is LocationMode.MY:
                self._set_location_error(exc)
            return
        if coords is None:
            return
        if self.store.set_coordinates(coords, for_mode=LocationMode.MY):
            self._set_location_error(None)

    # ------------------------------------------------------------------
    # Discrete controls: committed immediately
    # ------------------------------------------------------------------

    def toggle_style(self, style_id: int) -> None:
        self.store.toggle_style(style_id)

    def toggle_tag(self, tag_id: int) -> None:
        self.store.toggle_tag(tag_id)

    def set_distance(self, distance: int) -> None:
        self.store.set_distance(distance)

    def set_distance_unit(self, unit: DistanceUnit | str) -> None:
        self.store.set_distance_unit(unit)

    def set_books_open(self, books_open: bool) -> None:
        self.store.set_books_open(books_open)

    def set_studio_id(self, studio_id: int | None) -> None:
        self.store.set_studio_id(studio_id)

    def set_apply_saved_styles(self, enabled: bool) -> None:
        self.store.set_apply_saved_styles(enabled)

    def remove_badge(self, badge: ActiveFilterBadge) -> None:
        if badge.kind is BadgeKind.SEARCH:
            self._cancel(SEARCH)
        if badge.kind in (BadgeKind.LOCATION, BadgeKind.DISTANCE) and not badge.is_default:
            self._cancel(LOCATION)
            self.resolver.invalidate(TEXT_FIELD)
            self.resolver.invalidate(DEVICE_FIELD)
            self._set_location_error(None)
        self.store.remove_badge(badge)

    def abandon_input(self) -> None:
        """Drop buffered keystrokes and in-flight location lookups."""
        self.cancel_pending()
        self.resolver.invalidate(TEXT_FIELD)
        self.resolver.invalidate(DEVICE_FIELD)
        self._set_location_error(None)

    def clear_all(self) -> None:
        """Reset to viewer defaults, dropping pending input and resolutions."""
        self.abandon_input()
        self.store.clear_all()
        state = self.store.state
        if state.location_mode is LocationMode.MY and state.coordinates is None:
            self.request_device_location()
