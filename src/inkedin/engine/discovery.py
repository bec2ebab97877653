"""Composition root for the discovery engine.

``DiscoveryEngine`` wires the filter store, geolocation resolver, debounce
controller, URL sync and result paginator together. Collaborators are
injected so tests can supply fakes; ``from_config`` builds the HTTP
clients for real use.

Data flow: controller -> store -> (URL sync, paginator). The paginator's
location fallback writes back into the store through ``_on_fallback``,
which lands on the same session key and so does not start a new session.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from inkedin.config import DiscoveryConfig, get_api_token, get_geocode_key
from inkedin.engine.controller import DebounceSyncController
from inkedin.engine.scheduler import AsyncioScheduler, Scheduler
from inkedin.engine.url_sync import UrlSync
from inkedin.exceptions import GeolocationError
from inkedin.filters.badges import BadgeLookups, derive_badges, has_active_filters
from inkedin.filters.preferences import DistancePreferences
from inkedin.filters.store import FilterStore
from inkedin.geo.providers import (
    DeviceLocationProvider,
    FixedDeviceLocation,
    GeocodingClient,
    GeocodingProvider,
)
from inkedin.geo.resolver import GeolocationResolver
from inkedin.models import (
    ActiveFilterBadge,
    EmptyState,
    FilterState,
    LocationMode,
    ResultItem,
    ViewerProfile,
)
from inkedin.search.client import QueryServiceClient
from inkedin.search.fsm import SessionState
from inkedin.search.paginator import QueryService, QuerySession, ResultPaginator
from inkedin.telemetry import Telemetry, set_telemetry

logger = logging.getLogger(__name__)

Listener = Callable[["DiscoveryEngine"], None]


class DiscoveryEngine:
    """Headless discovery session: filters in, interleaved result stream out."""

    def __init__(
        self,
        query_service: QueryService,
        geocoder: GeocodingProvider,
        device: DeviceLocationProvider | None = None,
        viewer: ViewerProfile | None = None,
        config: DiscoveryConfig | None = None,
        preferences: DistancePreferences | None = None,
        scheduler: Scheduler | None = None,
        lookups: BadgeLookups | None = None,
        style_names: Mapping[str, int] | None = None,
        url_writer: Callable[[str], None] | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.config = config or DiscoveryConfig(preferences_path=None)
        self.viewer = viewer or ViewerProfile()
        self.telemetry = telemetry if telemetry is not None else Telemetry.noop()
        set_telemetry(self.telemetry)

        if preferences is None:
            preferences = DistancePreferences(self.config.preferences_path)
        self.store = FilterStore(self.viewer, preferences)
        self.lookups = lookups or BadgeLookups(
            viewer_studio_id=self.viewer.studio_id,
            viewer_studio_name=self.viewer.studio_name,
        )
        if style_names is None:
            style_names = {name: sid for sid, name in self.lookups.style_names.items()}

        scheduler = scheduler or AsyncioScheduler()
        self.resolver = GeolocationResolver(
            geocoder,
            device or FixedDeviceLocation(self.config.device_coordinates),
            clock=scheduler.clock,
            telemetry=self.telemetry,
        )
        self.controller = DebounceSyncController(
            self.store,
            self.resolver,
            scheduler=scheduler,
            search_delay=self.config.search_debounce_seconds,
            location_delay=self.config.location_debounce_seconds,
            telemetry=self.telemetry,
            on_location_error=self._on_location_error,
        )
        self.paginator = ResultPaginator(
            query_service,
            per_page=self.config.per_page,
            cadence=self.config.promo_cadence,
            fallback_policy=self.config.location_fallback,
            viewer=self.viewer,
            telemetry=self.telemetry,
            on_change=self._on_session_change,
            on_fallback=self._on_fallback,
        )
        self.url_sync = UrlSync(self.store, url_writer, style_names=style_names)
        self._listeners: list[Listener] = []
        self._owned: list[object] = []
        self._started = False
        self.store.subscribe(self._on_filters)

    @classmethod
    def from_config(
        cls,
        config: DiscoveryConfig,
        viewer: ViewerProfile | None = None,
        **kwargs,
    ) -> "DiscoveryEngine":
        """Build an engine with HTTP clients for the configured services."""
        query_client = QueryServiceClient(
            config.api_base_url,
            subject=config.subject,
            token=get_api_token(),
            timeout=config.http_timeout_seconds,
        )
        try:
            geocode_key: str | None = get_geocode_key()
        except RuntimeError as exc:
            logger.warning("Custom locations will not geocode: %s", exc)
            geocode_key = None
        geocoder = GeocodingClient(
            config.geocode_base_url,
            api_key=geocode_key,
            timeout=config.http_timeout_seconds,
        )
        engine = cls(query_client, geocoder, viewer=viewer, config=config, **kwargs)
        engine._owned.extend([query_client, geocoder])
        return engine

    async def aclose(self) -> None:
        self.controller.cancel_pending()
        await self.controller.drain()
        for client in self._owned:
            await client.aclose()  # type: ignore[attr-defined]
        self._owned.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, query_string: str = "") -> None:
        """Hydrate from the initial URL and load the first page.

        Must run inside an event loop: the first fetch and any device or
        geocode lookups are scheduled as tasks.
        """
        with self.telemetry.span("discovery.start", {"start.has_query": bool(query_string)}):
            self._started = True
            self.navigate(query_string)
            self._begin(self.store.state)

    def navigate(self, query_string: str) -> bool:
        """Back/forward or shared-link navigation: the URL replaces the filters.

        Typing still waiting on a debounce timer belongs to the page being
        left, so it is dropped before the URL is applied.
        """
        self.controller.abandon_input()
        changed = self.url_sync.navigate(query_string)
        state = self.store.state
        if state.location_mode is LocationMode.MY and state.coordinates is None:
            self.controller.request_device_location()
        elif (
            state.location_mode is LocationMode.CUSTOM
            and state.location_text
            and state.coordinates is None
        ):
            self.controller.geocode_now(state.location_text)
        return changed

    def add_listener(self, listener: Listener) -> None:
        """Call *listener* after every filter or result change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _begin(self, state: FilterState) -> None:
        coro = self.paginator.begin(state)
        if coro is not None:
            self.controller.spawn(coro)

    def _on_filters(self, state: FilterState) -> None:
        if self._started:
            self._begin(state)
        self._notify()

    def _on_session_change(self, session: QuerySession) -> None:
        self._notify()

    def _on_fallback(self, session: QuerySession) -> None:
        self.controller.select_location_mode(LocationMode.ANY)

    def _on_location_error(self, error: GeolocationError | None) -> None:
        self._notify()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> FilterState:
        return self.store.state

    @property
    def url(self) -> str:
        return self.url_sync.current_query

    @property
    def items(self) -> list[ResultItem]:
        return self.paginator.items

    @property
    def status(self) -> SessionState:
        return self.paginator.status

    @property
    def location_error(self) -> GeolocationError | None:
        return self.controller.location_error

    @property
    def badges(self) -> list[ActiveFilterBadge]:
        return derive_badges(self.store.state, self.lookups)

    @property
    def empty_state(self) -> EmptyState | None:
        """Empty-state message once the first page has come back empty.

        ``founding_artist`` invites artists to join when nothing at all is
        listed anywhere; any real filter turns it into ``no_results``.
        """
        session = self.paginator.session
        if session is None or session.page < 1:
            return None
        if session.tattoo_count or session.promo_count:
            return None
        state = self.store.state
        if state.location_mode is LocationMode.ANY and not has_active_filters(self.badges):
            return EmptyState.FOUNDING_ARTIST
        return EmptyState.NO_RESULTS

    # ------------------------------------------------------------------
    # Write side (delegates to the controller)
    # ------------------------------------------------------------------

    def remove_badge(self, badge: ActiveFilterBadge) -> None:
        self.controller.remove_badge(badge)

    def clear_all(self) -> None:
        self.controller.clear_all()

    def load_more(self) -> bool:
        coro = self.paginator.load_more()
        if coro is None:
            return False
        self.controller.spawn(coro)
        return True

    def retry(self) -> bool:
        coro = self.paginator.retry()
        if coro is None:
            return False
        self.controller.spawn(coro)
        return True

    async def drain(self) -> None:
        await self.controller.drain()
