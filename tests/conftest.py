"""Shared pytest fixtures for the discovery engine tests.

Provides scriptable fakes for the query service, geocoder and device
position, a virtual-time scheduler, and an engine factory wiring them
together. The fakes can hold calls open so tests decide the order in
which replies arrive.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from inkedin.config import DiscoveryConfig
from inkedin.engine.discovery import DiscoveryEngine
from inkedin.engine.scheduler import ManualScheduler
from inkedin.exceptions import GeocodeNotFound
from inkedin.filters.badges import BadgeLookups
from inkedin.filters.preferences import DistancePreferences
from inkedin.geo.providers import FixedDeviceLocation
from inkedin.models import Coordinates, FallbackPolicy, ViewerProfile
from inkedin.search.models import QueryRequest, QueryResponse
from inkedin.telemetry import Telemetry

BERLIN = Coordinates(52.52, 13.405)
PARIS = Coordinates(48.8566, 2.3522)
HOME = Coordinates(40.7128, -74.006)

STYLE_NAMES = {1: "Traditional", 2: "Blackwork", 3: "Japanese", 4: "Fine Line"}
TAG_NAMES = {10: "dragon", 11: "rose"}


def tattoo(i: int, **extra) -> dict:
    return {"id": i, "title": f"Tattoo {i}", **extra}


def studio(i: int) -> dict:
    return {"id": f"s{i}", "name": f"Studio {i}"}


def page(
    tattoo_ids,
    promo_ids=(),
    has_more: bool | None = None,
    total: int | None = None,
) -> QueryResponse:
    payload: dict = {
        "items": [tattoo(i) for i in tattoo_ids],
        "unclaimedStudios": [studio(i) for i in promo_ids],
    }
    if has_more is not None:
        payload["hasMore"] = has_more
    if total is not None:
        payload["total"] = total
    return QueryResponse.parse(payload)


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeQueryService:
    """In-memory query service.

    ``handler(request)`` returns a QueryResponse or an exception instance
    to raise. With ``hold=True`` each call parks until ``release`` is
    called for it.
    """

    def __init__(self, handler: Callable[[QueryRequest], object] | None = None) -> None:
        self.handler = handler or (lambda request: page([]))
        self.requests: list[QueryRequest] = []
        self.hold = False
        self.waiting: list[tuple[QueryRequest, asyncio.Future]] = []

    async def fetch_page(self, request: QueryRequest) -> QueryResponse:
        self.requests.append(request)
        if self.hold:
            fut = asyncio.get_running_loop().create_future()
            self.waiting.append((request, fut))
            await fut
        result = self.handler(request)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]

    def release(self, index: int = 0) -> QueryRequest:
        request, fut = self.waiting.pop(index)
        fut.set_result(None)
        return request


class FakeGeocoder:
    """Geocoder answering from a dict; unknown text raises GeocodeNotFound."""

    def __init__(self, places: dict[str, object] | None = None) -> None:
        self.places = dict(places or {"Berlin": BERLIN, "Paris": PARIS})
        self.calls: list[str] = []
        self.hold = False
        self.waiting: list[tuple[str, asyncio.Future]] = []

    async def geocode(self, query: str) -> Coordinates:
        self.calls.append(query)
        if self.hold:
            fut = asyncio.get_running_loop().create_future()
            self.waiting.append((query, fut))
            await fut
        result = self.places.get(query)
        if result is None:
            raise GeocodeNotFound(query)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]

    def release(self, query: str) -> None:
        for i, (q, fut) in enumerate(self.waiting):
            if q == query:
                del self.waiting[i]
                fut.set_result(None)
                return
        raise AssertionError(f"no pending geocode for {query!r}")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def query_service() -> FakeQueryService:
    return FakeQueryService(lambda request: page(range(1, 21), promo_ids=range(1, 4), has_more=True, total=60))


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def telemetry():
    """``(Telemetry, InMemorySpanExporter)`` for span assertions."""
    return Telemetry.for_testing()


@pytest.fixture
def lookups() -> BadgeLookups:
    return BadgeLookups(style_names=STYLE_NAMES, tag_names=TAG_NAMES, studio_names={7: "Ink Lab"})


@pytest.fixture
def make_engine(scheduler, geocoder, lookups):
    """Factory for DiscoveryEngine with fakes; keyword overrides per test."""

    def _make(
        service: FakeQueryService,
        viewer: ViewerProfile | None = None,
        device: FixedDeviceLocation | None = None,
        fallback: FallbackPolicy = FallbackPolicy.ANY_LOCATION,
        preferences: DistancePreferences | None = None,
        url_writer=None,
        telemetry: Telemetry | None = None,
    ) -> DiscoveryEngine:
        config = DiscoveryConfig(preferences_path=None, location_fallback=fallback)
        return DiscoveryEngine(
            service,
            geocoder,
            device=device or FixedDeviceLocation(HOME),
            viewer=viewer,
            config=config,
            preferences=preferences,
            scheduler=scheduler,
            lookups=lookups,
            url_writer=url_writer,
            telemetry=telemetry,
        )

    return _make
