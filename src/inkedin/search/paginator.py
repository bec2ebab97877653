"""Paginated, infinite-scroll retrieval for one query session at a time.

A session is identified by the session key of its FilterState (the
canonical request minus the page number). ``begin`` opens a new session
only when that key changes; filter edits that do not change the request,
such as typing location text that has not been geocoded yet, keep the
current results.

``begin``, ``load_more`` and ``retry`` do their bookkeeping synchronously
and hand back a coroutine that performs the fetch (or None when there is
nothing to do). Callers schedule or await it. Because the state machine
moves to ``loading_more`` before the coroutine is returned, a second
``load_more`` issued while one is pending is a no-op.

Every response is checked against the current session on arrival. Replies
for sessions that have since been replaced are logged and dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Iterable, Protocol

from inkedin.constants import DEFAULT_PAGE_SIZE, PROMO_CADENCE
from inkedin.exceptions import NetworkError, TransitionNotAllowedError
from inkedin.filters.mutations import set_location_mode
from inkedin.models import (
    FallbackPolicy,
    FilterState,
    LocationMode,
    ResultItem,
    ResultKind,
    ResultPage,
    ViewerProfile,
)
from inkedin.search.fsm import QuerySessionFSM, SessionState
from inkedin.search.interleave import Interleaver
from inkedin.search.models import QueryRequest, QueryResponse, is_location_scoped
from inkedin.telemetry import Telemetry, get_telemetry

logger = logging.getLogger(__name__)

FetchCoroutine = Coroutine[Any, Any, None]


class QueryService(Protocol):
    async def fetch_page(self, request: QueryRequest) -> QueryResponse: ...


@dataclass
class QuerySession:
    """Everything loaded for one session key."""

    token: int
    key: str
    state: FilterState
    interleaver: Interleaver
    fsm: QuerySessionFSM = field(default_factory=QuerySessionFSM)
    items: list[ResultItem] = field(default_factory=list)
    page: int = 0
    has_more: bool = False
    total: int | None = None
    tattoo_count: int = 0
    promo_count: int = 0
    fell_back: bool = False
    effective_key: str | None = None
    error: NetworkError | None = None
    failed_page: int | None = None
    _seen: set[tuple[str, Any]] = field(default_factory=set)

    @property
    def status(self) -> SessionState:
        return self.fsm.current_state

    def matches(self, key: str) -> bool:
        return key == self.key or key == self.effective_key

    def take_unseen(self, items: Iterable[ResultItem]) -> list[ResultItem]:
        fresh: list[ResultItem] = []
        for item in items:
            if item.id is None:
                fresh.append(item)
                continue
            if item.key in self._seen:
                continue
            self._seen.add(item.key)
            fresh.append(item)
        return fresh


class ResultPaginator:
    """Owns the current query session and its pages."""

    def __init__(
        self,
        service: QueryService,
        per_page: int = DEFAULT_PAGE_SIZE,
        cadence: int = PROMO_CADENCE,
        fallback_policy: FallbackPolicy = FallbackPolicy.ANY_LOCATION,
        viewer: ViewerProfile | None = None,
        telemetry: Telemetry | None = None,
        on_change: Callable[[QuerySession], None] | None = None,
        on_fallback: Callable[[QuerySession], None] | None = None,
    ) -> None:
        self.service = service
        self.per_page = per_page
        self.cadence = cadence
        self.fallback_policy = fallback_policy
        self.viewer = viewer or ViewerProfile()
        self._telemetry = telemetry
        self.on_change = on_change
        self.on_fallback = on_fallback
        self._session: QuerySession | None = None
        self._next_token = 0

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry if self._telemetry is not None else get_telemetry()

    @property
    def session(self) -> QuerySession | None:
        return self._session

    @property
    def items(self) -> list[ResultItem]:
        return list(self._session.items) if self._session else []

    @property
    def has_more(self) -> bool:
        return bool(self._session and self._session.has_more)

    @property
    def status(self) -> SessionState:
        return self._session.status if self._session else SessionState.IDLE

    @property
    def error(self) -> NetworkError | None:
        return self._session.error if self._session else None

    def session_key(self, state: FilterState) -> str:
        return QueryRequest.from_state(state, per_page=self.per_page).session_key()

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def begin(self, state: FilterState) -> FetchCoroutine | None:
        """Open a new session for *state* unless it maps to the current one."""
        key = self.session_key(state)
        if self._session is not None and self._session.matches(key):
            return None
        self._next_token += 1
        session = QuerySession(
            token=self._next_token,
            key=key,
            state=state,
            interleaver=Interleaver(self.cadence),
        )
        previous = self._session
        self._session = session
        session.fsm.trigger("start")
        if previous is not None and previous.fsm.in_flight:
            logger.debug("session %d superseded by %d while in flight", previous.token, session.token)
        self._notify(session)
        return self._run(session, 1)

    def load_more(self) -> FetchCoroutine | None:
        """Fetch the next page, unless there is none or a fetch is pending."""
        session = self._session
        if session is None or not session.has_more:
            return None
        try:
            session.fsm.trigger("load_more")
        except TransitionNotAllowedError:
            return None
        self._notify(session)
        return self._run(session, session.page + 1)

    def retry(self) -> FetchCoroutine | None:
        """Re-issue the page that failed. Loaded pages are kept."""
        session = self._session
        if session is None or session.status is not SessionState.FAILED:
            return None
        page = session.failed_page or 1
        session.fsm.trigger("retry_first" if page == 1 else "retry_more")
        self._notify(session)
        return self._run(session, page)

    async def fetch_page(self, state: FilterState, page: int) -> ResultPage:
        """Fetch one page for *state*, outside any session bookkeeping."""
        response = await self.service.fetch_page(QueryRequest.from_state(state, page, self.per_page))
        return response.to_page(page, self.per_page)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _notify(self, session: QuerySession) -> None:
        if self.on_change is not None and session is self._session:
            self.on_change(session)

    def _should_fall_back(self, session: QuerySession, result: ResultPage) -> bool:
        if session.fell_back or self.fallback_policy is FallbackPolicy.OFF:
            return False
        if self.fallback_policy is FallbackPolicy.NEW_VIEWER and not self.viewer.is_new:
            return False
        return is_location_scoped(session.state) and not result.of_kind(ResultKind.TATTOO)

    async def _run(self, session: QuerySession, page: int) -> None:
        attributes = {
            "session.token": session.token,
            "session.page": page,
            "session.fallback": session.fell_back,
        }
        with self.telemetry.span("discovery.fetch_page", attributes) as span:
            try:
                result = await self.fetch_page(session.state, page)
            except NetworkError as exc:
                if session is not self._session:
                    span.set_attribute("session.stale", True)
                    logger.debug("Dropping stale failure for session %d page %d: %s", session.token, page, exc)
                    return
                span.record_exception(exc)
                session.error = exc
                session.failed_page = page
                session.fsm.trigger("fail")
                self.telemetry.log.warning(
                    f"page fetch failed session={session.token} page={page} "
                    f"status={exc.status_code} timed_out={exc.timed_out}"
                )
                self._notify(session)
                return

            if session is not self._session:
                span.set_attribute("session.stale", True)
                logger.debug("Dropping stale page %d for session %d", page, session.token)
                return
            span.set_attribute("session.stale", False)

            if page == 1 and self._should_fall_back(session, result):
                session.fell_back = True
                session.state = set_location_mode(session.state, LocationMode.ANY)
                session.effective_key = self.session_key(session.state)
                session.fsm.trigger("refetch")
                self.telemetry.log.info(
                    f"empty location-scoped first page, retrying anywhere session={session.token}"
                )
                if self.on_fallback is not None:
                    self.on_fallback(session)
                self._notify(session)
            else:
                self._apply(session, result)
                span.set_attribute("session.items", len(session.items))
                return

        await self._run(session, 1)

    def _apply(self, session: QuerySession, result: ResultPage) -> None:
        page, has_more = result.page, result.has_more
        tattoos = session.take_unseen(result.of_kind(ResultKind.TATTOO))
        promos = session.take_unseen(result.of_kind(ResultKind.UNCLAIMED_STUDIO))
        session.items.extend(session.interleaver.extend(tattoos, promos, final=not has_more))
        session.page = page
        session.has_more = has_more
        if result.total is not None:
            session.total = result.total
        session.tattoo_count += len(tattoos)
        session.promo_count += len(promos)
        session.error = None
        session.failed_page = None
        session.fsm.trigger("succeed")
        logger.debug(
            "session %d page %d: +%d tattoos +%d promos has_more=%s",
            session.token, page, len(tattoos), len(promos), has_more,
        )
        self._notify(session)
