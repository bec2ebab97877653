"""Query session lifecycle state machine.

One ``QuerySessionFSM`` per query session, wrapping a
``python-statemachine`` definition. Triggering an event the current state
does not allow raises ``TransitionNotAllowedError`` and leaves the state
unchanged.

    idle --start--> loading --succeed--> loaded --load_more--> loading_more
    loading / loading_more --fail--> failed
    loading_more --succeed--> loaded
    loading --refetch--> loading            (single location fallback)
    failed --retry_first--> loading
    failed --retry_more--> loading_more
"""

from __future__ import annotations

from enum import Enum

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from inkedin.exceptions import TransitionNotAllowedError


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"
    FAILED = "failed"


class QueryLifecycleSM(StateMachine):
    """Five-state lifecycle of one query session.

    No state is final: an exhausted session stays ``loaded`` and is
    replaced by a new session when the filters change.
    """

    idle = State("idle", initial=True, value="idle")
    loading = State("loading", value="loading")
    loaded = State("loaded", value="loaded")
    loading_more = State("loading_more", value="loading_more")
    failed = State("failed", value="failed")

    start = idle.to(loading)
    succeed = loading.to(loaded) | loading_more.to(loaded)
    fail = loading.to(failed) | loading_more.to(failed)
    load_more = loaded.to(loading_more)
    refetch = loading.to(loading)
    retry_first = failed.to(loading)
    retry_more = failed.to(loading_more)


EVENTS = frozenset(
    {"start", "succeed", "fail", "load_more", "refetch", "retry_first", "retry_more"}
)

IN_FLIGHT = frozenset({SessionState.LOADING, SessionState.LOADING_MORE})


class QuerySessionFSM:
    """Lifecycle of one query session."""

    def __init__(self, initial: SessionState = SessionState.IDLE) -> None:
        self._machine = QueryLifecycleSM(start_value=SessionState(initial).value)

    @property
    def current_state(self) -> SessionState:
        return SessionState(self._machine.current_state.value)

    @property
    def in_flight(self) -> bool:
        return self.current_state in IN_FLIGHT

    def trigger(self, event: str) -> SessionState:
        if event not in EVENTS:
            raise TransitionNotAllowedError(f"Unknown event: {event}")
        source = self.current_state
        try:
            getattr(self._machine, event)()
        except TransitionNotAllowed as exc:
            raise TransitionNotAllowedError(
                f"Event '{event}' not allowed from state '{source.value}'"
            ) from exc
        return self.current_state
