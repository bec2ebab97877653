"""InkedIn discovery TUI.

A thin Textual front-end over ``DiscoveryEngine``. Widgets post messages,
the App forwards them to the engine's controller, and an engine listener
redraws the badge bar, results and status line after every change.
"""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Static

from inkedin.engine.discovery import DiscoveryEngine
from inkedin.models import LocationMode
from inkedin.search.fsm import SessionState
from inkedin.tui.messages import (
    BadgeDismissed,
    BooksOpenToggled,
    DistanceSelected,
    LocationEdited,
    LocationModeSelected,
    SearchEdited,
    StylesChanged,
)
from inkedin.tui.widgets import BadgeBar, FilterPanel, LocationBar, ResultsList, SearchBar


class DiscoveryApp(App):
    """Search, filter and scroll the tattoo catalog from a terminal."""

    TITLE = "InkedIn"
    SUB_TITLE = "Discover tattoos"

    CSS = """
    #status-bar {
        dock: bottom;
        height: 1;
        background: $primary-background;
        color: $text;
        padding: 0 1;
    }
    #location-error {
        color: $error;
        padding: 0 1;
        height: auto;
    }
    """

    BINDINGS = [
        ("ctrl+f", "focus_search", "Search"),
        ("ctrl+l", "load_more", "Load more"),
        ("ctrl+r", "retry", "Retry"),
        ("escape", "clear_all", "Clear filters"),
    ]

    def __init__(self, engine: DiscoveryEngine, initial_query: str = "") -> None:
        """Initialize the app around an engine.

        Args:
            engine: Fully wired engine; the App does not build services itself.
            initial_query: Query string to hydrate filters from on mount.
        """
        super().__init__()
        self.engine = engine
        self.initial_query = initial_query
        self.telemetry = engine.telemetry

    def compose(self) -> ComposeResult:
        yield Header()
        yield SearchBar()
        yield LocationBar(self.engine.state.location_mode)
        yield Static("", id="location-error")
        yield FilterPanel(self.engine.lookups.style_names)
        yield BadgeBar()
        yield ResultsList()
        yield Static("Ready", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        with self.telemetry.span("tui.mount", {"mount.has_query": bool(self.initial_query)}):
            self.engine.add_listener(lambda _engine: self.refresh_view())
            self.engine.start(self.initial_query)
            self.refresh_view()
            self.telemetry.log.info("app mounted")

    async def on_unmount(self) -> None:
        await self.engine.aclose()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh_view(self) -> None:
        engine = self.engine
        state = engine.state
        try:
            self.query_one(LocationBar).sync(state.location_mode, state.location_text)
            self.query_one(FilterPanel).sync(state)
            self.query_one(BadgeBar).update_badges(engine.badges)
        except Exception as e:
            # Widgets are gone during shutdown.
            self.log.warning(f"refresh skipped: {e!r}")
            return

        error = engine.location_error
        self.query_one("#location-error", Static).update(str(error) if error else "")

        results = self.query_one(ResultsList)
        status = engine.status
        session = engine.paginator.session
        if status is SessionState.LOADING:
            results.update_status("Searching...")
            status_text = "Searching..."
        elif status is SessionState.FAILED and not engine.items:
            results.update_status(f"Error: {engine.paginator.error}  (Ctrl+R to retry)")
            status_text = "Error"
        else:
            results.update_results(engine.items, engine.paginator.has_more, engine.empty_state)
            total = session.total if session and session.total is not None else len(engine.items)
            status_text = f"{len(engine.items)} shown | {total} total"
            if status is SessionState.LOADING_MORE:
                status_text += " | loading more..."
            elif status is SessionState.FAILED:
                status_text += f" | error: {engine.paginator.error} (Ctrl+R)"
        self.query_one("#status-bar", Static).update(f"{status_text} | ?{engine.url}")

    # ------------------------------------------------------------------
    # Message handlers
    # ------------------------------------------------------------------

    def on_search_edited(self, event: SearchEdited) -> None:
        if event.submit:
            self.engine.controller.submit_search(event.text)
        else:
            self.engine.controller.input_search(event.text)

    def on_location_edited(self, event: LocationEdited) -> None:
        self.engine.controller.input_location_text(event.text)

    def on_location_mode_selected(self, event: LocationModeSelected) -> None:
        self.telemetry.log.info(f"location mode selected mode={event.mode.value}")
        self.engine.controller.select_location_mode(event.mode)

    def on_styles_changed(self, event: StylesChanged) -> None:
        known = self.engine.lookups.style_names
        current = frozenset(sid for sid in self.engine.state.style_ids if sid in known)
        for style_id in sorted(current ^ event.style_ids):
            self.engine.controller.toggle_style(style_id)

    def on_distance_selected(self, event: DistanceSelected) -> None:
        if self.engine.state.location_mode is LocationMode.ANY:
            self.notify("Pick a location to filter by distance", severity="warning")
        self.engine.controller.set_distance(event.distance)

    def on_books_open_toggled(self, event: BooksOpenToggled) -> None:
        self.engine.controller.set_books_open(event.books_open)

    def on_badge_dismissed(self, event: BadgeDismissed) -> None:
        with self.telemetry.span("tui.badge_dismissed", {"badge.kind": event.badge.kind.value}):
            self.engine.remove_badge(event.badge)

    # ------------------------------------------------------------------
    # Key binding actions
    # ------------------------------------------------------------------

    def action_focus_search(self) -> None:
        self.query_one(SearchBar).focus()

    def action_load_more(self) -> None:
        if not self.engine.load_more():
            self.notify("Nothing more to load")

    def action_retry(self) -> None:
        if not self.engine.retry():
            self.notify("Nothing to retry")

    def action_clear_all(self) -> None:
        self.query_one(SearchBar).value = ""
        self.engine.clear_all()
