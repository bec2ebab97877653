"""Filter panel: style facets, search radius and the books-open switch.

Changes post messages for the App to forward. ``sync`` mirrors the
engine's state back into the controls; the change events those writes
cause are recognised against the last synced values and dropped.
"""

from __future__ import annotations

from typing import Mapping

from textual.containers import Horizontal, Vertical
from textual.widgets import Label, Select, SelectionList, Static, Switch

from inkedin.constants import DEFAULT_DISTANCE
from inkedin.models import FilterState
from inkedin.telemetry import get_telemetry
from inkedin.tui.messages import BooksOpenToggled, DistanceSelected, StylesChanged

DISTANCE_CHOICES = (10, 25, 50, 100, 250)


class FilterPanel(Vertical):
    """Style list, distance dropdown and books-open switch."""

    DEFAULT_CSS = """
    FilterPanel {
        height: auto;
        max-height: 20;
        padding: 1;
        border-bottom: solid $primary;
        background: $surface;
    }
    FilterPanel SelectionList {
        height: auto;
        max-height: 10;
    }
    FilterPanel Horizontal {
        height: auto;
    }
    """

    def __init__(self, style_names: Mapping[int, str] | None = None) -> None:
        super().__init__(id="filter-panel")
        self.style_names = dict(style_names or {})
        self._styles: frozenset[int] = frozenset()
        self._distance = DEFAULT_DISTANCE
        self._books_open = False

    def compose(self):
        yield Static("Filters", classes="filter-header")
        yield SelectionList[int](
            *[(name, sid) for sid, name in sorted(self.style_names.items(), key=lambda kv: kv[1])],
            id="filter-styles",
        )
        with Horizontal():
            yield Select(
                [(f"Within {d}", d) for d in DISTANCE_CHOICES],
                value=DEFAULT_DISTANCE,
                allow_blank=False,
                id="filter-distance",
            )
            yield Label("Books open")
            yield Switch(value=False, id="filter-books-open")

    def sync(self, state: FilterState) -> None:
        styles = self.query_one("#filter-styles", SelectionList)
        if frozenset(styles.selected) != state.style_ids:
            self._styles = state.style_ids
            styles.deselect_all()
            for sid in state.style_ids:
                if sid in self.style_names:
                    styles.select(sid)

        distance = self.query_one("#filter-distance", Select)
        if state.distance in DISTANCE_CHOICES and distance.value != state.distance:
            self._distance = state.distance
            distance.value = state.distance

        switch = self.query_one("#filter-books-open", Switch)
        if switch.value != state.books_open:
            self._books_open = state.books_open
            switch.value = state.books_open

    def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        event.stop()
        selected = frozenset(event.selection_list.selected)
        known = frozenset(sid for sid in self._styles if sid in self.style_names)
        if selected == known:
            return
        self._styles = selected | (self._styles - known)
        get_telemetry().log.info(f"styles changed selected={sorted(selected)}")
        self.post_message(StylesChanged(selected))

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        if event.value is Select.NULL or event.value == self._distance:
            return
        self._distance = int(event.value)
        self.post_message(DistanceSelected(self._distance))

    def on_switch_changed(self, event: Switch.Changed) -> None:
        event.stop()
        if event.value == self._books_open:
            return
        self._books_open = event.value
        self.post_message(BooksOpenToggled(event.value))
