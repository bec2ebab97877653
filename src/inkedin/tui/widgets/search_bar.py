"""Search and location inputs.

Neither widget debounces on its own: every edit is forwarded to the App,
and the engine's controller decides when an edit becomes a committed
filter change. Enter in the search bar commits immediately.
"""

from __future__ import annotations

from textual.containers import Horizontal
from textual.widgets import Input, Select

from inkedin.models import LocationMode
from inkedin.telemetry import get_telemetry
from inkedin.tui.messages import LocationEdited, LocationModeSelected, SearchEdited

MODE_OPTIONS = [
    ("Near me", LocationMode.MY),
    ("Custom location", LocationMode.CUSTOM),
    ("Anywhere", LocationMode.ANY),
]


class SearchBar(Input):
    """Free-text search over tattoos, artists and studios."""

    DEFAULT_CSS = """
    SearchBar {
        dock: top;
        height: 3;
        padding: 0 1;
        border-bottom: solid $primary;
    }
    """

    def __init__(self) -> None:
        super().__init__(
            placeholder="Search tattoos... (Ctrl+F to focus)",
            id="search-bar",
        )

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input is not self:
            return
        event.stop()
        self.post_message(SearchEdited(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input is not self:
            return
        event.stop()
        get_telemetry().log.info(f"search submitted query={event.value.strip()!r}")
        self.post_message(SearchEdited(event.value, submit=True))


class LocationBar(Horizontal):
    """Location mode selector plus the custom location text field."""

    DEFAULT_CSS = """
    LocationBar {
        height: auto;
        padding: 0 1;
    }
    LocationBar Select {
        width: 24;
    }
    LocationBar Input {
        width: 1fr;
    }
    """

    def __init__(self, mode: LocationMode = LocationMode.ANY) -> None:
        super().__init__(id="location-bar")
        self._mode = mode
        self._text = ""

    def compose(self):
        yield Select(MODE_OPTIONS, value=self._mode, allow_blank=False, id="location-mode")
        yield Input(
            placeholder="City or address",
            id="location-text",
            disabled=self._mode is not LocationMode.CUSTOM,
        )

    def sync(self, mode: LocationMode, text: str) -> None:
        """Reflect engine state.

        Change events for values set here arrive later; they are recognised
        by matching the last synced values and not forwarded.
        """
        self._mode = mode
        select = self.query_one("#location-mode", Select)
        if select.value != mode:
            select.value = mode
        field = self.query_one("#location-text", Input)
        field.disabled = mode is not LocationMode.CUSTOM
        if field.value != text and not field.has_focus:
            self._text = text
            field.value = text

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        if event.value is Select.NULL or event.value == self._mode:
            return
        self._mode = LocationMode(event.value)
        self.query_one("#location-text", Input).disabled = self._mode is not LocationMode.CUSTOM
        self.post_message(LocationModeSelected(self._mode))

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        if event.value == self._text:
            return
        self._text = event.value
        self.post_message(LocationEdited(event.value))
