"""Results list: interleaved tattoo and promo cards plus status lines.

ResultCard renders one item. ResultsList is the scrollable container; it
redraws from the engine's item list and shows the empty-state, error and
load-more hints.
"""

from __future__ import annotations

from rich.text import Text
from textual.containers import VerticalScroll
from textual.widgets import Static

from inkedin.models import EmptyState, ResultItem, ResultKind

EMPTY_STATE_TEXT = {
    EmptyState.FOUNDING_ARTIST: "Be one of our founding artists and get featured!",
    EmptyState.NO_RESULTS: "No tattoos match these filters. Try removing a filter.",
}


def _title(item: ResultItem) -> str:
    data = item.data
    for key in ("title", "name", "studio_name", "artist_name"):
        value = data.get(key)
        if value:
            return str(value)
    return f"#{item.id}"


class ResultCard(Static):
    """One card. Promos are styled apart from tattoos."""

    DEFAULT_CSS = """
    ResultCard {
        padding: 0 2;
        margin: 0 0 1 0;
        background: $surface;
        border: solid $primary-background;
        height: auto;
    }
    ResultCard.-promo {
        border: solid $warning;
    }
    """

    def __init__(self, item: ResultItem, position: int) -> None:
        self.item = item
        self.position = position
        display = Text()
        if item.kind is ResultKind.UNCLAIMED_STUDIO:
            display.append("Unclaimed studio  ", style="bold yellow")
            display.append(_title(item), style="bold")
            city = item.data.get("city") or item.data.get("location")
            if city:
                display.append(f"\n{city}", style="dim")
        else:
            display.append(_title(item), style="bold")
            artist = item.data.get("artist_name") or (item.data.get("artist") or {}).get("name")
            if artist and artist != _title(item):
                display.append(f"\nby {artist}", style="italic cyan")
        super().__init__(display)
        if item.kind is ResultKind.UNCLAIMED_STUDIO:
            self.add_class("-promo")


class ResultsList(VerticalScroll):
    DEFAULT_CSS = """
    ResultsList {
        width: 100%;
        height: 1fr;
    }
    ResultsList .scroll-hint {
        text-align: center;
        color: $text-muted;
        text-style: italic;
        padding: 0 1;
    }
    """

    def __init__(self) -> None:
        super().__init__(id="results-list")
        self.rendered: list[ResultItem] = []

    def update_results(
        self,
        items: list[ResultItem],
        has_more: bool = False,
        empty_state: EmptyState | None = None,
    ) -> None:
        """Show *items*. Appends in place when the list only grew."""
        if empty_state is not None:
            self.rendered = []
            self.remove_children()
            self.mount(Static(EMPTY_STATE_TEXT[empty_state], classes="empty-state"))
            return

        grew = len(items) >= len(self.rendered) and items[: len(self.rendered)] == self.rendered
        if not grew or not self.rendered:
            self.remove_children()
            start = 0
        else:
            for hint in self.query(".scroll-hint"):
                hint.remove()
            start = len(self.rendered)
        self.mount(*[ResultCard(item, i) for i, item in enumerate(items[start:], start=start)])
        self.rendered = list(items)
        if has_more:
            self.mount(Static("Ctrl+L to load more", classes="scroll-hint"))

    def update_status(self, text: str) -> None:
        """Replace everything with a single status line."""
        self.rendered = []
        self.remove_children()
        self.mount(Static(text))
