"""Custom Textual Message types for inter-widget communication.

Widgets never call the engine directly. They post these messages and the
App forwards them to the engine's controller, which owns debouncing.
"""

from __future__ import annotations

from textual.message import Message

from inkedin.models import ActiveFilterBadge, LocationMode


class SearchEdited(Message):
    """Search text changed. ``submit`` is True when Enter was pressed."""

    def __init__(self, text: str, submit: bool = False) -> None:
        self.text = text
        self.submit = submit
        super().__init__()


class LocationEdited(Message):
    """Custom location text changed."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__()


class LocationModeSelected(Message):
    def __init__(self, mode: LocationMode) -> None:
        self.mode = mode
        super().__init__()


class StylesChanged(Message):
    """Style selection changed; carries the full selected set."""

    def __init__(self, style_ids: frozenset[int]) -> None:
        self.style_ids = style_ids
        super().__init__()


class DistanceSelected(Message):
    def __init__(self, distance: int) -> None:
        self.distance = distance
        super().__init__()


class BooksOpenToggled(Message):
    def __init__(self, books_open: bool) -> None:
        self.books_open = books_open
        super().__init__()


class BadgeDismissed(Message):
    """Fired when the user removes an active-filter badge."""

    def __init__(self, badge: ActiveFilterBadge) -> None:
        self.badge = badge
        super().__init__()
