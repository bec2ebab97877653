"""TUI widget modules for the discovery interface."""

from .badges import BadgeBar, BadgeButton
from .filter_panel import FilterPanel
from .results import ResultCard, ResultsList
from .search_bar import LocationBar, SearchBar

__all__ = [
    "BadgeBar",
    "BadgeButton",
    "FilterPanel",
    "LocationBar",
    "ResultCard",
    "ResultsList",
    "SearchBar",
]
