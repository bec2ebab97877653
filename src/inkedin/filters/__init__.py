"""Filter state: pure mutations, the store, URL codec, badges and preferences."""

from .badges import BadgeLookups, derive_badges, has_active_filters, remove_badge
from .preferences import DistancePreferences
from .store import FilterStore
from .url_codec import UrlFilters, decode, decode_state, encode

__all__ = [
    "BadgeLookups",
    "DistancePreferences",
    "FilterStore",
    "UrlFilters",
    "decode",
    "decode_state",
    "derive_badges",
    "encode",
    "has_active_filters",
    "remove_badge",
]
