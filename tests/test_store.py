"""Tests for FilterStore: commits, subscriptions, defaults, navigation."""

from __future__ import annotations

import json

import pytest

from inkedin.exceptions import InvalidFilterError
from inkedin.filters.badges import derive_badges
from inkedin.filters.preferences import DISMISSED_KEY, DistancePreferences
from inkedin.filters.store import FilterStore
from inkedin.filters.url_codec import UrlFilters
from inkedin.models import (
    BadgeKind,
    Coordinates,
    FilterState,
    LocationMode,
    ViewerProfile,
)

BERLIN = Coordinates(52.52, 13.405)


@pytest.fixture
def store() -> FilterStore:
    return FilterStore()


@pytest.fixture
def seen(store):
    states: list[FilterState] = []
    store.subscribe(states.append)
    return states


class TestCommits:
    def test_change_notifies_subscribers(self, store, seen):
        assert store.set_search_string("dragon") is True
        assert [s.search_string for s in seen] == ["dragon"]

    def test_noop_publishes_nothing(self, store, seen):
        store.set_search_string("dragon")
        assert store.set_search_string("dragon ") is False
        assert len(seen) == 1

    def test_subscribers_called_in_order(self, store):
        calls: list[str] = []
        store.subscribe(lambda s: calls.append("a"))
        store.subscribe(lambda s: calls.append("b"))
        store.toggle_style(1)
        assert calls == ["a", "b"]

    def test_unsubscribe(self, store):
        calls: list[FilterState] = []
        unsubscribe = store.subscribe(calls.append)
        unsubscribe()
        unsubscribe()
        store.toggle_tag(10)
        assert calls == []

    def test_invalid_mutation_leaves_state(self, store, seen):
        with pytest.raises(InvalidFilterError):
            store.set_distance(0)
        assert seen == []
        assert store.state == FilterState()

    def test_saved_styles_from_viewer(self):
        store = FilterStore(viewer=ViewerProfile(saved_style_ids=frozenset({2, 4})))
        store.toggle_style(4)
        store.toggle_style(4)
        store.set_apply_saved_styles(True)
        assert store.state.style_ids == {2}


class TestDefaults:
    def test_viewer_with_home_starts_near_me(self):
        store = FilterStore(viewer=ViewerProfile(has_home_location=True))
        assert store.state.location_mode is LocationMode.MY

    def test_viewer_without_home_starts_anywhere(self, store):
        assert store.state.location_mode is LocationMode.ANY

    def test_distance_dismissal_persists(self, tmp_path):
        path = tmp_path / "prefs.json"
        viewer = ViewerProfile(has_home_location=True)
        store = FilterStore(viewer=viewer, preferences=DistancePreferences(path))
        distance = next(b for b in derive_badges(store.state) if b.kind is BadgeKind.DISTANCE)

        store.remove_badge(distance)
        assert store.state.location_mode is LocationMode.ANY
        assert json.loads(path.read_text()) == {DISMISSED_KEY: True}

        again = FilterStore(viewer=viewer, preferences=DistancePreferences(path))
        assert again.state.location_mode is LocationMode.ANY

    def test_unreadable_preferences_ignored(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        assert DistancePreferences(path).distance_dismissed is False

    def test_clear_all_resets_to_defaults(self):
        store = FilterStore(viewer=ViewerProfile(has_home_location=True))
        store.set_location_mode(LocationMode.CUSTOM)
        store.set_location_text("Berlin")
        store.toggle_style(1)
        store.toggle_style(1)
        store.set_books_open(True)
        store.clear_all()
        assert store.state == FilterState(location_mode=LocationMode.MY)


class TestHydrateAndNavigate:
    def test_hydrate_overlays(self, store):
        store.toggle_tag(11)
        store.hydrate(UrlFilters(search_string="dragon"))
        assert store.state.search_string == "dragon"
        assert store.state.tag_ids == {11}

    def test_navigate_replaces_url_fields(self, store):
        store.toggle_tag(11)
        store.toggle_style(2)
        store.toggle_style(2)
        store.set_books_open(True)
        store.navigate(UrlFilters(search_string="koi"))
        assert store.state.search_string == "koi"
        assert store.state.tag_ids == frozenset()
        assert store.state.books_open is False
        assert store.state.dismissed_style_ids == {2}

    def test_navigate_custom_location(self, store):
        store.navigate(
            UrlFilters(location_mode=LocationMode.CUSTOM, location_text="Berlin", coordinates=BERLIN)
        )
        assert store.state.location_mode is LocationMode.CUSTOM
        assert store.state.coordinates == BERLIN

    def test_navigate_to_same_state_is_silent(self, store, seen):
        store.navigate(UrlFilters())
        assert seen == []
