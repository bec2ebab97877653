"""Tests for the pure FilterState mutations."""

from __future__ import annotations

import pytest

from inkedin.exceptions import InputValidationError, InvalidFilterError
from inkedin.filters import mutations, url_codec
from inkedin.filters.url_codec import UrlFilters
from inkedin.models import (
    Coordinates,
    DistanceUnit,
    FilterState,
    LocationDefaults,
    LocationMode,
)

BERLIN = Coordinates(52.52, 13.405)


def custom(text: str = "Berlin", coords: Coordinates | None = BERLIN) -> FilterState:
    return FilterState(location_mode=LocationMode.CUSTOM, location_text=text, coordinates=coords)


def assert_location_invariants(state: FilterState) -> None:
    if state.location_mode is LocationMode.ANY:
        assert state.coordinates is None
        assert state.location_text == ""
    if state.location_mode is LocationMode.MY:
        assert state.location_text == ""


class TestCoordinates:
    def test_out_of_range_rejected(self):
        with pytest.raises(InputValidationError):
            Coordinates(91.0, 0.0)
        with pytest.raises(InputValidationError):
            Coordinates(0.0, -180.5)

    def test_bounds_inclusive(self):
        assert Coordinates(90.0, -180.0).lat == 90.0


class TestStylesAndTags:
    def test_toggle_style_adds_then_dismisses(self):
        state = mutations.toggle_style(FilterState(), 3)
        assert state.style_ids == {3}
        assert state.dismissed_style_ids == frozenset()

        state = mutations.toggle_style(state, 3)
        assert state.style_ids == frozenset()
        assert state.dismissed_style_ids == {3}

    def test_toggle_tag_symmetric(self):
        once = mutations.toggle_tag(FilterState(), 10)
        twice = mutations.toggle_tag(once, 10)
        assert once.tag_ids == {10}
        assert twice == FilterState()

    def test_dismissals_accumulate(self):
        state = FilterState(style_ids=frozenset({1, 2}))
        state = mutations.dismiss_style(state, 1)
        state = mutations.dismiss_style(state, 2)
        assert state.dismissed_style_ids == {1, 2}

    @pytest.mark.parametrize(
        "mutation",
        [mutations.toggle_style, mutations.toggle_tag, mutations.dismiss_style, mutations.set_studio_id],
    )
    @pytest.mark.parametrize("value", [0, -3, True, "7"])
    def test_ids_must_be_positive_integers(self, mutation, value):
        with pytest.raises(InvalidFilterError):
            mutation(FilterState(), value)

    def test_ids_survive_the_url(self):
        state = mutations.toggle_style(FilterState(), 1)
        state = mutations.toggle_tag(state, 10)
        state = mutations.set_studio_id(state, 7)
        params = url_codec.parse_query_string(url_codec.to_query_string(url_codec.encode(state)))
        assert url_codec.decode_state(params, FilterState()) == state

    def test_apply_saved_styles_skips_dismissed(self):
        state = FilterState(style_ids=frozenset({1}), dismissed_style_ids=frozenset({2}))
        state = mutations.set_apply_saved_styles(state, True, {2, 3})
        assert state.style_ids == {1, 3}
        assert state.apply_saved_styles is True

    def test_apply_saved_styles_off_keeps_merged(self):
        state = mutations.set_apply_saved_styles(FilterState(), True, {2, 3})
        state = mutations.set_apply_saved_styles(state, False, {2, 3})
        assert state.apply_saved_styles is False
        assert state.style_ids == {2, 3}


class TestDistance:
    @pytest.mark.parametrize("value", [0, -5, True, 2.5])
    def test_rejects_non_positive_or_non_int(self, value):
        with pytest.raises(InvalidFilterError):
            mutations.set_distance(FilterState(), value)

    def test_sets_distance(self):
        assert mutations.set_distance(FilterState(), 25).distance == 25

    def test_unit_from_string(self):
        assert mutations.set_distance_unit(FilterState(), "km").distance_unit is DistanceUnit.KILOMETERS

    def test_unknown_unit(self):
        with pytest.raises(InvalidFilterError):
            mutations.set_distance_unit(FilterState(), "yards")


class TestLocation:
    def test_anywhere_clears_text_and_coordinates(self):
        state = mutations.set_location_mode(custom(), LocationMode.ANY)
        assert state.location_mode is LocationMode.ANY
        assert state.coordinates is None
        assert state.location_text == ""

    def test_my_location_clears_text_and_coordinates(self):
        state = mutations.set_location_mode(custom(), LocationMode.MY)
        assert state.location_text == ""
        assert state.coordinates is None

    def test_custom_drops_device_coordinates(self):
        mine = FilterState(location_mode=LocationMode.MY, coordinates=BERLIN)
        state = mutations.set_location_mode(mine, LocationMode.CUSTOM)
        assert state.location_mode is LocationMode.CUSTOM
        assert state.coordinates is None

    def test_same_mode_is_noop(self):
        state = custom()
        assert mutations.set_location_mode(state, LocationMode.CUSTOM) is state

    def test_unknown_mode(self):
        with pytest.raises(InvalidFilterError):
            mutations.set_location_mode(FilterState(), "nowhere")

    def test_text_ignored_outside_custom(self):
        state = FilterState(location_mode=LocationMode.ANY)
        assert mutations.set_location_text(state, "Berlin") is state

    def test_text_edit_keeps_last_good_coordinates(self):
        state = mutations.set_location_text(custom(), "Berl")
        assert state.location_text == "Berl"
        assert state.coordinates == BERLIN

    def test_clearing_text_clears_coordinates(self):
        state = mutations.set_location_text(custom(), "   ")
        assert state.location_text == ""
        assert state.coordinates is None

    def test_coordinates_for_superseded_text_not_applied(self):
        state = custom("Paris", None)
        assert mutations.set_coordinates(state, BERLIN, for_text="Berlin") is state

    def test_coordinates_for_other_mode_not_applied(self):
        state = FilterState(location_mode=LocationMode.ANY)
        assert mutations.set_coordinates(state, BERLIN, for_mode=LocationMode.MY) is state

    def test_coordinates_never_stored_under_anywhere(self):
        state = FilterState(location_mode=LocationMode.ANY)
        assert mutations.set_coordinates(state, BERLIN).coordinates is None

    def test_normalize_repairs_anywhere(self):
        broken = FilterState(location_mode=LocationMode.ANY, location_text="x", coordinates=BERLIN)
        fixed = mutations.normalize(broken)
        assert fixed.coordinates is None
        assert fixed.location_text == ""

    def test_invariants_hold_over_mutation_sequences(self):
        steps = [
            lambda s: mutations.set_location_mode(s, LocationMode.CUSTOM),
            lambda s: mutations.set_location_text(s, "Berlin"),
            lambda s: mutations.set_coordinates(s, BERLIN),
            lambda s: mutations.set_location_mode(s, LocationMode.MY),
            lambda s: mutations.set_coordinates(s, BERLIN),
            lambda s: mutations.set_location_text(s, "ignored"),
            lambda s: mutations.set_location_mode(s, LocationMode.ANY),
            lambda s: mutations.set_coordinates(s, BERLIN),
        ]
        state = FilterState()
        for step in steps:
            state = step(state)
            assert_location_invariants(state)


class TestClearAndHydrate:
    def test_clear_all_uses_defaults_and_forgets_dismissals(self):
        state = FilterState(
            search_string="dragon",
            style_ids=frozenset({1}),
            dismissed_style_ids=frozenset({2}),
            books_open=True,
            studio_id=7,
        )
        cleared = mutations.clear_all(state, LocationDefaults(LocationMode.MY, 50))
        assert cleared == FilterState(location_mode=LocationMode.MY, distance=50)

    def test_hydrate_overwrites_present_fields_only(self):
        state = FilterState(
            search_string="rose",
            tag_ids=frozenset({11}),
            dismissed_style_ids=frozenset({4}),
            apply_saved_styles=True,
        )
        url = UrlFilters(search_string="dragon", style_ids=frozenset({1, 2}))
        hydrated = mutations.hydrate(state, url)
        assert hydrated.search_string == "dragon"
        assert hydrated.style_ids == {1, 2}
        assert hydrated.tag_ids == {11}
        assert hydrated.dismissed_style_ids == {4}
        assert hydrated.apply_saved_styles is True

    def test_hydrate_mode_switch_drops_old_position(self):
        state = FilterState(location_mode=LocationMode.MY, coordinates=BERLIN)
        hydrated = mutations.hydrate(state, UrlFilters(location_mode=LocationMode.CUSTOM, location_text="Paris"))
        assert hydrated.location_mode is LocationMode.CUSTOM
        assert hydrated.location_text == "Paris"
        assert hydrated.coordinates is None

    def test_search_string_trimmed(self):
        assert mutations.set_search_string(FilterState(), "  dragon ").search_string == "dragon"
