"""Tests for the query service wire models and HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from inkedin.exceptions import NetworkError
from inkedin.models import Coordinates, FilterState, LocationMode, ResultKind
from inkedin.search.client import QueryServiceClient
from inkedin.search.models import QueryRequest, QueryResponse, is_location_scoped, session_key

API = "https://api.test"
BERLIN = Coordinates(52.52, 13.405)


class TestQueryRequest:
    def test_anywhere_omits_distance(self):
        payload = QueryRequest.from_state(FilterState(search_string="koi", style_ids=frozenset({3, 1}))).payload()
        assert payload == {
            "searchString": "koi",
            "styles": [1, 3],
            "tags": [],
            "useMyLocation": False,
            "useAnyLocation": True,
            "booksOpen": False,
            "page": 1,
            "per_page": 20,
        }

    def test_custom_sends_coordinates(self):
        state = FilterState(
            location_mode=LocationMode.CUSTOM, location_text="Berlin", coordinates=BERLIN, distance=25
        )
        payload = QueryRequest.from_state(state, page=3).payload()
        assert payload["locationCoords"] == "52.52,13.405"
        assert payload["distance"] == 25
        assert payload["distanceUnit"] == "mi"
        assert payload["page"] == 3

    def test_my_location_without_fix(self):
        payload = QueryRequest.from_state(FilterState(location_mode=LocationMode.MY)).payload()
        assert payload["useMyLocation"] is True
        assert "locationCoords" not in payload

    def test_session_key_ignores_page_and_ui_fields(self):
        a = FilterState(search_string="koi")
        b = FilterState(search_string="koi", dismissed_style_ids=frozenset({1}), distance=10)
        assert session_key(a) == session_key(b)
        assert QueryRequest.from_state(a, page=1).session_key() == QueryRequest.from_state(a, page=4).session_key()
        assert session_key(a) != session_key(FilterState(search_string="koi", books_open=True))

    def test_untyped_custom_text_does_not_change_key(self):
        pending = FilterState(location_mode=LocationMode.CUSTOM, location_text="Ber")
        assert session_key(pending) == session_key(
            FilterState(location_mode=LocationMode.CUSTOM, location_text="Berlin")
        )

    @pytest.mark.parametrize(
        "state, scoped",
        [
            (FilterState(), False),
            (FilterState(location_mode=LocationMode.MY), True),
            (FilterState(location_mode=LocationMode.CUSTOM, location_text="Ber"), False),
            (FilterState(location_mode=LocationMode.CUSTOM, coordinates=BERLIN), True),
        ],
    )
    def test_is_location_scoped(self, state, scoped):
        assert is_location_scoped(state) is scoped


class TestQueryResponse:
    def test_current_envelope(self):
        response = QueryResponse.parse(
            {"items": [{"id": 1}], "unclaimedStudios": [{"id": "s1"}], "hasMore": False, "total": 1}
        )
        assert [t.id for t in response.tattoos()] == [1]
        assert response.promos()[0].kind is ResultKind.UNCLAIMED_STUDIO
        assert response.resolved_has_more(20) is False

    def test_legacy_envelope(self):
        response = QueryResponse.parse({"response": [{"id": 1}, {"id": 2}], "has_more": True})
        assert len(response.items) == 2
        assert response.has_more is True

    def test_bare_list(self):
        assert len(QueryResponse.parse([{"id": 1}]).items) == 1

    def test_has_more_inferred_from_page_size(self):
        full = QueryResponse.parse([{"id": i} for i in range(20)])
        short = QueryResponse.parse([{"id": 1}])
        assert full.resolved_has_more(20) is True
        assert short.resolved_has_more(20) is False

    def test_payload_passed_through(self):
        record = {"id": 5, "title": "Koi", "artist": {"name": "Mo"}}
        assert QueryResponse.parse([record]).tattoos()[0].data == record


@pytest.fixture
async def client():
    http = httpx.AsyncClient()
    yield QueryServiceClient(API, subject="tattoos", token="tok", http=http)
    await http.aclose()


class TestQueryServiceClient:
    @respx.mock
    async def test_posts_payload_with_auth(self, client):
        route = respx.post(f"{API}/tattoos").mock(
            return_value=httpx.Response(200, json={"items": [{"id": 1}], "hasMore": False})
        )
        request = QueryRequest.from_state(FilterState(search_string="koi"))
        response = await client.fetch_page(request)

        assert response.items == [{"id": 1}]
        sent = route.calls.last.request
        assert sent.headers["Authorization"] == "Bearer tok"
        assert json.loads(sent.content)["searchString"] == "koi"

    @respx.mock
    async def test_anonymous_has_no_auth_header(self):
        route = respx.post(f"{API}/artists").mock(return_value=httpx.Response(200, json=[]))
        async with httpx.AsyncClient() as http:
            anonymous = QueryServiceClient(f"{API}/", subject="/artists", http=http)
            await anonymous.fetch_page(QueryRequest())
        assert "Authorization" not in route.calls.last.request.headers

    @respx.mock
    async def test_status_error(self, client):
        respx.post(f"{API}/tattoos").mock(return_value=httpx.Response(502, text="bad gateway"))
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_page(QueryRequest())
        assert exc_info.value.status_code == 502
        assert exc_info.value.timed_out is False

    @respx.mock
    async def test_timeout(self, client):
        respx.post(f"{API}/tattoos").mock(side_effect=httpx.ConnectTimeout("slow"))
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_page(QueryRequest())
        assert exc_info.value.timed_out is True

    @respx.mock
    async def test_connection_error(self, client):
        respx.post(f"{API}/tattoos").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError, match="failed"):
            await client.fetch_page(QueryRequest())

    @respx.mock
    async def test_unparseable_body(self, client):
        respx.post(f"{API}/tattoos").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(NetworkError, match="Malformed"):
            await client.fetch_page(QueryRequest())
