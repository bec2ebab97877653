"""Pydantic models for the query service wire format."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from inkedin.constants import DEFAULT_PAGE_SIZE
from inkedin.models import FilterState, LocationMode, ResultItem, ResultKind, ResultPage

logger = logging.getLogger(__name__)


def is_location_scoped(state: FilterState) -> bool:
    """True when the query carries a geographic constraint."""
    if state.location_mode is LocationMode.MY:
        return True
    return state.location_mode is LocationMode.CUSTOM and state.coordinates is not None


class QueryRequest(BaseModel):
    """Body POSTed to ``/{subject}``. Field aliases are the wire names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    search_string: str = Field("", alias="searchString")
    styles: list[int] = Field(default_factory=list)
    tags: list[int] = Field(default_factory=list)
    distance: int | None = None
    distance_unit: str | None = Field(None, alias="distanceUnit")
    location_coords: str | None = Field(None, alias="locationCoords")
    use_my_location: bool = Field(False, alias="useMyLocation")
    use_any_location: bool = Field(False, alias="useAnyLocation")
    studio_id: int | None = None
    books_open: bool = Field(False, alias="booksOpen")
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_state(
        cls, state: FilterState, page: int = 1, per_page: int = DEFAULT_PAGE_SIZE
    ) -> "QueryRequest":
        """Project the query-relevant part of *state*.

        Distance and coordinates are only sent when the query is anchored
        somewhere. Under ``my`` without a device fix, neither coordinates
        nor text are sent and the backend uses the viewer's stored location.
        """
        anchored = state.location_mode is not LocationMode.ANY
        coords = None
        if anchored and state.coordinates is not None:
            coords = f"{state.coordinates.lat},{state.coordinates.lng}"
        return cls(
            search_string=state.search_string,
            styles=sorted(state.style_ids),
            tags=sorted(state.tag_ids),
            distance=state.distance if anchored else None,
            distance_unit=state.distance_unit.value if anchored else None,
            location_coords=coords,
            use_my_location=state.location_mode is LocationMode.MY,
            use_any_location=state.location_mode is LocationMode.ANY,
            studio_id=state.studio_id,
            books_open=state.books_open,
            page=page,
            per_page=per_page,
        )

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def session_key(self) -> str:
        """Canonical JSON of the request without its page number."""
        body = self.model_dump(by_alias=True, exclude_none=True, exclude={"page"})
        return json.dumps(body, sort_keys=True, separators=(",", ":"))


def session_key(state: FilterState, per_page: int = DEFAULT_PAGE_SIZE) -> str:
    return QueryRequest.from_state(state, per_page=per_page).session_key()


class QueryResponse(BaseModel):
    """One page from the query service.

    Accepts the current envelope ``{items, hasMore, total, unclaimedStudios}``
    and the legacy ``{response, has_more, total}`` shape. A bare JSON list
    is treated as ``items`` by ``parse``.
    """

    model_config = ConfigDict(extra="ignore")

    items: list[dict[str, Any]] = Field(
        default_factory=list, validation_alias=AliasChoices("items", "response", "data")
    )
    unclaimed_studios: list[dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("unclaimedStudios", "unclaimed_studios"),
    )
    has_more: bool | None = Field(None, validation_alias=AliasChoices("hasMore", "has_more"))
    total: int | None = None

    @classmethod
    def parse(cls, payload: Any) -> "QueryResponse":
        if isinstance(payload, list):
            return cls.model_validate({"items": payload})
        return cls.model_validate(payload)

    def resolved_has_more(self, per_page: int) -> bool:
        """Backend flag when present, else whether the page came back full."""
        if self.has_more is not None:
            return self.has_more
        return len(self.items) >= per_page

    def to_page(self, page: int, per_page: int) -> ResultPage:
        return ResultPage(
            items=self.tattoos() + self.promos(),
            page=page,
            has_more=self.resolved_has_more(per_page),
            total=self.total,
        )

    def tattoos(self) -> list[ResultItem]:
        return [ResultItem(ResultKind.TATTOO, item.get("id"), item) for item in self.items]

    def promos(self) -> list[ResultItem]:
        return [
            ResultItem(ResultKind.UNCLAIMED_STUDIO, item.get("id"), item)
            for item in self.unclaimed_studios
        ]
