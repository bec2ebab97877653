"""Async HTTP client for the paginated query service."""

from __future__ import annotations

import logging

import httpx

from inkedin.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_SUBJECT
from inkedin.exceptions import NetworkError
from inkedin.search.models import QueryRequest, QueryResponse

logger = logging.getLogger(__name__)


class QueryServiceClient:
    """POSTs a ``QueryRequest`` to ``{base_url}/{subject}``.

    Errors are mapped onto ``NetworkError``; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        subject: str = DEFAULT_SUBJECT,
        token: str | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.subject = subject.strip("/")
        self._token = token
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch_page(self, request: QueryRequest) -> QueryResponse:
        """Fetch one page.

        Raises:
            NetworkError: On timeout (``timed_out=True``), transport failure,
                non-2xx status (``status_code`` set), or an unparseable body.
        """
        url = f"{self.base_url}/{self.subject}"
        try:
            response = await self.http.post(url, json=request.payload(), headers=self._headers())
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Request to {url} timed out", timed_out=True) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if response.status_code >= 400:
            detail = response.text[:200]
            raise NetworkError(
                f"Query service returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        try:
            return QueryResponse.parse(response.json())
        except ValueError as exc:
            raise NetworkError(
                f"Malformed query service response: {exc}", status_code=response.status_code
            ) from exc
