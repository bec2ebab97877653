"""Keep the address bar and the filter store in step.

Outbound: every committed state is encoded, and the URL is written only
when the canonical query string actually changes. Inbound: ``navigate``
decodes an externally supplied query string (first load, back/forward)
and replaces the URL-persisted filter fields with it. Rehydration never
writes the URL back.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from inkedin.filters.store import FilterStore
from inkedin.filters.url_codec import decode, encode, parse_query_string, to_query_string
from inkedin.models import FilterState

logger = logging.getLogger(__name__)


class UrlSync:
    def __init__(
        self,
        store: FilterStore,
        write: Callable[[str], None] | None = None,
        style_names: Mapping[str, int] | None = None,
    ) -> None:
        self.store = store
        self._write = write
        self.style_names = style_names
        self.current_query = to_query_string(encode(store.state))
        self.writes = 0
        self._rehydrating = False
        self._unsubscribe = store.subscribe(self.on_state)

    def close(self) -> None:
        self._unsubscribe()

    def on_state(self, state: FilterState) -> None:
        if self._rehydrating:
            return
        query = to_query_string(encode(state))
        if query == self.current_query:
            return
        self.current_query = query
        self.writes += 1
        logger.debug("url write %s", query)
        if self._write is not None:
            self._write(query)

    def navigate(self, query_string: str) -> bool:
        """Apply an external URL. The URL wins over in-memory state.

        Returns:
            True if the filter state changed.
        """
        filters = decode(parse_query_string(query_string), self.style_names)
        self._rehydrating = True
        try:
            changed = self.store.navigate(filters)
        finally:
            self._rehydrating = False
        self.current_query = to_query_string(encode(self.store.state))
        return changed
