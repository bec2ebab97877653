"""Query service access: wire models, HTTP client, session FSM, paging and interleaving."""

from .client import QueryServiceClient
from .fsm import QuerySessionFSM, SessionState
from .interleave import Interleaver, interleave
from .models import QueryRequest, QueryResponse, is_location_scoped, session_key
from .paginator import QueryService, QuerySession, ResultPaginator

__all__ = [
    "Interleaver",
    "QueryRequest",
    "QueryResponse",
    "QueryService",
    "QueryServiceClient",
    "QuerySession",
    "QuerySessionFSM",
    "ResultPaginator",
    "SessionState",
    "interleave",
    "is_location_scoped",
    "session_key",
]
