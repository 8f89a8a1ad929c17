"""FastAPI dependencies resolving the process-wide handles built in main.lifespan."""
from fastapi import Query, Request

from social_index.clients.ledger_client import LedgerClient
from social_index.config import Settings
from social_index.fanout import Fanout


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_fanout(request: Request) -> Fanout:
    return request.app.state.fanout


def get_ledger(request: Request) -> LedgerClient:
    return request.app.state.ledger


DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class Page:
    """limit/offset query parameters shared by every list endpoint."""

    def __init__(
        self,
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
        offset: int = Query(0, ge=0),
    ) -> None:
        self.limit = limit
        self.offset = offset
