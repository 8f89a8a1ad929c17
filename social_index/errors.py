"""
Error taxonomy and the FastAPI handlers that render it.

Every error response has the shape {"error": <message>, "status": <code>}.
Storage details never reach the client. Mutation handlers run inside
`failing_as("Failed to <action>")` so a store failure names the action that
failed; anything else that isn't one of the classes below is logged and
rendered as a generic internal failure.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    """Malformed or out-of-range input, rejected before any write."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Conflict(HTTPException):
    """An externally-assigned identifier (or unique field) is already recorded."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Internal(HTTPException):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


@contextmanager
def failing_as(message: str) -> Iterator[None]:
    """
    Re-raise any unexpected error inside the block as Internal(message).
    Errors that already belong to the taxonomy pass through untouched.
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("%s: %s", message, exc)
        raise Internal(message) from exc


def _error_body(message: str, code: int) -> dict:
    return {"error": message, "status": code}


def _describe(exc: RequestValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid request")
    return f"{loc}: {msg}" if loc else msg


def _render(exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), exc.status_code),
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _render(ValidationError(_describe(exc)))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _render(Internal())
