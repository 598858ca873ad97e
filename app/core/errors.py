import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class MediaHostError(Exception):
    """The hosting service refused an upload."""


class StoreUnavailableError(Exception):
    """The document store has no live connection."""


class RequestBodyTooLarge(Exception):
    status_code = 413

    def __init__(self, limit: int, received: Optional[int] = None):
        self.limit = limit
        self.received = received
        if received is None:
            msg = f"request body exceeds the {limit} byte limit"
        else:
            msg = f"request body of {received} bytes exceeds the {limit} byte limit"
        super().__init__(msg)


def error_payload(error: str, details: Any = None) -> dict:
    body = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return body


def too_large_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content=error_payload("Payload too large", str(exc)),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Routes raise either a plain message or {"error": ..., "details": ...}
    if isinstance(exc.detail, dict):
        content = error_payload(
            str(exc.detail.get("error") or "Request failed"),
            exc.detail.get("details"),
        )
    else:
        content = error_payload(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def body_too_large_handler(request: Request, exc: RequestBodyTooLarge) -> JSONResponse:
    logger.warning("Rejected oversized body on %s: %s", request.url.path, exc)
    return too_large_response(exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all so a single bad request never takes the process down."""
    if getattr(exc, "status_code", None) == 413:
        return too_large_response(exc)
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_payload("Internal server error", str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestBodyTooLarge, body_too_large_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
