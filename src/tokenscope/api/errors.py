"""Error envelope shared by every tokenscope endpoint."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tokenscope.observability import get_observability

LOGGER = logging.getLogger(__name__)

INVALID_ADDRESS = "Invalid address."
ENTITY_NOT_FOUND = "Entity not found."
MISSING_PARAMETERS = "Missing parameter(s)."
INVALID_PARAMETERS = "Invalid parameter(s)."
UNKNOWN_ERROR = "Unknown error."


class ApiError(Exception):
    """An error surfaced to clients as ``{"error": {"message": ...}}``."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_body(message: str) -> Dict[str, Any]:
    return {"error": {"message": message}}


@contextmanager
def unexpected_errors(operation: str) -> Iterator[None]:
    """Convert anything other than :class:`ApiError` into a generic 500."""

    try:
        yield
    except ApiError:
        raise
    except Exception as exc:
        LOGGER.exception("Unhandled failure during %s", operation)
        get_observability(component="api").increment("api.unexpected_errors", tags={"operation": operation})
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, UNKNOWN_ERROR) from exc


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(INVALID_PARAMETERS))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_body(UNKNOWN_ERROR))


__all__ = [
    "ApiError",
    "ENTITY_NOT_FOUND",
    "INVALID_ADDRESS",
    "INVALID_PARAMETERS",
    "MISSING_PARAMETERS",
    "UNKNOWN_ERROR",
    "api_error_handler",
    "error_body",
    "unexpected_errors",
    "unhandled_error_handler",
    "validation_error_handler",
]
