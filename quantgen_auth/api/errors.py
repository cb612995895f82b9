"""Translation of auth failures into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import AuthError, InvalidInput

logger = logging.getLogger(__name__)


def error_response(exc: AuthError, message: str | None = None) -> JSONResponse:
    """Render ``exc`` as ``{"error": code, "message": text}`` with its HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": message or exc.message},
    )


def rate_limited_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "RateLimited", "message": "rate limited"},
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Only field locations are logged; request bodies may contain passwords.
    locations = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
    logger.info("rejected malformed request to %s: %s", request.url.path, locations)
    return error_response(InvalidInput())


def install_exception_handlers(app: FastAPI) -> None:
    """Report malformed request bodies as ``InvalidInput`` (400) rather than 422."""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
