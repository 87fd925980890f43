"""Error taxonomy for the scoring service and the FastAPI handlers that render it.

Every error leaves the API as ``{"error": "<message>"}`` with the same CORS
headers as a successful response, so browser callers can always read the body.
"""

from __future__ import annotations

import logging
import math

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class ScoringServiceError(Exception):
    """Base class for errors raised by the scoring service."""

    status_code: int = 500


class InvalidRequestError(ScoringServiceError):
    """Raised when a required request field is missing or malformed."""

    status_code = 400


class NotFoundError(ScoringServiceError):
    """Raised when a requested building or score row does not exist."""

    status_code = 404


class RateLimitExceededError(ScoringServiceError):
    """Raised when a user asks for a recalculation inside the cooldown window."""

    status_code = 429

    def __init__(self, user_id: str, window_seconds: float, retry_after_seconds: float) -> None:
        self.user_id = user_id
        self.window_seconds = window_seconds
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many requests: scores were calculated less than {window_seconds:g} seconds ago, "
            f"retry in {math.ceil(retry_after_seconds)} seconds"
        )


class StoreError(ScoringServiceError):
    """Raised when a read or write against the backing store fails."""

    status_code = 500


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the JSON error body shared by every failure path."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


async def scoring_error_handler(request: Request, exc: ScoringServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error in %s: %s", request.url.path, exc)
    else:
        logger.info("Rejected %s with %d: %s", request.url.path, exc.status_code, exc)
    return error_response(exc.status_code, str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/parameter validation failures as a 400 in the shared error shape."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, message)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any exception no other handler claimed as a 500 carrying its message."""
    logger.exception("Unexpected error in %s", request.url.path)
    return error_response(500, str(exc) or exc.__class__.__name__)
