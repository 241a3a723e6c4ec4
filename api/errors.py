"""
API Error Handling

Maps exceptions to JSON error bodies. Service-layer PassKitExceptions keep
their code and details; the HTTP status is chosen from the code.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse
from core.schemas.errors import ErrorCodes, GenerationError, PassKitException


logger = logging.getLogger(__name__)

# codes not listed here are server errors
STATUS_BY_CODE = {
    ErrorCodes.AUTHENTICATION_FAILED: 401,
    ErrorCodes.PASS_NOT_FOUND: 404,
    ErrorCodes.ASSET_UNAVAILABLE: 502,
}


class APIError(Exception):
    """Raised by route code that wants a specific status and code."""

    def __init__(self, code: str, message: str, status_code: int = 400, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def status_for(exc: PassKitException) -> int:
    # a generation that died fetching assets is an upstream failure
    if isinstance(exc, GenerationError) and exc.cause_code == ErrorCodes.ASSET_UNAVAILABLE:
        return 502
    return STATUS_BY_CODE.get(exc.code, 500)


def _json_error(status_code: int, code: str, message: str, details: dict[str, Any] | None = None) -> JSONResponse:
    body = ErrorResponse.of(code, message, details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return _json_error(exc.status_code, exc.code, exc.message, exc.details)


async def passkit_error_handler(request: Request, exc: PassKitException) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return _json_error(status_code, exc.code, exc.message, exc.details)


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _json_error(500, "INTERNAL_ERROR", "An unexpected error occurred", {"type": type(exc).__name__})
