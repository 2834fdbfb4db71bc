"""
Error taxonomy and translation for the edge proxy.

Authentication and routing failures map to specific statuses and are
answered inline. Everything else that goes wrong while handling a chat
request is collapsed into one generic 500 envelope so that backend or
parsing details never reach the caller.
"""

import logging
from typing import Dict, Mapping, Optional

from fastapi import status
from fastapi.responses import JSONResponse, PlainTextResponse

from .models import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to process request"


# =============================================================================
# Exceptions
# =============================================================================

class EdgeError(Exception):
    """Base exception for edge proxy errors"""
    pass


class AuthenticationError(EdgeError):
    """Missing or incorrect x-api-key header"""
    pass


class RoutingError(EdgeError):
    """Unsupported method or path. Answered inline, not logged as an error."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class RequestParseError(EdgeError):
    """Request body is not a usable chat payload"""
    pass


class InferenceError(EdgeError):
    """Inference backend call failed or its stream broke"""
    pass


class InternalProcessingError(EdgeError):
    """Generic failure surfaced to callers as a 500"""
    pass


# =============================================================================
# Responses
# =============================================================================

def plain_response(
    status_code: int,
    text: str,
    cors_headers: Optional[Mapping[str, str]] = None,
) -> PlainTextResponse:
    """Short text response (401/404/405) carrying the CORS headers."""
    return PlainTextResponse(text, status_code=status_code, headers=dict(cors_headers or {}))


def error_envelope_response(cors_headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
    """
    Build the uniform 500 error envelope.

    Args:
        cors_headers: CORS headers resolved for the current request

    Returns:
        JSONResponse: {"error": "Failed to process request"} with status 500
    """
    headers: Dict[str, str] = dict(cors_headers or {})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=GENERIC_ERROR_MESSAGE).model_dump(),
        headers=headers,
    )


def translate_error(
    exc: BaseException,
    cors_headers: Optional[Mapping[str, str]] = None,
    *,
    path: str = "",
) -> JSONResponse:
    """
    Log a processing failure with full detail and return the generic envelope.

    Parse and inference failures are wrapped in InternalProcessingError so
    the log record shows both the generic class and the original cause.
    """
    if isinstance(exc, InternalProcessingError):
        wrapped = exc
    else:
        wrapped = InternalProcessingError(GENERIC_ERROR_MESSAGE)
        wrapped.__cause__ = exc

    logger.error(
        f"Chat request failed: {exc}",
        exc_info=(type(wrapped), wrapped, wrapped.__traceback__),
        extra={
            "path": path,
            "exception_type": type(exc).__name__,
        },
    )
    return error_envelope_response(cors_headers)
