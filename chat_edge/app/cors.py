"""
Origin resolution and CORS preflight handling.

Exactly one origin is echoed per response: the caller's own origin when it is
on the allow-list, otherwise the first allow-list entry. Wildcards are never
emitted.
"""

import logging
from typing import Dict, Sequence

from fastapi import Request
from starlette.datastructures import Headers
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, x-api-key"


def resolve_origin(origin: str, allowed_origins: Sequence[str]) -> str:
    """
    Pick the origin to echo in Access-Control-Allow-Origin.

    Args:
        origin: Value of the request's Origin header ("" when absent)
        allowed_origins: Non-empty, ordered allow-list

    Returns:
        The matching allow-list entry, or the first entry as fallback
    """
    if origin in allowed_origins:
        return origin
    return allowed_origins[0]


def build_cors_headers(origin: str, allowed_origins: Sequence[str]) -> Dict[str, str]:
    """Build the CORS header set for one response."""
    return {
        "Access-Control-Allow-Origin": resolve_origin(origin, allowed_origins),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Vary": "Origin",
    }


def cors_headers_for(request: Request) -> Dict[str, str]:
    """CORS headers for a request, using the allow-list held in app state."""
    settings = request.app.state.settings
    return build_cors_headers(
        request.headers.get("origin", ""),
        settings.allowed_origins_list,
    )


class PreflightMiddleware:
    """
    Answer every OPTIONS request with 204 and CORS headers.

    Runs in front of routing and static files, so nothing downstream sees a
    preflight. Other requests pass through untouched, including streaming
    bodies and disconnect notifications.
    """

    def __init__(self, app: ASGIApp, allowed_origins: Sequence[str]) -> None:
        if not allowed_origins:
            raise ValueError("allowed_origins must not be empty")
        self.app = app
        self.allowed_origins = tuple(allowed_origins)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "OPTIONS":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin", "")
        logger.debug(
            "Answering CORS preflight",
            extra={"path": scope.get("path", ""), "origin": origin},
        )
        response = Response(
            status_code=204,
            headers=build_cors_headers(origin, self.allowed_origins),
        )
        await response(scope, receive, send)
