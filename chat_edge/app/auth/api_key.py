"""
API Key Authentication
======================

Validates the caller-supplied x-api-key header against the configured
shared secret. There is a single key per process; no rotation, hashing or
per-client keys.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, Request

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def verify_api_key(provided: Optional[str], expected: str) -> None:
    """
    Compare a caller's key with the configured secret.

    Args:
        provided: Header value, or None when the header is absent
        expected: Configured CHAT_API_KEY

    Raises:
        AuthenticationError: If the key is missing or does not match
    """
    if provided is None:
        raise AuthenticationError("Missing API key")

    # compare_digest only accepts ASCII str, so compare bytes
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError("Invalid API key")


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
) -> None:
    """
    Dependency enforcing the x-api-key header on the chat endpoint.

    Raises:
        AuthenticationError: Rendered as 401 by the handler registered in
            the application factory
    """
    settings = request.app.state.settings
    try:
        verify_api_key(x_api_key, settings.CHAT_API_KEY)
    except AuthenticationError as e:
        logger.warning(
            f"Rejected chat request: {e}",
            extra={"path": request.url.path, "key_present": x_api_key is not None},
        )
        raise
