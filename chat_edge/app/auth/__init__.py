"""
Authentication Package

This package validates the shared API key that browser clients send with
every chat request.

Modules:
- api_key: x-api-key header check used as a FastAPI dependency

The authentication flow:
1. Client sends POST /api/chat with an x-api-key header
2. The key is compared in constant time against CHAT_API_KEY
3. A mismatch (or a missing header) short-circuits with 401 Unauthorized
"""

from .api_key import API_KEY_HEADER, require_api_key, verify_api_key

__all__ = [
    "API_KEY_HEADER",
    "require_api_key",
    "verify_api_key",
]
