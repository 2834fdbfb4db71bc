"""
Chat Package
============

Request-side processing for the chat endpoint: decoding the caller's body
and injecting the default system prompt.
"""

from .normalizer import ensure_system_prompt, parse_chat_body

__all__ = ["ensure_system_prompt", "parse_chat_body"]
