"""
Conversation normalization.

Every forwarded conversation carries a system message. When the caller did
not send one, the configured default is prepended; when any element already
has role "system" the conversation is passed through exactly as received.
"""

import json
import logging
from typing import Any, List, Sequence

from ..errors import RequestParseError
from ..models import ChatMessage

logger = logging.getLogger(__name__)


def parse_chat_body(raw: bytes) -> List[Any]:
    """
    Decode a chat request body into its list of messages.

    Args:
        raw: Raw request body

    Returns:
        The caller's messages, or an empty list when "messages" is absent

    Raises:
        RequestParseError: Body is not JSON, not a JSON object, or carries
            a "messages" value that is not a list
    """
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestParseError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise RequestParseError(
            f"Request body must be a JSON object, got {type(body).__name__}"
        )

    messages = body.get("messages")
    if messages is None:
        return []
    if not isinstance(messages, list):
        raise RequestParseError(
            f"'messages' must be a list, got {type(messages).__name__}"
        )
    return messages


def has_system_message(messages: Sequence[Any]) -> bool:
    return any(
        isinstance(message, dict) and message.get("role") == "system"
        for message in messages
    )


def ensure_system_prompt(messages: Sequence[Any], system_prompt: str) -> List[Any]:
    """
    Prepend the default system message unless one is already present.

    Elements are never reordered or validated; a system message found
    anywhere in the sequence counts as present.

    Args:
        messages: Caller's conversation in chronological order
        system_prompt: Default system prompt text

    Returns:
        The normalized conversation
    """
    if has_system_message(messages):
        return list(messages)

    logger.debug("Injecting default system prompt", extra={"message_count": len(messages)})
    system_message = ChatMessage(role="system", content=system_prompt)
    return [system_message.model_dump(), *messages]
