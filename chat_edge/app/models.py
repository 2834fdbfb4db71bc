"""
Data Models Module

Pydantic models for the payloads the edge proxy produces itself.

Caller-supplied conversations are forwarded as the raw JSON objects they
arrived as; these models describe the shape the proxy builds (the injected
system message, the backend request, the error envelope), not a validation
layer over the caller's input.
"""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field


# ============================================================================
# Chat/Messaging Models
# ============================================================================

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """Single conversation turn."""
    role: Role = Field(..., description="Speaker of this turn")
    content: str = Field(..., description="Message text")


class InferenceRequest(BaseModel):
    """Body sent to the model run endpoint."""
    messages: List[Dict[str, Any]] = Field(..., description="Normalized conversation")
    max_tokens: int = Field(..., description="Maximum output token budget", ge=1)
    stream: bool = Field(default=True, description="Request server-sent event output")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Uniform error envelope returned on processing failures."""
    error: str = Field(..., description="Generic, non-detailed error message")
