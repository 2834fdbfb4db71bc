"""
Configuration module for the Chat Edge Proxy.

This module uses Pydantic Settings to load and validate environment variables
for origin allow-listing, API-key authentication, the inference backend and
the HTTP server.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MODEL_ID = "@cf/meta/llama-3.1-8b-instruct-fp8"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, friendly assistant. Provide concise and accurate responses."
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Built once at startup and handed to the application factory. The
    instance is frozen, so request handlers can only read it.
    """

    # =========================================================================
    # CORS Configuration
    # =========================================================================

    ALLOWED_ORIGINS: str = Field(
        ...,
        description=(
            "Comma-separated list of allowed browser origins. "
            "The first entry is echoed when the caller's origin is not listed."
        ),
        min_length=1,
    )

    # =========================================================================
    # Caller Authentication
    # =========================================================================

    CHAT_API_KEY: str = Field(
        ...,
        description="Shared secret expected in the x-api-key request header",
        min_length=1,
    )

    # =========================================================================
    # Inference Backend Configuration
    # =========================================================================

    INFERENCE_BASE_URL: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Base URL of the Workers AI REST API",
    )

    INFERENCE_ACCOUNT_ID: str = Field(
        ...,
        description="Account identifier owning the Workers AI models",
        min_length=1,
    )

    INFERENCE_API_TOKEN: str = Field(
        ...,
        description="Bearer token for the Workers AI REST API",
        min_length=1,
    )

    MODEL_ID: str = Field(
        default=DEFAULT_MODEL_ID,
        description="Model identifier forwarded conversations are run against",
    )

    SYSTEM_PROMPT: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System message prepended to conversations that lack one",
    )

    MAX_TOKENS: int = Field(
        default=1024,
        description="Maximum output token budget per request",
        ge=1,
    )

    INFERENCE_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for establishing the backend connection",
        gt=0,
    )

    INFERENCE_FIRST_BYTE_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Maximum wait for response headers and between streamed chunks",
        gt=0,
    )

    INFERENCE_STREAM_MAX_SECONDS: float = Field(
        default=300.0,
        description="Upper bound on the total duration of a relayed stream",
        gt=0,
    )

    # =========================================================================
    # Routing Configuration
    # =========================================================================

    API_PREFIX: str = Field(
        default="/api/",
        description="Paths outside this prefix are served as static assets",
    )

    CHAT_PATH: str = Field(
        default="/api/chat",
        description="Path of the streaming chat endpoint",
    )

    STATIC_DIR: Optional[Path] = Field(
        default=None,
        description="Directory holding static assets (index.html, scripts, styles)",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    EDGE_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the edge server",
    )

    EDGE_PORT: int = Field(
        default=8080,
        description="Port to bind the edge server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> Tuple[str, ...]:
        """
        Parse ALLOWED_ORIGINS into an ordered tuple.

        Order is preserved: the first origin is the fallback that gets echoed
        for unknown or missing Origin headers.
        """
        return tuple(
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        )

    @property
    def inference_run_url(self) -> str:
        """Full URL of the model run endpoint for MODEL_ID."""
        base = self.INFERENCE_BASE_URL.rstrip("/")
        return f"{base}/accounts/{self.INFERENCE_ACCOUNT_ID}/ai/run/{self.MODEL_ID}"

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def validate_allowed_origins(cls, v: str) -> str:
        """
        Validate that ALLOWED_ORIGINS contains at least one origin and that
        no entry is a wildcard.

        Raises:
            ValueError: If no origins are provided or an entry is "*"
        """
        origins = [o.strip() for o in v.split(",") if o.strip()]

        if not origins:
            raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

        for origin in origins:
            if origin == "*":
                raise ValueError("Wildcard origins are not supported in ALLOWED_ORIGINS")
            if origin.endswith("/"):
                raise ValueError(
                    f"Invalid origin format: '{origin}'. "
                    "Origins must not end with a slash"
                )

        return v

    @field_validator("CHAT_API_KEY")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("CHAT_API_KEY must not be blank")
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        if not v.startswith("/") or not v.endswith("/"):
            raise ValueError(f"API_PREFIX must start and end with '/', got: {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}, got: {v}")

        return v.upper()


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Only the entry point and the default application factory call this;
    everything else receives the instance explicitly.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Check configuration for settings that load but look unsafe.

    Called during application startup; warnings are logged, errors are not
    fatal here because pydantic already rejected anything unusable.

    Returns:
        Dictionary with the "errors" and "warnings" found plus the
        "allowed_origins" in effect.

    Example:
        >>> status = validate_configuration(settings)
        >>> if status["warnings"]:
        ...     print(status["warnings"])
    """
    errors: List[str] = []
    warnings: List[str] = []

    if len(settings.CHAT_API_KEY) < 16:
        warnings.append("CHAT_API_KEY is shorter than recommended (16+ chars)")

    for origin in settings.allowed_origins_list:
        if not origin.startswith("https://") and "localhost" not in origin:
            warnings.append(f"Origin '{origin}' is not served over https")

    if settings.STATIC_DIR is None:
        warnings.append("STATIC_DIR is not set; non-API paths will return 404")
    elif not settings.STATIC_DIR.is_dir():
        errors.append(f"STATIC_DIR '{settings.STATIC_DIR}' is not a directory")

    if not settings.CHAT_PATH.startswith(settings.API_PREFIX):
        errors.append(
            f"CHAT_PATH '{settings.CHAT_PATH}' is outside API_PREFIX '{settings.API_PREFIX}'"
        )

    return {
        "errors": errors,
        "warnings": warnings,
        "allowed_origins": list(settings.allowed_origins_list),
    }
