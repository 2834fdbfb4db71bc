"""
FastAPI Edge Proxy Application Factory
======================================

This is the main entry point for the edge proxy that sits between browser
chat clients and the hosted inference backend.

Architecture:
    Browser → Edge Proxy (this service) → Workers AI model run endpoint

Request Pipeline:
    - OPTIONS (any path) : 204 CORS preflight, nothing else runs
    - / and non-API paths: Static assets
    - POST /api/chat     : API key check → system prompt injection →
                           inference call → event-stream relay
    - other /api/chat    : 405
    - other /api/*       : 404

Environment Variables Required:
    - ALLOWED_ORIGINS: Comma-separated origins, first is the fallback
    - CHAT_API_KEY: Shared secret expected in x-api-key
    - INFERENCE_ACCOUNT_ID: Workers AI account identifier
    - INFERENCE_API_TOKEN: Workers AI API token
    - STATIC_DIR: Directory with static assets (optional)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn chat_edge.app.main:create_app --factory --reload --port 8080

    Production:
        python -m chat_edge.app.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
import uvicorn

from .config import Settings, get_settings, validate_configuration
from .cors import PreflightMiddleware, cors_headers_for
from .errors import (
    AuthenticationError,
    RoutingError,
    error_envelope_response,
    plain_response,
)
from .inference import InferenceClient, create_http_client
from .proxy import create_proxy_router
from .static import mount_static


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Configure logging
        - Report configuration warnings
        - Create the shared inference HTTP client (unless one was injected)

    Shutdown tasks:
        - Close the inference HTTP client if it was created here
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("chat_edge.main")

    status_report = validate_configuration(settings)
    for warning in status_report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    for error in status_report["errors"]:
        logger.error(f"Configuration error: {error}")

    owns_client = app.state.inference_client is None
    if owns_client:
        app.state.inference_client = InferenceClient(create_http_client(settings), settings)
        logger.info("Initialized inference client")

    logger.info(
        "Edge proxy started",
        extra={
            "model_id": settings.MODEL_ID,
            "chat_path": settings.CHAT_PATH,
            "allowed_origins": status_report["allowed_origins"],
        },
    )

    yield

    logger.info("Shutting down edge proxy")
    if owns_client:
        await app.state.inference_client.aclose()
        app.state.inference_client = None
        logger.info("Closed inference client")


# Create FastAPI application
def create_app(
    settings: Optional[Settings] = None,
    inference_client: Optional[InferenceClient] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Configuration to run with; loaded from the environment
            when omitted
        inference_client: Pre-built inference client; the lifespan creates
            and owns one when omitted

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Chat Edge Proxy",
        description="Authenticating CORS edge proxy streaming chat completions",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.inference_client = inference_client

    # Preflight is answered before routing and static files
    app.add_middleware(PreflightMiddleware, allowed_origins=settings.allowed_origins_list)

    app.include_router(create_proxy_router(settings))
    mount_static(app, settings)

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> PlainTextResponse:
        return plain_response(
            status.HTTP_401_UNAUTHORIZED,
            "Unauthorized",
            cors_headers_for(request),
        )

    @app.exception_handler(RoutingError)
    async def routing_error_handler(request: Request, exc: RoutingError) -> PlainTextResponse:
        return plain_response(exc.status_code, exc.detail, cors_headers_for(request))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Log anything that escaped the routes and return the generic envelope.
        """
        logger = logging.getLogger("chat_edge.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )
        return error_envelope_response(cors_headers_for(request))

    return app


if __name__ == "__main__":
    """
    Direct execution entry point: python -m chat_edge.app.main
    """
    settings = get_settings()

    uvicorn.run(
        "chat_edge.app.main:create_app",
        factory=True,
        host=settings.EDGE_HOST,
        port=settings.EDGE_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
