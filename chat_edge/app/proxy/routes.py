"""
Proxy Routes - Chat Request Forwarding
======================================

This module implements the API surface of the edge proxy: the streaming
chat endpoint plus the 405/404 answers for everything else under the API
prefix.

Request Flow (POST chat endpoint):
----------------------------------
1. Authenticate x-api-key (dependency, 401 on failure)
2. Parse the JSON body and take its "messages" list
3. Prepend the default system prompt when no system message is present
4. Open a streamed model run on the inference backend
5. Relay the backend's event stream to the client unbuffered

Steps 2-5 share one error boundary: any failure there is logged and turned
into a generic 500 JSON envelope.

Endpoints:
----------
- POST   {CHAT_PATH}           : Stream a model reply
- others {CHAT_PATH}           : 405 Method Not Allowed
- *      {API_PREFIX}{anything}: 404 Not Found
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from starlette.endpoints import HTTPEndpoint
from starlette.responses import Response

from ..auth import require_api_key
from ..chat import ensure_system_prompt, parse_chat_body
from ..config import Settings
from ..cors import cors_headers_for
from ..errors import InferenceError, RoutingError, translate_error
from ..inference import InferenceClient
from .relay import relay_stream

logger = logging.getLogger(__name__)


# ============================================================================
# Dependencies
# ============================================================================

def get_inference_client(request: Request) -> InferenceClient:
    """
    Fetch the shared inference client from app state.

    Raises:
        InferenceError: If the lifespan has not created a client
    """
    client = getattr(request.app.state, "inference_client", None)
    if client is None:
        raise InferenceError("Inference client not initialized")
    return client


# ============================================================================
# Fallback Endpoints
# ============================================================================

class ChatMethodNotAllowed(HTTPEndpoint):
    """Any method on the chat path that the POST route did not take."""

    async def method_not_allowed(self, request: Request) -> Response:
        raise RoutingError(status.HTTP_405_METHOD_NOT_ALLOWED, "Method Not Allowed")


class ApiNotFound(HTTPEndpoint):
    """Any method on an unknown path under the API prefix."""

    async def method_not_allowed(self, request: Request) -> Response:
        raise RoutingError(status.HTTP_404_NOT_FOUND, "Not Found")


# ============================================================================
# Router Factory
# ============================================================================

def create_proxy_router(settings: Settings) -> APIRouter:
    """
    Build the API router for the configured chat path and API prefix.

    Args:
        settings: Application settings

    Returns:
        APIRouter: Router to include in the application
    """
    router = APIRouter(tags=["Chat Proxy"])

    @router.post(settings.CHAT_PATH, dependencies=[Depends(require_api_key)])
    async def proxy_chat(request: Request):
        """
        Forward a conversation to the model and stream the reply.

        Returns:
            200 text/event-stream relaying the backend's output, or the
            generic 500 envelope if anything fails before streaming starts
        """
        app_settings: Settings = request.app.state.settings
        cors_headers = cors_headers_for(request)

        try:
            raw_body = await request.body()
            messages = parse_chat_body(raw_body)
            messages = ensure_system_prompt(messages, app_settings.SYSTEM_PROMPT)

            inference_client = get_inference_client(request)
            stream = await inference_client.open_stream(messages)
        except Exception as e:
            return translate_error(e, cors_headers, path=request.url.path)

        logger.info(
            "Relaying inference stream",
            extra={
                "model_id": inference_client.model_id,
                "status_code": stream.status_code,
                "origin": cors_headers["Access-Control-Allow-Origin"],
            },
        )
        return relay_stream(
            stream,
            cors_headers,
            app_settings.INFERENCE_STREAM_MAX_SECONDS,
        )

    # Registered without a method list so they match every verb, custom
    # ones included, ahead of the static mount
    router.add_route(settings.CHAT_PATH, ChatMethodNotAllowed, include_in_schema=False)
    router.add_route(settings.API_PREFIX + "{path:path}", ApiNotFound, include_in_schema=False)

    return router
