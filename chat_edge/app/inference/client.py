"""
Inference Forwarder
===================

Sends normalized conversations to the Workers AI model run endpoint and
hands back the still-open streamed response.

Request sent upstream:
    POST {INFERENCE_BASE_URL}/accounts/{INFERENCE_ACCOUNT_ID}/ai/run/{MODEL_ID}
    Authorization: Bearer {INFERENCE_API_TOKEN}
    {"messages": [...], "max_tokens": 1024, "stream": true}

Only the response headers are awaited here. The body is consumed by the
stream relay, chunk by chunk, so the first tokens reach the caller as soon
as the backend produces them. There are no retries: a failed call is
terminal for that request.
"""

import logging
from typing import Any, AsyncIterator, Sequence

import httpx

from ..config import Settings
from ..errors import InferenceError
from ..models import InferenceRequest

logger = logging.getLogger(__name__)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build the shared HTTP client for backend calls.

    The read timeout bounds both the wait for response headers and the gap
    between streamed chunks. Bodies are requested without content coding
    because the relay forwards raw bytes and sets no Content-Encoding.
    """
    timeout = httpx.Timeout(
        settings.INFERENCE_FIRST_BYTE_TIMEOUT_SECONDS,
        connect=settings.INFERENCE_CONNECT_TIMEOUT_SECONDS,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        headers={
            "Authorization": f"Bearer {settings.INFERENCE_API_TOKEN}",
            "Accept-Encoding": "identity",
        },
    )


class InferenceStream:
    """Open upstream response whose body has not been read yet."""

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    async def aiter_chunks(self) -> AsyncIterator[bytes]:
        """
        Yield body bytes exactly as they arrive, without decoding or
        re-chunking. A backend that compresses despite the identity request
        is decoded, since the relay response carries no Content-Encoding.

        Raises:
            InferenceError: If the upstream connection fails mid-stream
        """
        encoding = self._response.headers.get("content-encoding", "identity")
        if encoding.strip().lower() == "identity":
            chunks = self._response.aiter_raw()
        else:
            chunks = self._response.aiter_bytes()
        try:
            async for chunk in chunks:
                yield chunk
        except httpx.HTTPError as e:
            raise InferenceError(f"Inference stream interrupted: {e}") from e

    async def aclose(self) -> None:
        await self._response.aclose()


class InferenceClient:
    """
    Forwards conversations to the model run endpoint.

    Args:
        http_client: Shared AsyncClient (see create_http_client)
        settings: Application settings supplying URL, model and token budget
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http_client = http_client
        self._url = settings.inference_run_url
        self._model_id = settings.MODEL_ID
        self._max_tokens = settings.MAX_TOKENS

    def build_payload(self, messages: Sequence[Any]) -> dict:
        return InferenceRequest(
            messages=list(messages),
            max_tokens=self._max_tokens,
            stream=True,
        ).model_dump()

    async def open_stream(self, messages: Sequence[Any]) -> InferenceStream:
        """
        Start a streamed model run.

        Args:
            messages: Normalized conversation

        Returns:
            InferenceStream over the open upstream response

        Raises:
            InferenceError: On network errors, timeouts or a non-2xx status
        """
        payload = self.build_payload(messages)

        logger.info(
            "Forwarding conversation to inference backend",
            extra={
                "model_id": self._model_id,
                "message_count": len(payload["messages"]),
                "max_tokens": self._max_tokens,
            },
        )

        request = self._http_client.build_request(
            "POST",
            self._url,
            json=payload,
            headers={"Accept": "text/event-stream", "Accept-Encoding": "identity"},
        )

        try:
            response = await self._http_client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise InferenceError(f"Inference backend timed out: {e}") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Inference backend unreachable: {e}") from e

        if response.is_success:
            return InferenceStream(response)

        try:
            body = await response.aread()
        except httpx.HTTPError:
            body = b""
        finally:
            await response.aclose()

        raise InferenceError(
            f"Inference backend returned {response.status_code}: "
            f"{body[:500].decode('utf-8', errors='replace')}"
        )

    @property
    def model_id(self) -> str:
        return self._model_id

    async def aclose(self) -> None:
        await self._http_client.aclose()
