"""
Test doubles and settings helpers shared by the edge proxy tests.
"""

import asyncio
import gzip
import json
from typing import Any, Dict, List, Optional

import httpx

from chat_edge.app.config import Settings
from chat_edge.app.errors import InferenceError


DEFAULT_ORIGIN = "https://chat.example.com"
SECOND_ORIGIN = "https://www.chat.example.com"
API_KEY = "test-api-key-1234567890"
SYSTEM_PROMPT = "You are a test assistant."


class FakeInferenceStream:
    """
    Stand-in for InferenceStream.

    Args:
        chunks: Byte chunks to yield in order
        gate: When set, awaited before yielding every chunk after the first
        fail_after: Raise InferenceError after this many chunks
    """

    def __init__(
        self,
        chunks: List[bytes],
        gate: Optional[asyncio.Event] = None,
        fail_after: Optional[int] = None,
    ):
        self.chunks = chunks
        self.gate = gate
        self.fail_after = fail_after
        self.first_chunk_sent = asyncio.Event()
        self.finished = False
        self.close_calls = 0
        self.status_code = 200

    @property
    def is_closed(self) -> bool:
        return self.close_calls > 0

    async def aiter_chunks(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise InferenceError("Inference stream interrupted: connection reset")
            if index > 0 and self.gate is not None:
                await self.gate.wait()
            yield chunk
            if index == 0:
                self.first_chunk_sent.set()
        self.finished = True

    async def aclose(self) -> None:
        self.close_calls += 1


class FakeInferenceClient:
    """Records forwarded conversations and returns a canned stream."""

    def __init__(self, stream: Optional[FakeInferenceStream] = None, error: Exception = None):
        self.stream = stream or FakeInferenceStream([b"data: {\"response\":\"hi\"}\n\n"])
        self.error = error
        self.calls: List[List[Any]] = []
        self.model_id = "@cf/test/model"

    async def open_stream(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.stream


def make_settings(**overrides) -> Settings:
    values: Dict[str, Any] = {
        "ALLOWED_ORIGINS": f"{DEFAULT_ORIGIN},{SECOND_ORIGIN}",
        "CHAT_API_KEY": API_KEY,
        "INFERENCE_ACCOUNT_ID": "acct-123",
        "INFERENCE_API_TOKEN": "cf-token",
        "SYSTEM_PROMPT": SYSTEM_PROMPT,
    }
    values.update(overrides)
    return Settings(**values)


class RecordingBackend:
    """httpx.MockTransport handler capturing requests sent to Workers AI."""

    def __init__(
        self,
        chunks: Optional[List[bytes]] = None,
        status_code: int = 200,
        error: Optional[Exception] = None,
        compress: Optional[str] = None,
    ):
        # compress: "negotiate" gzips only when the request accepts gzip,
        # "always" gzips regardless of Accept-Encoding
        self.compress = compress
        self.chunks = chunks or [
            b"data: {\"response\":\"Hel\"}\n\n",
            b"data: {\"response\":\"lo\"}\n\n",
            b"data: [DONE]\n\n",
        ]
        self.status_code = status_code
        self.error = error
        self.requests: List[httpx.Request] = []
        self.streams: List["ChunkedStream"] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"errors": [{"message": "model overloaded"}]})
        headers = {"content-type": "text/event-stream"}
        chunks = self.chunks
        accepts_gzip = "gzip" in request.headers.get("accept-encoding", "")
        if self.compress == "always" or (self.compress == "negotiate" and accepts_gzip):
            body = gzip.compress(b"".join(self.chunks))
            chunks = [body[: len(body) // 2], body[len(body) // 2 :]]
            headers["content-encoding"] = "gzip"
        stream = ChunkedStream(chunks, self.error)
        self.streams.append(stream)
        return httpx.Response(200, headers=headers, stream=stream)

    @property
    def last_payload(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


class ChunkedStream(httpx.AsyncByteStream):
    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


