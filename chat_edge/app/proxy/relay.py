"""
Stream Relay
============

Pipes the inference backend's event stream to the client without buffering.

Each upstream chunk is sent as soon as it arrives, so chunk boundaries (and
therefore server-sent event frames) are preserved. The upstream response is
closed whenever the relay ends:
    - normal completion
    - client disconnect (Starlette stops iterating the body)
    - mid-stream backend failure
    - the total stream duration bound being reached

A backend failure after headers are sent cannot become a JSON error; the
exception is re-raised so the server aborts the connection and the client
sees a truncated event stream.
"""

import logging
import time
from typing import AsyncIterator, Mapping

import anyio
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from ..errors import InferenceError
from ..inference import InferenceStream

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {
    "Content-Type": "text/event-stream; charset=utf-8",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class EventStreamResponse(StreamingResponse):
    """
    StreamingResponse bound to one upstream inference stream.

    Args:
        stream: Open upstream stream returned by InferenceClient.open_stream
        cors_headers: CORS headers resolved for the request
        max_seconds: Upper bound on total relay duration
    """

    def __init__(
        self,
        stream: InferenceStream,
        cors_headers: Mapping[str, str],
        max_seconds: float,
    ):
        self.upstream = stream
        self.max_seconds = max_seconds
        self.chunks_relayed = 0
        headers = {**cors_headers, **EVENT_STREAM_HEADERS}
        super().__init__(
            content=self._relay(),
            status_code=200,
            headers=headers,
        )

    async def _relay(self) -> AsyncIterator[bytes]:
        started = time.monotonic()
        try:
            async for chunk in self.upstream.aiter_chunks():
                yield chunk
                self.chunks_relayed += 1
                if time.monotonic() - started > self.max_seconds:
                    logger.warning(
                        "Stream duration limit reached, closing relay",
                        extra={
                            "max_seconds": self.max_seconds,
                            "chunks_relayed": self.chunks_relayed,
                        },
                    )
                    break
        except InferenceError:
            logger.error(
                "Inference stream failed after headers were sent",
                exc_info=True,
                extra={"chunks_relayed": self.chunks_relayed},
            )
            raise
        finally:
            await self._close_upstream()

        logger.info("Relay finished", extra={"chunks_relayed": self.chunks_relayed})

    async def _close_upstream(self) -> None:
        # Must complete even when the request task is being cancelled
        with anyio.CancelScope(shield=True):
            await self.upstream.aclose()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            if not self.upstream.is_closed:
                logger.info(
                    "Client went away mid-stream, releasing upstream",
                    extra={"chunks_relayed": self.chunks_relayed},
                )
            await self._close_upstream()


def relay_stream(
    stream: InferenceStream,
    cors_headers: Mapping[str, str],
    max_seconds: float,
) -> EventStreamResponse:
    """Build the 200 event-stream response for an open upstream stream."""
    return EventStreamResponse(stream, cors_headers, max_seconds)
