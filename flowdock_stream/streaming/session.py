"""
Stream Session
==============

One persistent, basic-auth HTTP connection to the Flowdock streaming API.
The response body is split into newline-delimited frames which are handed,
in order, to a callback. The session is single-shot: it never reconnects,
and when the body ends or a read fails it reports exactly one terminal
TransportError on its ``done`` future.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional

import httpx
import structlog

from flowdock_stream.api.constants import (
    DEFAULT_STREAM_URL,
    DEFAULT_TIMEOUT,
    MAX_FRAME_SIZE,
    STREAM_FLOWS_PATH,
)
from flowdock_stream.api.http import basic_auth
from flowdock_stream.api.models import Flow
from flowdock_stream.errors import SessionStateError, TransportError

logger = structlog.get_logger(__name__)

FrameCallback = Callable[[bytes], Awaitable[None]]


class StreamState(str, Enum):
    """Lifecycle of a stream session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    TERMINATED = "terminated"


def build_filter_url(flows: Iterable[Flow], stream_url: str = DEFAULT_STREAM_URL) -> str:
    """
    Build the streaming URL for a set of flows.

    Args:
        flows: Flows to subscribe to
        stream_url: Streaming API base URL

    Returns:
        ``{stream_url}/flows?filter=org/flow,org/flow,...`` (slugs are not escaped)
    """
    return stream_url.rstrip("/") + STREAM_FLOWS_PATH + ",".join(f.filter_token for f in flows)


class StreamSession:
    """
    Reader for one streaming connection.

    Handles:
    - Connecting with basic auth and no read timeout
    - Newline framing, dropping keep-alive blank lines
    - Reporting the terminal error on ``done``
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        url: str,
        on_frame: FrameCallback,
        *,
        connect_timeout: float = DEFAULT_TIMEOUT,
        max_frame_size: int = MAX_FRAME_SIZE,
    ):
        """
        Initialize the stream session.

        Args:
            http_client: Async HTTP client used for the connection
            api_key: Flowdock API token (basic auth username)
            url: Full streaming URL including the flow filter
            on_frame: Awaited once per non-empty frame, in wire order
            connect_timeout: Seconds allowed for connecting and receiving headers
            max_frame_size: Longest line, in bytes, buffered while waiting for a newline
        """
        self.http_client = http_client
        self.api_key = api_key
        self.url = url
        self.on_frame = on_frame
        self.connect_timeout = connect_timeout
        self.max_frame_size = max_frame_size

        self.state = StreamState.IDLE
        self.done: Optional[asyncio.Future[TransportError]] = None
        self._response: Optional[httpx.Response] = None
        self._reader: Optional[asyncio.Task[None]] = None

    async def connect(self) -> "asyncio.Future[TransportError]":
        """
        Open the connection and start the reader task.

        Returns:
            Future resolved with the terminal TransportError when the stream ends

        Raises:
            SessionStateError: If the session was already started
            TransportError: If the connection fails or the server answers non-2xx
        """
        if self.state is not StreamState.IDLE:
            raise SessionStateError(f"Stream session already {self.state.value}")

        self.state = StreamState.CONNECTING
        self.done = asyncio.get_running_loop().create_future()

        request = self.http_client.build_request(
            "GET",
            self.url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(self.connect_timeout, read=None),
        )
        try:
            response = await self.http_client.send(
                request, auth=basic_auth(self.api_key), stream=True
            )
        except httpx.HTTPError as e:
            raise self._terminate(TransportError(f"Stream connection failed: {e}")) from e

        if not response.is_success:
            await response.aclose()
            raise self._terminate(
                TransportError(f"Stream endpoint returned HTTP {response.status_code}")
            )

        self._response = response
        self.state = StreamState.STREAMING
        self._reader = asyncio.create_task(self._read(response))
        logger.info("Stream connected", url=self.url)
        return self.done

    async def close(self) -> None:
        """Stop reading and release the connection."""
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        if self._response is not None:
            await self._response.aclose()
        if self.state is not StreamState.TERMINATED:
            self._terminate(TransportError("Stream session closed"))

    def _terminate(self, error: TransportError) -> TransportError:
        """Move to TERMINATED and report the error once."""
        self.state = StreamState.TERMINATED
        if self.done is not None and not self.done.done():
            self.done.set_result(error)
        return error

    async def _read(self, response: httpx.Response) -> None:
        buffer = bytearray()
        try:
            async for chunk in response.aiter_bytes():
                # Only the new bytes can hold the next newline
                pos = len(buffer)
                buffer.extend(chunk)
                start = 0
                while (end := buffer.find(b"\n", pos)) != -1:
                    line = bytes(buffer[start:end]).strip()
                    start = pos = end + 1
                    if line:
                        await self.on_frame(line)
                del buffer[:start]
                if len(buffer) > self.max_frame_size:
                    error = TransportError(
                        f"Stream frame exceeds {self.max_frame_size} bytes without a newline"
                    )
                    break
            else:
                if buffer.strip():
                    logger.debug("Dropping incomplete trailing frame", size=len(buffer))
                error = TransportError("Stream closed by server")
        except httpx.HTTPError as e:
            error = TransportError(f"Stream read failed: {e}")
        finally:
            await response.aclose()

        logger.info("Stream terminated", url=self.url, reason=str(error))
        self._terminate(error)
