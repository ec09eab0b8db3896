"""Tests for the stream session and filter URL from flowdock_stream.streaming.session."""

import asyncio

import httpx
import pytest

from flowdock_stream.api.models import Flow
from flowdock_stream.errors import SessionStateError, TransportError
from flowdock_stream.streaming.session import StreamSession, StreamState, build_filter_url

STREAM = "http://stream.test/flows?filter=orga/flow1"


def _flow(org: str, slug: str) -> Flow:
    return Flow.model_validate(
        {"id": slug, "parameterized_name": slug, "organization": {"parameterized_name": org}}
    )


async def _chunks(*parts: bytes, error: Exception | None = None):
    for part in parts:
        await asyncio.sleep(0)
        yield part
    if error is not None:
        raise error


def _session(handler, frames: list[bytes], **kwargs) -> StreamSession:
    async def on_frame(frame: bytes) -> None:
        frames.append(frame)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StreamSession(http_client, "test-key", STREAM, on_frame, connect_timeout=1.0, **kwargs)


class TestBuildFilterUrl:
    """Tests for build_filter_url."""

    def test_joins_pairs_with_single_commas(self):
        """Test org/flow pairs are comma separated without a trailing comma."""
        flows = [_flow("orgA", "flow1"), _flow("orgA", "flow2"), _flow("orgB", "flow3")]

        url = build_filter_url(flows, "https://stream.flowdock.com")

        assert url == "https://stream.flowdock.com/flows?filter=orgA/flow1,orgA/flow2,orgB/flow3"

    def test_single_flow(self):
        """Test one flow produces one pair."""
        assert build_filter_url([_flow("o", "f")]) == "https://stream.flowdock.com/flows?filter=o/f"

    def test_no_flows(self):
        """Test an empty list yields an empty filter."""
        assert build_filter_url([], "http://stream.test/") == "http://stream.test/flows?filter="


class TestStreamSessionConnect:
    """Tests for connecting a StreamSession."""

    @pytest.mark.asyncio
    async def test_sends_basic_auth_with_placeholder_password(self, expected_auth_header):
        """Test the stream request authenticates with the key and placeholder password."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers.get("authorization")
            captured["url"] = str(request.url)
            return httpx.Response(200, content=b"")

        session = _session(handler, [])
        done = await session.connect()
        await asyncio.wait_for(done, 1.0)

        assert captured["auth"] == expected_auth_header
        assert captured["url"] == STREAM
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_connect_failure_terminates(self):
        """Test a transport failure on connect raises and reports on done."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        session = _session(handler, [])

        with pytest.raises(TransportError):
            await session.connect()

        assert session.state is StreamState.TERMINATED
        assert isinstance(session.done.result(), TransportError)
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_error_status_terminates(self):
        """Test a non-2xx answer on connect is a transport error."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Unauthorized"})

        session = _session(handler, [])

        with pytest.raises(TransportError, match="401"):
            await session.connect()

        assert session.state is StreamState.TERMINATED
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_connect_is_single_shot(self):
        """Test a session cannot be connected twice."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"")

        session = _session(handler, [])
        assert session.state is StreamState.IDLE
        done = await session.connect()
        await asyncio.wait_for(done, 1.0)

        with pytest.raises(SessionStateError):
            await session.connect()
        await session.http_client.aclose()


class TestStreamSessionFraming:
    """Tests for newline framing and termination."""

    @pytest.mark.asyncio
    async def test_frames_delivered_in_order_across_chunks(self):
        """Test frames split over arbitrary chunk boundaries are reassembled."""
        body = _chunks(b'{"a":', b'1}\n{"b"', b":2}\n", b'{"c":3}\n')

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        frames: list[bytes] = []
        session = _session(handler, frames)
        done = await session.connect()
        error = await asyncio.wait_for(done, 1.0)

        assert frames == [b'{"a":1}', b'{"b":2}', b'{"c":3}']
        assert isinstance(error, TransportError)
        assert "closed by server" in str(error)
        assert session.state is StreamState.TERMINATED
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_blank_keepalive_lines_are_skipped(self):
        """Test empty and whitespace-only lines never reach the callback."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"\n\r\n  \n{\"x\":1}\r\n\n")

        frames: list[bytes] = []
        session = _session(handler, frames)
        await asyncio.wait_for(await session.connect(), 1.0)

        assert frames == [b'{"x":1}']
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_incomplete_trailing_line_dropped(self):
        """Test a partial line at end of body is not delivered."""

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b'{"x":1}\n{"y":')

        frames: list[bytes] = []
        session = _session(handler, frames)
        await asyncio.wait_for(await session.connect(), 1.0)

        assert frames == [b'{"x":1}']
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_many_lines_in_one_chunk(self):
        """Test a single large chunk is split into every frame in order."""
        body = b"".join(b'{"n":%d}\n' % i for i in range(5000))

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        frames: list[bytes] = []
        session = _session(handler, frames)
        await asyncio.wait_for(await session.connect(), 5.0)

        assert len(frames) == 5000
        assert frames[0] == b'{"n":0}'
        assert frames[-1] == b'{"n":4999}'
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_oversized_line_terminates(self):
        """Test a line that never ends is bounded by max_frame_size."""
        body = _chunks(b'{"x":1}\n', b"a" * 10, b"a" * 10, b"a" * 10, b"\n")

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        frames: list[bytes] = []
        session = _session(handler, frames, max_frame_size=16)
        error = await asyncio.wait_for(await session.connect(), 1.0)

        assert frames == [b'{"x":1}']
        assert isinstance(error, TransportError)
        assert "exceeds 16 bytes" in str(error)
        assert session.state is StreamState.TERMINATED
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_read_error_reported_on_done(self):
        """Test an I/O failure mid-stream resolves done with a TransportError."""
        body = _chunks(b'{"x":1}\n', error=httpx.ReadError("connection reset"))

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        frames: list[bytes] = []
        session = _session(handler, frames)
        error = await asyncio.wait_for(await session.connect(), 1.0)

        assert frames == [b'{"x":1}']
        assert isinstance(error, TransportError)
        assert "connection reset" in str(error)
        await session.http_client.aclose()

    @pytest.mark.asyncio
    async def test_close_stops_reader(self):
        """Test close() cancels an open stream and reports once."""
        release = asyncio.Event()

        async def body():
            yield b'{"x":1}\n'
            await release.wait()
            yield b'{"never":1}\n'

        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body())

        frames: list[bytes] = []
        session = _session(handler, frames)
        done = await session.connect()
        while not frames:
            await asyncio.sleep(0)

        await session.close()

        assert session.state is StreamState.TERMINATED
        assert "closed" in str(done.result())
        assert frames == [b'{"x":1}']
        await session.http_client.aclose()
