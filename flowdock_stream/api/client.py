"""
Flowdock Client
===============

Facade over the REST fetchers, the push helper and the streaming session.
Create it with ``await FlowdockClient.create(api_key)`` so that users, flows
and organizations are loaded before first use.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
import structlog

from flowdock_stream.api import push
from flowdock_stream.api.http import basic_auth
from flowdock_stream.api.models import Flow, Organization, User
from flowdock_stream.api.resources import fetch_flows, fetch_organizations, fetch_users
from flowdock_stream.core.config import Settings
from flowdock_stream.errors import (
    BootstrapError,
    ChannelClosedError,
    FlowdockError,
    SessionStateError,
    TransportError,
)
from flowdock_stream.streaming.channel import EventChannel
from flowdock_stream.streaming.events import Event, FileEvent, decode_frame
from flowdock_stream.streaming.session import StreamSession, build_filter_url
from flowdock_stream.utils.http_helpers import describe_http_error

logger = structlog.get_logger(__name__)

StreamItem = Union[Event, FlowdockError]


class FlowdockClient:
    """
    Client for the Flowdock REST and streaming APIs.

    Handles:
    - Concurrent bootstrap of users, flows and organizations
    - Lookups against that snapshot
    - One streaming session feeding decoded events into a channel
    - Push API messages and replies
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        stream_url: Optional[str] = None,
        timeout: Optional[float] = None,
        stream_buffer_size: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client without touching the network.

        Args:
            api_key: Flowdock API token (FLOWDOCK_API_KEY if not provided)
            api_url: REST API base URL
            stream_url: Streaming API base URL
            timeout: Request timeout in seconds (stream reads never time out)
            stream_buffer_size: Capacity of the raw frame and event buffers
            http_client: Client to use instead of an owned one
        """
        settings = Settings.from_environment()
        self.api_key = api_key or settings.api_key
        if not self.api_key:
            raise ValueError(
                "Flowdock API key required. Set FLOWDOCK_API_KEY environment variable or pass api_key"
            )

        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.stream_url = (stream_url or settings.stream_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.stream_buffer_size = stream_buffer_size or settings.stream_buffer_size

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.timeout)

        # Populated once by bootstrap(), read-only afterwards
        self.users: Dict[str, User] = {}
        self.flows: List[Flow] = []
        self.organizations: List[Organization] = []
        self.bootstrap_errors: List[BootstrapError] = []

        self._session: Optional[StreamSession] = None
        self._consumer: Optional[asyncio.Task[None]] = None

    @classmethod
    async def create(cls, api_key: Optional[str] = None, **kwargs: Any) -> "FlowdockClient":
        """Construct a client and wait for the bootstrap fetches to finish."""
        client = cls(api_key, **kwargs)
        await client.bootstrap()
        return client

    async def close(self) -> None:
        """Stop the stream session, if any, and close the HTTP client."""
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
        if self._session is not None:
            await self._session.close()
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "FlowdockClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    # =========================================================================
    # Bootstrap
    # =========================================================================

    def _handle_result(self, result: Any, default: Any, name: str) -> Any:
        """Handle an asyncio.gather result that may be an exception."""
        # gather() hands back CancelledError too, which is not an Exception
        if not isinstance(result, BaseException):
            return result
        if isinstance(result, BootstrapError):
            error = result
        else:
            error = BootstrapError(name, str(result) or type(result).__name__)
        logger.warning("Bootstrap fetch failed", source=name, error=str(error))
        self.bootstrap_errors.append(error)
        return default

    async def bootstrap(self) -> None:
        """
        Fetch users, flows and organizations concurrently.

        A failed fetch is logged and recorded in ``bootstrap_errors``; its
        table stays empty and the client remains usable.
        """
        users, flows, organizations = await asyncio.gather(
            fetch_users(self.http_client, self.api_key, self.api_url),
            fetch_flows(self.http_client, self.api_key, self.api_url),
            fetch_organizations(self.http_client, self.api_key, self.api_url),
            return_exceptions=True,
        )

        self.users = self._handle_result(users, {}, "users")
        self.flows = self._handle_result(flows, [], "flows")
        self.organizations = self._handle_result(organizations, [], "organizations")
        logger.debug(
            "Bootstrap finished",
            users=len(self.users),
            flows=len(self.flows),
            organizations=len(self.organizations),
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    def details_for_user(self, user_id: str) -> Optional[User]:
        """Return the User for a decimal user ID string, or None."""
        return self.users.get(user_id)

    def details_for_flow(self, flow_id: str) -> Optional[Flow]:
        """Return the Flow with the given ID, or None if it is not accessible."""
        for flow in self.flows:
            if flow.id == flow_id:
                return flow
        return None

    # =========================================================================
    # Streaming
    # =========================================================================

    def flow_stream_url(self, flows: Optional[Sequence[Flow]] = None) -> str:
        """Streaming URL for the given flows; empty or None means every known flow."""
        return build_filter_url(flows or self.flows, self.stream_url)

    async def connect(
        self,
        flows: Optional[Sequence[Flow]] = None,
        sink: Optional[EventChannel[StreamItem]] = None,
    ) -> EventChannel[StreamItem]:
        """
        Connect to the streaming API and start delivering events.

        Decoded events and per-frame decode errors are put into ``sink`` in
        wire order. When the stream ends the terminal TransportError is put
        last and the sink is closed.

        Args:
            flows: Flows to subscribe to; empty or None means every known flow
            sink: Channel to deliver into; a bounded one is created if omitted

        Returns:
            The channel events are delivered to

        Raises:
            SessionStateError: If this client already has a stream session
            TransportError: If the connection cannot be established
        """
        if self._session is not None:
            raise SessionStateError("Client already has a stream session")

        if sink is None:
            sink = EventChannel(maxsize=self.stream_buffer_size)
        frames: asyncio.Queue[bytes] = asyncio.Queue(maxsize=self.stream_buffer_size)

        session = StreamSession(
            self.http_client,
            self.api_key,
            self.flow_stream_url(flows),
            frames.put,
            connect_timeout=self.timeout,
        )
        done = await session.connect()

        self._session = session
        self._consumer = asyncio.create_task(self._consume(frames, done, sink))
        return sink

    async def _consume(
        self,
        frames: "asyncio.Queue[bytes]",
        done: "asyncio.Future[TransportError]",
        sink: EventChannel[StreamItem],
    ) -> None:
        """Decode raw frames into the sink until the session reports its end."""
        next_frame: Optional[asyncio.Future[bytes]] = None
        try:
            while True:
                next_frame = asyncio.ensure_future(frames.get())
                finished, _ = await asyncio.wait(
                    {next_frame, done}, return_when=asyncio.FIRST_COMPLETED
                )

                if next_frame in finished:
                    await sink.put(decode_frame(next_frame.result()))
                    continue

                next_frame.cancel()
                # Frames read before the end was reported still go out first
                while not frames.empty():
                    await sink.put(decode_frame(frames.get_nowait()))
                await sink.put(done.result())
                return

        except ChannelClosedError:
            logger.info("Event sink closed by caller, stopping stream")

        except Exception as e:
            logger.exception("Event consumer failed, stopping stream", error=str(e))
            if self._session is not None:
                await self._session.close()
            try:
                await sink.put(TransportError(f"Event consumer failed: {e}"))
            except ChannelClosedError:
                pass

        finally:
            if next_frame is not None and not next_frame.done():
                next_frame.cancel()
            sink.close()
            if self._session is not None:
                await self._session.close()

    # =========================================================================
    # Files and Push
    # =========================================================================

    async def fetch_file(self, file: Union[FileEvent, str]) -> bytes:
        """
        Download an uploaded file.

        Args:
            file: A FileEvent, or the file's REST path

        Returns:
            The file content

        Raises:
            ValueError: If the event carries no file path
            TransportError: If the download fails or answers non-2xx
        """
        path = file.file_path if isinstance(file, FileEvent) else file
        if not path:
            raise ValueError("File event has no path")

        url = self.api_url + (path if path.startswith("/") else f"/{path}")
        try:
            response = await self.http_client.get(url, auth=basic_auth(self.api_key))
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e
        if not response.is_success:
            raise TransportError(describe_http_error(response, context=f"GET {url}"))
        return response.content

    async def push_message(self, flow_key: str, message: str, sender: str) -> None:
        """Start a new thread in a flow using its push key."""
        await push.push_message(
            flow_key, message, sender, http_client=self.http_client, api_url=self.api_url
        )

    async def push_reply(self, flow_key: str, message: str, sender: str, thread_id: int) -> None:
        """Reply to a thread in a flow using its push key."""
        await push.push_reply(
            flow_key, message, sender, thread_id, http_client=self.http_client, api_url=self.api_url
        )
