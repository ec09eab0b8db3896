"""Async client for the Flowdock REST and streaming APIs.

Bootstrap the users, flows and organizations visible to an API key, stream
typed events from joined flows, and post messages through the Push API.

Example:
    .. code-block:: python

        import asyncio
        from flowdock_stream import FlowdockClient, MessageEvent

        async def main():
            async with await FlowdockClient.create("api-key") as client:
                events = await client.connect()
                async for event in events:
                    if isinstance(event, MessageEvent):
                        print(event.user_id, event.content)

        asyncio.run(main())
"""

from flowdock_stream.api import (
    Flow,
    FlowdockClient,
    Organization,
    User,
    build_push_form,
    push_message,
    push_reply,
)
from flowdock_stream.core import Settings, configure_logging
from flowdock_stream.errors import (
    BootstrapError,
    ChannelClosedError,
    EventShapeMismatchError,
    FlowdockError,
    MalformedEventError,
    PushError,
    SessionStateError,
    TransportError,
)
from flowdock_stream.streaming import (
    ActionEvent,
    CommentEvent,
    Event,
    EventChannel,
    FileEvent,
    MessageEditEvent,
    MessageEvent,
    StatusEvent,
    TagChangeEvent,
    UserActivityEvent,
    UserIsTypingEvent,
    decode_event,
)

__version__ = "0.1.0"
__all__: list[str] = [
    "ActionEvent",
    "BootstrapError",
    "ChannelClosedError",
    "CommentEvent",
    "Event",
    "EventChannel",
    "EventShapeMismatchError",
    "FileEvent",
    "Flow",
    "FlowdockClient",
    "FlowdockError",
    "MalformedEventError",
    "MessageEditEvent",
    "MessageEvent",
    "Organization",
    "PushError",
    "SessionStateError",
    "Settings",
    "StatusEvent",
    "TagChangeEvent",
    "TransportError",
    "User",
    "UserActivityEvent",
    "UserIsTypingEvent",
    "build_push_form",
    "configure_logging",
    "decode_event",
    "push_message",
    "push_reply",
]
