"""Streaming API: event models, frame decoding and the stream session."""

from flowdock_stream.streaming.channel import EventChannel
from flowdock_stream.streaming.events import (
    EVENT_TYPES,
    ActionEvent,
    CommentEvent,
    Event,
    FileEvent,
    MessageEditEvent,
    MessageEvent,
    StatusEvent,
    TagChangeEvent,
    UserActivityEvent,
    UserIsTypingEvent,
    decode_event,
    decode_frame,
)
from flowdock_stream.streaming.session import StreamSession, StreamState, build_filter_url

__all__ = [
    "EVENT_TYPES",
    "ActionEvent",
    "CommentEvent",
    "Event",
    "EventChannel",
    "FileEvent",
    "MessageEditEvent",
    "MessageEvent",
    "StatusEvent",
    "StreamSession",
    "StreamState",
    "TagChangeEvent",
    "UserActivityEvent",
    "UserIsTypingEvent",
    "build_filter_url",
    "decode_event",
    "decode_frame",
]
