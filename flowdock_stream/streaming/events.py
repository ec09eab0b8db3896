"""
Stream Event Models
===================

Typed models for the JSON records delivered by the Flowdock streaming API,
and the decoder that turns one raw frame into one of them.

Every record carries its wire tag in ``event``. Known tags map to a dedicated
model; anything else becomes an ActionEvent that keeps the raw content.
Consumers match on the model class (or on ``event``).
"""

import json
from datetime import UTC, datetime
from typing import Any, Dict, List, Literal, Type, Union

import structlog
from pydantic import Field, ValidationError

from flowdock_stream.api.models import FlowdockModel
from flowdock_stream.errors import EventShapeMismatchError, FlowdockError, MalformedEventError

logger = structlog.get_logger(__name__)


# =============================================================================
# Envelope
# =============================================================================


class BaseEvent(FlowdockModel):
    """Fields present on every stream record."""

    event: str
    flow: str = ""
    timestamp: int = Field(0, alias="sent")
    user_id: str = Field("", alias="user")


class ChatEvent(BaseEvent):
    """Envelope shared by events stored in a flow's history."""

    tags: List[str] = Field(default_factory=list)
    id: int = 0
    attachments: List[Any] = Field(default_factory=list)


# =============================================================================
# Content Shapes
# =============================================================================


class CommentContent(FlowdockModel):
    title: str = ""
    text: str = ""


class MessageEditContent(FlowdockModel):
    updated_message: str = Field("", alias="updated_content")
    message_id: int = Field(0, alias="message")


class TagChangeContent(FlowdockModel):
    added: List[str] = Field(default_factory=list, alias="add")
    removed: List[str] = Field(default_factory=list, alias="remove")
    message_id: int = Field(0, alias="message")


class UserActivityContent(FlowdockModel):
    last_activity: int = 0


# =============================================================================
# Events
# =============================================================================


class MessageEvent(ChatEvent):
    """A user started a new thread in a flow."""

    event: Literal["message"] = "message"
    content: str = ""


class StatusEvent(ChatEvent):
    """A user changed their status."""

    event: Literal["status"] = "status"
    content: str = ""

    def describe(self) -> str:
        when = datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()
        return f"User with ID {self.user_id} changed their status to {self.content} at {when}."


class CommentEvent(ChatEvent):
    """A user commented on a team inbox item or an existing thread."""

    event: Literal["comment"] = "comment"
    content: CommentContent = Field(default_factory=CommentContent)


class MessageEditEvent(ChatEvent):
    """The content of a message or comment was changed."""

    event: Literal["message-edit"] = "message-edit"
    content: MessageEditContent = Field(default_factory=MessageEditContent)

    @property
    def updated_message(self) -> str:
        return self.content.updated_message

    @property
    def message_id(self) -> int:
        return self.content.message_id


class TagChangeEvent(ChatEvent):
    """Tags were added to or removed from a message."""

    event: Literal["tag-change"] = "tag-change"
    content: TagChangeContent = Field(default_factory=TagChangeContent)

    @property
    def message_id(self) -> int:
        return self.content.message_id


class UserActivityEvent(ChatEvent):
    """Periodic heartbeat telling others that a user is online."""

    event: Literal["activity.user"] = "activity.user"
    content: UserActivityContent = Field(default_factory=UserActivityContent)


class FileEvent(ChatEvent):
    """
    A file was uploaded to the flow.

    ``content`` holds the file metadata and ``attachments`` a single
    attachment with the same data. The metadata ``path`` is the REST API
    path the file can be downloaded from.
    """

    event: Literal["file"] = "file"
    content: Dict[str, Any] = Field(default_factory=dict)
    attachments: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def file_path(self) -> str:
        """REST path of the uploaded file, or "" if the metadata has none."""
        path = self.content.get("path")
        return path if isinstance(path, str) else ""


class UserIsTypingEvent(BaseEvent):
    """
    A user is typing in a flow.

    Several of these may arrive while the user types a single message.
    """

    event: Literal["typing"] = "typing"


class ActionEvent(ChatEvent):
    """Any other activity, e.g. adding a Twitter stream. Content is kept as sent."""

    content: Any = None

    @property
    def type(self) -> str:
        return self.event


Event = Union[
    MessageEvent,
    StatusEvent,
    CommentEvent,
    MessageEditEvent,
    TagChangeEvent,
    UserActivityEvent,
    FileEvent,
    UserIsTypingEvent,
    ActionEvent,
]

EVENT_TYPES: Dict[str, Type[BaseEvent]] = {
    "message": MessageEvent,
    "status": StatusEvent,
    "comment": CommentEvent,
    "message-edit": MessageEditEvent,
    "tag-change": TagChangeEvent,
    "activity.user": UserActivityEvent,
    "file": FileEvent,
    "typing": UserIsTypingEvent,
}


# =============================================================================
# Decoding
# =============================================================================


def decode_event(frame: Union[bytes, str]) -> Event:
    """
    Decode one stream frame into a typed event.

    Args:
        frame: A single JSON object, as bytes or text

    Returns:
        The model registered for the frame's ``event`` tag, or ActionEvent

    Raises:
        MalformedEventError: Invalid JSON, or no string ``event`` field
        EventShapeMismatchError: The payload does not fit the tag's model
    """
    try:
        raw = json.loads(frame)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise MalformedEventError(f"Invalid JSON frame: {e}") from e

    if not isinstance(raw, dict):
        raise MalformedEventError(f"Expected a JSON object, got {type(raw).__name__}")

    tag = raw.get("event")
    if not isinstance(tag, str):
        raise MalformedEventError("Frame has no string 'event' field")

    model = EVENT_TYPES.get(tag, ActionEvent)
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.debug("Event payload did not match model", tag=tag, model=model.__name__)
        raise EventShapeMismatchError(tag, str(e)) from e


def decode_frame(frame: Union[bytes, str]) -> Union[Event, FlowdockError]:
    """Like decode_event(), but return the decode error instead of raising it."""
    try:
        return decode_event(frame)
    except FlowdockError as e:
        return e
