"""Exception hierarchy for flowdock-stream.

Errors are raised at the seams (REST fetches, push, decoding) and only turned
into values by the stream consumer, which forwards them into the event sink.
"""

from __future__ import annotations


class FlowdockError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(FlowdockError):
    """Connection or I/O failure during a REST call or a stream read."""


class BootstrapError(FlowdockError):
    """One of the bootstrap fetches (users, flows, organizations) failed."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"Failed to get {source}: {message}")
        self.source = source


class MalformedEventError(FlowdockError):
    """A stream frame is not a JSON object with a string ``event`` field."""


class EventShapeMismatchError(FlowdockError):
    """The ``event`` tag is known but the payload has the wrong shape."""

    def __init__(self, tag: str, message: str) -> None:
        super().__init__(f"Invalid payload for {tag!r} event: {message}")
        self.tag = tag


class PushError(FlowdockError):
    """The push endpoint rejected a message or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionStateError(FlowdockError):
    """A stream session was used outside of its allowed lifecycle."""


class ChannelClosedError(FlowdockError):
    """An item was put into an event channel that has been closed."""
