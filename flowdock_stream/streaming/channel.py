"""Closable, bounded async channel used as the event sink."""

import asyncio
from typing import Any, Generic, TypeVar

from flowdock_stream.errors import ChannelClosedError

T = TypeVar("T")

_CLOSED: Any = object()


class EventChannel(Generic[T]):
    """Bounded FIFO that can be closed by either side.

    Items put before close() are still delivered; iteration stops once the
    channel is closed and drained. A full channel blocks put(), which is how
    a slow consumer pushes back on the stream reader. Closing wakes any
    producer blocked on a full channel with ChannelClosedError.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._closed_event = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, item: T) -> None:
        """Put an item, waiting for space if the channel is full.

        Raises:
            ChannelClosedError: If the channel is closed, before or while waiting
        """
        if self._closed:
            raise ChannelClosedError("Cannot put into a closed channel")
        if not self._queue.full():
            self._queue.put_nowait(item)
            return

        putter = asyncio.ensure_future(self._queue.put(item))
        closer = asyncio.ensure_future(self._closed_event.wait())
        try:
            await asyncio.wait({putter, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closer.cancel()
            if not putter.done():
                putter.cancel()
        if putter.cancelled():
            raise ChannelClosedError("Channel closed while waiting to put")

    def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._closed_event.set()
        # A full queue means no reader is parked on get(); get() notices
        # the closed flag once it drains the buffer.
        if not self._queue.full():
            self._queue.put_nowait(_CLOSED)

    async def get(self) -> T:
        """Return the next item.

        Raises:
            ChannelClosedError: If the channel is closed and drained
        """
        if self._closed and self._queue.empty():
            raise ChannelClosedError("Channel is closed")
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other waiting reader
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError("Channel is closed")
        return item

    def __aiter__(self) -> "EventChannel[T]":
        return self

    async def __anext__(self) -> T:
        try:
            return await self.get()
        except ChannelClosedError:
            raise StopAsyncIteration from None
