"""Subscriber handles owned by the stream server."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from session_daemon.errors import SubscriberOverrunError
from session_daemon.models.stream import StreamRecord, StreamSnapshot


class _Wake:
    """Queued on close so a reader blocked on an empty queue notices."""


_WAKE = _Wake()


class Subscription:
    """One connected consumer: its catch-up snapshot plus a bounded live queue.

    The server offers every record appended after the snapshot cutoff. Offers
    never block; a full queue marks the subscription overrun and the reader's
    tail() raises SubscriberOverrunError instead of silently skipping records.
    """

    def __init__(self, subscriber_id: str, snapshot: StreamSnapshot, max_queue: int) -> None:
        self.subscriber_id = subscriber_id
        self.snapshot = snapshot
        self._max_queue = max_queue
        self._queue: asyncio.Queue[StreamRecord | _Wake] = asyncio.Queue(maxsize=max_queue)
        self._closed = False
        self._overrun = False
        self._reader: asyncio.Task[Any] | None = None

    @property
    def cutoff(self) -> int:
        return self.snapshot.cutoff

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def overrun(self) -> bool:
        return self._overrun

    @property
    def queued(self) -> int:
        return self._queue.qsize()

    def offer(self, record: StreamRecord) -> bool:
        """Enqueue a live record without blocking.

        Returns:
            False if the queue was full; the subscription is then overrun and
            closed, and must be dropped by the caller
        """
        if self._closed:
            return True
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._overrun = True
            self._closed = True
            return False
        return True

    def attach_reader(self, task: asyncio.Task[Any]) -> None:
        """Register the task delivering this subscription to its consumer."""
        self._reader = task

    def disconnect(self) -> None:
        """Close and cancel the delivering task, even if it is blocked on a send."""
        self.close()
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()

    def close(self) -> None:
        """Stop accepting records. Already queued records are still delivered."""
        if self._closed:
            return
        self._closed = True
        if not self._queue.full():
            self._queue.put_nowait(_WAKE)

    async def tail(self) -> AsyncIterator[StreamRecord]:
        """Yield live records in sequence order until closed.

        Raises:
            SubscriberOverrunError: If the queue bound was exceeded
        """
        while True:
            if self._overrun:
                raise SubscriberOverrunError(self.subscriber_id, self._max_queue)
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if isinstance(item, _Wake):
                continue
            yield item

    async def records(self) -> AsyncIterator[StreamRecord]:
        """Snapshot records followed by the live tail."""
        for record in self.snapshot.records:
            yield record
        async for record in self.tail():
            yield record
