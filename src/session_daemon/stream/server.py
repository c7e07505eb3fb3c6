"""Durable stream server: sequenced append log with snapshot + live-tail delivery."""

import asyncio
import itertools
import logging
import signal
import socket
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from types import FrameType

import uvicorn

from session_daemon.context import ServerContext
from session_daemon.integrations.event_log.abc import EventLog
from session_daemon.main import create_app
from session_daemon.models.stream import StreamEntity, StreamOperation, StreamRecord, StreamSnapshot
from session_daemon.stream.subscriber import Subscription

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
GRACEFUL_SHUTDOWN_SECONDS = 5
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class _Listener(uvicorn.Server):
    """uvicorn server that closes subscribers before shutting down.

    Open SSE responses would otherwise hold the graceful shutdown until its
    timeout. Signals are handled on the event loop and not re-raised after
    exit, so the daemon gets to stop its other components.
    """

    def __init__(self, config: uvicorn.Config, on_exit: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_exit = on_exit

    @contextmanager
    def capture_signals(self) -> Generator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        loop = asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            loop.add_signal_handler(sig, self.handle_exit, sig, None)
        try:
            yield
        finally:
            for sig in HANDLED_SIGNALS:
                loop.remove_signal_handler(sig)

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        self._on_exit()
        super().handle_exit(sig, frame)


def _bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


class StreamServer:
    """Publishes entities to an append-only log and fans records out to subscribers.

    All sequence assignment, appends and broadcasts happen under one lock, and
    subscribe() captures its snapshot under the same lock, so every subscriber
    receives exactly the records with sequence greater than its snapshot
    cutoff, in order.
    """

    def __init__(
        self,
        log: EventLog,
        *,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        host: str = "127.0.0.1",
    ) -> None:
        """Create StreamServer.

        Args:
            log: Event log assigning sequences and holding the snapshot state
            queue_size: Per-subscriber bound on queued live records
            host: Interface the HTTP listener binds to
        """
        self._log = log
        self._queue_size = queue_size
        self._host = host
        self._lock = asyncio.Lock()
        self._subscribers: dict[str, Subscription] = {}
        self._subscriber_ids = itertools.count(1)
        self._listener: _Listener | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._port: int | None = None
        self._opened = False
        self._stopped = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def port(self) -> int | None:
        """Port the listener is bound to, once started."""
        return self._port

    async def open(self) -> None:
        """Open the event log. Called by start(); idempotent."""
        if self._opened:
            return
        await self._log.open()
        self._opened = True

    async def start(self, port: int) -> None:
        """Serve the HTTP surface on host:port in a background task.

        Returns once the listener accepts connections. Port 0 picks a free port,
        readable from `port` afterwards.

        Raises:
            OSError: If the port cannot be bound
        """
        if self._serve_task is not None:
            raise RuntimeError("StreamServer already started")
        await self.open()
        if self._stopped:
            return

        sock = _bind_socket(self._host, port)
        self._port = sock.getsockname()[1]
        config = uvicorn.Config(
            create_app(ServerContext(stream=self)),
            lifespan="off",
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
        )
        self._listener = _Listener(config, on_exit=self.close_subscribers)
        self._serve_task = asyncio.create_task(
            self._listener.serve(sockets=[sock]), name="stream-listener"
        )
        while not self._listener.started:
            if self._serve_task.done():
                self._serve_task.result()
                raise RuntimeError("Stream listener exited during startup")
            await asyncio.sleep(0.01)
        logger.info("Stream server listening on http://%s:%d", self._host, self._port)

    async def wait_closed(self) -> None:
        """Wait until the listener exits (e.g. on SIGINT/SIGTERM)."""
        if self._serve_task is not None:
            await asyncio.shield(self._serve_task)

    async def stop(self) -> None:
        """Close every subscriber, then shut the listener down. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        self.close_subscribers()
        if self._listener is not None and self._serve_task is not None:
            self._listener.should_exit = True
            await asyncio.gather(self._serve_task, return_exceptions=True)
        if self._opened:
            await self._log.close()

    def close_subscribers(self) -> None:
        """End every subscriber's stream after its queued records drain."""
        subscribers = list(self._subscribers.values())
        self._subscribers.clear()
        for subscription in subscribers:
            subscription.close()

    async def publish(self, entity: StreamEntity, operation: StreamOperation) -> StreamRecord:
        """Append one record and broadcast it to every subscriber.

        Raises:
            PublishError: If the append failed; nothing is broadcast
        """
        payload = entity.to_payload() if operation != StreamOperation.DELETE else None
        async with self._lock:
            record = await self._log.append(
                entity.entity_type, entity.primary_key, operation, payload
            )
            self._broadcast(record)
        return record

    async def retract(self, entity_type: str, primary_key: str) -> StreamRecord:
        """Publish a delete for a key known only from the log.

        Raises:
            PublishError: If the append failed; nothing is broadcast
        """
        async with self._lock:
            record = await self._log.append(entity_type, primary_key, StreamOperation.DELETE, None)
            self._broadcast(record)
        return record

    async def clear_all(self) -> int:
        """Publish a delete for every live entity.

        Returns:
            Number of entities cleared

        Raises:
            PublishError: If an append failed; earlier deletes stay published
        """
        async with self._lock:
            keys = await self._log.known_keys()
            for entity_type, primary_key in keys:
                record = await self._log.append(
                    entity_type, primary_key, StreamOperation.DELETE, None
                )
                self._broadcast(record)
        logger.info("Cleared %d entities from the stream", len(keys))
        return len(keys)

    async def subscribe(self) -> Subscription:
        """Capture a snapshot and register for every later record."""
        async with self._lock:
            snapshot = await self._log.snapshot()
            subscription = Subscription(
                f"sub-{next(self._subscriber_ids)}", snapshot, self._queue_size
            )
            if self._stopped:
                subscription.close()
            else:
                self._subscribers[subscription.subscriber_id] = subscription
        logger.debug(
            "Subscriber %s joined at sequence %d", subscription.subscriber_id, snapshot.cutoff
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscribers.pop(subscription.subscriber_id, None)
        subscription.close()

    async def snapshot(self) -> StreamSnapshot:
        async with self._lock:
            return await self._log.snapshot()

    async def last_sequence(self) -> int:
        return await self._log.last_sequence()

    async def known_keys(self) -> list[tuple[str, str]]:
        return await self._log.known_keys()

    def _broadcast(self, record: StreamRecord) -> None:
        for subscription in list(self._subscribers.values()):
            if subscription.offer(record):
                continue
            del self._subscribers[subscription.subscriber_id]
            subscription.disconnect()
            logger.warning(
                "Subscriber %s overran its queue of %d records, disconnecting",
                subscription.subscriber_id,
                self._queue_size,
            )

