"""Composition of change detector, recency filter and stream server."""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path

from session_daemon.config import DaemonConfig
from session_daemon.detector import ChangeDetector
from session_daemon.errors import PublishError, SessionParseError, WatchInitError
from session_daemon.integrations.clock.abc import Clock
from session_daemon.integrations.clock.real import RealClock
from session_daemon.integrations.event_log.abc import EventLog
from session_daemon.integrations.event_log.memory import MemoryEventLog
from session_daemon.integrations.event_log.real import RedisEventLog
from session_daemon.integrations.file_watcher.real import RealFileWatcher
from session_daemon.integrations.git_info.real import RealGitInfo
from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.integrations.pull_requests.cached import CachingPullRequestLookup
from session_daemon.integrations.pull_requests.real import RealPullRequestLookup
from session_daemon.models.session import SESSION_ENTITY_TYPE, SessionEvent, SessionEventKind
from session_daemon.models.stream import StreamOperation
from session_daemon.recency import DEFAULT_MAX_AGE, is_publishable
from session_daemon.session_loader import SessionLoader
from session_daemon.stream.server import StreamServer

logger = logging.getLogger(__name__)

EVENT_OPERATIONS = {
    SessionEventKind.CREATED: StreamOperation.INSERT,
    SessionEventKind.UPDATED: StreamOperation.UPDATE,
    SessionEventKind.DELETED: StreamOperation.DELETE,
}

_EVENT_TAGS = {
    SessionEventKind.CREATED: "CRE",
    SessionEventKind.UPDATED: "UPD",
    SessionEventKind.DELETED: "DEL",
}


def build_loader(config: DaemonConfig, clock: Clock) -> SessionLoader:
    """Create the production SessionLoader described by config."""
    pull_requests: PullRequestLookup | None = None
    if config.pr_lookup:
        pull_requests = CachingPullRequestLookup(
            RealPullRequestLookup(clock),
            clock,
            timedelta(seconds=config.pr_ttl_seconds),
        )
    return SessionLoader(
        clock=clock,
        git_info=RealGitInfo(),
        pull_requests=pull_requests,
        idle_after=timedelta(minutes=config.idle_minutes),
    )


class SessionDaemon:
    """Forwards detector events that pass the recency filter to the stream server."""

    def __init__(
        self,
        *,
        detector: ChangeDetector,
        stream: StreamServer,
        clock: Clock,
        port: int | None,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> None:
        """Create SessionDaemon.

        Args:
            detector: Change detector over the session directory
            stream: Stream server receiving the published records
            clock: Time source for the recency filter
            port: Port for the HTTP listener; None opens the stream without one
            max_age: Sessions inactive for longer are not published
        """
        self._detector = detector
        self._stream = stream
        self._clock = clock
        self._port = port
        self._max_age = max_age
        self._forward_task: asyncio.Task[None] | None = None
        self._stopped = False

    @classmethod
    def from_config(cls, config: DaemonConfig) -> "SessionDaemon":
        """Create a daemon wired to the real filesystem, git, gh and event log."""
        clock = RealClock()
        log: EventLog = RedisEventLog(config.redis_url) if config.redis_url else MemoryEventLog()
        return cls(
            detector=ChangeDetector(
                projects_dir=config.projects_dir,
                watcher=RealFileWatcher(),
                loader=build_loader(config, clock),
                debounce_seconds=config.debounce_seconds,
            ),
            stream=StreamServer(log, queue_size=config.queue_size, host=config.host),
            clock=clock,
            port=config.port,
            max_age=timedelta(hours=config.max_age_hours),
        )

    @property
    def detector(self) -> ChangeDetector:
        return self._detector

    @property
    def stream(self) -> StreamServer:
        return self._stream

    async def start(self) -> None:
        """Start the stream, scan and watch sessions, then begin forwarding.

        A session directory that cannot be watched is logged and the daemon
        keeps serving with zero sessions. A stop() issued meanwhile ends
        start-up early.

        Raises:
            OSError: If the listener port cannot be bound
        """
        if self._port is None:
            await self._stream.open()
        else:
            await self._stream.start(self._port)
        if self._stopped:
            return

        try:
            await self._detector.start()
        except WatchInitError as err:
            logger.error("%s; serving with no sessions", err)
        if self._stopped:
            return

        await self._reconcile()
        if self._stopped:
            return
        self._forward_task = asyncio.create_task(self._forward(), name="session-forward")

    async def stop(self) -> None:
        """Stop detector, forwarding and stream server. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        await self._detector.stop()
        if self._forward_task is not None:
            self._forward_task.cancel()
            await asyncio.gather(self._forward_task, return_exceptions=True)
        await self._stream.stop()

    async def serve_forever(self) -> None:
        """Run until the listener exits on SIGINT/SIGTERM."""
        await self.start()
        try:
            await self._stream.wait_closed()
        finally:
            await self.stop()

    async def clear_all_sessions(self) -> int:
        """Remove every session from the stream.

        Returns:
            Number of sessions cleared
        """
        return await self._stream.clear_all()

    async def _reconcile(self) -> None:
        """Retract logged sessions that the fresh scan does not back.

        A persistent log can outlive session files deleted while the daemon
        was down, and sessions that aged out of the recency window.
        """
        now = self._clock.now()
        live = {
            session_id
            for session_id, session in self._detector.get_sessions().items()
            if is_publishable(SessionEvent(SessionEventKind.CREATED, session), now, self._max_age)
        }
        for entity_type, primary_key in await self._stream.known_keys():
            if entity_type != SESSION_ENTITY_TYPE or primary_key in live:
                continue
            try:
                await self._stream.retract(entity_type, primary_key)
            except PublishError as err:
                logger.error("Failed to retract stale session: %s", err)
                continue
            logger.info("[DEL] %s (stale)", primary_key[:8])

    async def _forward(self) -> None:
        async for notice in self._detector.events():
            if isinstance(notice, SessionParseError):
                logger.warning("Skipping unreadable session file %s: %s", notice.path, notice.reason)
                continue
            await self._handle(notice)

    async def _handle(self, event: SessionEvent) -> None:
        session = event.session
        if not is_publishable(event, self._clock.now(), self._max_age):
            logger.debug("Not publishing %s: inactive since %s", session.session_id, session.last_activity_at)
            return
        try:
            await self._stream.publish(session, EVENT_OPERATIONS[event.kind])
        except PublishError as err:
            logger.error("Failed to publish session %s: %s", session.session_id, err.reason)
            return
        logger.info(
            "[%s] %s %s %s",
            _EVENT_TAGS[event.kind],
            session.session_id[:8],
            Path(session.cwd).name or session.cwd,
            session.status.value,
        )
