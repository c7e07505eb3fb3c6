"""Change detector: turns filesystem churn into de-duplicated session events.

Raw notifications are coalesced per path with a trailing debounce: every
notification for a path cancels that path's pending timer and schedules a new
one, so a burst of writes results in a single rescan once the file has been
quiet for the debounce period. Rescans run on one worker task, which is the
only writer of the SessionRecordStore.

Status depends on time as well as content: a session turns idle once it has
been quiet for the loader's idle threshold. Each live session therefore also
holds an idle timer that rescans it when the threshold passes, so the idle
transition is published without any write to the file.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import timedelta
from pathlib import Path

from session_daemon.errors import SessionParseError, WatchInitError
from session_daemon.integrations.file_watcher.abc import FileWatcher
from session_daemon.models.session import (
    SessionEvent,
    SessionEventKind,
    SessionState,
    SessionStatus,
)
from session_daemon.session_loader import (
    SessionLoader,
    discover_session_files,
    is_session_file,
    session_id_for,
)
from session_daemon.store import SessionRecordStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

DetectorNotice = SessionEvent | SessionParseError


class _ChannelClosed:
    """Sentinel ending every events() iterator."""


_CLOSED = _ChannelClosed()


class ChangeDetector:
    """Watches the session directory and emits typed session events."""

    def __init__(
        self,
        *,
        projects_dir: Path,
        watcher: FileWatcher,
        loader: SessionLoader,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        """Create ChangeDetector.

        Args:
            projects_dir: Root directory holding session files (searched recursively)
            watcher: Source of raw filesystem notifications
            loader: Derives SessionState from a session file
            debounce_seconds: Quiet period after the last notification for a
                path before it is rescanned
        """
        self._projects_dir = projects_dir
        self._watcher = watcher
        self._loader = loader
        self._debounce_seconds = debounce_seconds
        self._store = SessionRecordStore()
        self._timers: dict[Path, asyncio.TimerHandle] = {}
        self._idle_timers: dict[Path, asyncio.TimerHandle] = {}
        self._pending: asyncio.Queue[Path] = asyncio.Queue()
        self._channel: asyncio.Queue[DetectorNotice | _ChannelClosed] = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._watch_task: asyncio.Task[None] | None = None
        self._worker_task: asyncio.Task[None] | None = None
        self._started = False
        self._stopped = False

    @property
    def projects_dir(self) -> Path:
        return self._projects_dir

    @property
    def pending_timer_count(self) -> int:
        """Number of paths with a debounce timer in flight."""
        return len(self._timers)

    @property
    def idle_timer_count(self) -> int:
        """Number of sessions waiting to be re-evaluated as idle."""
        return len(self._idle_timers)

    async def start(self) -> None:
        """Begin watching and perform the initial full scan.

        Emits one CREATED event per parsable session file before returning.

        Raises:
            WatchInitError: If the session directory cannot be observed
        """
        if self._started:
            raise RuntimeError("ChangeDetector already started")
        self._started = True
        if self._stopped:
            return

        if not self._projects_dir.is_dir():
            raise WatchInitError(self._projects_dir, "not an existing directory")
        try:
            paths = await asyncio.to_thread(discover_session_files, self._projects_dir)
        except OSError as err:
            raise WatchInitError(self._projects_dir, str(err)) from err
        if self._stopped:
            return

        # Watch before scanning so writes racing the scan are not missed; their
        # rescans queue up until the worker starts.
        self._watch_task = asyncio.create_task(self._watch_loop(), name="session-watch")
        for path in paths:
            await self._rescan_path(path)
            if self._stopped:
                return
        self._worker_task = asyncio.create_task(self._rescan_worker(), name="session-rescan")
        logger.info("Watching %s (%d sessions)", self._projects_dir, len(self._store))

    async def stop(self) -> None:
        """Release watches, cancel pending timers without firing them, end events().

        Idempotent.
        """
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()

        for timers in (self._timers, self._idle_timers):
            for handle in timers.values():
                handle.cancel()
            timers.clear()

        tasks = [task for task in (self._watch_task, self._worker_task) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._channel.put_nowait(_CLOSED)

    def get_sessions(self) -> dict[str, SessionState]:
        """Point-in-time copy of every known session."""
        return self._store.snapshot()

    async def events(self) -> AsyncIterator[DetectorNotice]:
        """Yield session events and parse failure notices in emission order.

        Ends once the detector is stopped.
        """
        while True:
            item = await self._channel.get()
            if isinstance(item, _ChannelClosed):
                self._channel.put_nowait(item)
                return
            yield item

    async def _watch_loop(self) -> None:
        try:
            async for changed in self._watcher.watch(self._projects_dir, self._stop_event):
                for path in changed:
                    if is_session_file(path):
                        self._schedule(path)
        except (OSError, RuntimeError) as err:
            logger.error("Watching %s failed, no further changes will be seen: %s", self._projects_dir, err)

    def _schedule(self, path: Path) -> None:
        previous = self._timers.pop(path, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._timers[path] = loop.call_later(self._debounce_seconds, self._fire, path)

    def _fire(self, path: Path) -> None:
        self._timers.pop(path, None)
        if not self._stopped:
            self._pending.put_nowait(path)

    def _schedule_idle_check(self, session: SessionState, path: Path) -> None:
        previous = self._idle_timers.pop(path, None)
        if previous is not None:
            previous.cancel()
        if session.status == SessionStatus.IDLE:
            return
        idle_at = session.last_activity_at + self._loader.idle_after
        # A hair past the threshold, which derive_status compares strictly.
        delay = (idle_at - self._loader.clock.now() + timedelta(milliseconds=10)).total_seconds()
        loop = asyncio.get_running_loop()
        self._idle_timers[path] = loop.call_later(max(delay, 0.0), self._fire_idle_check, path)

    def _fire_idle_check(self, path: Path) -> None:
        self._idle_timers.pop(path, None)
        if not self._stopped:
            self._pending.put_nowait(path)

    async def _rescan_worker(self) -> None:
        while True:
            path = await self._pending.get()
            await self._rescan_path(path)

    async def _rescan_path(self, path: Path) -> None:
        """Rescan one path; failures stay confined to that path."""
        try:
            await self._rescan(path)
        except Exception:
            logger.exception("Rescanning %s failed", path)

    async def _rescan(self, path: Path) -> None:
        session_id = session_id_for(path)
        previous = self._store.get(session_id)
        try:
            current = await asyncio.to_thread(self._loader.load, path)
        except SessionParseError as err:
            if self._stopped:
                return
            logger.debug("Keeping previous state of %s: %s", session_id, err.reason)
            self._channel.put_nowait(err)
            return
        if self._stopped:
            return

        if current is None:
            idle_timer = self._idle_timers.pop(path, None)
            if idle_timer is not None:
                idle_timer.cancel()
            if previous is not None:
                self._store.remove(session_id)
                self._channel.put_nowait(SessionEvent(SessionEventKind.DELETED, previous))
            return

        self._schedule_idle_check(current, path)
        if previous is None:
            self._store.put(current)
            self._channel.put_nowait(SessionEvent(SessionEventKind.CREATED, current))
        elif previous != current:
            self._store.put(current)
            self._channel.put_nowait(SessionEvent(SessionEventKind.UPDATED, current))
