"""Fake event log for testing append failures."""

from typing import Any

from session_daemon.errors import PublishError
from session_daemon.integrations.event_log.memory import MemoryEventLog
from session_daemon.models.session import SESSION_ENTITY_TYPE
from session_daemon.models.stream import StreamOperation, StreamRecord


class FakeEventLog(MemoryEventLog):
    """MemoryEventLog that records every append attempt and can refuse them.

    State is provided via constructor or captured during execution.
    """

    def __init__(
        self,
        *,
        sessions: dict[str, dict[str, Any]] | None = None,
        failing_keys: set[str] | None = None,
        fail_all: bool = False,
    ) -> None:
        """Create FakeEventLog.

        Args:
            sessions: Session payloads already in the log, keyed by session id,
                as left behind by an earlier daemon run
            failing_keys: Primary keys whose appends raise PublishError
            fail_all: If True, every append raises PublishError
        """
        super().__init__()
        for session_id, payload in (sessions or {}).items():
            self._sequence += 1
            self._entities[(SESSION_ENTITY_TYPE, session_id)] = StreamRecord(
                entity_type=SESSION_ENTITY_TYPE,
                primary_key=session_id,
                operation=StreamOperation.INSERT,
                payload=payload,
                sequence=self._sequence,
            )
        self._failing_keys = failing_keys or set()
        self._fail_all = fail_all
        self._append_attempts: list[tuple[str, StreamOperation]] = []
        self._opened = False
        self._closed = False

    @property
    def append_attempts(self) -> list[tuple[str, StreamOperation]]:
        """(primary_key, operation) of every append call, for test assertions."""
        return self._append_attempts.copy()

    @property
    def opened(self) -> bool:
        return self._opened

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        self._opened = True

    async def close(self) -> None:
        self._closed = True

    async def append(
        self,
        entity_type: str,
        primary_key: str,
        operation: StreamOperation,
        payload: dict[str, Any] | None,
    ) -> StreamRecord:
        self._append_attempts.append((primary_key, operation))
        if self._fail_all or primary_key in self._failing_keys:
            raise PublishError(primary_key, "simulated storage failure")
        return await super().append(entity_type, primary_key, operation, payload)
