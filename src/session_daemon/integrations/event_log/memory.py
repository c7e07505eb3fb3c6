"""In-memory event log."""

from dataclasses import replace
from typing import Any

from session_daemon.errors import PublishError
from session_daemon.integrations.event_log.abc import EventLog
from session_daemon.models.stream import StreamOperation, StreamRecord, StreamSnapshot


class MemoryEventLog(EventLog):
    """Event log kept in process memory.

    The log is compacted as it is written: only the latest record of each live
    key is retained, which is everything a snapshot needs. Deleted keys are
    dropped entirely.
    """

    def __init__(self, capacity: int | None = None) -> None:
        """Create MemoryEventLog.

        Args:
            capacity: Maximum number of live entities; appends that would add a
                key beyond it fail with PublishError. None means unbounded.
        """
        self._capacity = capacity
        self._sequence = 0
        self._entities: dict[tuple[str, str], StreamRecord] = {}

    async def append(
        self,
        entity_type: str,
        primary_key: str,
        operation: StreamOperation,
        payload: dict[str, Any] | None,
    ) -> StreamRecord:
        key = (entity_type, primary_key)
        if (
            self._capacity is not None
            and operation != StreamOperation.DELETE
            and key not in self._entities
            and len(self._entities) >= self._capacity
        ):
            raise PublishError(primary_key, f"log capacity of {self._capacity} entities reached")

        self._sequence += 1
        record = StreamRecord(
            entity_type=entity_type,
            primary_key=primary_key,
            operation=operation,
            payload=payload if operation != StreamOperation.DELETE else None,
            sequence=self._sequence,
        )
        if operation == StreamOperation.DELETE:
            self._entities.pop(key, None)
        else:
            self._entities[key] = record
        return record

    async def snapshot(self) -> StreamSnapshot:
        records = tuple(
            replace(record, operation=StreamOperation.INSERT)
            for record in self._entities.values()
        )
        return StreamSnapshot(cutoff=self._sequence, records=records)

    async def last_sequence(self) -> int:
        return self._sequence

    async def known_keys(self) -> list[tuple[str, str]]:
        return list(self._entities)
