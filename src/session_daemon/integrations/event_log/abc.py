"""Abstract base class for the stream's event log."""

from abc import ABC, abstractmethod
from typing import Any

from session_daemon.models.stream import StreamOperation, StreamRecord, StreamSnapshot


class EventLog(ABC):
    """Abstract interface for record persistence.

    Implementations include:
    - MemoryEventLog: in-process, compacted to the latest record per key
    - FakeEventLog: MemoryEventLog with failure injection for testing
    - RedisEventLog: Redis-backed, sequence survives daemon restarts

    Callers serialize access; implementations need not be safe for
    concurrent appends.
    """

    async def open(self) -> None:
        """Acquire underlying resources. No-op by default."""

    async def close(self) -> None:
        """Release underlying resources. No-op by default."""

    @abstractmethod
    async def append(
        self,
        entity_type: str,
        primary_key: str,
        operation: StreamOperation,
        payload: dict[str, Any] | None,
    ) -> StreamRecord:
        """Durably append one record.

        Args:
            entity_type: Entity type of the record (e.g. "session")
            primary_key: Key of the entity within its type
            operation: INSERT, UPDATE or DELETE
            payload: Entity payload, None for deletes

        Returns:
            The appended record with its freshly assigned sequence, strictly
            greater than every sequence returned before

        Raises:
            PublishError: If the record could not be appended
        """
        ...

    @abstractmethod
    async def snapshot(self) -> StreamSnapshot:
        """Get the live entities and the last assigned sequence.

        Returns:
            StreamSnapshot with one INSERT record per live entity, each carrying
            the sequence of the entity's latest write
        """
        ...

    @abstractmethod
    async def last_sequence(self) -> int:
        """Get the most recently assigned sequence, 0 when nothing was appended."""
        ...

    @abstractmethod
    async def known_keys(self) -> list[tuple[str, str]]:
        """List (entity_type, primary_key) of every live entity."""
        ...
