"""Redis-backed event log implementation."""

import json
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from session_daemon.errors import PublishError
from session_daemon.integrations.event_log.abc import EventLog
from session_daemon.models.stream import StreamOperation, StreamRecord, StreamSnapshot


class RedisEventLog(EventLog):
    """Production Redis-backed event log.

    Redis Schema:
    - {prefix}:sequence - Integer counter, INCR assigns sequences
    - {prefix}:history - Stream holding every appended record (trimmed)
    - {prefix}:entities - Hash "entity_type:primary_key" -> latest record JSON
    """

    def __init__(
        self, redis_url: str, key_prefix: str = "session-daemon", max_history: int = 10_000
    ) -> None:
        """Create RedisEventLog.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379)
            key_prefix: Namespace for all keys written by this log
            max_history: Approximate number of records kept in the history stream
        """
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._max_history = max_history
        self._redis: Any = None  # Redis client, typed as Any due to incomplete stubs

    @property
    def _sequence_key(self) -> str:
        return f"{self._key_prefix}:sequence"

    @property
    def _history_key(self) -> str:
        return f"{self._key_prefix}:history"

    @property
    def _entities_key(self) -> str:
        return f"{self._key_prefix}:entities"

    async def open(self) -> None:
        """Connect to Redis."""
        self._redis = redis.from_url(self._redis_url)  # type: ignore[no-untyped-call]

    async def close(self) -> None:
        """Disconnect from Redis."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def append(
        self,
        entity_type: str,
        primary_key: str,
        operation: StreamOperation,
        payload: dict[str, Any] | None,
    ) -> StreamRecord:
        if self._redis is None:
            raise PublishError(primary_key, "not connected to Redis")

        field = f"{entity_type}:{primary_key}"
        try:
            sequence = int(await self._redis.incr(self._sequence_key))
            record = StreamRecord(
                entity_type=entity_type,
                primary_key=primary_key,
                operation=operation,
                payload=payload if operation != StreamOperation.DELETE else None,
                sequence=sequence,
            )
            encoded = json.dumps(record.to_wire())
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.xadd(
                    self._history_key,
                    {"record": encoded},
                    maxlen=self._max_history,
                    approximate=True,
                )
                if operation == StreamOperation.DELETE:
                    pipe.hdel(self._entities_key, field)
                else:
                    pipe.hset(self._entities_key, field, encoded)
                await pipe.execute()
        except RedisError as err:
            raise PublishError(primary_key, str(err)) from err
        return record

    async def snapshot(self) -> StreamSnapshot:
        if self._redis is None:
            raise RuntimeError("Not connected to Redis")

        raw_sequence = await self._redis.get(self._sequence_key)
        data = await self._redis.hgetall(self._entities_key)
        records: list[StreamRecord] = []
        for value in data.values():
            record = StreamRecord.from_wire(json.loads(value))
            records.append(
                StreamRecord(
                    entity_type=record.entity_type,
                    primary_key=record.primary_key,
                    operation=StreamOperation.INSERT,
                    payload=record.payload,
                    sequence=record.sequence,
                )
            )
        cutoff = int(raw_sequence) if raw_sequence is not None else 0
        return StreamSnapshot(cutoff=cutoff, records=tuple(records))

    async def last_sequence(self) -> int:
        if self._redis is None:
            raise RuntimeError("Not connected to Redis")

        raw_sequence = await self._redis.get(self._sequence_key)
        return int(raw_sequence) if raw_sequence is not None else 0

    async def known_keys(self) -> list[tuple[str, str]]:
        if self._redis is None:
            raise RuntimeError("Not connected to Redis")

        fields = await self._redis.hkeys(self._entities_key)
        keys: list[tuple[str, str]] = []
        for raw_field in fields:
            decoded = raw_field.decode() if isinstance(raw_field, bytes) else raw_field
            entity_type, _, primary_key = decoded.partition(":")
            keys.append((entity_type, primary_key))
        return keys
