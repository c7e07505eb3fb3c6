"""Tests for MemoryEventLog and FakeEventLog."""

import pytest
from session_daemon.errors import PublishError
from session_daemon.integrations.event_log.fake import FakeEventLog
from session_daemon.integrations.event_log.memory import MemoryEventLog
from session_daemon.models.stream import StreamOperation


class TestMemoryEventLog:
    """Tests for the in-process log."""

    async def test_sequence_starts_at_one_and_increases(self) -> None:
        log = MemoryEventLog()
        assert await log.last_sequence() == 0

        first = await log.append("session", "aaa", StreamOperation.INSERT, {"n": 1})
        second = await log.append("session", "aaa", StreamOperation.UPDATE, {"n": 2})

        assert (first.sequence, second.sequence) == (1, 2)
        assert await log.last_sequence() == 2

    async def test_snapshot_is_compacted_to_latest_insert_per_key(self) -> None:
        log = MemoryEventLog()
        await log.append("session", "aaa", StreamOperation.INSERT, {"n": 1})
        await log.append("session", "bbb", StreamOperation.INSERT, {"n": 1})
        await log.append("session", "aaa", StreamOperation.UPDATE, {"n": 2})

        snapshot = await log.snapshot()

        assert snapshot.cutoff == 3
        by_key = {record.primary_key: record for record in snapshot.records}
        assert by_key["aaa"].payload == {"n": 2}
        assert by_key["aaa"].sequence == 3
        assert all(record.operation == StreamOperation.INSERT for record in snapshot.records)

    async def test_delete_removes_key_and_drops_payload(self) -> None:
        log = MemoryEventLog()
        await log.append("session", "aaa", StreamOperation.INSERT, {"n": 1})

        record = await log.append("session", "aaa", StreamOperation.DELETE, {"ignored": True})

        assert record.payload is None
        assert await log.known_keys() == []
        assert (await log.snapshot()).cutoff == 2

    async def test_capacity_refuses_new_keys_only(self) -> None:
        log = MemoryEventLog(capacity=1)
        await log.append("session", "aaa", StreamOperation.INSERT, {"n": 1})

        with pytest.raises(PublishError):
            await log.append("session", "bbb", StreamOperation.INSERT, {"n": 1})

        await log.append("session", "aaa", StreamOperation.UPDATE, {"n": 2})
        await log.append("session", "bbb", StreamOperation.DELETE, None)
        assert await log.last_sequence() == 3

    async def test_keys_are_scoped_by_entity_type(self) -> None:
        log = MemoryEventLog()
        await log.append("session", "aaa", StreamOperation.INSERT, {})
        await log.append("repo", "aaa", StreamOperation.INSERT, {})

        assert sorted(await log.known_keys()) == [("repo", "aaa"), ("session", "aaa")]


class TestFakeEventLog:
    """Tests for the failure-injecting fake."""

    async def test_records_attempts_including_failures(self) -> None:
        log = FakeEventLog(failing_keys={"bad"})

        await log.append("session", "good", StreamOperation.INSERT, {})
        with pytest.raises(PublishError):
            await log.append("session", "bad", StreamOperation.INSERT, {})

        assert log.append_attempts == [
            ("good", StreamOperation.INSERT),
            ("bad", StreamOperation.INSERT),
        ]
        assert await log.known_keys() == [("session", "good")]

    async def test_fail_all(self) -> None:
        log = FakeEventLog(fail_all=True)

        with pytest.raises(PublishError):
            await log.append("session", "aaa", StreamOperation.DELETE, None)
        assert await log.last_sequence() == 0

    async def test_open_and_close_are_tracked(self) -> None:
        log = FakeEventLog()

        await log.open()
        await log.close()

        assert log.opened is True
        assert log.closed is True
