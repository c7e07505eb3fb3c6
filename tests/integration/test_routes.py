"""Integration tests for FastAPI routes."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from session_daemon.context import ServerContext
from session_daemon.integrations.event_log.fake import FakeEventLog
from session_daemon.main import create_app
from session_daemon.models.session import SessionStatus
from session_daemon.models.stream import StreamOperation
from session_daemon.stream.server import StreamServer

from tests.test_utils.sessions import make_session


def parse_sse(body: str) -> list[dict[str, Any]]:
    """Split an SSE body into messages of field -> value."""
    messages = []
    for block in body.strip().split("\n\n"):
        message: dict[str, Any] = {}
        for line in block.splitlines():
            field, _, value = line.partition(": ")
            message[field] = value
        messages.append(message)
    return messages


class TestStreamRoutes:
    """Tests for the session stream routes."""

    @pytest.fixture
    def stream(self, fake_event_log: FakeEventLog) -> StreamServer:
        return StreamServer(fake_event_log)

    @pytest.fixture
    async def client(self, stream: StreamServer) -> AsyncGenerator[AsyncClient]:
        """Provide an async HTTP client for testing."""
        app = create_app(ServerContext(stream=stream))
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    async def test_catch_up_read_returns_snapshot_and_marker(
        self, client: AsyncClient, stream: StreamServer
    ) -> None:
        """GET /v1/stream/sessions?live=false ends after the snapshot."""
        await stream.publish(make_session("aaa"), StreamOperation.INSERT)
        await stream.publish(make_session("bbb"), StreamOperation.INSERT)
        await stream.publish(
            make_session("aaa", status=SessionStatus.WAITING), StreamOperation.UPDATE
        )

        response = await client.get("/v1/stream/sessions", params={"live": "false"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        messages = parse_sse(response.text)
        assert [message["event"] for message in messages] == ["insert", "insert", "control"]
        records = [json.loads(message["data"]) for message in messages[:2]]
        by_key = {record["primaryKey"]: record for record in records}
        assert by_key["aaa"]["sequence"] == 3
        assert by_key["aaa"]["payload"]["status"] == "waiting"
        assert by_key["bbb"]["entityType"] == "session"
        assert {message["id"] for message in messages[:2]} == {"2", "3"}
        assert json.loads(messages[2]["data"]) == {"upToDate": True, "sequence": 3}
        assert stream.subscriber_count == 0

    async def test_catch_up_read_of_empty_stream(self, client: AsyncClient) -> None:
        response = await client.get("/v1/stream/sessions", params={"live": "false"})

        messages = parse_sse(response.text)
        assert messages == [
            {"event": "control", "data": json.dumps({"upToDate": True, "sequence": 0})}
        ]

    async def test_snapshot_endpoint(self, client: AsyncClient, stream: StreamServer) -> None:
        await stream.publish(make_session("aaa"), StreamOperation.INSERT)
        await stream.publish(make_session("bbb"), StreamOperation.INSERT)
        await stream.publish(make_session("bbb"), StreamOperation.DELETE)

        response = await client.get("/v1/stream/sessions/snapshot")

        assert response.status_code == 200
        data = response.json()
        assert data["sequence"] == 3
        assert [record["primaryKey"] for record in data["records"]] == ["aaa"]
        assert data["records"][0]["operation"] == "insert"
        assert data["records"][0]["payload"]["sessionId"] == "aaa"


class TestControlRoutes:
    """Tests for clear and health routes."""

    async def test_clear_sessions(self, fake_event_log: FakeEventLog) -> None:
        stream = StreamServer(fake_event_log)
        await stream.publish(make_session("aaa"), StreamOperation.INSERT)
        await stream.publish(make_session("bbb"), StreamOperation.INSERT)
        app = create_app(ServerContext(stream=stream))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/sessions/clear")

        assert response.status_code == 200
        assert response.json() == {"success": True, "cleared": 2}
        assert await stream.known_keys() == []

    async def test_clear_sessions_publish_failure(self) -> None:
        log = FakeEventLog(sessions={"aaa": {"sessionId": "aaa"}}, failing_keys={"aaa"})
        stream = StreamServer(log)
        app = create_app(ServerContext(stream=stream))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/sessions/clear")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "aaa" in response.json()["error"]

    async def test_health(self, fake_event_log: FakeEventLog) -> None:
        stream = StreamServer(fake_event_log)
        await stream.publish(make_session("aaa"), StreamOperation.INSERT)
        subscription = await stream.subscribe()
        app = create_app(ServerContext(stream=stream))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.json() == {"status": "ok", "subscribers": 1, "sequence": 1}
        stream.unsubscribe(subscription)
