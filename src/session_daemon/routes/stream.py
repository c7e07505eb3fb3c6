"""Server-sent event stream of session records."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from session_daemon.errors import SubscriberOverrunError
from session_daemon.models.session import SESSION_ENTITY_TYPE
from session_daemon.models.stream import StreamRecord

if TYPE_CHECKING:
    from session_daemon.stream.server import StreamServer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/stream", tags=["stream"])


class SnapshotResponse(BaseModel):
    """Catch-up read: every live session at a cutoff sequence."""

    sequence: int
    records: list[dict[str, Any]]


def get_stream(request: Request) -> "StreamServer":
    """Get StreamServer from the app's context."""
    return request.app.state.context.stream


def format_record(record: StreamRecord) -> str:
    """Encode a record as one SSE message."""
    data = json.dumps(record.to_wire())
    return f"id: {record.sequence}\nevent: {record.operation.value}\ndata: {data}\n\n"


def format_up_to_date(sequence: int) -> str:
    """Marker separating the snapshot from the live tail."""
    data = json.dumps({"upToDate": True, "sequence": sequence})
    return f"event: control\ndata: {data}\n\n"


def _is_session(record: StreamRecord) -> bool:
    return record.entity_type == SESSION_ENTITY_TYPE


@router.get("/sessions")
async def stream_sessions(request: Request, live: bool = True) -> StreamingResponse:
    """Stream the session snapshot, then every later change via SSE.

    With live=false the response ends after the snapshot.
    """
    stream = get_stream(request)

    if not live:
        snapshot = await stream.snapshot()

        async def snapshot_generator() -> AsyncGenerator[str]:
            for record in snapshot.records:
                if _is_session(record):
                    yield format_record(record)
            yield format_up_to_date(snapshot.cutoff)

        return StreamingResponse(
            snapshot_generator(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    subscription = await stream.subscribe()

    async def event_generator() -> AsyncGenerator[str]:
        reader = asyncio.current_task()
        if reader is not None:
            subscription.attach_reader(reader)
        try:
            for record in subscription.snapshot.records:
                if _is_session(record):
                    yield format_record(record)
            yield format_up_to_date(subscription.cutoff)
            async for record in subscription.tail():
                if _is_session(record):
                    yield format_record(record)
        except SubscriberOverrunError as err:
            logger.warning("Disconnecting slow subscriber: %s", err)
        finally:
            stream.unsubscribe(subscription)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.get("/sessions/snapshot", response_model=SnapshotResponse)
async def get_snapshot(request: Request) -> SnapshotResponse:
    """Get every live session and the cutoff sequence they are current at."""
    snapshot = await get_stream(request).snapshot()
    return SnapshotResponse(
        sequence=snapshot.cutoff,
        records=[record.to_wire() for record in snapshot.records if _is_session(record)],
    )
