"""Liveness endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from session_daemon.routes.stream import get_stream

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    subscribers: int
    sequence: int


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    stream = get_stream(request)
    return HealthResponse(
        status="ok",
        subscribers=stream.subscriber_count,
        sequence=await stream.last_sequence(),
    )
