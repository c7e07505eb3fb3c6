"""Control routes for the orchestrator."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from session_daemon.errors import PublishError
from session_daemon.routes.stream import get_stream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class ClearSessionsResponse(BaseModel):
    """Response body for clearing sessions."""

    success: bool
    cleared: int


@router.post("/clear", response_model=None)
async def clear_sessions(request: Request) -> ClearSessionsResponse | JSONResponse:
    """Publish a delete for every session currently in the stream."""
    try:
        cleared = await get_stream(request).clear_all()
    except PublishError as err:
        logger.error("Clearing sessions failed: %s", err)
        return JSONResponse(status_code=500, content={"success": False, "error": str(err)})
    return ClearSessionsResponse(success=True, cleared=cleared)
