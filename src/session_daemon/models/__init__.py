"""Data models for the session daemon."""

from session_daemon.models.session import (
    SESSION_ENTITY_TYPE,
    CICheck,
    CIStatus,
    OutputRole,
    PendingTool,
    PullRequestInfo,
    RecentOutput,
    SessionEvent,
    SessionEventKind,
    SessionState,
    SessionStatus,
)
from session_daemon.models.stream import (
    StreamEntity,
    StreamOperation,
    StreamRecord,
    StreamSnapshot,
)

__all__ = [
    "SESSION_ENTITY_TYPE",
    "CICheck",
    "CIStatus",
    "OutputRole",
    "PendingTool",
    "PullRequestInfo",
    "RecentOutput",
    "SessionEvent",
    "SessionEventKind",
    "SessionState",
    "SessionStatus",
    "StreamEntity",
    "StreamOperation",
    "StreamRecord",
    "StreamSnapshot",
]
