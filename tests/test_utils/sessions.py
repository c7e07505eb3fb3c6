"""SessionState builders for tests that do not go through session files."""

from datetime import datetime

from session_daemon.models.session import SessionState, SessionStatus

from tests.test_utils.transcripts import DEFAULT_CWD, at


def make_session(
    session_id: str,
    *,
    status: SessionStatus = SessionStatus.WORKING,
    last_activity_at: datetime | None = None,
    cwd: str = DEFAULT_CWD,
    message_count: int = 1,
) -> SessionState:
    return SessionState(
        session_id=session_id,
        cwd=cwd,
        git_branch="main",
        git_repo_url=None,
        git_repo_id=None,
        original_prompt="Add a status column",
        status=status,
        last_activity_at=last_activity_at or at(20),
        message_count=message_count,
        has_pending_tool_use=False,
        pending_tool=None,
        goal="Add a status column",
        summary="",
    )
