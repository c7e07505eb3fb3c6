"""In-memory store of the last known state of every session."""

from session_daemon.models.session import SessionState


class SessionRecordStore:
    """Mapping of session id -> last derived SessionState.

    Owned by the change detector, whose rescan worker is the only writer.
    Values are frozen, so copies handed to readers can never be observed
    mid-mutation.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionState] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> SessionState | None:
        return self._sessions.get(session_id)

    def put(self, session: SessionState) -> None:
        self._sessions[session.session_id] = session

    def remove(self, session_id: str) -> SessionState | None:
        return self._sessions.pop(session_id, None)

    def snapshot(self) -> dict[str, SessionState]:
        """Point-in-time copy of every session."""
        return dict(self._sessions)
