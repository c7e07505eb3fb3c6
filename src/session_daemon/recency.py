"""Recency filter applied to session events before they are published."""

from datetime import datetime, timedelta

from session_daemon.models.session import SessionEvent, SessionEventKind

DEFAULT_MAX_AGE = timedelta(hours=24)


def is_publishable(event: SessionEvent, now: datetime, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
    """Whether an event should reach the stream.

    Deletions always pass so consumers never keep a session the daemon has
    forgotten. Anything else passes only while the session was active within
    max_age.
    """
    if event.kind == SessionEventKind.DELETED:
        return True
    return now - event.session.last_activity_at < max_age
