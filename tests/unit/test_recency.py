"""Tests for the recency filter."""

from datetime import timedelta

from session_daemon.models.session import SessionEvent, SessionEventKind
from session_daemon.recency import is_publishable

from tests.test_utils.sessions import make_session
from tests.test_utils.transcripts import at

MAX_AGE = timedelta(hours=24)


def test_recent_session_is_publishable() -> None:
    event = SessionEvent(SessionEventKind.UPDATED, make_session("aaa", last_activity_at=at(0)))

    assert is_publishable(event, at(0) + timedelta(hours=23), MAX_AGE)


def test_stale_session_is_filtered() -> None:
    event = SessionEvent(SessionEventKind.CREATED, make_session("aaa", last_activity_at=at(0)))

    assert not is_publishable(event, at(0) + timedelta(hours=25), MAX_AGE)


def test_age_equal_to_max_age_is_filtered() -> None:
    event = SessionEvent(SessionEventKind.UPDATED, make_session("aaa", last_activity_at=at(0)))

    assert not is_publishable(event, at(0) + MAX_AGE, MAX_AGE)


def test_deletion_always_passes() -> None:
    """Consumers must hear about deletions however old the session was."""
    event = SessionEvent(SessionEventKind.DELETED, make_session("aaa", last_activity_at=at(0)))

    assert is_publishable(event, at(0) + timedelta(days=30), MAX_AGE)


def test_default_max_age_is_one_day() -> None:
    event = SessionEvent(SessionEventKind.CREATED, make_session("aaa", last_activity_at=at(0)))

    assert is_publishable(event, at(0) + timedelta(hours=23))
    assert not is_publishable(event, at(0) + timedelta(hours=25))
