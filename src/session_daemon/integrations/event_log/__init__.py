"""Append-only event log integration backing the stream server."""

from session_daemon.integrations.event_log.abc import EventLog
from session_daemon.integrations.event_log.fake import FakeEventLog
from session_daemon.integrations.event_log.memory import MemoryEventLog

__all__ = ["EventLog", "FakeEventLog", "MemoryEventLog"]
