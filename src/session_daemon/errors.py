"""Error taxonomy for the session daemon.

Per-file and per-subscriber failures are isolated by the component that hits
them; only WatchInitError and PublishError reach the composing process.
"""

from pathlib import Path


class SessionDaemonError(Exception):
    """Base class for session daemon errors."""


class WatchInitError(SessionDaemonError):
    """Raised when the session directory cannot be observed at all."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot watch {path}: {reason}")


class SessionParseError(SessionDaemonError):
    """Raised when a session file cannot be read or parsed.

    Transient: the previous state of the session is kept.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path}: {reason}")


class PublishError(SessionDaemonError):
    """Raised when a record could not be appended to the event log."""

    def __init__(self, primary_key: str, reason: str) -> None:
        self.primary_key = primary_key
        self.reason = reason
        super().__init__(f"Failed to publish {primary_key}: {reason}")


class SubscriberOverrunError(SessionDaemonError):
    """Raised inside a subscriber's stream when its queue bound was exceeded."""

    def __init__(self, subscriber_id: str, max_queue: int) -> None:
        self.subscriber_id = subscriber_id
        self.max_queue = max_queue
        super().__init__(f"Subscriber {subscriber_id} exceeded its queue of {max_queue} records")
