"""Server context for dependency injection."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from session_daemon.stream.server import StreamServer


@dataclass(frozen=True)
class ServerContext:
    """Dependencies of the HTTP routes.

    Stored on app.state by create_app(); tests build one around a StreamServer
    backed by a FakeEventLog.
    """

    stream: "StreamServer"
