"""Durable stream server and its subscriber handles."""

from session_daemon.stream.server import DEFAULT_QUEUE_SIZE, StreamServer
from session_daemon.stream.subscriber import Subscription

__all__ = ["DEFAULT_QUEUE_SIZE", "StreamServer", "Subscription"]
