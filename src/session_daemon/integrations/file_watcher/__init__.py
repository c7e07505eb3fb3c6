"""Filesystem change notification integration."""

from session_daemon.integrations.file_watcher.abc import FileWatcher
from session_daemon.integrations.file_watcher.fake import FakeFileWatcher

__all__ = ["FakeFileWatcher", "FileWatcher"]
