"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from session_daemon.integrations.clock.fake import FakeClock
from session_daemon.integrations.event_log.fake import FakeEventLog
from session_daemon.integrations.file_watcher.fake import FakeFileWatcher
from session_daemon.integrations.git_info.fake import FakeGitInfo
from session_daemon.integrations.pull_requests.fake import FakePullRequestLookup
from session_daemon.session_loader import SessionLoader
from session_daemon.stream.server import StreamServer


@pytest.fixture
def projects_dir(tmp_path: Path) -> Path:
    """Session directory with one project folder."""
    path = tmp_path / "projects"
    (path / "-work-dashboard").mkdir(parents=True)
    return path


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a FakeClock at its default time."""
    return FakeClock()


@pytest.fixture
def fake_watcher() -> FakeFileWatcher:
    """Create a fresh FakeFileWatcher."""
    return FakeFileWatcher()


@pytest.fixture
def fake_git_info() -> FakeGitInfo:
    """Create a FakeGitInfo that knows no repositories."""
    return FakeGitInfo()


@pytest.fixture
def fake_pull_requests() -> FakePullRequestLookup:
    """Create a FakePullRequestLookup that knows no pull requests."""
    return FakePullRequestLookup()


@pytest.fixture
def loader(
    fake_clock: FakeClock,
    fake_git_info: FakeGitInfo,
    fake_pull_requests: FakePullRequestLookup,
) -> SessionLoader:
    """Create a SessionLoader over fake integrations."""
    return SessionLoader(
        clock=fake_clock,
        git_info=fake_git_info,
        pull_requests=fake_pull_requests,
    )


@pytest.fixture
def fake_event_log() -> FakeEventLog:
    """Create a fresh FakeEventLog."""
    return FakeEventLog()


@pytest.fixture
def stream_server(fake_event_log: FakeEventLog) -> StreamServer:
    """Create a StreamServer without an HTTP listener."""
    return StreamServer(fake_event_log, queue_size=16)
