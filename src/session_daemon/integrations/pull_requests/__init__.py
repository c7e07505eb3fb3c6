"""Pull request lookup integration."""

from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.integrations.pull_requests.cached import CachingPullRequestLookup
from session_daemon.integrations.pull_requests.fake import FakePullRequestLookup

__all__ = ["CachingPullRequestLookup", "FakePullRequestLookup", "PullRequestLookup"]
