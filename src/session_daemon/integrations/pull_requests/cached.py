"""Time-bounded cache in front of a PullRequestLookup."""

from datetime import datetime, timedelta

from session_daemon.integrations.clock.abc import Clock
from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.models.session import PullRequestInfo


class CachingPullRequestLookup(PullRequestLookup):
    """Caches lookups per (cwd, branch) for a fixed time-to-live.

    Sessions are rescanned on every write burst; without the cache every burst
    would spawn a gh process. A cached answer keeps its original last_checked
    timestamp, so rescans inside the TTL derive identical state.
    """

    def __init__(self, inner: PullRequestLookup, clock: Clock, ttl: timedelta) -> None:
        self._inner = inner
        self._clock = clock
        self._ttl = ttl
        self._entries: dict[tuple[str, str], tuple[datetime, PullRequestInfo | None]] = {}

    def find_pull_request(self, cwd: str, branch: str) -> PullRequestInfo | None:
        key = (cwd, branch)
        now = self._clock.now()
        cached = self._entries.get(key)
        if cached is not None and now - cached[0] < self._ttl:
            return cached[1]

        pull_request = self._inner.find_pull_request(cwd, branch)
        self._entries[key] = (now, pull_request)
        return pull_request
