"""In-memory fake implementation of PullRequestLookup for testing."""

from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.models.session import PullRequestInfo


class FakePullRequestLookup(PullRequestLookup):
    """Fake lookup answering from constructor-provided pull requests.

    This class has NO public setup methods.
    """

    def __init__(self, pull_requests: dict[tuple[str, str], PullRequestInfo] | None = None) -> None:
        """Create FakePullRequestLookup.

        Args:
            pull_requests: Mapping of (cwd, branch) -> PullRequestInfo
        """
        self._pull_requests = pull_requests or {}
        self._lookups: list[tuple[str, str]] = []

    @property
    def lookups(self) -> list[tuple[str, str]]:
        """(cwd, branch) pairs passed to find_pull_request(), for test assertions."""
        return self._lookups.copy()

    def find_pull_request(self, cwd: str, branch: str) -> PullRequestInfo | None:
        self._lookups.append((cwd, branch))
        return self._pull_requests.get((cwd, branch))
