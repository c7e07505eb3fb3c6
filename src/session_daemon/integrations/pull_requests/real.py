"""Real pull request lookup using the gh CLI."""

import shutil
import subprocess

from session_daemon.integrations.clock.abc import Clock
from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.integrations.pull_requests.parsing import parse_pr_list
from session_daemon.models.session import PullRequestInfo


def _run_subprocess_with_timeout(
    cmd: list[str], cwd: str, timeout: int
) -> subprocess.CompletedProcess[str] | None:
    """Run subprocess with timeout, returning None on timeout or launch failure."""
    try:
        return subprocess.run(
            cmd,
            timeout=timeout,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None


class RealPullRequestLookup(PullRequestLookup):
    """Production implementation using `gh pr list`.

    Requires the gh CLI to be installed and authenticated; without it every
    lookup answers None.
    """

    def __init__(self, clock: Clock, timeout_seconds: int = 10) -> None:
        self._clock = clock
        self._timeout_seconds = timeout_seconds
        self._gh_available = shutil.which("gh") is not None

    def find_pull_request(self, cwd: str, branch: str) -> PullRequestInfo | None:
        if not self._gh_available:
            return None

        result = _run_subprocess_with_timeout(
            [
                "gh",
                "pr",
                "list",
                "--head",
                branch,
                "--state",
                "open",
                "--limit",
                "1",
                "--json",
                "number,url,title,statusCheckRollup",
            ],
            cwd=cwd,
            timeout=self._timeout_seconds,
        )
        if result is None or result.returncode != 0:
            return None

        return parse_pr_list(result.stdout, self._clock.now())
