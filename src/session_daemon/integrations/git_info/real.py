"""Real git lookup using the git CLI."""

import subprocess
from pathlib import Path

from session_daemon.integrations.git_info.abc import GitInfo, GitRepoInfo, parse_github_repo_id


class RealGitInfo(GitInfo):
    """Production implementation running `git remote get-url origin`.

    Results are cached per directory for the lifetime of the process; remotes
    of a checkout practically never change while a session runs.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self._timeout_seconds = timeout_seconds
        self._cache: dict[str, GitRepoInfo | None] = {}

    def get_repo(self, cwd: str) -> GitRepoInfo | None:
        if cwd in self._cache:
            return self._cache[cwd]
        repo = self._lookup(cwd)
        self._cache[cwd] = repo
        return repo

    def _lookup(self, cwd: str) -> GitRepoInfo | None:
        if not Path(cwd).is_dir():
            return None
        try:
            result = subprocess.run(
                ["git", "remote", "get-url", "origin"],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None

        if result.returncode != 0:
            return None
        url = result.stdout.strip()
        if not url:
            return None
        return GitRepoInfo(url=url, repo_id=parse_github_repo_id(url))
