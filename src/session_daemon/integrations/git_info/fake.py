"""In-memory fake implementation of GitInfo for testing."""

from session_daemon.integrations.git_info.abc import GitInfo, GitRepoInfo


class FakeGitInfo(GitInfo):
    """Fake lookup answering from a constructor-provided mapping.

    This class has NO public setup methods.
    """

    def __init__(self, repos: dict[str, GitRepoInfo] | None = None) -> None:
        """Create FakeGitInfo.

        Args:
            repos: Mapping of cwd -> GitRepoInfo; unknown directories have no repo
        """
        self._repos = repos or {}
        self._lookups: list[str] = []

    @property
    def lookups(self) -> list[str]:
        """Directories passed to get_repo(), for test assertions."""
        return self._lookups.copy()

    def get_repo(self, cwd: str) -> GitRepoInfo | None:
        self._lookups.append(cwd)
        return self._repos.get(cwd)
