"""Abstract interface for git repository lookups."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_GITHUB_REMOTE = re.compile(
    r"^(?:https?://(?:[^@/]+@)?github\.com/|git@github\.com:|ssh://git@github\.com/)"
    r"(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"
)


@dataclass(frozen=True)
class GitRepoInfo:
    """Remote repository a working directory belongs to.

    repo_id is "owner/name" for GitHub remotes and None otherwise.
    """

    url: str
    repo_id: str | None


def parse_github_repo_id(remote_url: str) -> str | None:
    """Extract "owner/name" from a GitHub remote URL.

    Example:
        >>> parse_github_repo_id("git@github.com:acme/dashboard.git")
        'acme/dashboard'
        >>> parse_github_repo_id("https://gitlab.com/a/b.git") is None
        True
    """
    match = _GITHUB_REMOTE.match(remote_url.strip())
    if match is None:
        return None
    return f"{match.group('owner')}/{match.group('name')}"


class GitInfo(ABC):
    """Abstract interface for resolving a directory's git remote."""

    @abstractmethod
    def get_repo(self, cwd: str) -> GitRepoInfo | None:
        """Get the origin remote of the repository containing cwd.

        Args:
            cwd: Working directory of a session

        Returns:
            GitRepoInfo, or None if cwd is not inside a repository with an
            origin remote (or no longer exists)
        """
        ...
