"""Abstract interface for pull request lookups."""

from abc import ABC, abstractmethod

from session_daemon.models.session import PullRequestInfo


class PullRequestLookup(ABC):
    """Abstract interface for finding the open PR of a branch."""

    @abstractmethod
    def find_pull_request(self, cwd: str, branch: str) -> PullRequestInfo | None:
        """Find the open pull request whose head is branch.

        Args:
            cwd: Directory inside the repository
            branch: Head branch name

        Returns:
            PullRequestInfo with CI checks, or None if there is no open PR
            or it cannot be determined
        """
        ...
