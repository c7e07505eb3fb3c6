"""Git repository metadata integration."""

from session_daemon.integrations.git_info.abc import GitInfo, GitRepoInfo, parse_github_repo_id
from session_daemon.integrations.git_info.fake import FakeGitInfo

__all__ = ["FakeGitInfo", "GitInfo", "GitRepoInfo", "parse_github_repo_id"]
