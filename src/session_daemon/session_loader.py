"""Load a SessionState from a session file on disk."""

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from session_daemon.errors import SessionParseError
from session_daemon.integrations.clock.abc import Clock
from session_daemon.integrations.git_info.abc import GitInfo
from session_daemon.integrations.pull_requests.abc import PullRequestLookup
from session_daemon.models.session import SessionState
from session_daemon.transcript import (
    DEFAULT_RECENT_OUTPUT_LIMIT,
    TranscriptError,
    derive_goal,
    derive_status,
    derive_summary,
    parse_transcript,
)

SESSION_FILE_SUFFIX = ".jsonl"
SIDECHAIN_FILE_PREFIX = "agent-"


def is_session_file(path: Path) -> bool:
    """Whether path names a top-level session transcript."""
    return path.suffix == SESSION_FILE_SUFFIX and not path.name.startswith(SIDECHAIN_FILE_PREFIX)


def session_id_for(path: Path) -> str:
    """Session files are named after their session id."""
    return path.stem


def discover_session_files(root: Path) -> list[Path]:
    """Find every session file below root.

    Raises:
        OSError: If root cannot be listed
    """
    # iterdir() surfaces permission errors that rglob() would swallow.
    next(iter(root.iterdir()), None)
    return sorted(path for path in root.rglob(f"*{SESSION_FILE_SUFFIX}") if is_session_file(path))


@dataclass(frozen=True)
class SessionLoader:
    """Reads, parses and enriches session files.

    Blocking: file reads and git/gh subprocesses happen inline, so async
    callers run load() in a worker thread.
    """

    clock: Clock
    git_info: GitInfo
    pull_requests: PullRequestLookup | None
    idle_after: timedelta = timedelta(hours=1)
    recent_output_limit: int = DEFAULT_RECENT_OUTPUT_LIMIT

    def load(self, path: Path) -> SessionState | None:
        """Derive the current state of the session stored at path.

        Args:
            path: Session file

        Returns:
            The derived SessionState, or None if the file does not exist

        Raises:
            SessionParseError: If the file exists but cannot be read or parsed
        """
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as err:
            raise SessionParseError(path, str(err)) from err

        try:
            transcript = parse_transcript(text, self.recent_output_limit)
        except TranscriptError as err:
            raise SessionParseError(path, str(err)) from err

        repo = self.git_info.get_repo(transcript.cwd)
        repo_id = repo.repo_id if repo is not None else None
        repo_url = None
        if repo_id is not None:
            repo_url = f"https://github.com/{repo_id}"
        elif repo is not None:
            repo_url = repo.url

        pr = None
        if self.pull_requests is not None and repo_id is not None and transcript.git_branch:
            pr = self.pull_requests.find_pull_request(transcript.cwd, transcript.git_branch)

        return SessionState(
            session_id=session_id_for(path),
            cwd=transcript.cwd,
            git_branch=transcript.git_branch,
            git_repo_url=repo_url,
            git_repo_id=repo_id,
            original_prompt=transcript.original_prompt,
            status=derive_status(transcript, self.clock.now(), self.idle_after),
            last_activity_at=transcript.last_activity_at,
            message_count=transcript.message_count,
            has_pending_tool_use=transcript.pending_tool is not None,
            pending_tool=transcript.pending_tool,
            goal=derive_goal(transcript),
            summary=derive_summary(transcript),
            recent_output=transcript.recent_output,
            pr=pr,
        )
