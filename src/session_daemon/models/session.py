"""Session state and change event data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

SESSION_ENTITY_TYPE = "session"


class SessionStatus(str, Enum):
    """Coarse activity classification of a session."""

    WORKING = "working"
    WAITING = "waiting"
    IDLE = "idle"


class OutputRole(str, Enum):
    """Author of a recent output entry."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class CIStatus(str, Enum):
    """Status of a CI check, or the rollup of all checks on a PR."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class SessionEventKind(str, Enum):
    """Kind of change detected for a session."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class PendingTool:
    """A tool invocation awaiting approval."""

    tool: str
    target: str


@dataclass(frozen=True)
class RecentOutput:
    """One entry of the live output tail."""

    role: OutputRole
    content: str


@dataclass(frozen=True)
class CICheck:
    """A single named CI check on a pull request."""

    name: str
    status: CIStatus
    url: str | None


@dataclass(frozen=True)
class PullRequestInfo:
    """Pull request associated with a session's branch."""

    number: int
    url: str
    title: str
    ci_status: CIStatus
    ci_checks: tuple[CICheck, ...]
    last_checked: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "url": self.url,
            "title": self.title,
            "ciStatus": self.ci_status.value,
            "ciChecks": [
                {"name": check.name, "status": check.status.value, "url": check.url}
                for check in self.ci_checks
            ],
            "lastChecked": self.last_checked.isoformat(),
        }


@dataclass(frozen=True)
class SessionState:
    """Last known state of one coding-assistant session.

    Instances are immutable; the change detector replaces them wholesale on
    every material change, so equality doubles as the diff check.
    """

    session_id: str
    cwd: str
    git_branch: str | None
    git_repo_url: str | None
    git_repo_id: str | None
    original_prompt: str
    status: SessionStatus
    last_activity_at: datetime
    message_count: int
    has_pending_tool_use: bool
    pending_tool: PendingTool | None
    goal: str
    summary: str
    recent_output: tuple[RecentOutput, ...] = field(default_factory=tuple)
    pr: PullRequestInfo | None = None

    @property
    def entity_type(self) -> str:
        return SESSION_ENTITY_TYPE

    @property
    def primary_key(self) -> str:
        return self.session_id

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase payload consumed by the dashboard."""
        pending_tool = None
        if self.pending_tool is not None:
            pending_tool = {"tool": self.pending_tool.tool, "target": self.pending_tool.target}
        return {
            "sessionId": self.session_id,
            "cwd": self.cwd,
            "gitBranch": self.git_branch,
            "gitRepoUrl": self.git_repo_url,
            "gitRepoId": self.git_repo_id,
            "originalPrompt": self.original_prompt,
            "status": self.status.value,
            "lastActivityAt": self.last_activity_at.isoformat(),
            "messageCount": self.message_count,
            "hasPendingToolUse": self.has_pending_tool_use,
            "pendingTool": pending_tool,
            "goal": self.goal,
            "summary": self.summary,
            "recentOutput": [
                {"role": entry.role.value, "content": entry.content}
                for entry in self.recent_output
            ],
            "pr": self.pr.to_payload() if self.pr is not None else None,
        }


@dataclass(frozen=True)
class SessionEvent:
    """A change emitted by the change detector.

    For DELETED events the session is the last known state; only its
    session_id is meaningful.
    """

    kind: SessionEventKind
    session: SessionState
