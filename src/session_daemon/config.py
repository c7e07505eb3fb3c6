"""Daemon configuration from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class DaemonConfig:
    """Daemon configuration loaded from environment variables."""

    host: str
    port: int
    projects_dir: Path
    max_age_hours: float
    debounce_ms: int
    idle_minutes: float
    queue_size: int
    redis_url: str | None
    pr_lookup: bool
    pr_ttl_seconds: float
    debug: bool

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @staticmethod
    def from_env() -> "DaemonConfig":
        """Load configuration from environment variables."""
        projects_dir = os.environ.get("SESSION_DAEMON_PROJECTS_DIR")
        return DaemonConfig(
            host=os.environ.get("SESSION_DAEMON_HOST", "127.0.0.1"),
            port=int(os.environ.get("SESSION_DAEMON_PORT", "4450")),
            projects_dir=(
                Path(projects_dir).expanduser()
                if projects_dir
                else Path.home() / ".claude" / "projects"
            ),
            max_age_hours=float(os.environ.get("SESSION_DAEMON_MAX_AGE_HOURS", "24")),
            debounce_ms=int(os.environ.get("SESSION_DAEMON_DEBOUNCE_MS", "300")),
            idle_minutes=float(os.environ.get("SESSION_DAEMON_IDLE_MINUTES", "60")),
            queue_size=int(os.environ.get("SESSION_DAEMON_QUEUE_SIZE", "1000")),
            redis_url=os.environ.get("SESSION_DAEMON_REDIS_URL") or None,
            pr_lookup=_env_flag("SESSION_DAEMON_PR_LOOKUP", "true"),
            pr_ttl_seconds=float(os.environ.get("SESSION_DAEMON_PR_TTL_SECONDS", "60")),
            debug=_env_flag("SESSION_DAEMON_DEBUG", "false"),
        )
