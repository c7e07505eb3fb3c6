"""Command line interface for the session daemon."""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from session_daemon.config import DaemonConfig
from session_daemon.daemon import SessionDaemon, build_loader
from session_daemon.errors import SessionParseError
from session_daemon.integrations.clock.real import RealClock
from session_daemon.models.session import SessionEvent, SessionEventKind, SessionState
from session_daemon.recency import is_publishable
from session_daemon.session_loader import discover_session_files

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

_STATUS_STYLES = {
    "working": "green",
    "waiting": "yellow",
    "idle": "dim",
}


def configure_logging(debug: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug, rich_tracebacks=True)],
        force=True,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "watchfiles"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _load_config(**overrides: Any) -> DaemonConfig:
    """Environment configuration with explicitly passed CLI options applied."""
    return replace(
        DaemonConfig.from_env(),
        **{key: value for key, value in overrides.items() if value is not None},
    )


def _format_age(last_activity_at: datetime, now: datetime) -> str:
    age = now - last_activity_at
    if age < timedelta(minutes=1):
        return "just now"
    if age < timedelta(hours=1):
        return f"{int(age.total_seconds() // 60)}m ago"
    if age < timedelta(days=1):
        return f"{int(age.total_seconds() // 3600)}h ago"
    return f"{age.days}d ago"


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="session-daemon")
def cli() -> None:
    """Stream the state of local coding agent sessions."""


@cli.command("serve")
@click.option("--host", default=None, help="Interface to listen on.")
@click.option("--port", type=int, default=None, help="Port to listen on.")
@click.option(
    "--projects-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding session files.",
)
@click.option("--max-age-hours", type=float, default=None, help="Hide sessions inactive for longer.")
@click.option("--debounce-ms", type=int, default=None, help="Quiet period before a file is rescanned.")
@click.option("--redis-url", default=None, help="Persist the stream in Redis.")
@click.option("--no-pr-lookup", is_flag=True, help="Skip pull request enrichment via gh.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
def serve_cmd(
    host: str | None,
    port: int | None,
    projects_dir: Path | None,
    max_age_hours: float | None,
    debounce_ms: int | None,
    redis_url: str | None,
    no_pr_lookup: bool,
    debug: bool,
) -> None:
    """Watch session files and serve the session stream."""
    config = _load_config(
        host=host,
        port=port,
        projects_dir=projects_dir.expanduser() if projects_dir is not None else None,
        max_age_hours=max_age_hours,
        debounce_ms=debounce_ms,
        redis_url=redis_url,
        pr_lookup=False if no_pr_lookup else None,
        debug=True if debug else None,
    )
    configure_logging(config.debug)
    logger.debug("Configuration: %s", config)

    daemon = SessionDaemon.from_config(config)
    try:
        asyncio.run(daemon.serve_forever())
    except OSError as err:
        raise click.ClickException(f"Cannot listen on {config.host}:{config.port}: {err}") from err
    except KeyboardInterrupt:
        pass


@cli.command("list")
@click.option(
    "--projects-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding session files.",
)
@click.option("--all", "show_all", is_flag=True, help="Include sessions outside the recency window.")
@click.option("--no-pr-lookup", is_flag=True, help="Skip pull request enrichment via gh.")
def list_cmd(projects_dir: Path | None, show_all: bool, no_pr_lookup: bool) -> None:
    """Scan session files once and print their state."""
    config = _load_config(
        projects_dir=projects_dir.expanduser() if projects_dir is not None else None,
        pr_lookup=False if no_pr_lookup else None,
    )
    if not config.projects_dir.is_dir():
        raise click.ClickException(f"Session directory not found: {config.projects_dir}")

    clock = RealClock()
    loader = build_loader(config, clock)
    max_age = timedelta(hours=config.max_age_hours)
    now = clock.now()

    sessions: list[SessionState] = []
    for path in discover_session_files(config.projects_dir):
        try:
            session = loader.load(path)
        except SessionParseError as err:
            logger.debug("Skipping %s: %s", path, err.reason)
            continue
        if session is None:
            continue
        if not show_all and not is_publishable(
            SessionEvent(SessionEventKind.CREATED, session), now, max_age
        ):
            continue
        sessions.append(session)

    console = Console(width=200)
    if not sessions:
        console.print("No sessions found.")
        return

    sessions.sort(key=lambda session: session.last_activity_at, reverse=True)
    table = Table(show_header=True, header_style="bold")
    table.add_column("status", no_wrap=True)
    table.add_column("session", style="cyan", no_wrap=True)
    table.add_column("directory", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("pr", no_wrap=True)
    table.add_column("last activity", no_wrap=True)
    for session in sessions:
        status = session.status.value
        table.add_row(
            f"[{_STATUS_STYLES[status]}]{status}[/]",
            session.session_id[:8],
            Path(session.cwd).name or session.cwd,
            session.git_branch or "-",
            f"#{session.pr.number}" if session.pr is not None else "-",
            _format_age(session.last_activity_at, now),
        )
    console.print(table)


def main() -> None:
    """CLI entry point used by the `session-daemon` console script."""
    cli()
