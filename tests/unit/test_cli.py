"""Tests for the session-daemon list command."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

from click.testing import CliRunner
from session_daemon.cli import cli

from tests.test_utils.transcripts import assistant_entry, user_entry, write_session

CWD = "/nonexistent/dashboard"
ENV = {"SESSION_DAEMON_PR_LOOKUP": "false", "SESSION_DAEMON_MAX_AGE_HOURS": "24"}


def _recent_session() -> list[dict]:
    started = datetime.now(UTC) - timedelta(minutes=5)
    return [
        user_entry("Add a status column", timestamp=started, cwd=CWD),
        assistant_entry("Done.", timestamp=started + timedelta(minutes=1), cwd=CWD),
    ]


def _stale_session() -> list[dict]:
    started = datetime.now(UTC) - timedelta(days=3)
    return [user_entry("Old work", timestamp=started, cwd=CWD)]


def test_list_prints_recent_sessions(tmp_path: Path) -> None:
    write_session(tmp_path / "-nonexistent-dashboard", "recent11-2222", _recent_session())

    runner = CliRunner()
    result = runner.invoke(cli, ["list", "--projects-dir", str(tmp_path), "--no-pr-lookup"], env=ENV)

    assert result.exit_code == 0, result.output
    assert "recent11" in result.output
    assert "waiting" in result.output
    assert "dashboard" in result.output


def test_list_hides_stale_sessions_unless_all(tmp_path: Path) -> None:
    write_session(tmp_path / "-nonexistent-dashboard", "stale111-2222", _stale_session())
    runner = CliRunner()

    filtered = runner.invoke(cli, ["list", "--projects-dir", str(tmp_path)], env=ENV)
    everything = runner.invoke(cli, ["list", "--projects-dir", str(tmp_path), "--all"], env=ENV)

    assert filtered.exit_code == 0, filtered.output
    assert "No sessions found." in filtered.output
    assert everything.exit_code == 0, everything.output
    assert "stale111" in everything.output
    assert "idle" in everything.output


def test_list_skips_unreadable_files(tmp_path: Path) -> None:
    session_dir = tmp_path / "-nonexistent-dashboard"
    write_session(session_dir, "recent11-2222", _recent_session())
    (session_dir / "broken.jsonl").write_text("garbage\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["list", "--projects-dir", str(tmp_path)], env=ENV)

    assert result.exit_code == 0, result.output
    assert "recent11" in result.output
    assert "broken" not in result.output


def test_list_missing_directory_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["list", "--projects-dir", str(tmp_path / "missing")], env=ENV)

    assert result.exit_code == 1
    assert "Session directory not found" in result.output
