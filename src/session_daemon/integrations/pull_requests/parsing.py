"""Parsing helpers for gh CLI pull request output."""

import json
from datetime import datetime
from typing import Any

from session_daemon.models.session import CICheck, CIStatus, PullRequestInfo

_CHECK_RUN_STATES = {
    "QUEUED": CIStatus.PENDING,
    "PENDING": CIStatus.PENDING,
    "WAITING": CIStatus.PENDING,
    "REQUESTED": CIStatus.PENDING,
    "IN_PROGRESS": CIStatus.RUNNING,
}

_CONCLUSIONS = {
    "SUCCESS": CIStatus.SUCCESS,
    "NEUTRAL": CIStatus.SUCCESS,
    "SKIPPED": CIStatus.SUCCESS,
    "FAILURE": CIStatus.FAILURE,
    "TIMED_OUT": CIStatus.FAILURE,
    "ACTION_REQUIRED": CIStatus.FAILURE,
    "STARTUP_FAILURE": CIStatus.FAILURE,
    "ERROR": CIStatus.FAILURE,
    "CANCELLED": CIStatus.CANCELLED,
    "STALE": CIStatus.CANCELLED,
    "PENDING": CIStatus.PENDING,
    "EXPECTED": CIStatus.PENDING,
}

# Highest priority first: one failing check fails the whole PR.
_ROLLUP_PRIORITY = (
    CIStatus.FAILURE,
    CIStatus.RUNNING,
    CIStatus.PENDING,
    CIStatus.CANCELLED,
    CIStatus.UNKNOWN,
)


def parse_check(item: dict[str, Any]) -> CICheck:
    """Convert one statusCheckRollup entry into a CICheck.

    The rollup mixes CheckRun objects (name/status/conclusion/detailsUrl) and
    legacy StatusContext objects (context/state/targetUrl).
    """
    if item.get("__typename") == "StatusContext" or "context" in item:
        state = str(item.get("state") or "").upper()
        return CICheck(
            name=str(item.get("context") or "status"),
            status=_CONCLUSIONS.get(state, CIStatus.UNKNOWN),
            url=item.get("targetUrl") or None,
        )

    status = str(item.get("status") or "").upper()
    if status in _CHECK_RUN_STATES:
        ci_status = _CHECK_RUN_STATES[status]
    else:
        conclusion = str(item.get("conclusion") or "").upper()
        ci_status = _CONCLUSIONS.get(conclusion, CIStatus.UNKNOWN)
    return CICheck(
        name=str(item.get("name") or "check"),
        status=ci_status,
        url=item.get("detailsUrl") or None,
    )


def rollup_ci_status(checks: tuple[CICheck, ...]) -> CIStatus:
    """Combine individual check states into one PR-level status."""
    if not checks:
        return CIStatus.UNKNOWN
    statuses = {check.status for check in checks}
    for candidate in _ROLLUP_PRIORITY:
        if candidate in statuses:
            return candidate
    return CIStatus.SUCCESS


def parse_pr_list(stdout: str, checked_at: datetime) -> PullRequestInfo | None:
    """Parse `gh pr list --json number,url,title,statusCheckRollup` output.

    Returns:
        The first listed pull request, or None if the list is empty or the
        output is not in the expected shape
    """
    try:
        data = json.loads(stdout)
        if not data:
            return None
        pr = data[0]
        checks = tuple(parse_check(item) for item in pr.get("statusCheckRollup") or [])
        return PullRequestInfo(
            number=int(pr["number"]),
            url=pr["url"],
            title=pr.get("title") or "",
            ci_status=rollup_ci_status(checks),
            ci_checks=checks,
            last_checked=checked_at,
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError):
        return None
