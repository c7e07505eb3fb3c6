"""Tests for pull request parsing and caching."""

import json
from datetime import timedelta

from session_daemon.integrations.clock.fake import FakeClock
from session_daemon.integrations.pull_requests.cached import CachingPullRequestLookup
from session_daemon.integrations.pull_requests.fake import FakePullRequestLookup
from session_daemon.integrations.pull_requests.parsing import (
    parse_check,
    parse_pr_list,
    rollup_ci_status,
)
from session_daemon.models.session import CICheck, CIStatus, PullRequestInfo


def _check(status: CIStatus) -> CICheck:
    return CICheck(name=status.value, status=status, url=None)


class TestParseCheck:
    """Tests for parse_check."""

    def test_completed_check_run_uses_conclusion(self) -> None:
        check = parse_check(
            {
                "__typename": "CheckRun",
                "name": "tests",
                "status": "COMPLETED",
                "conclusion": "FAILURE",
                "detailsUrl": "https://ci.example/1",
            }
        )

        assert check == CICheck(name="tests", status=CIStatus.FAILURE, url="https://ci.example/1")

    def test_in_progress_check_run_is_running(self) -> None:
        check = parse_check({"name": "lint", "status": "IN_PROGRESS", "conclusion": ""})

        assert check.status == CIStatus.RUNNING

    def test_status_context(self) -> None:
        check = parse_check(
            {"__typename": "StatusContext", "context": "ci/legacy", "state": "SUCCESS"}
        )

        assert check == CICheck(name="ci/legacy", status=CIStatus.SUCCESS, url=None)

    def test_unrecognized_state_is_unknown(self) -> None:
        assert parse_check({"name": "x", "status": "COMPLETED", "conclusion": "?"}).status == (
            CIStatus.UNKNOWN
        )


class TestRollup:
    """Tests for rollup_ci_status."""

    def test_no_checks_is_unknown(self) -> None:
        assert rollup_ci_status(()) == CIStatus.UNKNOWN

    def test_all_success(self) -> None:
        assert rollup_ci_status((_check(CIStatus.SUCCESS), _check(CIStatus.SUCCESS))) == (
            CIStatus.SUCCESS
        )

    def test_failure_wins(self) -> None:
        checks = (_check(CIStatus.RUNNING), _check(CIStatus.FAILURE), _check(CIStatus.SUCCESS))

        assert rollup_ci_status(checks) == CIStatus.FAILURE

    def test_running_beats_pending(self) -> None:
        checks = (_check(CIStatus.PENDING), _check(CIStatus.RUNNING))

        assert rollup_ci_status(checks) == CIStatus.RUNNING


class TestParsePrList:
    """Tests for parse_pr_list."""

    def test_parses_first_pull_request(self) -> None:
        clock = FakeClock()
        stdout = json.dumps(
            [
                {
                    "number": 42,
                    "url": "https://github.com/acme/dashboard/pull/42",
                    "title": "Add status column",
                    "statusCheckRollup": [
                        {"name": "tests", "status": "COMPLETED", "conclusion": "SUCCESS"},
                        {"name": "lint", "status": "QUEUED", "conclusion": ""},
                    ],
                }
            ]
        )

        pr = parse_pr_list(stdout, clock.now())

        assert pr is not None
        assert pr.number == 42
        assert pr.title == "Add status column"
        assert pr.ci_status == CIStatus.PENDING
        assert [check.name for check in pr.ci_checks] == ["tests", "lint"]
        assert pr.last_checked == clock.now()
        assert pr.to_payload()["ciStatus"] == "pending"

    def test_empty_list_is_none(self) -> None:
        assert parse_pr_list("[]", FakeClock().now()) is None

    def test_garbage_is_none(self) -> None:
        assert parse_pr_list("not json", FakeClock().now()) is None
        assert parse_pr_list('[{"title": "no number"}]', FakeClock().now()) is None


class TestCachingPullRequestLookup:
    """Tests for CachingPullRequestLookup."""

    def test_answers_from_cache_within_ttl(self) -> None:
        clock = FakeClock()
        pr = PullRequestInfo(
            number=1,
            url="https://github.com/acme/dashboard/pull/1",
            title="t",
            ci_status=CIStatus.SUCCESS,
            ci_checks=(),
            last_checked=clock.now(),
        )
        inner = FakePullRequestLookup({("/work", "feature"): pr})
        lookup = CachingPullRequestLookup(inner, clock, timedelta(seconds=60))

        assert lookup.find_pull_request("/work", "feature") == pr
        clock.advance(timedelta(seconds=30))
        assert lookup.find_pull_request("/work", "feature") == pr
        assert len(inner.lookups) == 1

        clock.advance(timedelta(seconds=31))
        lookup.find_pull_request("/work", "feature")
        assert len(inner.lookups) == 2

    def test_caches_absence_too(self) -> None:
        clock = FakeClock()
        inner = FakePullRequestLookup()
        lookup = CachingPullRequestLookup(inner, clock, timedelta(seconds=60))

        assert lookup.find_pull_request("/work", "main") is None
        assert lookup.find_pull_request("/work", "main") is None
        assert inner.lookups == [("/work", "main")]
