"""
Tests for the check engine: dispatch, failure isolation and aggregation.
"""

import asyncio
import dataclasses

import pytest

from cicd_checker.services.check_engine import CheckEngine, RepoUnreachable
from cicd_checker.services.checks.catalog import CATEGORY_ORDER, all_checks
from cicd_checker.services.checks.models import CheckId, CheckResult, CheckStatus
from cicd_checker.services.github_gateway import (
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from cicd_checker.services.repo_identifier import InvalidRepositoryError, RepoIdentifier


REPO = RepoIdentifier("octo", "demo")


def by_id(report):
    return {r.check.id: r for r in report.results()}


def assert_aggregates_consistent(report):
    results = report.results()
    evaluated = [r for r in results if r.evaluated]
    assert report.total_score == sum(r.points_earned for r in results)
    assert report.max_score == sum(r.check.weight for r in evaluated)
    assert report.total == len(evaluated)
    assert report.passed == sum(1 for r in evaluated if r.counts_as_pass)
    assert report.total_score == sum(c.earned for c in report.categories)
    assert report.max_score == sum(c.max for c in report.categories)
    for result in results:
        assert 0 <= result.points_earned <= result.check.weight


class TestAnalyze:

    @pytest.mark.asyncio
    async def test_mature_repository_scores_everything(self, mature_gateway):
        report = await CheckEngine(mature_gateway()).analyze(REPO)

        failing = [r for r in report.results() if r.status != CheckStatus.PASSED]
        assert failing == []
        assert report.total_score == report.max_score == 185
        assert report.percentage == 100.0
        assert report.grade == "Excellent"
        assert_aggregates_consistent(report)

    @pytest.mark.asyncio
    async def test_shared_data_fetched_once_per_analysis(self, mature_gateway):
        gateway = mature_gateway()
        await CheckEngine(gateway).analyze(REPO)

        assert gateway.calls["list_workflow_runs"] == 1
        assert gateway.calls["list_workflow_files"] == 1

    @pytest.mark.asyncio
    async def test_one_result_per_check_in_category_order(self, mature_gateway):
        report = await CheckEngine(mature_gateway()).analyze(REPO)

        assert [c.category for c in report.categories] == list(CATEGORY_ORDER)
        assert [r.check.id for r in report.results()] == [c.id for c in all_checks()]

    @pytest.mark.asyncio
    async def test_empty_repository(self, gateway_factory):
        report = await CheckEngine(gateway_factory()).analyze(REPO)

        results = by_id(report)
        assert results[CheckId.PIPELINE_EXISTS].status == CheckStatus.FAILED
        assert results[CheckId.README_EXISTS].status == CheckStatus.FAILED
        assert results[CheckId.PIPELINE_FAST].status == CheckStatus.SKIPPED
        assert results[CheckId.CONVENTIONAL_COMMITS].status == CheckStatus.SKIPPED
        assert report.grade == "Insufficient"
        assert_aggregates_consistent(report)

    @pytest.mark.asyncio
    async def test_accepts_url_string(self, mature_gateway):
        report = await CheckEngine(mature_gateway()).analyze("https://github.com/octo/demo.git")
        assert report.repository == "octo/demo"
        assert report.analyzed_at.endswith("Z")

    @pytest.mark.asyncio
    async def test_invalid_string_raises(self, mature_gateway):
        with pytest.raises(InvalidRepositoryError):
            await CheckEngine(mature_gateway()).analyze("nope")

    @pytest.mark.asyncio
    async def test_default_branch_from_metadata(self, gateway_factory):
        report = await CheckEngine(gateway_factory(default_branch="trunk")).analyze(REPO)
        assert by_id(report)[CheckId.BRANCH_PROTECTION].detail == "No protection configured on trunk"

    @pytest.mark.asyncio
    async def test_deterministic_apart_from_timestamp(self, mature_gateway):
        engine = CheckEngine(mature_gateway())
        first = await engine.analyze(REPO)
        second = await engine.analyze(REPO)
        assert dataclasses.replace(first, analyzed_at="") == dataclasses.replace(second, analyzed_at="")


class TestUnreachable:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, reason",
        [
            (NotFoundError("Not Found", 404), "not found"),
            (UnauthorizedError("Bad credentials", 401), "access denied"),
            (RateLimitedError("limit", 403), "rate limit"),
            (NetworkError("connection refused"), "connection refused"),
        ],
    )
    async def test_probe_failure(self, gateway_factory, error, reason):
        gateway = gateway_factory(errors={"get_repo_metadata": error})
        with pytest.raises(RepoUnreachable) as exc_info:
            await CheckEngine(gateway).analyze(REPO)
        assert reason in exc_info.value.reason
        assert exc_info.value.repository == "octo/demo"
        assert "list_workflow_files" not in gateway.calls


class TestSkipped:
    """Checks that cannot be evaluated are skipped and excluded from totals."""

    @pytest.mark.asyncio
    async def test_run_fetch_failure_excluded_from_max(self, mature_gateway):
        gateway = mature_gateway(errors={"list_workflow_runs": NetworkError("down")})
        report = await CheckEngine(gateway).analyze(REPO)

        skipped = {r.check.id for r in report.results() if r.status == CheckStatus.SKIPPED}
        assert skipped == {CheckId.PIPELINE_GREEN, CheckId.TESTS_PASS, CheckId.PIPELINE_FAST}
        assert report.max_score == 185 - 15
        assert report.total_score == report.max_score
        assert report.total == 26
        assert_aggregates_consistent(report)

    @pytest.mark.asyncio
    async def test_unreadable_workflows_skip_keyword_checks(self, mature_gateway):
        gateway = mature_gateway(errors={"list_workflow_files": UnauthorizedError("denied", 403)})
        report = await CheckEngine(gateway).analyze(REPO)

        results = by_id(report)
        lint = results[CheckId.LINT_IN_CI]
        assert lint.status == CheckStatus.SKIPPED
        assert lint.detail.startswith("Could not evaluate: ")
        assert results[CheckId.PIPELINE_EXISTS].status == CheckStatus.SKIPPED
        assert results[CheckId.README_EXISTS].status == CheckStatus.PASSED
        assert gateway.calls["list_workflow_files"] == 1
        assert_aggregates_consistent(report)

    @pytest.mark.asyncio
    async def test_missing_evaluator(self, mature_gateway):
        report = await CheckEngine(mature_gateway(), evaluators={}).analyze(REPO)

        assert {r.detail for r in report.results()} == {"Check not implemented"}
        assert report.max_score == 0
        assert report.percentage == 0.0

    @pytest.mark.asyncio
    async def test_timeout(self, mature_gateway):
        async def slow(check, handle):
            await asyncio.sleep(5)

        check = all_checks()[0]
        engine = CheckEngine(mature_gateway(), checks=[check], evaluators={check.id: slow}, check_timeout=0.01)
        report = await engine.analyze(REPO)

        (result,) = report.results()
        assert result.status == CheckStatus.SKIPPED
        assert result.detail == "Check timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_evaluator_crash_is_isolated(self, mature_gateway):
        async def crash(check, handle):
            raise RuntimeError("boom")

        async def ok(check, handle):
            return CheckResult.passed(check, "ok")

        first, second = all_checks()[:2]
        engine = CheckEngine(mature_gateway(), checks=[first, second], evaluators={first.id: crash, second.id: ok})
        report = await engine.analyze(REPO)

        results = by_id(report)
        assert results[first.id].detail == "Evaluator error: boom"
        assert results[second.id].status == CheckStatus.PASSED
        assert report.max_score == second.weight


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, mature_gateway):
        active = 0
        peak = 0

        async def tracked(check, handle):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return CheckResult.passed(check, "ok")

        evaluators = {c.id: tracked for c in all_checks()}
        await CheckEngine(mature_gateway(), evaluators=evaluators, max_concurrency=3).analyze(REPO)
        assert peak == 3

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, mature_gateway):
        async def slow(check, handle):
            await asyncio.sleep(10)

        evaluators = {c.id: slow for c in all_checks()}
        engine = CheckEngine(mature_gateway(), evaluators=evaluators, check_timeout=30)
        task = asyncio.create_task(engine.analyze(REPO))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
