"""
Check Engine - Main orchestrator for CI/CD maturity analyses.

Coordinates:
- Repository reachability probe
- Concurrent evaluation of every catalog check
- Per-category and global point aggregation
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from cicd_checker.config import settings
from cicd_checker.logger import logger
from cicd_checker.services.checks.catalog import CATEGORY_ORDER, all_checks
from cicd_checker.services.checks.evaluators import EVALUATORS, Evaluator
from cicd_checker.services.checks.models import (
    CategoryScore,
    Check,
    CheckId,
    CheckResult,
    CheckStatus,
    ScoreReport,
)
from cicd_checker.services.checks.repo_handle import RepoHandle
from cicd_checker.services.github_gateway import (
    GatewayError,
    GitHubGateway,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from cicd_checker.services.repo_identifier import RepoIdentifier, parse_repo_url


class RepoUnreachable(Exception):
    """The repository could not be reached; no check was run."""

    def __init__(self, repository: str, reason: str):
        super().__init__(f"Cannot access {repository}: {reason}")
        self.repository = repository
        self.reason = reason


class CheckEngine:
    """Runs the check catalog against one repository and aggregates the results."""

    def __init__(
        self,
        gateway: GitHubGateway,
        checks: Optional[Sequence[Check]] = None,
        evaluators: Optional[Dict[CheckId, Evaluator]] = None,
        check_timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        commit_sample_size: Optional[int] = None,
    ):
        self.gateway = gateway
        self.checks = list(checks) if checks is not None else all_checks()
        self.evaluators = evaluators if evaluators is not None else EVALUATORS
        self.check_timeout = check_timeout if check_timeout is not None else settings.CHECK_TIMEOUT
        self.max_concurrency = max_concurrency or settings.MAX_CONCURRENT_CHECKS
        self.commit_sample_size = commit_sample_size or settings.COMMIT_SAMPLE_SIZE

    async def analyze(self, repo: Union[RepoIdentifier, str]) -> ScoreReport:
        """
        Run every check against a repository.

        Args:
            repo: RepoIdentifier, ``owner/repo`` or a github.com URL

        Returns:
            ScoreReport with per-category and global points

        Raises:
            InvalidRepositoryError: if ``repo`` is a string that cannot be parsed
            RepoUnreachable: if repository metadata cannot be fetched
        """
        if isinstance(repo, str):
            repo = parse_repo_url(repo)

        started = time.monotonic()
        logger.info(f"Starting analysis for {repo.full_name}")

        metadata = await self._probe(repo)
        handle = RepoHandle(
            self.gateway,
            repo,
            default_branch=metadata.default_branch,
            commit_sample_size=self.commit_sample_size,
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._run_check(check, handle, semaphore) for check in self.checks)
        )

        report = self._build_report(repo.full_name, list(results))
        logger.info(
            f"Analysis of {repo.full_name} done in {time.monotonic() - started:.1f}s: "
            f"{report.total_score}/{report.max_score} ({report.percentage}%), "
            f"{report.passed}/{report.total} checks passed"
        )
        return report

    async def _probe(self, repo: RepoIdentifier):
        try:
            return await self.gateway.get_repo_metadata(repo)
        except NotFoundError:
            reason = "repository not found (private repositories need a token)"
        except UnauthorizedError:
            reason = "access denied, check the token and its scopes"
        except RateLimitedError:
            reason = "GitHub API rate limit exceeded, retry later or provide a token"
        except GatewayError as e:
            reason = str(e)
        logger.warning(f"Repository {repo.full_name} unreachable: {reason}")
        raise RepoUnreachable(repo.full_name, reason)

    async def _run_check(
        self,
        check: Check,
        handle: RepoHandle,
        semaphore: asyncio.Semaphore,
    ) -> CheckResult:
        evaluator = self.evaluators.get(check.id)
        if evaluator is None:
            return CheckResult.skipped(check, "Check not implemented")

        async with semaphore:
            try:
                result = await asyncio.wait_for(evaluator(check, handle), timeout=self.check_timeout)
            except asyncio.TimeoutError:
                result = CheckResult.skipped(check, f"Check timed out after {self.check_timeout:g}s")
            except GatewayError as e:
                result = CheckResult.skipped(check, f"Could not evaluate: {e}")
            except Exception as e:
                logger.exception(f"Evaluator for {check.id.value} crashed: {e}")
                result = CheckResult.skipped(check, f"Evaluator error: {e}")

        if result.status == CheckStatus.SKIPPED:
            logger.warning(f"{handle.full_name}: {check.id.value} skipped ({result.detail})")
        return result

    @staticmethod
    def _build_report(repository: str, results: List[CheckResult]) -> ScoreReport:
        grouped: Dict = {category: [] for category in CATEGORY_ORDER}
        for result in results:
            grouped.setdefault(result.check.category, []).append(result)

        categories = [
            CategoryScore.from_results(category, category_results)
            for category, category_results in grouped.items()
        ]

        return ScoreReport(
            repository=repository,
            total_score=sum(c.earned for c in categories),
            max_score=sum(c.max for c in categories),
            passed=sum(c.passed for c in categories),
            total=sum(c.total for c in categories),
            categories=categories,
            analyzed_at=datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        )
