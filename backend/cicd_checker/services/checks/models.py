"""
Check models - catalog entries, per-check verdicts and aggregated scores.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CheckCategory(str, Enum):
    """Category grouping checks by maturity level."""
    FUNDAMENTALS = "fundamentals"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    BONUS = "bonus"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    CheckCategory.FUNDAMENTALS: "Fundamentals",
    CheckCategory.INTERMEDIATE: "Intermediate",
    CheckCategory.ADVANCED: "Advanced",
    CheckCategory.BONUS: "Bonus",
}


class CheckId(str, Enum):
    """Closed set of check identifiers."""
    PIPELINE_EXISTS = "pipeline_exists"
    PIPELINE_GREEN = "pipeline_green"
    TESTS_EXIST = "tests_exist"
    LINT_IN_CI = "lint_in_ci"
    DOCKERFILE_EXISTS = "dockerfile_exists"
    DOCKER_BUILD_CI = "docker_build_ci"
    NO_SECRETS_IN_CODE = "no_secrets_in_code"
    README_EXISTS = "readme_exists"
    SECURITY_SCAN = "security_scan"
    COVERAGE_CONFIGURED = "coverage_configured"
    DEPENDABOT_CONFIGURED = "dependabot_configured"
    TESTS_PASS = "tests_pass"
    QUALITY_GATE = "quality_gate"
    CI_CACHE = "ci_cache"
    MATRIX_TESTING = "matrix_testing"
    BRANCH_PROTECTION = "branch_protection"
    PIPELINE_FAST = "pipeline_fast"
    MULTI_ENVIRONMENT = "multi_environment"
    AUTO_DEPLOY = "auto_deploy"
    GHCR_PUBLISHED = "ghcr_published"
    SMOKE_TESTS = "smoke_tests"
    ROLLBACK_STRATEGY = "rollback_strategy"
    CODEOWNERS_EXISTS = "codeowners_exists"
    GITIGNORE_EXISTS = "gitignore_exists"
    CI_NOTIFICATIONS = "ci_notifications"
    REUSABLE_WORKFLOWS = "reusable_workflows"
    RELEASE_TAGGING = "release_tagging"
    CONVENTIONAL_COMMITS = "conventional_commits"
    AUTO_CHANGELOG = "auto_changelog"


class CheckStatus(str, Enum):
    """Verdict of a single check.

    SKIPPED means the check could not be evaluated and is left out of every
    denominator. WARNING is a partial pass.
    """
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Check:
    """Catalog entry for a check."""
    id: CheckId
    name: str
    description: str
    category: CheckCategory
    weight: int


@dataclass(frozen=True)
class CheckResult:
    """Verdict of one check for one analysis run.

    Build through the passed/failed/warning/skipped constructors, which keep
    points and suggestion consistent with the status.
    """
    check: Check
    status: CheckStatus
    points_earned: int
    detail: str
    suggestion: Optional[str] = None

    @classmethod
    def passed(cls, check: Check, detail: str) -> "CheckResult":
        return cls(check, CheckStatus.PASSED, check.weight, detail)

    @classmethod
    def failed(cls, check: Check, detail: str, suggestion: str) -> "CheckResult":
        return cls(check, CheckStatus.FAILED, 0, detail, suggestion)

    @classmethod
    def warning(
        cls,
        check: Check,
        detail: str,
        suggestion: str,
        points: Optional[int] = None,
    ) -> "CheckResult":
        """Partial pass; defaults to half the weight, always below full weight."""
        if points is None:
            points = check.weight // 2
        points = max(0, min(points, check.weight - 1)) if check.weight > 0 else 0
        return cls(check, CheckStatus.WARNING, points, detail, suggestion)

    @classmethod
    def skipped(cls, check: Check, reason: str) -> "CheckResult":
        return cls(check, CheckStatus.SKIPPED, 0, reason)

    @property
    def counts_as_pass(self) -> bool:
        return self.status in (CheckStatus.PASSED, CheckStatus.WARNING)

    @property
    def evaluated(self) -> bool:
        return self.status != CheckStatus.SKIPPED


def _percentage(earned: int, maximum: int) -> float:
    if maximum == 0:
        return 0.0
    return round(earned / maximum * 100, 1)


@dataclass(frozen=True)
class CategoryScore:
    """Point totals for one category; skipped checks are excluded from max."""
    category: CheckCategory
    earned: int
    max: int
    passed: int
    total: int
    results: List[CheckResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, category: CheckCategory, results: List[CheckResult]) -> "CategoryScore":
        evaluated = [r for r in results if r.evaluated]
        return cls(
            category=category,
            earned=sum(r.points_earned for r in evaluated),
            max=sum(r.check.weight for r in evaluated),
            passed=sum(1 for r in evaluated if r.counts_as_pass),
            total=len(evaluated),
            results=list(results),
        )

    @property
    def percentage(self) -> float:
        return _percentage(self.earned, self.max)


@dataclass(frozen=True)
class ScoreReport:
    """Point-in-time CI/CD maturity report for one repository."""
    repository: str
    total_score: int
    max_score: int
    passed: int
    total: int
    categories: List[CategoryScore]
    analyzed_at: str

    @property
    def percentage(self) -> float:
        return _percentage(self.total_score, self.max_score)

    @property
    def grade(self) -> str:
        pct = self.percentage
        if pct >= 90:
            return "Excellent"
        if pct >= 70:
            return "Good"
        if pct >= 50:
            return "Needs improvement"
        return "Insufficient"

    def results(self) -> List[CheckResult]:
        return [r for category in self.categories for r in category.results]
