"""
Check Catalog - v2.0

Ordered list of every check with its category and point weight.
Per-category weights must add up to the category target so that
percentage-of-category stays meaningful.
"""

from typing import List

from cicd_checker.services.checks.models import Check, CheckCategory, CheckId


# Display order of categories in reports
CATEGORY_ORDER = (
    CheckCategory.FUNDAMENTALS,
    CheckCategory.INTERMEDIATE,
    CheckCategory.ADVANCED,
    CheckCategory.BONUS,
)

# Maximum points per category
CATEGORY_TARGETS = {
    CheckCategory.FUNDAMENTALS: 50,
    CheckCategory.INTERMEDIATE: 50,
    CheckCategory.ADVANCED: 50,
    CheckCategory.BONUS: 35,
}

CATALOG_VERSION = "2.0"

_F = CheckCategory.FUNDAMENTALS
_I = CheckCategory.INTERMEDIATE
_A = CheckCategory.ADVANCED
_B = CheckCategory.BONUS

# (id, name, description, category, weight)
_CHECK_TABLE = (
    # --- Fundamentals (50 pts) ---
    (CheckId.PIPELINE_EXISTS, "CI pipeline exists",
     "At least one YAML workflow in .github/workflows/", _F, 5),
    (CheckId.PIPELINE_GREEN, "Pipeline green on default branch",
     "The latest workflow run on the default branch succeeded", _F, 5),
    (CheckId.TESTS_EXIST, "Tests in CI",
     "A test step is executed by the pipeline", _F, 10),
    (CheckId.LINT_IN_CI, "Lint in CI",
     "A lint or format step is configured in the pipeline", _F, 5),
    (CheckId.DOCKERFILE_EXISTS, "Dockerfile present",
     "A Dockerfile exists in the repository", _F, 5),
    (CheckId.DOCKER_BUILD_CI, "Docker build in CI",
     "The pipeline builds a Docker image", _F, 5),
    (CheckId.NO_SECRETS_IN_CODE, "No hardcoded secrets",
     "No hardcoded credentials detected in workflow files", _F, 10),
    (CheckId.README_EXISTS, "README present",
     "A README file exists at the repository root", _F, 5),

    # --- Intermediate (50 pts) ---
    (CheckId.SECURITY_SCAN, "Security scanning",
     "A security scanner (Trivy, Snyk, CodeQL, Bandit...) runs in CI", _I, 10),
    (CheckId.COVERAGE_CONFIGURED, "Coverage configured",
     "Code coverage is collected by the pipeline", _I, 10),
    (CheckId.DEPENDABOT_CONFIGURED, "Dependabot / Renovate",
     "Automated dependency updates are configured", _I, 10),
    (CheckId.TESTS_PASS, "Tests pass",
     "Tests run in CI and the latest run succeeded", _I, 5),
    (CheckId.QUALITY_GATE, "Quality gate",
     "A code quality gate (SonarCloud, CodeClimate, Codacy...) is enforced", _I, 5),
    (CheckId.CI_CACHE, "CI caching",
     "Dependencies or Docker layers are cached between runs", _I, 5),
    (CheckId.MATRIX_TESTING, "Matrix testing",
     "Tests run across several versions or operating systems", _I, 5),

    # --- Advanced (50 pts) ---
    (CheckId.BRANCH_PROTECTION, "Branch protection",
     "The default branch requires pull request reviews", _A, 10),
    (CheckId.PIPELINE_FAST, "Fast pipeline (< 5 min)",
     "Recent runs take less than 5 minutes on average", _A, 5),
    (CheckId.MULTI_ENVIRONMENT, "Multiple environments",
     "The pipeline targets several environments (staging, production...)", _A, 10),
    (CheckId.AUTO_DEPLOY, "Automatic deployment",
     "Deployment runs automatically on push to the default branch", _A, 10),
    (CheckId.GHCR_PUBLISHED, "Image published to GHCR",
     "Container images are pushed to ghcr.io", _A, 5),
    (CheckId.SMOKE_TESTS, "Smoke / e2e tests",
     "Smoke or end-to-end tests run in the pipeline", _A, 5),
    (CheckId.ROLLBACK_STRATEGY, "Rollback strategy",
     "A rollback or redeploy path exists", _A, 5),

    # --- Bonus (35 pts) ---
    (CheckId.CODEOWNERS_EXISTS, "CODEOWNERS present",
     "A CODEOWNERS file assigns code ownership", _B, 5),
    (CheckId.GITIGNORE_EXISTS, ".gitignore present",
     "A .gitignore file is configured", _B, 5),
    (CheckId.CI_NOTIFICATIONS, "CI notifications",
     "The pipeline notifies a chat channel (Slack, Discord, Telegram...)", _B, 5),
    (CheckId.REUSABLE_WORKFLOWS, "Reusable workflows",
     "Workflows are defined or consumed as reusable workflows", _B, 5),
    (CheckId.RELEASE_TAGGING, "Releases and tags",
     "GitHub releases are published", _B, 5),
    (CheckId.CONVENTIONAL_COMMITS, "Conventional Commits",
     "At least 80% of recent commits follow Conventional Commits", _B, 5),
    (CheckId.AUTO_CHANGELOG, "Automated changelog",
     "The changelog is generated automatically", _B, 5),
)

_CHECKS = tuple(
    Check(id=check_id, name=name, description=description, category=category, weight=weight)
    for check_id, name, description, category, weight in _CHECK_TABLE
)


def all_checks() -> List[Check]:
    """Return every check in display order."""
    return list(_CHECKS)


# --- Validation (Prevent Drift) ---
def _validate_catalog():
    """Ensure ids are unique and each category adds up to its target."""
    seen = set()
    for check in _CHECKS:
        if check.id in seen:
            raise ValueError(f"CRITICAL: duplicate check id {check.id.value}")
        if check.weight < 0:
            raise ValueError(f"CRITICAL: negative weight for {check.id.value}")
        seen.add(check.id)

    for category in CATEGORY_ORDER:
        total = sum(c.weight for c in _CHECKS if c.category == category)
        if total != CATEGORY_TARGETS[category]:
            raise ValueError(
                f"CRITICAL: {category.label} weights sum to {total}, expected {CATEGORY_TARGETS[category]}"
            )

_validate_catalog()
