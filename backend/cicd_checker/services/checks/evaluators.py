"""
Evaluator table - maps each CheckId to the coroutine that evaluates it.
"""
from typing import Awaitable, Callable, Dict

from cicd_checker.services.checks import api_checks, file_checks, workflow_checks
from cicd_checker.services.checks.models import Check, CheckId, CheckResult
from cicd_checker.services.checks.repo_handle import RepoHandle


Evaluator = Callable[[Check, RepoHandle], Awaitable[CheckResult]]


EVALUATORS: Dict[CheckId, Evaluator] = {
    # Fundamentals
    CheckId.PIPELINE_EXISTS: api_checks.check_pipeline_exists,
    CheckId.PIPELINE_GREEN: api_checks.check_pipeline_green,
    CheckId.TESTS_EXIST: workflow_checks.check_tests_exist,
    CheckId.LINT_IN_CI: workflow_checks.check_lint_in_ci,
    CheckId.DOCKERFILE_EXISTS: file_checks.check_dockerfile,
    CheckId.DOCKER_BUILD_CI: workflow_checks.check_docker_build_ci,
    CheckId.NO_SECRETS_IN_CODE: workflow_checks.check_no_secrets,
    CheckId.README_EXISTS: file_checks.check_readme,
    # Intermediate
    CheckId.SECURITY_SCAN: workflow_checks.check_security_scan,
    CheckId.COVERAGE_CONFIGURED: workflow_checks.check_coverage,
    CheckId.DEPENDABOT_CONFIGURED: file_checks.check_dependabot,
    CheckId.TESTS_PASS: api_checks.check_tests_pass,
    CheckId.QUALITY_GATE: workflow_checks.check_quality_gate,
    CheckId.CI_CACHE: workflow_checks.check_ci_cache,
    CheckId.MATRIX_TESTING: workflow_checks.check_matrix_testing,
    # Advanced
    CheckId.BRANCH_PROTECTION: api_checks.check_branch_protection,
    CheckId.PIPELINE_FAST: api_checks.check_pipeline_speed,
    CheckId.MULTI_ENVIRONMENT: workflow_checks.check_multi_environment,
    CheckId.AUTO_DEPLOY: workflow_checks.check_auto_deploy,
    CheckId.GHCR_PUBLISHED: workflow_checks.check_ghcr_published,
    CheckId.SMOKE_TESTS: workflow_checks.check_smoke_tests,
    CheckId.ROLLBACK_STRATEGY: workflow_checks.check_rollback_strategy,
    # Bonus
    CheckId.CODEOWNERS_EXISTS: file_checks.check_codeowners,
    CheckId.GITIGNORE_EXISTS: file_checks.check_gitignore,
    CheckId.CI_NOTIFICATIONS: workflow_checks.check_ci_notifications,
    CheckId.REUSABLE_WORKFLOWS: workflow_checks.check_reusable_workflows,
    CheckId.RELEASE_TAGGING: api_checks.check_release_tagging,
    CheckId.CONVENTIONAL_COMMITS: api_checks.check_conventional_commits,
    CheckId.AUTO_CHANGELOG: workflow_checks.check_auto_changelog,
}
