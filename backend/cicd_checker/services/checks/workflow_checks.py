"""
Workflow-text checks - keyword detection over the concatenated workflow YAML.

Gateway errors are not caught here: the engine turns them into SKIPPED so
an unreadable workflow directory is never reported as a missing practice.
"""
from typing import Sequence

from cicd_checker.services.checks import keywords as kw
from cicd_checker.services.checks.models import Check, CheckResult
from cicd_checker.services.checks.repo_handle import RepoHandle
from cicd_checker.services.github_gateway import NotFoundError


ROLLBACK_WORKFLOW_PATHS = (
    ".github/workflows/rollback.yml",
    ".github/workflows/rollback.yaml",
    ".github/workflows/revert.yml",
)


async def _keyword_check(
    check: Check,
    repo: RepoHandle,
    keywords: Sequence[str],
    found_label: str,
    missing_detail: str,
    fix: str,
) -> CheckResult:
    """Pass if any keyword is present; the detail lists what matched."""
    text = await repo.workflow_text()
    found = kw.find_keywords(text, keywords)
    if found:
        return CheckResult.passed(check, f"{found_label}: {', '.join(found)}")
    return CheckResult.failed(check, missing_detail, fix)


async def check_tests_exist(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.TEST_KEYWORDS,
        "Test step detected",
        "No test step found in workflows",
        "Add a test step (pytest, npm test, cargo test...) to your pipeline",
    )


async def check_lint_in_ci(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.LINT_KEYWORDS,
        "Lint/format step detected",
        "No linter or formatter found in workflows",
        "Add a lint step (ruff, eslint, clippy...) to your pipeline",
    )


async def check_docker_build_ci(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.DOCKER_BUILD_KEYWORDS,
        "Docker build detected",
        "No Docker build step found in workflows",
        "Add 'docker build' or the docker/build-push-action to your pipeline",
    )


async def check_security_scan(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.SECURITY_SCAN_KEYWORDS,
        "Security tool(s) detected",
        "No security scanner found in workflows",
        "Add Trivy, Snyk, CodeQL or another security scanner to your pipeline",
    )


async def check_coverage(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.COVERAGE_KEYWORDS,
        "Coverage detected",
        "No coverage collection found in workflows",
        "Collect coverage in CI (pytest-cov, codecov, istanbul, tarpaulin...)",
    )


async def check_quality_gate(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.QUALITY_GATE_KEYWORDS,
        "Quality gate detected",
        "No quality gate found in workflows",
        "Integrate SonarCloud, CodeClimate or Codacy to gate merges on code quality",
    )


async def check_ci_notifications(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.NOTIFICATION_KEYWORDS,
        "CI notification configured",
        "No CI notification found (Slack/Discord/Telegram)",
        "Add a notification step such as 8398a7/action-slack or rjstone/discord-webhook",
    )


async def check_smoke_tests(check: Check, repo: RepoHandle) -> CheckResult:
    return await _keyword_check(
        check, repo, kw.SMOKE_TEST_KEYWORDS,
        "Smoke/e2e tests detected",
        "No smoke or end-to-end tests found in workflows",
        "Run smoke tests after deployment (curl /healthz, Playwright, Cypress...)",
    )


async def check_no_secrets(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    found = [pattern for pattern in kw.SECRET_PATTERNS if pattern in text]
    if not found:
        return CheckResult.passed(check, "No hardcoded secret patterns found in workflows")
    return CheckResult.failed(
        check,
        f"Suspicious patterns found: {', '.join(p.strip() for p in found)}",
        "Move credentials to GitHub Secrets and reference them as ${{ secrets.NAME }}",
    )


async def check_ci_cache(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()

    if kw.contains_any(text, kw.ACTIONS_CACHE_KEYWORDS):
        cache_type = "actions/cache"
    elif kw.contains_any(text, kw.SETUP_CACHE_KEYWORDS):
        cache_type = "setup action built-in cache"
    elif kw.contains_any(text, kw.DOCKER_CACHE_KEYWORDS):
        cache_type = "Docker layer cache"
    else:
        return CheckResult.failed(
            check,
            "No caching found in workflows",
            "Use actions/cache or the setup actions' cache option (cache: npm, cache: pip) to speed up builds",
        )
    return CheckResult.passed(check, f"CI cache detected: {cache_type}")


async def check_matrix_testing(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()

    if "strategy:" not in text or "matrix:" not in text:
        return CheckResult.failed(
            check,
            "No matrix strategy found in workflows",
            "Add 'strategy: matrix:' to test several language versions or operating systems",
        )

    if "node-version" in text or "node_version" in text:
        axis = "Node.js versions"
    elif "python-version" in text or "python_version" in text:
        axis = "Python versions"
    elif "toolchain" in text or "rust" in text:
        axis = "Rust toolchains"
    elif "os:" in text:
        axis = "operating systems"
    else:
        axis = None
    if axis:
        return CheckResult.passed(check, f"Matrix strategy detected ({axis})")
    return CheckResult.passed(check, "Matrix strategy detected")


async def check_reusable_workflows(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()

    if kw.contains_any(text, kw.REUSABLE_DEFINE_KEYWORDS):
        return CheckResult.passed(check, "Reusable workflow defined (workflow_call)")
    if kw.contains_any(text, kw.REUSABLE_CALL_KEYWORDS):
        return CheckResult.passed(check, "Reusable workflow called (uses: ./.github/workflows/)")
    return CheckResult.failed(
        check,
        "No reusable workflow found",
        "Define a workflow with 'on: workflow_call:' or call one with 'uses: ./.github/workflows/<file>.yml'",
    )


async def check_multi_environment(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    found = kw.distinct_matches(kw.find_keywords(text, kw.ENVIRONMENT_KEYWORDS))

    if len(found) >= kw.MIN_ENVIRONMENT_INDICATORS:
        return CheckResult.passed(check, f"Environment indicators detected: {', '.join(found)}")
    detail = "No multi-environment setup found"
    if found:
        detail = f"Only one environment indicator found: {found[0]}"
    return CheckResult.failed(
        check,
        detail,
        "Declare GitHub environments (staging, production) and deploy to each from the pipeline",
    )


async def check_auto_deploy(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    found = kw.find_keywords(text, kw.DEPLOY_KEYWORDS)

    if not found:
        return CheckResult.failed(
            check,
            "No deployment step found in workflows",
            "Add a deployment job to your pipeline",
        )
    if kw.has_push_trigger(text):
        return CheckResult.passed(check, f"Deployment on push detected: {', '.join(found)}")
    return CheckResult.warning(
        check,
        f"Deployment step found ({', '.join(found)}) but not triggered on push",
        "Trigger the deployment workflow with 'on: push' on the default branch",
    )


async def check_ghcr_published(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    registry = kw.find_keywords(text, kw.GHCR_KEYWORDS)
    push = kw.find_keywords(text, kw.IMAGE_PUSH_KEYWORDS)

    if registry and push:
        return CheckResult.passed(check, f"Image push to GHCR detected: {', '.join(registry + push)}")
    if registry:
        return CheckResult.warning(
            check,
            f"GHCR referenced ({', '.join(registry)}) but no push step found",
            "Use docker/build-push-action with 'push: true' and 'registry: ghcr.io'",
        )
    return CheckResult.failed(
        check,
        "No publication to GHCR found",
        "Publish your image with docker/build-push-action and 'registry: ghcr.io'",
    )


async def check_auto_changelog(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    found = kw.find_keywords(text, kw.CHANGELOG_TOOL_KEYWORDS)
    if found:
        return CheckResult.passed(check, f"Changelog automation detected: {', '.join(found)}")

    try:
        changelog = await repo.get_file_text("CHANGELOG.md")
    except NotFoundError:
        changelog = ""
    headers = [
        line for line in changelog.splitlines()
        if line.startswith("## [") or line.startswith("## v")
    ]
    if len(headers) >= 2:
        return CheckResult.passed(check, f"CHANGELOG.md found with {len(headers)} version entries")

    return CheckResult.failed(
        check,
        "No changelog automation found",
        "Configure release-please or semantic-release to generate the changelog",
    )


async def check_rollback_strategy(check: Check, repo: RepoHandle) -> CheckResult:
    rollback_file = await repo.first_existing(ROLLBACK_WORKFLOW_PATHS)
    if rollback_file:
        return CheckResult.passed(check, f"Dedicated rollback workflow found ({rollback_file})")

    text = await repo.workflow_text()
    found = kw.find_keywords(text, kw.ROLLBACK_KEYWORDS)
    if found:
        return CheckResult.passed(check, f"Rollback mechanism detected: {', '.join(found)}")

    if "workflow_dispatch:" in text:
        if kw.contains_any(text, ("revert",)):
            return CheckResult.passed(check, "workflow_dispatch with a revert option detected")
        return CheckResult.warning(
            check,
            "workflow_dispatch found (manual redeploy possible) but no explicit rollback",
            "Add a rollback workflow or a 'rollback' input to workflow_dispatch",
        )

    return CheckResult.failed(
        check,
        "No rollback strategy found",
        f"Create {ROLLBACK_WORKFLOW_PATHS[0]} or a workflow_dispatch trigger with a rollback option",
    )
