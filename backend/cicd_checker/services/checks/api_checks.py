"""
API-state checks - classify structured GitHub data (runs, protection, releases, commits).
"""
import re

from cicd_checker.services.checks import keywords as kw
from cicd_checker.services.checks.models import Check, CheckResult
from cicd_checker.services.checks.repo_handle import RepoHandle
from cicd_checker.services.github_gateway import GatewayError, NotFoundError


FAST_PIPELINE_SECONDS = 5 * 60
SLOW_PIPELINE_SECONDS = 10 * 60
SPEED_SAMPLE_SIZE = 10

CONVENTIONAL_COMMIT_THRESHOLD = 80
CONVENTIONAL_TYPES = (
    "feat", "fix", "docs", "style", "refactor", "test",
    "chore", "ci", "build", "perf", "revert",
)
CONVENTIONAL_COMMIT_RE = re.compile(
    r"^(?:" + "|".join(CONVENTIONAL_TYPES) + r")(?:\([^)]*\))?!?: "
)
MERGE_COMMIT_PREFIXES = ("Merge pull request", "Merge branch", "Merge remote")


def is_conventional_commit(message: str) -> bool:
    """True if the subject line reads ``type[(scope)][!]: subject``."""
    lines = message.splitlines()
    subject = lines[0] if lines else ""
    return CONVENTIONAL_COMMIT_RE.match(subject) is not None


def is_merge_commit(message: str) -> bool:
    return message.startswith(MERGE_COMMIT_PREFIXES)


def _format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}m{secs:02d}s"


async def check_pipeline_exists(check: Check, repo: RepoHandle) -> CheckResult:
    fix = "Create .github/workflows/ci.yml with your CI pipeline"
    try:
        files = await repo.list_workflow_files()
    except NotFoundError:
        return CheckResult.failed(check, ".github/workflows/ directory not found", fix)

    names = [f.name for f in files if f.is_yaml]
    if not names:
        return CheckResult.failed(check, "No YAML workflow file found", fix)
    return CheckResult.passed(check, f"{len(names)} workflow(s) found: {', '.join(names)}")


async def check_pipeline_green(check: Check, repo: RepoHandle) -> CheckResult:
    try:
        runs = await repo.list_workflow_runs(limit=5)
    except GatewayError as e:
        return CheckResult.skipped(check, f"Could not fetch workflow runs: {e}")

    if not runs:
        return CheckResult.failed(
            check,
            f"No workflow run found on {repo.default_branch}",
            f"Run your pipeline at least once on {repo.default_branch}",
        )

    latest = runs[0]
    name = latest.name or "unknown"
    if latest.conclusion == "success":
        return CheckResult.passed(check, f"Latest run '{name}' succeeded")
    if latest.conclusion is None:
        return CheckResult.warning(
            check,
            f"Latest run '{name}' is still in progress",
            "Wait for the run to finish and analyze again",
        )
    return CheckResult.failed(
        check,
        f"Latest run '{name}' concluded with: {latest.conclusion}",
        "Fix the failing jobs so the pipeline goes green",
    )


async def check_tests_pass(check: Check, repo: RepoHandle) -> CheckResult:
    text = await repo.workflow_text()
    if not kw.contains_any(text, kw.TEST_KEYWORDS):
        return CheckResult.failed(
            check,
            "No test step found in workflows",
            "Add a test step to your pipeline before checking that tests pass",
        )

    try:
        runs = await repo.list_workflow_runs(limit=5)
    except GatewayError as e:
        return CheckResult.skipped(check, f"Could not fetch workflow runs: {e}")

    if not runs:
        return CheckResult.skipped(check, f"No workflow run found on {repo.default_branch}")

    latest = runs[0]
    if latest.conclusion is None:
        return CheckResult.skipped(check, "Latest run is still in progress")
    if latest.conclusion == "success":
        return CheckResult.passed(check, f"Pipeline '{latest.name or 'CI'}' green with test steps executed")
    return CheckResult.failed(
        check,
        f"Pipeline concluded with '{latest.conclusion}', tests may be failing",
        "Fix the failing tests",
    )


async def check_branch_protection(check: Check, repo: RepoHandle) -> CheckResult:
    branch = repo.default_branch
    try:
        protection = await repo.get_branch_protection()
    except NotFoundError:
        return CheckResult.failed(
            check,
            f"No protection configured on {branch}",
            "Enable branch protection in Settings > Branches > Branch protection rules",
        )
    except GatewayError as e:
        return CheckResult.skipped(
            check,
            f"Token with 'repo' scope required to read branch protection ({e})",
        )

    if protection.required_pull_request_reviews is not None:
        return CheckResult.passed(check, f"{branch} is protected with required pull request reviews")

    rules = []
    if protection.required_status_checks is not None:
        rules.append("required status checks")
    if protection.enforce_admins:
        rules.append("enforced for admins")
    in_place = f" ({', '.join(rules)})" if rules else ""
    return CheckResult.warning(
        check,
        f"{branch} is protected{in_place} but pull request reviews are not required",
        "Enable 'Require a pull request before merging' in the protection rule",
    )


async def check_pipeline_speed(check: Check, repo: RepoHandle) -> CheckResult:
    try:
        runs = await repo.list_workflow_runs(limit=SPEED_SAMPLE_SIZE)
    except GatewayError as e:
        return CheckResult.skipped(check, f"Could not fetch workflow runs: {e}")

    durations = [d for d in (r.duration_seconds for r in runs) if d is not None]
    if not durations:
        return CheckResult.skipped(check, "Not enough completed runs to measure pipeline speed")

    average = sum(durations) / len(durations)
    detail = f"Average duration {_format_duration(average)} over {len(durations)} run(s)"
    if average < FAST_PIPELINE_SECONDS:
        return CheckResult.passed(check, detail)
    if average < SLOW_PIPELINE_SECONDS:
        return CheckResult.warning(
            check,
            detail,
            "Cache dependencies and parallelize jobs to get under 5 minutes",
        )
    return CheckResult.failed(
        check,
        detail,
        "Split slow jobs, cache dependencies and run tests in parallel",
    )


async def check_release_tagging(check: Check, repo: RepoHandle) -> CheckResult:
    try:
        releases = await repo.list_releases(limit=5)
    except GatewayError as e:
        return CheckResult.skipped(check, f"Could not fetch releases: {e}")

    if releases:
        return CheckResult.passed(
            check,
            f"{len(releases)} recent release(s), latest: {releases[0].tag}",
        )

    text = await repo.workflow_text()
    found = kw.find_keywords(text, kw.RELEASE_TOOL_KEYWORDS)
    if found:
        return CheckResult.warning(
            check,
            f"Release tooling in CI ({', '.join(found)}) but no release published yet",
            "Merge to the default branch to trigger the first release",
        )
    return CheckResult.failed(
        check,
        "No GitHub release found",
        "Publish GitHub releases to version the project (release-please, or manually)",
    )


async def check_conventional_commits(check: Check, repo: RepoHandle) -> CheckResult:
    try:
        commits = await repo.list_commits()
    except GatewayError as e:
        return CheckResult.skipped(check, f"Could not fetch commits: {e}")

    if not commits:
        return CheckResult.skipped(check, "No commits found")

    candidates = [c for c in commits if not is_merge_commit(c.message)]
    if not candidates:
        return CheckResult.skipped(check, "Only merge commits found")

    matched = sum(1 for c in candidates if is_conventional_commit(c.message))
    ratio = matched * 100 // len(candidates)
    if ratio >= CONVENTIONAL_COMMIT_THRESHOLD:
        return CheckResult.passed(
            check, f"{matched}/{len(candidates)} conventional commits ({ratio}%)"
        )
    return CheckResult.failed(
        check,
        f"{matched}/{len(candidates)} conventional commits ({ratio}% < {CONVENTIONAL_COMMIT_THRESHOLD}%)",
        "Follow Conventional Commits: feat:, fix:, chore:, ci:, docs:...",
    )

