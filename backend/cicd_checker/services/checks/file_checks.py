"""
File-existence checks - pass when a file is found at any accepted location.
"""
from typing import Sequence

from cicd_checker.services.checks.models import Check, CheckResult
from cicd_checker.services.checks.repo_handle import RepoHandle


README_PATHS = ("README.md", "README.rst", "README")
DOCKERFILE_PATHS = ("Dockerfile", "docker/Dockerfile")
GITIGNORE_PATHS = (".gitignore",)
CODEOWNERS_PATHS = ("CODEOWNERS", ".github/CODEOWNERS", "docs/CODEOWNERS")
DEPENDABOT_PATHS = (".github/dependabot.yml", ".github/dependabot.yaml")
RENOVATE_PATHS = ("renovate.json", ".github/renovate.json", "renovate.json5", ".renovaterc")


async def _check_paths(check: Check, repo: RepoHandle, paths: Sequence[str], fix: str) -> CheckResult:
    found = await repo.first_existing(paths)
    if found:
        return CheckResult.passed(check, f"Found {found}")
    return CheckResult.failed(check, f"{paths[0]} not found", fix)


async def check_readme(check: Check, repo: RepoHandle) -> CheckResult:
    return await _check_paths(
        check, repo, README_PATHS,
        "Add a README.md at the repository root describing the project and how to build it",
    )


async def check_dockerfile(check: Check, repo: RepoHandle) -> CheckResult:
    return await _check_paths(
        check, repo, DOCKERFILE_PATHS,
        "Add a Dockerfile at the repository root to containerize the application",
    )


async def check_gitignore(check: Check, repo: RepoHandle) -> CheckResult:
    return await _check_paths(
        check, repo, GITIGNORE_PATHS,
        "Add a .gitignore suited to your language to keep build artifacts out of git",
    )


async def check_codeowners(check: Check, repo: RepoHandle) -> CheckResult:
    return await _check_paths(
        check, repo, CODEOWNERS_PATHS,
        "Add a CODEOWNERS file to assign reviewers automatically",
    )


async def check_dependabot(check: Check, repo: RepoHandle) -> CheckResult:
    dependabot = await repo.first_existing(DEPENDABOT_PATHS)
    if dependabot:
        return CheckResult.passed(check, f"Dependabot configured ({dependabot})")

    renovate = await repo.first_existing(RENOVATE_PATHS)
    if renovate:
        return CheckResult.passed(check, f"Renovate configured ({renovate})")

    return CheckResult.failed(
        check,
        "Neither Dependabot nor Renovate is configured",
        f"Add {DEPENDABOT_PATHS[0]} to automate dependency updates",
    )
