"""
Pytest configuration and shared fixtures.

The fake gateway mirrors GitHubGateway's operations over in-memory data so
evaluators and the engine can be tested without HTTP.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from cicd_checker.services.checks.catalog import all_checks
from cicd_checker.services.checks.models import Check, CheckId
from cicd_checker.services.checks.repo_handle import RepoHandle
from cicd_checker.services.github_gateway import (
    BranchProtection,
    Commit,
    NotFoundError,
    RateLimit,
    Release,
    RepoMetadata,
    WorkflowFile,
    WorkflowRun,
)
from cicd_checker.services.repo_identifier import RepoIdentifier


REPO = RepoIdentifier("octo", "demo")


class FakeGateway:
    """In-memory stand-in for GitHubGateway.

    ``files`` maps repository paths to their text; workflow files are the
    entries under ``.github/workflows/``. ``errors`` maps an operation name
    to the exception it should raise.
    """

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        protection: Optional[BranchProtection] = None,
        runs: Optional[List[WorkflowRun]] = None,
        releases: Optional[List[Release]] = None,
        commits: Optional[List[Commit]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        default_branch: str = "main",
        rate_limit: Optional[RateLimit] = None,
        authenticated: bool = True,
    ):
        self.files = dict(files or {})
        self.protection = protection
        self.runs = list(runs or [])
        self.releases = list(releases or [])
        self.commits = list(commits or [])
        self.errors = dict(errors or {})
        self.default_branch = default_branch
        self.rate_limit = rate_limit or RateLimit(limit=5000, remaining=4999)
        self.authenticated = authenticated
        self.calls: Dict[str, int] = {}

    def _enter(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if operation in self.errors:
            raise self.errors[operation]

    async def get_repo_metadata(self, repo: RepoIdentifier) -> RepoMetadata:
        self._enter("get_repo_metadata")
        return RepoMetadata(
            name=repo.repo,
            full_name=repo.full_name,
            default_branch=self.default_branch,
            private=False,
        )

    async def list_workflow_files(self, repo: RepoIdentifier) -> List[WorkflowFile]:
        self._enter("list_workflow_files")
        entries = [
            WorkflowFile(name=path.rsplit("/", 1)[-1], path=path)
            for path in sorted(self.files)
            if path.startswith(".github/workflows/")
        ]
        if not entries:
            raise NotFoundError("Not Found", 404)
        return entries

    async def get_file_text(self, repo: RepoIdentifier, path: str) -> str:
        self._enter("get_file_text")
        if path not in self.files:
            raise NotFoundError("Not Found", 404)
        return self.files[path]

    async def file_exists(self, repo: RepoIdentifier, path: str) -> bool:
        self._enter("file_exists")
        return path in self.files

    async def get_branch_protection(self, repo: RepoIdentifier, branch: str) -> BranchProtection:
        self._enter("get_branch_protection")
        if self.protection is None:
            raise NotFoundError("Branch not protected", 404)
        return self.protection

    async def list_workflow_runs(self, repo: RepoIdentifier, branch=None, limit: int = 10) -> List[WorkflowRun]:
        self._enter("list_workflow_runs")
        return self.runs[:limit]

    async def list_releases(self, repo: RepoIdentifier, limit: int = 5) -> List[Release]:
        self._enter("list_releases")
        return self.releases[:limit]

    async def list_commits(self, repo: RepoIdentifier, limit: int = 20) -> List[Commit]:
        self._enter("list_commits")
        return self.commits[:limit]

    async def get_rate_limit(self) -> RateLimit:
        self._enter("get_rate_limit")
        return self.rate_limit


def make_run(conclusion: Optional[str] = "success", minutes: float = 3, name: str = "CI", run_id: int = 1) -> WorkflowRun:
    started = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return WorkflowRun(
        id=run_id,
        name=name,
        status="completed" if conclusion else "in_progress",
        conclusion=conclusion,
        head_branch="main",
        created_at=started,
        run_started_at=started,
        updated_at=started + timedelta(minutes=minutes),
    )


@pytest.fixture
def gateway_factory():
    """Build a FakeGateway; ``workflow`` is stored as .github/workflows/ci.yml."""
    def _make(workflow: Optional[str] = None, **kwargs) -> FakeGateway:
        files = dict(kwargs.pop("files", {}) or {})
        if workflow is not None:
            files[".github/workflows/ci.yml"] = workflow
        return FakeGateway(files=files, **kwargs)
    return _make


MATURE_WORKFLOW = """\
name: CI
on:
  push:
    branches: [main]
  pull_request:
jobs:
  test:
    runs-on: ubuntu-latest
    strategy:
      matrix:
        python-version: ["3.11", "3.12"]
    steps:
      - uses: actions/setup-python@v5
        with:
          python-version: ${{ matrix.python-version }}
          cache: pip
      - run: ruff check .
      - run: pytest --cov
      - uses: codecov/codecov-action@v4
      - uses: github/codeql-action/analyze@v3
  image:
    runs-on: ubuntu-latest
    steps:
      - uses: docker/build-push-action@v5
        with:
          push: true
          tags: ghcr.io/octo/demo:latest
  deploy-staging:
    environment: staging
    runs-on: ubuntu-latest
    steps:
      - run: ./deploy.sh staging
      - run: ./smoke.sh
  deploy-production:
    environment: production
    runs-on: ubuntu-latest
    steps:
      - run: ./deploy.sh production || ./rollback.sh
      - uses: 8398a7/action-slack@v3
  release:
    runs-on: ubuntu-latest
    steps:
      - uses: googleapis/release-please-action@v4
"""


@pytest.fixture
def mature_gateway(gateway_factory):
    """Build a FakeGateway for a repository that satisfies every check."""
    def _make(**overrides) -> FakeGateway:
        kwargs = dict(
            files={
                ".github/workflows/reusable.yml": "on:\n  workflow_call:\n",
                "README.md": "# Demo",
                "Dockerfile": "FROM python:3.12",
                ".gitignore": "__pycache__/",
                ".github/CODEOWNERS": "* @octo",
                ".github/dependabot.yml": "version: 2",
            },
            protection=BranchProtection(required_pull_request_reviews={"required_approving_review_count": 1}),
            runs=[make_run("success", minutes=3, run_id=i) for i in range(3)],
            releases=[Release(tag="v1.0.0")],
            commits=[
                Commit(sha="a", message="feat: add login"),
                Commit(sha="b", message="fix(api): handle errors"),
                Commit(sha="c", message="Merge pull request #3 from octo/x"),
                Commit(sha="d", message="ci: cache pip"),
            ],
        )
        kwargs.update(overrides)
        return gateway_factory(MATURE_WORKFLOW, **kwargs)
    return _make


@pytest.fixture
def handle_factory(gateway_factory):
    """Build a RepoHandle over a FakeGateway."""
    def _make(workflow: Optional[str] = None, **kwargs) -> RepoHandle:
        gateway = gateway_factory(workflow, **kwargs)
        return RepoHandle(gateway, REPO, default_branch=gateway.default_branch)
    return _make


@pytest.fixture
def run_factory():
    return make_run


@pytest.fixture
def catalog_check():
    """Look up a catalog entry by id."""
    checks = {c.id: c for c in all_checks()}

    def _get(check_id: CheckId) -> Check:
        return checks[check_id]
    return _get
