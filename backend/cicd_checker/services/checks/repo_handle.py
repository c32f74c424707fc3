"""
Repository handle - the gateway bound to one repository for one analysis.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from cicd_checker.logger import logger
from cicd_checker.services.github_gateway import (
    BranchProtection,
    Commit,
    GatewayError,
    GitHubGateway,
    NotFoundError,
    Release,
    WorkflowFile,
    WorkflowRun,
)
from cicd_checker.services.repo_identifier import RepoIdentifier

# Largest run sample any evaluator asks for
RUN_SAMPLE_SIZE = 10


class RepoHandle:
    """Read-only view of one repository handed to every evaluator.

    Data several checks share (the workflow listing, the recent runs and the
    concatenated workflow text) is fetched once per handle. The outcome, data
    or gateway error, is reused by every check of the run.
    """

    def __init__(
        self,
        gateway: GitHubGateway,
        repo: RepoIdentifier,
        default_branch: str = "main",
        commit_sample_size: int = 20,
    ):
        self.gateway = gateway
        self.repo = repo
        self.default_branch = default_branch
        self.commit_sample_size = commit_sample_size
        self._cache: Dict[str, Tuple[Any, Optional[GatewayError]]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def full_name(self) -> str:
        return self.repo.full_name

    async def _memoized(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key not in self._cache:
                try:
                    self._cache[key] = (await fetch(), None)
                except GatewayError as e:
                    self._cache[key] = (None, e)
            value, error = self._cache[key]
        if error is not None:
            raise error
        return value

    async def list_workflow_files(self) -> List[WorkflowFile]:
        return await self._memoized(
            "workflow_files", lambda: self.gateway.list_workflow_files(self.repo)
        )

    async def get_file_text(self, path: str) -> str:
        return await self.gateway.get_file_text(self.repo, path)

    async def file_exists(self, path: str) -> bool:
        return await self.gateway.file_exists(self.repo, path)

    async def first_existing(self, paths: Iterable[str]) -> Optional[str]:
        """Return the first path that exists, probing in order."""
        for path in paths:
            if await self.file_exists(path):
                return path
        return None

    async def get_branch_protection(self) -> BranchProtection:
        return await self.gateway.get_branch_protection(self.repo, self.default_branch)

    async def list_workflow_runs(self, limit: int = RUN_SAMPLE_SIZE) -> List[WorkflowRun]:
        """Latest runs on the default branch, newest first, at most RUN_SAMPLE_SIZE."""
        runs = await self._memoized(
            "workflow_runs",
            lambda: self.gateway.list_workflow_runs(
                self.repo, branch=self.default_branch, limit=RUN_SAMPLE_SIZE
            ),
        )
        return runs[:limit]

    async def list_releases(self, limit: int = 5) -> List[Release]:
        return await self.gateway.list_releases(self.repo, limit=limit)

    async def list_commits(self) -> List[Commit]:
        return await self.gateway.list_commits(self.repo, limit=self.commit_sample_size)

    async def workflow_text(self) -> str:
        """Concatenated text of every workflow YAML file; empty if there is no workflow directory."""
        return await self._memoized("workflow_text", self._load_workflow_text)

    async def _load_workflow_text(self) -> str:
        try:
            files = await self.list_workflow_files()
        except NotFoundError:
            logger.debug(f"{self.full_name}: no workflow directory")
            return ""

        chunks = []
        for workflow in files:
            if not workflow.is_yaml:
                continue
            try:
                chunks.append(await self.get_file_text(workflow.path))
            except NotFoundError:
                # Removed between listing and fetch
                continue
        return "\n".join(chunks) + ("\n" if chunks else "")
