"""
GitHub Gateway - Async client for the GitHub REST API.

Exposes the typed fetch operations the check evaluators need:
- Repository metadata
- Workflow file listing and file text
- Branch protection
- Workflow runs, releases, commits
- Rate-limit budget of the token

Every failure is raised as a GatewayError subclass so callers can tell
"not there" (NotFoundError) from "could not find out" (everything else).
"""

import asyncio
import base64
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx

from cicd_checker.config import settings
from cicd_checker.logger import logger
from cicd_checker.services.circuit_breaker import RateLimitCircuitBreaker, get_circuit_breaker
from cicd_checker.services.repo_identifier import RepoIdentifier


WORKFLOWS_DIR = ".github/workflows"
USER_AGENT = "cicd-maturity-checker/1.0"


class GatewayError(Exception):
    """Base class for GitHub API failures."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status:
            return f"GitHub API error {self.status}: {self.message}"
        return f"GitHub API error: {self.message}"


class NotFoundError(GatewayError):
    """404 - the resource does not exist (or is hidden from this token)."""


class UnauthorizedError(GatewayError):
    """401/403 - missing token or missing scope."""


class RateLimitedError(GatewayError):
    """429, or 403 with an exhausted rate-limit budget."""


class NetworkError(GatewayError):
    """Transport failure or timeout; no HTTP status available."""


@dataclass(frozen=True)
class RepoMetadata:
    name: str
    full_name: str
    default_branch: str
    private: bool
    description: Optional[str] = None


@dataclass(frozen=True)
class WorkflowFile:
    name: str
    path: str

    @property
    def is_yaml(self) -> bool:
        return self.name.endswith((".yml", ".yaml"))


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    name: Optional[str]
    status: Optional[str]
    conclusion: Optional[str]
    head_branch: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    run_started_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Elapsed time between run start and last update, if known."""
        if self.conclusion is None or self.updated_at is None:
            return None
        started = self.run_started_at or self.created_at
        if started is None:
            return None
        return max((self.updated_at - started).total_seconds(), 0.0)


@dataclass(frozen=True)
class BranchProtection:
    required_pull_request_reviews: Optional[dict] = None
    required_status_checks: Optional[dict] = None
    enforce_admins: bool = False


@dataclass(frozen=True)
class Release:
    tag: str
    name: Optional[str] = None
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str


@dataclass(frozen=True)
class RateLimit:
    limit: int
    remaining: int
    reset_at: Optional[datetime] = None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub's ISO-8601 timestamps (``2024-01-01T12:00:00Z``)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable timestamp from GitHub: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GitHubGateway:
    """Typed, stateless-per-call access to the GitHub REST API.

    Configuration is fixed at construction; the instance is safe to share
    between concurrent evaluators.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        rate_limit_max_wait: Optional[int] = None,
        circuit_breaker: Optional[RateLimitCircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = token if token is not None else settings.GITHUB_TOKEN
        self.base_url = (base_url or settings.GITHUB_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.HTTP_MAX_RETRIES
        self.rate_limit_max_wait = (
            rate_limit_max_wait if rate_limit_max_wait is not None else settings.RATE_LIMIT_MAX_WAIT
        )
        self.circuit_breaker = circuit_breaker or get_circuit_breaker()
        self._transport = transport

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # ── Transport ──

    async def _get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        accept: str = "application/vnd.github+json",
    ) -> httpx.Response:
        """GET a repo-relative API path with retries and status mapping."""
        allowed, reason = self.circuit_breaker.can_call()
        if not allowed:
            raise RateLimitedError(f"GitHub calls paused ({reason})")

        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    headers=self._headers(accept),
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, params=params)
            except httpx.TimeoutException:
                if attempt < self.max_retries:
                    logger.warning(f"GitHub timeout on {path}, retrying (attempt {attempt + 1})")
                    await asyncio.sleep(2 ** attempt)
                    continue
                self.circuit_breaker.record_failure()
                raise NetworkError(f"Timed out calling {path}")
            except httpx.HTTPError as e:
                self.circuit_breaker.record_failure()
                raise NetworkError(f"Network error calling {path}: {e}") from e

            if self._is_rate_limited(response):
                wait = self._rate_limit_wait(response)
                if attempt < self.max_retries and wait is not None and wait <= self.rate_limit_max_wait:
                    logger.warning(f"GitHub rate limited on {path}, waiting {wait}s")
                    await asyncio.sleep(wait)
                    continue
                self.circuit_breaker.record_failure(reset_in=wait)
                raise RateLimitedError(self._error_message(response), response.status_code)

            self.circuit_breaker.record_success()
            self._raise_for_status(response)
            return response

        raise NetworkError(f"GitHub request to {path} failed after retries")

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"

    @staticmethod
    def _rate_limit_wait(response: httpx.Response) -> Optional[int]:
        """Seconds to wait before retrying, from Retry-After or X-RateLimit-Reset."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 0)
            except ValueError:
                return None
        reset = response.headers.get("X-RateLimit-Reset")
        if reset is not None:
            try:
                return max(int(reset) - int(time.time()), 0)
            except ValueError:
                return None
        return None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason_phrase

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        message = self._error_message(response)
        if status == 404:
            raise NotFoundError(message, status)
        if status in (401, 403):
            raise UnauthorizedError(message, status)
        raise GatewayError(message, status)

    @staticmethod
    def _repo_path(repo: RepoIdentifier, suffix: str = "") -> str:
        return f"/repos/{quote(repo.owner)}/{quote(repo.repo)}{suffix}"

    # ── Operations ──

    async def get_repo_metadata(self, repo: RepoIdentifier) -> RepoMetadata:
        """Fetch repository metadata; also serves as the reachability probe."""
        data = (await self._get(self._repo_path(repo))).json()
        return RepoMetadata(
            name=data.get("name", repo.repo),
            full_name=data.get("full_name", repo.full_name),
            default_branch=data.get("default_branch") or "main",
            private=bool(data.get("private", False)),
            description=data.get("description"),
        )

    async def list_workflow_files(self, repo: RepoIdentifier) -> list[WorkflowFile]:
        """List entries of .github/workflows. Raises NotFoundError if the directory is missing."""
        response = await self._get(self._repo_path(repo, f"/contents/{WORKFLOWS_DIR}"))
        data = response.json()
        if not isinstance(data, list):
            # The path is a file, not a directory
            return []
        return [
            WorkflowFile(name=item.get("name", ""), path=item.get("path", ""))
            for item in data
            if item.get("type", "file") == "file"
        ]

    async def get_file_text(self, repo: RepoIdentifier, path: str) -> str:
        """Fetch a file's decoded text content."""
        response = await self._get(self._repo_path(repo, f"/contents/{quote(path.lstrip('/'))}"))
        if "json" not in response.headers.get("Content-Type", ""):
            return response.text

        data = response.json()
        if not isinstance(data, dict):
            raise GatewayError(f"{path} is a directory, not a file", response.status_code)
        if data.get("encoding") == "base64":
            cleaned = data.get("content", "").replace("\n", "").replace("\r", "")
            return base64.b64decode(cleaned).decode("utf-8", errors="replace")
        raise GatewayError(f"No decodable content for {path}", response.status_code)

    async def file_exists(self, repo: RepoIdentifier, path: str) -> bool:
        """Existence probe. Only a 404 means absent; any other failure propagates."""
        try:
            await self._get(self._repo_path(repo, f"/contents/{quote(path.lstrip('/'))}"))
        except NotFoundError:
            return False
        return True

    async def get_branch_protection(self, repo: RepoIdentifier, branch: str) -> BranchProtection:
        """Fetch protection rules. NotFoundError means the branch is unprotected."""
        response = await self._get(
            self._repo_path(repo, f"/branches/{quote(branch, safe='')}/protection")
        )
        data = response.json()
        enforce_admins = data.get("enforce_admins") or {}
        return BranchProtection(
            required_pull_request_reviews=data.get("required_pull_request_reviews"),
            required_status_checks=data.get("required_status_checks"),
            enforce_admins=bool(enforce_admins.get("enabled", False)),
        )

    async def list_workflow_runs(
        self,
        repo: RepoIdentifier,
        branch: Optional[str] = None,
        limit: int = 10,
    ) -> list[WorkflowRun]:
        """Most recent workflow runs, newest first."""
        params: dict[str, Any] = {"per_page": limit}
        if branch:
            params["branch"] = branch
        data = (await self._get(self._repo_path(repo, "/actions/runs"), params=params)).json()
        return [
            WorkflowRun(
                id=run.get("id", 0),
                name=run.get("name"),
                status=run.get("status"),
                conclusion=run.get("conclusion"),
                head_branch=run.get("head_branch"),
                created_at=parse_timestamp(run.get("created_at")),
                updated_at=parse_timestamp(run.get("updated_at")),
                run_started_at=parse_timestamp(run.get("run_started_at")),
            )
            for run in data.get("workflow_runs", [])[:limit]
        ]

    async def list_releases(self, repo: RepoIdentifier, limit: int = 5) -> list[Release]:
        """Most recent releases, newest first."""
        data = (await self._get(self._repo_path(repo, "/releases"), params={"per_page": limit})).json()
        return [
            Release(
                tag=item.get("tag_name", ""),
                name=item.get("name"),
                published_at=parse_timestamp(item.get("published_at")),
            )
            for item in data[:limit]
        ]

    async def list_commits(self, repo: RepoIdentifier, limit: int = 20) -> list[Commit]:
        """Most recent commits on the default branch."""
        data = (await self._get(self._repo_path(repo, "/commits"), params={"per_page": limit})).json()
        return [
            Commit(sha=item.get("sha", ""), message=(item.get("commit") or {}).get("message", ""))
            for item in data[:limit]
        ]

    async def get_rate_limit(self) -> RateLimit:
        """Core API budget of the configured token; this call is not counted against it."""
        data = (await self._get("/rate_limit")).json()
        core = (data.get("resources") or {}).get("core") or data.get("rate") or {}
        reset = core.get("reset")
        return RateLimit(
            limit=int(core.get("limit", 0)),
            remaining=int(core.get("remaining", 0)),
            reset_at=datetime.fromtimestamp(reset, tz=timezone.utc) if reset else None,
        )
