"""
Repository identifier parsing.

Accepts ``owner/repo`` or a github.com URL (https, ssh or scheme-less).
"""
import re
from dataclasses import dataclass

GITHUB_HOSTS = ("github.com", "www.github.com")


class InvalidRepositoryError(ValueError):
    """Raised when a string cannot be turned into an owner/repo pair."""


@dataclass(frozen=True)
class RepoIdentifier:
    """Owner/repo pair for a GitHub repository."""
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.full_name


def _is_url(value: str) -> bool:
    lowered = value.lower()
    return "://" in value or "@" in value or lowered.startswith(tuple(f"{h}/" for h in GITHUB_HOSTS))


def _path_after_host(value: str, url: str) -> str:
    """Strip scheme, user and host, leaving the path. The host must be github.com."""
    rest = url.split("://", 1)[-1]
    if "@" in rest.split("/", 1)[0]:
        rest = rest.split("@", 1)[1]  # git@github.com:owner/repo
    pieces = re.split(r"[/:]", rest, maxsplit=1)
    host = pieces[0].lower()
    path = pieces[1] if len(pieces) > 1 else ""
    if host not in GITHUB_HOSTS or not path.strip("/"):
        raise InvalidRepositoryError(f"Invalid GitHub URL: {value!r}")
    return path


def parse_repo_url(value: str) -> RepoIdentifier:
    """Parse ``owner/repo`` or a github.com URL into a RepoIdentifier.

    Trailing slashes, a trailing ``.git`` and extra path segments
    (``/tree/main``, ``/actions``...) are dropped. Short forms are never
    searched for a host, so ``owner/name.github.com`` is a repository name.

    Raises:
        InvalidRepositoryError: if the URL is not on github.com or fewer
            than two path segments remain.
    """
    url = (value or "").strip().rstrip("/")

    if _is_url(url):
        url = _path_after_host(value, url)

    # Drop query strings and fragments copied from the browser
    url = url.split("?", 1)[0].split("#", 1)[0]
    parts = [p for p in url.split("/") if p]

    if len(parts) < 2:
        raise InvalidRepositoryError(f"Repository must be in owner/repo form, got {value!r}")

    owner = parts[0]
    repo = parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    if not owner or not repo:
        raise InvalidRepositoryError("Owner and repository name cannot be empty")

    return RepoIdentifier(owner=owner, repo=repo)
