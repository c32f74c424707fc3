"""
Shared FastAPI dependencies.
"""
from cicd_checker.services.github_gateway import GitHubGateway


def get_gateway() -> GitHubGateway:
    """Gateway configured from settings; overridden in tests."""
    return GitHubGateway()
