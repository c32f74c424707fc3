"""
Health check endpoints.

The detailed view reports what an analysis depends on: the GitHub token and
its remaining API budget, plus the rate-limit circuit breaker.
"""

from fastapi import APIRouter, Depends

from cicd_checker.api.dependencies import get_gateway
from cicd_checker.logger import logger
from cicd_checker.services.checks.catalog import CATALOG_VERSION, all_checks
from cicd_checker.services.circuit_breaker import get_circuit_breaker
from cicd_checker.services.github_gateway import GatewayError, GitHubGateway

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "ok"}


@router.get("/health/detailed")
async def detailed_health(gateway: GitHubGateway = Depends(get_gateway)):
    """GitHub budget, catalog and circuit breaker status.

    Status is "degraded" when GitHub cannot be queried or the budget is spent.
    """
    status = "ok"
    try:
        budget = await gateway.get_rate_limit()
    except GatewayError as e:
        logger.warning(f"GitHub rate limit lookup failed: {e}")
        rate_limit = None
        status = "degraded"
    else:
        rate_limit = {
            "limit": budget.limit,
            "remaining": budget.remaining,
            "reset_at": budget.reset_at.isoformat() if budget.reset_at else None,
        }
        if budget.remaining == 0:
            status = "degraded"

    return {
        "status": status,
        "github": {
            "token_configured": gateway.authenticated,
            "rate_limit": rate_limit,
        },
        "catalog": {
            "version": CATALOG_VERSION,
            "checks": len(all_checks()),
        },
        "circuit_breaker": get_circuit_breaker().get_status(),
    }
