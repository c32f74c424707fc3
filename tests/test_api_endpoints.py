"""
Tests for the HTTP API using FastAPI's TestClient.

Background tasks run before TestClient returns, so a job is finished by the
time its id comes back.
"""

import pytest
from fastapi.testclient import TestClient

from cicd_checker.api.dependencies import get_gateway
from cicd_checker.main import app
from cicd_checker.services.github_gateway import NotFoundError, RateLimit, RateLimitedError


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_gateway():
    def _use(gateway):
        app.dependency_overrides[get_gateway] = lambda: gateway
        return gateway
    return _use


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_detailed_health(self, client, use_gateway, gateway_factory):
        use_gateway(gateway_factory())
        data = client.get("/api/v1/health/detailed").json()
        assert data["status"] == "ok"
        assert data["github"]["token_configured"] is True
        assert data["github"]["rate_limit"] == {"limit": 5000, "remaining": 4999, "reset_at": None}
        assert data["catalog"] == {"version": "2.0", "checks": 29}
        assert data["circuit_breaker"]["state"] in ("closed", "open", "half_open")

    def test_detailed_health_degraded(self, client, use_gateway, gateway_factory):
        use_gateway(gateway_factory(errors={"get_rate_limit": RateLimitedError("paused")}))
        data = client.get("/api/v1/health/detailed").json()
        assert data["status"] == "degraded"
        assert data["github"]["rate_limit"] is None

    def test_spent_budget_is_degraded(self, client, use_gateway, gateway_factory):
        use_gateway(gateway_factory(rate_limit=RateLimit(limit=60, remaining=0), authenticated=False))
        data = client.get("/api/v1/health/detailed").json()
        assert data["status"] == "degraded"
        assert data["github"]["token_configured"] is False

    def test_root(self, client):
        data = client.get("/").json()
        assert data["catalog_version"] == "2.0"
        assert data["docs"] == "/docs"


class TestAnalysisEndpoints:

    def test_invalid_repository_is_rejected(self, client, use_gateway, mature_gateway):
        use_gateway(mature_gateway())
        response = client.post("/api/v1/analysis", json={"repository": "not-a-repo"})
        assert response.status_code == 400

    def test_missing_repository_field(self, client):
        response = client.post("/api/v1/analysis", json={})
        assert response.status_code == 422

    def test_unknown_job(self, client):
        response = client.get("/api/v1/analysis/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "Analysis not found"

    def test_analysis_completes(self, client, use_gateway, mature_gateway):
        use_gateway(mature_gateway())

        response = client.post("/api/v1/analysis", json={"repository": "https://github.com/octo/demo"})
        assert response.status_code == 200
        queued = response.json()
        assert queued["status"] == "pending"
        assert queued["repository"] == "octo/demo"

        job = client.get(f"/api/v1/analysis/{queued['job_id']}").json()
        assert job["status"] == "completed"
        assert job["error"] is None

        result = job["result"]
        assert result["total_score"] == result["max_score"] == 185
        assert result["grade"] == "Excellent"
        assert [c["label"] for c in result["categories"]] == ["Fundamentals", "Intermediate", "Advanced", "Bonus"]
        first = result["categories"][0]["results"][0]
        assert first["id"] == "pipeline_exists"
        assert first["status"] == "passed"
        assert first["points_earned"] == first["points_possible"] == 5

    def test_unreachable_repository_fails_job(self, client, use_gateway, gateway_factory):
        use_gateway(gateway_factory(errors={"get_repo_metadata": NotFoundError("Not Found", 404)}))

        job_id = client.post("/api/v1/analysis", json={"repository": "octo/missing"}).json()["job_id"]
        job = client.get(f"/api/v1/analysis/{job_id}").json()

        assert job["status"] == "failed"
        assert "not found" in job["error"]
        assert job["result"] is None
