"""
Pydantic schemas for analysis requests.
"""

from pydantic import BaseModel, Field


class AnalysisRequest(BaseModel):
    """Request to start a CI/CD maturity analysis."""
    repository: str = Field(..., description="owner/repo or https://github.com/owner/repo URL")

    model_config = {
        "json_schema_extra": {
            "example": {
                "repository": "https://github.com/octocat/Hello-World"
            }
        }
    }


class AnalysisResponse(BaseModel):
    """Acknowledgement returned when an analysis job is queued."""
    job_id: str
    status: str
    repository: str
