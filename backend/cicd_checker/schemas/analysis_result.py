"""
Pydantic schemas for analysis responses.

Every aggregate is precomputed so consumers render without re-deriving sums.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from cicd_checker.services.checks.models import CategoryScore, CheckResult, ScoreReport


class CheckResultSchema(BaseModel):
    """Individual check result."""
    id: str
    name: str
    description: str
    category: str
    status: Literal["passed", "failed", "warning", "skipped"]
    points_earned: int
    points_possible: int
    detail: str
    suggestion: Optional[str] = None

    @classmethod
    def from_result(cls, result: CheckResult) -> "CheckResultSchema":
        check = result.check
        return cls(
            id=check.id.value,
            name=check.name,
            description=check.description,
            category=check.category.value,
            status=result.status.value,
            points_earned=result.points_earned,
            points_possible=check.weight,
            detail=result.detail,
            suggestion=result.suggestion,
        )


class CategoryScoreSchema(BaseModel):
    """Score breakdown for one category."""
    category: str
    label: str
    earned: int = Field(..., ge=0)
    max: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    passed: int
    total: int
    results: list[CheckResultSchema] = []

    @classmethod
    def from_score(cls, score: CategoryScore) -> "CategoryScoreSchema":
        return cls(
            category=score.category.value,
            label=score.category.label,
            earned=score.earned,
            max=score.max,
            percentage=score.percentage,
            passed=score.passed,
            total=score.total,
            results=[CheckResultSchema.from_result(r) for r in score.results],
        )


class AnalysisResult(BaseModel):
    """Complete analysis report."""
    repository: str
    total_score: int = Field(..., ge=0)
    max_score: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    grade: str
    passed: int
    total: int
    categories: list[CategoryScoreSchema] = []
    analyzed_at: str

    @classmethod
    def from_report(cls, report: ScoreReport) -> "AnalysisResult":
        return cls(
            repository=report.repository,
            total_score=report.total_score,
            max_score=report.max_score,
            percentage=report.percentage,
            grade=report.grade,
            passed=report.passed,
            total=report.total,
            categories=[CategoryScoreSchema.from_score(c) for c in report.categories],
            analyzed_at=report.analyzed_at,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "repository": "octocat/Hello-World",
                "total_score": 120,
                "max_score": 175,
                "percentage": 68.6,
                "grade": "Needs improvement",
                "passed": 19,
                "total": 27,
                "categories": [],
                "analyzed_at": "2024-01-01T12:00:00Z"
            }
        }
    }


class AnalysisJob(BaseModel):
    """Status of a queued analysis."""
    job_id: str
    repository: str
    status: Literal["pending", "running", "completed", "failed"]
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
