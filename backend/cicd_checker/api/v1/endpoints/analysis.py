"""
Analysis API endpoints.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from typing import Dict
import uuid

from cicd_checker.api.dependencies import get_gateway
from cicd_checker.logger import logger
from cicd_checker.schemas.analysis_request import AnalysisRequest, AnalysisResponse
from cicd_checker.schemas.analysis_result import AnalysisJob, AnalysisResult
from cicd_checker.services.check_engine import CheckEngine, RepoUnreachable
from cicd_checker.services.github_gateway import GitHubGateway
from cicd_checker.services.repo_identifier import InvalidRepositoryError, RepoIdentifier, parse_repo_url

router = APIRouter(tags=["Analysis"])

# In-memory job storage
_jobs: Dict[str, AnalysisJob] = {}


@router.post("", response_model=AnalysisResponse)
async def start_analysis(
    request: AnalysisRequest,
    background_tasks: BackgroundTasks,
    gateway: GitHubGateway = Depends(get_gateway),
):
    """Queue a CI/CD maturity analysis."""
    try:
        repo = parse_repo_url(request.repository)
    except InvalidRepositoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job_id = str(uuid.uuid4())
    _jobs[job_id] = AnalysisJob(job_id=job_id, repository=repo.full_name, status="pending")

    background_tasks.add_task(_run_analysis, job_id, repo, gateway)

    logger.info(f"Started analysis {job_id} for {repo.full_name}")
    return AnalysisResponse(job_id=job_id, status="pending", repository=repo.full_name)


async def _run_analysis(job_id: str, repo: RepoIdentifier, gateway: GitHubGateway):
    """Background task to run the analysis."""
    job = _jobs[job_id]
    job.status = "running"

    try:
        report = await CheckEngine(gateway).analyze(repo)
    except RepoUnreachable as e:
        job.status = "failed"
        job.error = e.reason
        return
    except Exception as e:
        logger.exception(f"Analysis {job_id} failed: {e}")
        job.status = "failed"
        job.error = str(e)
        return

    job.result = AnalysisResult.from_report(report)
    job.status = "completed"
    logger.info(f"Completed analysis {job_id}")


@router.get("/{job_id}", response_model=AnalysisJob)
async def get_analysis(job_id: str):
    """Get analysis status and report."""
    if job_id not in _jobs:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return _jobs[job_id]
