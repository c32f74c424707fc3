import asyncio
import os
import sys

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "backend")))

from cicd_checker.schemas.analysis_result import AnalysisResult
from cicd_checker.services.check_engine import CheckEngine, RepoUnreachable
from cicd_checker.services.github_gateway import GitHubGateway
from cicd_checker.services.repo_identifier import InvalidRepositoryError


async def main(repository: str) -> int:
    print(f"Running analysis for {repository}...", file=sys.stderr)

    engine = CheckEngine(GitHubGateway())
    try:
        report = await engine.analyze(repository)
    except (InvalidRepositoryError, RepoUnreachable) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(AnalysisResult.from_report(report).model_dump_json(indent=2))
    print(
        f"Score: {report.total_score}/{report.max_score} ({report.percentage}%) - {report.grade}",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: run_analysis.py <owner/repo | github URL>", file=sys.stderr)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
