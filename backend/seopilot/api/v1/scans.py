"""
Codebase scan endpoints.
"""
from fastapi import APIRouter

from seopilot.core.deps import DbSession, Pipeline, repo_dir
from seopilot.core.exceptions import NotFoundError
from seopilot.models.scan import CodebaseScan
from seopilot.schemas.common import ErrorResponse, WarningSchema
from seopilot.schemas.scan import ScanRequest, ScanResponse
from seopilot.services.issue_engine import summarize
from seopilot.services.scan_service import ScanService, report_from_scan

router = APIRouter(prefix="/scans", tags=["Scans"])


def scan_response(scan: CodebaseScan, cached: bool = False) -> ScanResponse:
    report = report_from_scan(scan)
    return ScanResponse(
        id=scan.id,
        repo_id=scan.repo_id,
        commit_hash=scan.commit_hash,
        framework=scan.framework,
        scanned_at=scan.scanned_at,
        score=scan.score,
        cached=cached,
        profile=scan.profile,
        issues=list(scan.issues or []),
        warnings=[WarningSchema.from_warning(w) for w in report.warnings],
        summary=summarize(report.issues),
    )


@router.post("", response_model=ScanResponse, responses={400: {"model": ErrorResponse}})
async def create_scan(data: ScanRequest, db: DbSession, pipeline: Pipeline):
    """Profile and analyze a repository, reusing the stored scan for the same commit."""
    path = repo_dir(data.repo_path)
    service = ScanService(db, pipeline)
    scan, cached = await service.scan(data.repo_id, path, data.commit_hash, force=data.force)
    return scan_response(scan, cached)


@router.get("/{repo_id}/latest", response_model=ScanResponse, responses={404: {"model": ErrorResponse}})
async def get_latest_scan(repo_id: str, db: DbSession):
    """Most recent stored scan for a repository."""
    scan = await ScanService(db).get_latest(repo_id)
    if not scan:
        raise NotFoundError("Scan")
    return scan_response(scan, cached=True)
