"""
Fix endpoints: apply CodeFix batches and plan site-global fixes.
"""
from fastapi import APIRouter

from seopilot.core.deps import DbSession, Pipeline, Registry, repo_dir
from seopilot.core.exceptions import NotFoundError
from seopilot.schemas.common import ErrorResponse, WarningSchema
from seopilot.schemas.fix import (
    CodeFixSchema,
    FixApplyRequest,
    FixApplyResponse,
    FixPlanRequest,
    FixPlanResponse,
)
from seopilot.services.change_tracker import ChangeTracker, ImpactConfig
from seopilot.services.fix_planner import GlobalFixPlanner
from seopilot.services.scan_service import ScanService, report_from_scan

router = APIRouter(prefix="/fixes", tags=["Fixes"])


@router.post("/apply", response_model=FixApplyResponse, responses={400: {"model": ErrorResponse}})
async def apply_fixes(data: FixApplyRequest, db: DbSession, pipeline: Pipeline):
    """
    Apply fixes to a repository working tree.

    Danger zones from the latest scan are enforced when one exists. Applied
    fixes are recorded as changes when a commit_sha is given.
    """
    path = repo_dir(data.repo_path)
    latest = await ScanService(db).get_latest(data.repo_id)
    profile = report_from_scan(latest).profile if latest else None

    result = await pipeline.fix(path, [f.to_fix() for f in data.fixes], profile)

    changes = []
    if data.commit_sha and result.applied:
        tracker = ChangeTracker(db, ImpactConfig.from_settings())
        changes = await tracker.record_applied_fixes(data.repo_id, result.applied, data.commit_sha, profile)

    return FixApplyResponse(
        applied=[CodeFixSchema.from_fix(f) for f in result.applied],
        skipped=[CodeFixSchema.from_fix(f) for f in result.skipped],
        warnings=[WarningSchema.from_warning(w) for w in result.warnings],
        changes_recorded=len(changes),
    )


@router.post("/plan", response_model=FixPlanResponse, responses={404: {"model": ErrorResponse}})
async def plan_fixes(data: FixPlanRequest, db: DbSession, registry: Registry):
    """Sitemap, robots.txt and site schema fixes for the latest scan's issues."""
    latest = await ScanService(db).get_latest(data.repo_id)
    if not latest:
        raise NotFoundError("Scan")

    report = report_from_scan(latest)
    planner = GlobalFixPlanner(registry, data.domain, data.site_name or data.repo_id)
    fixes = planner.plan(report.profile, report.issues)
    return FixPlanResponse(
        repo_id=data.repo_id,
        commit_hash=latest.commit_hash,
        fixes=[CodeFixSchema.from_fix(f) for f in fixes],
    )
