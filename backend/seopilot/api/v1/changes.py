"""
Change tracking, impact measurement and search metrics endpoints.
"""
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from seopilot.core.deps import DbSession
from seopilot.core.exceptions import ConflictError, ImpactAlreadyMeasuredError, NotFoundError
from seopilot.schemas.change import (
    ChangeCreate,
    ChangeResponse,
    DailyMetricsCreate,
    DailyMetricsResponse,
    MeasureImpactResponse,
)
from seopilot.schemas.common import ErrorResponse
from seopilot.services.change_tracker import (
    ChangeInput,
    ChangeTracker,
    ImpactConfig,
    calculate_impact_percentage,
    change_type_description,
    infer_change_type,
)

router = APIRouter(prefix="/changes", tags=["Changes"])
metrics_router = APIRouter(prefix="/metrics", tags=["Metrics"])


def get_tracker(db) -> ChangeTracker:
    return ChangeTracker(db, ImpactConfig.from_settings())


@router.get("", response_model=list[ChangeResponse])
async def list_changes(
    db: DbSession,
    repo_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
):
    """Changes, newest first."""
    changes = await get_tracker(db).list_changes(repo_id, limit)
    return [ChangeResponse.model_validate(c) for c in changes]


@router.post("", response_model=ChangeResponse, status_code=status.HTTP_201_CREATED)
async def create_change(data: ChangeCreate, db: DbSession):
    """Record a change. The type is inferred from the description when omitted."""
    change_type = data.type or infer_change_type(data.description)
    change = await get_tracker(db).track_change(
        ChangeInput(
            repo_id=data.repo_id,
            type=change_type,
            file=data.file,
            description=data.description,
            commit_sha=data.commit_sha,
            affected_pages=data.affected_pages,
            expected_impact=data.expected_impact or change_type_description(change_type),
        ),
        timestamp=data.timestamp,
    )
    return ChangeResponse.model_validate(change)


@router.get("/{change_id}", response_model=ChangeResponse, responses={404: {"model": ErrorResponse}})
async def get_change(change_id: UUID, db: DbSession):
    change = await get_tracker(db).get_change(change_id)
    if not change:
        raise NotFoundError("Change")
    return ChangeResponse.model_validate(change)


@router.post(
    "/{change_id}/measure",
    response_model=MeasureImpactResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def measure_change(change_id: UUID, db: DbSession):
    """Measure impact once the change has aged past the dwell period."""
    tracker = get_tracker(db)
    if not await tracker.get_change(change_id):
        raise NotFoundError("Change")

    try:
        impact = await tracker.measure_impact(change_id)
    except ImpactAlreadyMeasuredError as e:
        raise ConflictError(str(e)) from e

    if impact is None:
        return MeasureImpactResponse(change_id=change_id, measured=False)
    return MeasureImpactResponse(
        change_id=change_id,
        measured=True,
        impact=impact.to_dict(),
        impact_percentage=round(calculate_impact_percentage(impact), 2),
    )


@metrics_router.post("", response_model=DailyMetricsResponse, status_code=status.HTTP_201_CREATED)
async def record_metrics(data: DailyMetricsCreate, db: DbSession):
    """Insert or replace one day of search metrics."""
    row = await get_tracker(db).record_metrics(
        data.repo_id,
        data.date,
        clicks=data.clicks,
        impressions=data.impressions,
        ctr=data.ctr,
        position=data.position,
        pages=[p.model_dump() for p in data.pages],
        queries=[q.model_dump() for q in data.queries],
    )
    return DailyMetricsResponse.model_validate(row)


@metrics_router.get("", response_model=list[DailyMetricsResponse])
async def list_metrics(repo_id: str, start: date, end: date, db: DbSession):
    rows = await get_tracker(db).get_metrics_range(repo_id, start, end)
    return [DailyMetricsResponse.model_validate(r) for r in rows]
