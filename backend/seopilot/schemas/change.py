"""
Change and search metrics schemas.
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from seopilot.schemas.common import BaseSchema, IDSchema
from seopilot.services.types import ChangeType


class ChangeCreate(BaseSchema):
    """Record a change made outside the fix applier."""

    repo_id: str = Field(min_length=1, max_length=255)
    type: ChangeType | None = Field(default=None, description="Inferred from the description when omitted")
    file: str
    description: str
    commit_sha: str = Field(min_length=1, max_length=64)
    affected_pages: list[str] = []
    expected_impact: str | None = None
    timestamp: datetime | None = None


class ChangeResponse(IDSchema):
    repo_id: str
    timestamp: datetime
    type: str
    file: str
    description: str
    commit_sha: str
    affected_pages: list[str] = []
    expected_impact: str
    measured_impact: dict | None = None
    measured_at: datetime | None = None


class MeasureImpactResponse(BaseSchema):
    change_id: UUID
    measured: bool
    impact: dict | None = None
    impact_percentage: float | None = None


class PageMetrics(BaseSchema):
    page: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0


class QueryMetrics(BaseSchema):
    query: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0


class DailyMetricsCreate(BaseSchema):
    """One day of search metrics for a repository's site."""

    repo_id: str = Field(min_length=1, max_length=255)
    date: date
    clicks: int = Field(default=0, ge=0)
    impressions: int = Field(default=0, ge=0)
    ctr: float = 0.0
    position: float = 0.0
    pages: list[PageMetrics] = []
    queries: list[QueryMetrics] = []


class DailyMetricsResponse(IDSchema):
    repo_id: str
    date: date
    clicks: int
    impressions: int
    ctr: float
    position: float
    pages: list[dict] = []
    queries: list[dict] = []
