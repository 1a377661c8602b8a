"""
Change tracking and impact measurement.

Every applied fix is recorded as a Change. Once a change has aged past the
dwell period, average daily clicks in the window before it are compared with
the window after it. The change day itself is excluded from both windows.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seopilot.config import settings
from seopilot.core.exceptions import ImpactAlreadyMeasuredError
from seopilot.models.change import Change, SearchMetricsDaily
from seopilot.services.types import ChangeType, CodebaseProfile, CodeFix, MeasuredImpact

logger = logging.getLogger(__name__)

CHANGE_TYPE_DESCRIPTIONS = {
    ChangeType.META_TITLE: "Meta title optimization",
    ChangeType.META_DESCRIPTION: "Meta description optimization",
    ChangeType.OG_TAGS: "Open Graph tags added",
    ChangeType.SCHEMA: "Structured data added",
    ChangeType.SITEMAP: "Sitemap updated",
    ChangeType.ROBOTS: "Robots.txt updated",
    ChangeType.BLOG_PUBLISHED: "New blog post published",
    ChangeType.IMAGE_ADDED: "Image added",
    ChangeType.ALT_TEXT: "Alt text optimized",
    ChangeType.INTERNAL_LINK: "Internal links added",
    ChangeType.CONTENT_UPDATE: "Content updated",
}

# Checked in order; first keyword hit decides the type
CHANGE_TYPE_KEYWORDS: list[tuple[ChangeType, re.Pattern]] = [
    (ChangeType.META_TITLE, re.compile(r"title")),
    (ChangeType.META_DESCRIPTION, re.compile(r"description")),
    (ChangeType.OG_TAGS, re.compile(r"\bog\b|open graph")),
    (ChangeType.SCHEMA, re.compile(r"schema|json-ld|structured data")),
    (ChangeType.SITEMAP, re.compile(r"sitemap")),
    (ChangeType.ROBOTS, re.compile(r"robots")),
    (ChangeType.ALT_TEXT, re.compile(r"\balt\b")),
    (ChangeType.INTERNAL_LINK, re.compile(r"link|anchor")),
]


@dataclass
class ImpactConfig:
    days_before: int = 7
    days_after: int = 7
    min_wait_days: int = 14

    @classmethod
    def from_settings(cls) -> "ImpactConfig":
        return cls(
            days_before=settings.IMPACT_DAYS_BEFORE,
            days_after=settings.IMPACT_DAYS_AFTER,
            min_wait_days=settings.IMPACT_MIN_WAIT_DAYS,
        )


@dataclass
class ChangeInput:
    repo_id: str
    type: ChangeType | str
    file: str
    description: str
    commit_sha: str
    affected_pages: list[str] = field(default_factory=list)
    expected_impact: str = ""


def infer_change_type(description: str) -> ChangeType:
    text = description.lower()
    for change_type, pattern in CHANGE_TYPE_KEYWORDS:
        if pattern.search(text):
            return change_type
    return ChangeType.CONTENT_UPDATE


def change_type_description(change_type: ChangeType | str) -> str:
    try:
        return CHANGE_TYPE_DESCRIPTIONS[ChangeType(change_type)]
    except ValueError:
        return str(change_type)


def calculate_impact_percentage(impact: MeasuredImpact) -> float:
    if impact.clicks_before == 0:
        return 100.0 if impact.clicks_after > 0 else 0.0
    return (impact.clicks_after - impact.clicks_before) / impact.clicks_before * 100


def calculate_average_clicks(metrics: list[SearchMetricsDaily], affected_pages: list[str]) -> float:
    """
    Average daily clicks for the affected pages over the given days.

    Page rows match when their URL contains any affected path. When nothing
    matches, the site-wide daily total is averaged instead.
    """
    if not metrics:
        return 0.0

    total = 0
    matched = 0
    for day in metrics:
        for row in day.pages or []:
            if any(affected in row.get("page", "") for affected in affected_pages):
                total += row.get("clicks", 0)
                matched += 1

    if matched == 0:
        return sum(day.clicks for day in metrics) / len(metrics)
    return total / len(metrics)


def measurement_windows(changed_at: datetime, config: ImpactConfig) -> tuple[tuple[date, date], tuple[date, date]]:
    """Inclusive (before, after) date windows around the change day."""
    day = changed_at.date()
    before = (day - timedelta(days=config.days_before), day - timedelta(days=1))
    after = (day + timedelta(days=1), day + timedelta(days=config.days_after))
    return before, after


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChangeTracker:
    """Records changes and measures their effect on search clicks."""

    def __init__(self, db: AsyncSession, config: ImpactConfig | None = None):
        self.db = db
        self.config = config or ImpactConfig()

    async def track_change(self, data: ChangeInput, timestamp: datetime | None = None) -> Change:
        change = Change(
            id=uuid.uuid4(),
            repo_id=data.repo_id,
            timestamp=timestamp or datetime.now(timezone.utc),
            type=ChangeType(data.type).value,
            file=data.file,
            description=data.description,
            commit_sha=data.commit_sha,
            affected_pages=list(data.affected_pages),
            expected_impact=data.expected_impact,
            measured_impact=None,
            measured_at=None,
        )
        self.db.add(change)
        await self.db.flush()
        logger.info(f"[IMPACT] Tracked {change.type} change {change.id} on {change.file}")
        return change

    async def record_applied_fixes(
        self,
        repo_id: str,
        fixes: list[CodeFix],
        commit_sha: str,
        profile: CodebaseProfile | None = None,
    ) -> list[Change]:
        changes = []
        for fix in fixes:
            page = profile.page_for_file(fix.file) if profile else None
            change_type = infer_change_type(fix.description)
            changes.append(
                await self.track_change(
                    ChangeInput(
                        repo_id=repo_id,
                        type=change_type,
                        file=fix.file,
                        description=fix.description,
                        commit_sha=commit_sha,
                        affected_pages=[page.path] if page else [],
                        expected_impact=change_type_description(change_type),
                    )
                )
            )
        return changes

    async def get_change(self, change_id: uuid.UUID) -> Change | None:
        result = await self.db.execute(select(Change).where(Change.id == change_id))
        return result.scalar_one_or_none()

    async def list_changes(self, repo_id: str | None = None, limit: int = 100) -> list[Change]:
        query = select(Change)
        if repo_id:
            query = query.where(Change.repo_id == repo_id)
        query = query.order_by(Change.timestamp.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_metrics_range(self, repo_id: str, start: date, end: date) -> list[SearchMetricsDaily]:
        result = await self.db.execute(
            select(SearchMetricsDaily)
            .where(
                SearchMetricsDaily.repo_id == repo_id,
                SearchMetricsDaily.date >= start,
                SearchMetricsDaily.date <= end,
            )
            .order_by(SearchMetricsDaily.date)
        )
        return list(result.scalars().all())

    async def record_metrics(self, repo_id: str, day: date, **values) -> SearchMetricsDaily:
        """Insert or replace the metrics row for one day."""
        result = await self.db.execute(
            select(SearchMetricsDaily).where(
                SearchMetricsDaily.repo_id == repo_id, SearchMetricsDaily.date == day
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = SearchMetricsDaily(id=uuid.uuid4(), repo_id=repo_id, date=day)
            self.db.add(row)
        for key, value in values.items():
            setattr(row, key, value)
        await self.db.flush()
        return row

    async def measure_impact(
        self, change_id: uuid.UUID, now: datetime | None = None
    ) -> MeasuredImpact | None:
        """
        Measure a change's impact once.

        Returns None for an unknown change or one still inside the dwell
        period. Raises ImpactAlreadyMeasuredError if it was measured before.
        """
        change = await self.get_change(change_id)
        if change is None:
            logger.warning(f"[IMPACT] Change not found: {change_id}")
            return None
        if change.measured_impact is not None:
            raise ImpactAlreadyMeasuredError(str(change_id))

        now = now or datetime.now(timezone.utc)
        changed_at = _as_utc(change.timestamp)
        elapsed_days = (now - changed_at) // timedelta(days=1)
        if elapsed_days < self.config.min_wait_days:
            logger.debug(
                f"[IMPACT] Change {change_id} is {elapsed_days} days old, "
                f"waiting for {self.config.min_wait_days}"
            )
            return None

        (before_start, before_end), (after_start, after_end) = measurement_windows(changed_at, self.config)
        metrics_before = await self.get_metrics_range(change.repo_id, before_start, before_end)
        metrics_after = await self.get_metrics_range(change.repo_id, after_start, after_end)

        affected = list(change.affected_pages or [])
        impact = MeasuredImpact(
            clicks_before=calculate_average_clicks(metrics_before, affected),
            clicks_after=calculate_average_clicks(metrics_after, affected),
            measurement_period=self.config.days_after,
        )

        change.measured_impact = impact.to_dict()
        change.measured_at = now
        await self.db.flush()

        logger.info(
            f"[IMPACT] Change {change_id}: {impact.clicks_before:.1f} -> {impact.clicks_after:.1f} "
            f"clicks/day ({calculate_impact_percentage(impact):+.1f}%)"
        )
        return impact

    async def measure_pending_impacts(
        self, repo_id: str | None = None, now: datetime | None = None
    ) -> list[MeasuredImpact]:
        """Measure every unmeasured change that has aged past the dwell period."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.config.min_wait_days)

        query = select(Change).where(Change.measured_impact.is_(None), Change.timestamp <= cutoff)
        if repo_id:
            query = query.where(Change.repo_id == repo_id)
        result = await self.db.execute(query.order_by(Change.timestamp))
        pending = list(result.scalars().all())

        impacts = []
        for change in pending:
            impact = await self.measure_impact(change.id, now=now)
            if impact is not None:
                impacts.append(impact)

        logger.info(f"[IMPACT] Measured {len(impacts)} of {len(pending)} pending changes")
        return impacts
