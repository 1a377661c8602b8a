"""
Change tracking models.

Changes record one applied SEO mutation; daily search metrics are the
signal their impact is measured against.
"""
from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from seopilot.models.base import Base, BaseModel


class Change(Base, BaseModel):
    """A recorded change to a repository. Only measured_impact changes after creation."""

    __tablename__ = "changes"

    repo_id = Column(String(255), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    file = Column(String(1024), nullable=False)
    description = Column(Text, nullable=False, default="")
    commit_sha = Column(String(64), nullable=False)
    affected_pages = Column(JSONB, default=list)
    expected_impact = Column(Text, nullable=False, default="")

    # {clicks_before, clicks_after, measurement_period}
    measured_impact = Column(JSONB(none_as_null=True), nullable=True)
    measured_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Change {self.type} {self.file} @ {self.commit_sha[:8]}>"


class SearchMetricsDaily(Base, BaseModel):
    """One day of search metrics for a repository's site."""

    __tablename__ = "search_metrics_daily"
    __table_args__ = (
        UniqueConstraint("repo_id", "date", name="uq_search_metrics_daily_repo_date"),
    )

    repo_id = Column(String(255), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    clicks = Column(Integer, nullable=False, default=0)
    impressions = Column(Integer, nullable=False, default=0)
    ctr = Column(Float, nullable=False, default=0.0)
    position = Column(Float, nullable=False, default=0.0)

    # [{page, clicks, impressions, ctr, position}]
    pages = Column(JSONB, default=list)
    # [{query, clicks, impressions, ctr, position}]
    queries = Column(JSONB, default=list)

    def __repr__(self) -> str:
        return f"<SearchMetricsDaily {self.repo_id} {self.date} clicks={self.clicks}>"
