"""
Stored codebase scans.

A scan is keyed by (repo_id, commit_hash); a new commit means a new scan.
"""
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from seopilot.models.base import Base, BaseModel


class CodebaseScan(Base, BaseModel):
    """Profile and issues for one commit of one repository."""

    __tablename__ = "codebase_scans"
    __table_args__ = (
        UniqueConstraint("repo_id", "commit_hash", name="uq_codebase_scans_repo_commit"),
    )

    repo_id = Column(String(255), nullable=False, index=True)
    commit_hash = Column(String(64), nullable=False)
    framework = Column(String(50), nullable=False)
    scanned_at = Column(DateTime(timezone=True), nullable=False, index=True)

    profile = Column(JSONB, nullable=False)
    issues = Column(JSONB, default=list)
    warnings = Column(JSONB, default=list)
    score = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<CodebaseScan {self.repo_id}@{self.commit_hash[:8]} {self.framework}>"
