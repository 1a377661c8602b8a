"""
Scan schemas.
"""
from datetime import datetime

from pydantic import Field

from seopilot.schemas.common import BaseSchema, IDSchema, WarningSchema


class ScanRequest(BaseSchema):
    """Scan a repository checked out under REPOS_ROOT."""

    repo_id: str = Field(min_length=1, max_length=255)
    repo_path: str = Field(min_length=1, description="Directory relative to REPOS_ROOT")
    commit_hash: str | None = Field(default=None, max_length=64)
    force: bool = False


class ScanResponse(IDSchema):
    """Stored scan with its profile and issues."""

    repo_id: str
    commit_hash: str
    framework: str
    scanned_at: datetime
    score: int | None = None
    cached: bool = False
    profile: dict
    issues: list[dict] = []
    warnings: list[WarningSchema] = []
    summary: dict = {}
