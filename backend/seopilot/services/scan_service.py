"""
Scan service: runs the pipeline and caches results per commit.
"""
import logging
import uuid
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seopilot.integrations.git import UNKNOWN_COMMIT, get_head_commit
from seopilot.models.scan import CodebaseScan
from seopilot.services.pipeline import ScanReport, SEOPipeline
from seopilot.services.types import CodebaseProfile, PipelineWarning, SEOIssue

logger = logging.getLogger(__name__)


def report_from_scan(scan: CodebaseScan) -> ScanReport:
    return ScanReport(
        profile=CodebaseProfile.from_dict(scan.profile),
        issues=[SEOIssue.from_dict(i) for i in scan.issues or []],
        warnings=[PipelineWarning.from_dict(w) for w in scan.warnings or []],
    )


class ScanService:
    """Owns the profile cache keyed by (repo_id, commit_hash)."""

    def __init__(self, db: AsyncSession, pipeline: SEOPipeline | None = None):
        self.db = db
        self.pipeline = pipeline or SEOPipeline()

    async def get_by_commit(self, repo_id: str, commit_hash: str) -> CodebaseScan | None:
        result = await self.db.execute(
            select(CodebaseScan).where(
                CodebaseScan.repo_id == repo_id,
                CodebaseScan.commit_hash == commit_hash,
            )
        )
        return result.scalar_one_or_none()

    async def get_latest(self, repo_id: str) -> CodebaseScan | None:
        result = await self.db.execute(
            select(CodebaseScan)
            .where(CodebaseScan.repo_id == repo_id)
            .order_by(CodebaseScan.scanned_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def scan(
        self,
        repo_id: str,
        repo_path: str | Path,
        commit_hash: str | None = None,
        force: bool = False,
    ) -> tuple[CodebaseScan, bool]:
        """
        Scan a working tree, reusing the stored result for the same commit.

        Trees without a git commit ("unknown") are always rescanned in place.

        Returns the stored scan and whether it came from the cache.
        """
        commit_hash = commit_hash or await get_head_commit(repo_path)

        existing = await self.get_by_commit(repo_id, commit_hash)
        if existing is not None and not force and commit_hash != UNKNOWN_COMMIT:
            logger.info(f"[SCAN] Using cached scan for {repo_id}@{commit_hash[:8]}")
            return existing, True

        report = await self.pipeline.scan(repo_id, repo_path, commit_hash)

        scan = existing or CodebaseScan(id=uuid.uuid4(), repo_id=repo_id, commit_hash=commit_hash)
        scan.framework = report.profile.framework.value
        scan.scanned_at = report.profile.scanned_at
        scan.profile = report.profile.to_dict()
        scan.issues = [i.to_dict() for i in report.issues]
        scan.warnings = [w.to_dict() for w in report.warnings]
        scan.score = report.summary["score"]
        if existing is None:
            self.db.add(scan)
        await self.db.flush()
        return scan, False
