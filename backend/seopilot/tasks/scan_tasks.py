"""
Scan Tasks

Background scans of checked-out repositories.
"""
import asyncio
import logging
from typing import Optional

from celery import shared_task

from seopilot.database import get_task_session_maker
from seopilot.services.pipeline import resolve_repo_path
from seopilot.services.scan_service import ScanService

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async code in sync context."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@shared_task(bind=True, max_retries=3)
def scan_repository(self, repo_id: str, repo_path: str, commit_hash: Optional[str] = None, force: bool = False):
    """Profile and analyze a repository under REPOS_ROOT."""
    return run_async(_scan_repository(repo_id, repo_path, commit_hash, force))


async def _scan_repository(repo_id: str, repo_path: str, commit_hash: Optional[str], force: bool) -> dict:
    path = resolve_repo_path(repo_path)

    session_maker = get_task_session_maker()
    async with session_maker() as session:
        scan, cached = await ScanService(session).scan(repo_id, path, commit_hash, force=force)
        await session.commit()

    logger.info(f"[SCAN] Task finished for {repo_id}@{scan.commit_hash[:8]} (cached={cached})")
    return {
        "scan_id": str(scan.id),
        "repo_id": repo_id,
        "commit_hash": scan.commit_hash,
        "cached": cached,
        "score": scan.score,
        "issues": len(scan.issues or []),
    }
