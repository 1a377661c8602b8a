"""
Impact Tasks

Periodic measurement of tracked changes against search metrics.
"""
import asyncio
import logging
from typing import Optional
from uuid import UUID

from celery import shared_task

from seopilot.core.exceptions import ImpactAlreadyMeasuredError
from seopilot.database import get_task_session_maker
from seopilot.services.change_tracker import ChangeTracker, ImpactConfig

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async code in sync context."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@shared_task(bind=True)
def measure_pending_impacts(self, repo_id: Optional[str] = None):
    """Measure every change that has aged past the dwell period."""
    return run_async(_measure_pending_impacts(repo_id))


async def _measure_pending_impacts(repo_id: Optional[str]) -> dict:
    session_maker = get_task_session_maker()
    async with session_maker() as session:
        tracker = ChangeTracker(session, ImpactConfig.from_settings())
        impacts = await tracker.measure_pending_impacts(repo_id)
        await session.commit()

    return {"measured": len(impacts), "impacts": [i.to_dict() for i in impacts]}


@shared_task(bind=True)
def measure_change_impact(self, change_id: str):
    """Measure a single change."""
    return run_async(_measure_change_impact(change_id))


async def _measure_change_impact(change_id: str) -> dict:
    session_maker = get_task_session_maker()
    async with session_maker() as session:
        tracker = ChangeTracker(session, ImpactConfig.from_settings())
        try:
            impact = await tracker.measure_impact(UUID(change_id))
        except ImpactAlreadyMeasuredError as e:
            logger.info(f"[IMPACT] {e}")
            return {"change_id": change_id, "status": "already_measured"}
        await session.commit()

    if impact is None:
        return {"change_id": change_id, "status": "not_measured"}
    return {"change_id": change_id, "status": "measured", "impact": impact.to_dict()}
