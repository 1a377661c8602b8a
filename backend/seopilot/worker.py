"""
Celery Worker Configuration

Background processing for:
- Repository scans
- Daily impact measurement of tracked changes
"""
import logging

from celery import Celery
from celery.schedules import crontab

from seopilot.config import settings

logger = logging.getLogger(__name__)


celery_app = Celery(
    "seopilot",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "seopilot.tasks.scan_tasks",
        "seopilot.tasks.impact_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,
    task_soft_time_limit=1700,

    # One writer per working tree
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,

    result_expires=86400,  # 24 hours

    task_routes={
        "seopilot.tasks.scan_tasks.*": {"queue": "scan"},
        "seopilot.tasks.impact_tasks.*": {"queue": "impact"},
    },
    task_default_queue="default",
)

celery_app.conf.beat_schedule = {
    # Measure changes that have aged past the dwell period, daily at 4 AM
    "measure-pending-impacts": {
        "task": "seopilot.tasks.impact_tasks.measure_pending_impacts",
        "schedule": crontab(hour=4, minute=0),
    },
}


class SEOpilotTask(celery_app.Task):
    """Base task class that records failures."""

    abstract = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"Task {self.name}[{task_id}] failed: {type(exc).__name__}: {exc}")
        self.update_state(
            state="FAILURE",
            meta={
                "exc_type": type(exc).__name__,
                "exc_message": str(exc),
            },
        )


celery_app.Task = SEOpilotTask
