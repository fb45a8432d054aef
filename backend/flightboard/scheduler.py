"""
APScheduler setup for periodic flight refreshes.

One interval job force-refreshes the cache so reads rarely have to wait on
the upstream page. The job also runs once right after startup.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from flightboard.config import get_settings
from flightboard.errors import FetchError
from flightboard.services.flight_cache import FlightCache

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def refresh_flights_job(cache: FlightCache):
    """Scheduled refresh. Failures are logged; the next tick tries again."""
    try:
        snapshot = await cache.force_refresh()
        logger.info(f"Scheduled refresh complete: {len(snapshot.records)} flights")
    except FetchError as e:
        logger.error(f"Scheduled refresh failed: {e.message}")


def get_scheduler(cache: FlightCache) -> AsyncIOScheduler:
    """Get or create the global scheduler with the refresh job registered."""
    global scheduler
    if scheduler is None:
        settings = get_settings()
        scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            timezone=settings.source_timezone,
        )
        scheduler.add_job(
            refresh_flights_job,
            trigger=IntervalTrigger(minutes=settings.refresh_interval_minutes),
            args=[cache],
            id='flight_refresh',
            name=f'Flight refresh (every {settings.refresh_interval_minutes} min)',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
    return scheduler


def start_scheduler(cache: FlightCache):
    """Start the scheduler (call this from the FastAPI lifespan)."""
    scheduler_instance = get_scheduler(cache)

    if not scheduler_instance.running:
        scheduler_instance.start()
        logger.info("APScheduler started successfully")
        for job in scheduler_instance.get_jobs():
            logger.info(f"Next '{job.name}': {job.next_run_time}")
    else:
        logger.warning("Scheduler already running")


def stop_scheduler():
    """Stop the scheduler (call this from the FastAPI lifespan)."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("APScheduler stopped")
    scheduler = None


def get_scheduler_status() -> dict:
    """Get scheduler status for the status endpoint."""
    if scheduler is None or not scheduler.running:
        return {
            "running": False,
            "jobs": [],
            "next_run": None
        }

    jobs = []
    next_run = None

    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
        })
        if job.next_run_time and (next_run is None or job.next_run_time < next_run):
            next_run = job.next_run_time

    return {
        "running": True,
        "jobs": jobs,
        "next_run": next_run.isoformat() if next_run else None
    }
