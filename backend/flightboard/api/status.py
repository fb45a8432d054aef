from fastapi import APIRouter, Depends

from flightboard.config import get_settings
from flightboard.models.flight import Freshness
from flightboard.scheduler import get_scheduler_status
from flightboard.services.flight_cache import FlightCache, get_flight_cache

router = APIRouter()


@router.get("/status")
async def status(cache: FlightCache = Depends(get_flight_cache)):
    """Cache and scheduler diagnostics for operators."""
    settings = get_settings()
    snapshot = cache.snapshot
    expired = cache.is_expired()

    return {
        "source": {
            "name": settings.source_name,
            "url": settings.source_url,
            "layout": settings.page_layout,
        },
        "cache": {
            "flight_count": len(snapshot.records),
            "last_fetched": snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
            "cache_status": Freshness.STALE.value if expired else snapshot.freshness.value,
            "expired": expired,
            "refreshing": cache.refreshing,
            "last_error": snapshot.last_error,
            "ttl_minutes": cache.ttl.total_seconds() / 60,
        },
        "scheduler": get_scheduler_status(),
    }
