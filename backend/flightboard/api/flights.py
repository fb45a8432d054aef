import logging
from typing import Optional

from fastapi import APIRouter, Depends

from flightboard.config import get_settings
from flightboard.errors import FetchError
from flightboard.models.flight import FlightKind
from flightboard.rate_limit import check_rate_limit
from flightboard.schemas import FlightListResponse, RefreshResponse
from flightboard.services.flight_cache import FlightCache, get_flight_cache

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(check_rate_limit)])


async def _list_flights(
    cache: FlightCache,
    kind: Optional[FlightKind],
    list_type: str,
) -> FlightListResponse:
    error = None
    try:
        snapshot = await cache.get_snapshot()
    except FetchError as e:
        # Nothing cached to fall back on: answer with an empty, stale list
        logger.error(f"No flight data available: {e.message}")
        snapshot = cache.snapshot
        error = e.message

    return FlightListResponse.from_records(
        snapshot.filter(kind),
        snapshot,
        list_type=list_type,
        source=get_settings().source_name,
        error=error,
    )


@router.get("", response_model=FlightListResponse)
async def list_flights(cache: FlightCache = Depends(get_flight_cache)):
    return await _list_flights(cache, None, "all")


@router.get("/arrivals", response_model=FlightListResponse)
async def list_arrivals(cache: FlightCache = Depends(get_flight_cache)):
    return await _list_flights(cache, FlightKind.ARRIVAL, "arrivals")


@router.get("/departures", response_model=FlightListResponse)
async def list_departures(cache: FlightCache = Depends(get_flight_cache)):
    return await _list_flights(cache, FlightKind.DEPARTURE, "departures")


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_flights(cache: FlightCache = Depends(get_flight_cache)):
    """
    Force a scrape of the upstream page.

    Always answers 200: a failed refresh is reported through success=false
    and an unchanged lastFetched.
    """
    logger.info("Manual refresh triggered")
    try:
        snapshot = await cache.force_refresh()
    except FetchError as e:
        snapshot = cache.snapshot
        return RefreshResponse(
            success=False,
            message=f"Refresh failed: {e.message}",
            last_fetched=snapshot.fetched_at,
            flight_count=len(snapshot.records),
        )

    return RefreshResponse(
        success=True,
        message="Refresh complete.",
        last_fetched=snapshot.fetched_at,
        flight_count=len(snapshot.records),
    )
