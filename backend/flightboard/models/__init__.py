from flightboard.models.flight import (
    CacheSnapshot,
    FlightKind,
    FlightRecord,
    Freshness,
    sort_by_schedule,
)

__all__ = [
    "CacheSnapshot",
    "FlightKind",
    "FlightRecord",
    "Freshness",
    "sort_by_schedule",
]
