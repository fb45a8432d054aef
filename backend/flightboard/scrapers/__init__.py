from flightboard.scrapers.flight_table import (
    TABLE_LAYOUTS,
    TableLayout,
    classify_status,
    extract_flights,
    resolve_scheduled_time,
)
from flightboard.scrapers.fetcher import FlightBoardFetcher

__all__ = [
    "TABLE_LAYOUTS",
    "TableLayout",
    "classify_status",
    "extract_flights",
    "resolve_scheduled_time",
    "FlightBoardFetcher",
]
