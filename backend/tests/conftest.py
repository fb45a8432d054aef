"""
Test fixtures for Flightboard tests.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from flightboard.main import app
from flightboard.models.flight import FlightKind, FlightRecord
from flightboard.rate_limit import get_rate_limiter
from flightboard.services.flight_cache import FlightCache, get_flight_cache


class FakeClock:
    """Controllable replacement for the cache's UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_flight(clock):
    """Factory for FlightRecords scheduled relative to the fake clock."""
    def _make(
        flight_no: str = "IA220",
        kind: FlightKind = FlightKind.ARRIVAL,
        minutes: int = 60,
        city: str = "Baghdad",
        airline: str = "Iraqi Airways",
        status: str = "Scheduled",
    ) -> FlightRecord:
        return FlightRecord(
            kind=kind,
            scheduled_at=clock.now + timedelta(minutes=minutes),
            flight_no=flight_no,
            city=city,
            airline=airline,
            status=status,
        )
    return _make


@pytest.fixture
def fetcher():
    """A fetcher double; tests set fetcher.fetch.return_value / side_effect."""
    mock = AsyncMock()
    mock.fetch = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def flight_cache(fetcher, clock):
    return FlightCache(fetcher, ttl=timedelta(minutes=15), clock=clock)


@pytest.fixture
async def client(flight_cache):
    """
    Async test client with the flight cache dependency overridden.
    """
    app.dependency_overrides[get_flight_cache] = lambda: flight_cache
    get_rate_limiter().reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
