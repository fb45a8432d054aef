"""
In-memory flight cache.

Holds the single snapshot the API serves from. Reads refresh it when it is
missing, expired or stale; a failed refresh keeps the previous flights and
marks them stale instead of dropping them, unless the refresh was forced or
there is nothing to fall back on.

Only one fetch runs at a time: a refresh started while another is in flight
waits on the same task and sees the same outcome.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Request

from flightboard.errors import FetchError
from flightboard.models.flight import CacheSnapshot
from flightboard.scrapers.fetcher import FlightBoardFetcher

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlightCache:

    def __init__(
        self,
        fetcher: FlightBoardFetcher,
        ttl: timedelta = timedelta(minutes=15),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.fetcher = fetcher
        self.ttl = ttl
        self._clock = clock or _utcnow
        self._snapshot = CacheSnapshot.empty()
        self._inflight: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        fetched_at = self._snapshot.fetched_at
        if fetched_at is None:
            return True
        now = now or self._clock()
        return now - fetched_at > self.ttl

    def needs_refresh(self) -> bool:
        snapshot = self._snapshot
        return snapshot.fetched_at is None or not snapshot.is_fresh or self.is_expired()

    async def get_snapshot(self, force_refresh: bool = False) -> CacheSnapshot:
        """
        Current snapshot, refreshed first if forced, expired or stale.

        Raises FetchError only when the refresh failed and there are no
        flights to serve, or when force_refresh was requested.
        """
        if force_refresh or self.needs_refresh():
            return await self._refresh(forced=force_refresh)
        logger.debug("Fresh cache hit")
        return self._snapshot

    async def force_refresh(self) -> CacheSnapshot:
        """Refresh now regardless of age; failures are always raised."""
        return await self._refresh(forced=True)

    async def _refresh(self, forced: bool) -> CacheSnapshot:
        task = self._inflight
        if task is None:
            task = asyncio.create_task(self._run_refresh())
            self._inflight = task
        else:
            logger.info("Refresh already in progress, waiting on it")

        try:
            # Shielded so a disconnecting client doesn't cancel the shared fetch
            return await asyncio.shield(task)
        except FetchError:
            snapshot = self._snapshot
            if forced or not snapshot.records:
                raise
            logger.warning(
                f"Refresh failed, serving {len(snapshot.records)} stale flights "
                f"from {snapshot.fetched_at.isoformat() if snapshot.fetched_at else 'never'}"
            )
            return snapshot

    async def _run_refresh(self) -> CacheSnapshot:
        logger.info("Refreshing flight data")
        try:
            records = await self.fetcher.fetch()
        except FetchError as e:
            self._mark_failed(e)
            raise
        except Exception as e:
            error = FetchError(f"Unexpected error during refresh: {e}", cause=e)
            self._mark_failed(error)
            raise error from e
        else:
            self._snapshot = CacheSnapshot.from_fetch(records, self._clock())
            logger.info(f"✅ Cached {len(records)} flights")
            return self._snapshot
        finally:
            self._inflight = None

    def _mark_failed(self, error: FetchError):
        self._snapshot = self._snapshot.mark_stale(error.message)
        logger.error(f"❌ Flight refresh failed: {error.message}")


def get_flight_cache(request: Request) -> FlightCache:
    """FastAPI dependency: the process-wide cache created at startup."""
    return request.app.state.flight_cache
