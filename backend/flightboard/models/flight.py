from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
import enum


class FlightKind(enum.Enum):
    ARRIVAL = "Arrival"
    DEPARTURE = "Departure"


class Freshness(enum.Enum):
    FRESH = "Fresh"
    STALE = "Stale"


@dataclass(frozen=True)
class FlightRecord:
    """One scheduled movement scraped from the flight board."""
    kind: FlightKind
    scheduled_at: datetime  # timezone-aware
    flight_no: str
    city: str  # origin for arrivals, destination for departures
    airline: str
    status: str


def sort_by_schedule(records) -> list[FlightRecord]:
    return sorted(records, key=lambda r: r.scheduled_at)


@dataclass(frozen=True)
class CacheSnapshot:
    """
    The complete cache state at a point in time.

    Snapshots are never mutated; the cache swaps in a new one on every
    refresh, so a snapshot handed to a caller cannot change underneath it.
    """
    records: tuple[FlightRecord, ...] = field(default_factory=tuple)
    fetched_at: Optional[datetime] = None
    freshness: Freshness = Freshness.STALE
    last_error: Optional[str] = None

    @classmethod
    def empty(cls) -> "CacheSnapshot":
        return cls()

    @classmethod
    def from_fetch(cls, records, fetched_at: datetime) -> "CacheSnapshot":
        return cls(
            records=tuple(sort_by_schedule(records)),
            fetched_at=fetched_at,
            freshness=Freshness.FRESH,
        )

    def mark_stale(self, error: Optional[str] = None) -> "CacheSnapshot":
        return replace(self, freshness=Freshness.STALE, last_error=error)

    @property
    def is_fresh(self) -> bool:
        return self.freshness is Freshness.FRESH

    def filter(self, kind: Optional[FlightKind] = None) -> list[FlightRecord]:
        """Records of the given kind (all when None), sorted by schedule."""
        records = self.records if kind is None else [r for r in self.records if r.kind is kind]
        return sort_by_schedule(records)
