from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Literal, Optional

from flightboard.models.flight import CacheSnapshot, FlightRecord


class FlightResponse(BaseModel):
    type: Literal["Arrival", "Departure"]
    scheduled: datetime
    flight_no: str = Field(alias="flightNo")
    city: str
    airline: str
    status: str

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_record(cls, record: FlightRecord) -> "FlightResponse":
        return cls(
            type=record.kind.value,
            scheduled=record.scheduled_at,
            flight_no=record.flight_no,
            city=record.city,
            airline=record.airline,
            status=record.status,
        )


class FlightListResponse(BaseModel):
    flights: list[FlightResponse]
    type: Literal["all", "arrivals", "departures"]
    last_fetched: Optional[datetime] = Field(default=None, alias="lastFetched")
    cache_status: Literal["Fresh", "Stale"] = Field(alias="cacheStatus")
    source: str
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_records(
        cls,
        records: list[FlightRecord],
        snapshot: CacheSnapshot,
        list_type: str,
        source: str,
        error: Optional[str] = None,
    ) -> "FlightListResponse":
        return cls(
            flights=[FlightResponse.from_record(r) for r in records],
            type=list_type,
            last_fetched=snapshot.fetched_at,
            cache_status=snapshot.freshness.value,
            source=source,
            error=error,
        )


class RefreshResponse(BaseModel):
    success: bool
    message: str
    last_fetched: Optional[datetime] = Field(default=None, alias="lastFetched")
    flight_count: int = Field(default=0, alias="flightCount")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[str] = None
