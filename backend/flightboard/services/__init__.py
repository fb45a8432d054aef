from flightboard.services.flight_cache import FlightCache, get_flight_cache

__all__ = ["FlightCache", "get_flight_cache"]
