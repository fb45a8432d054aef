from flightboard.schemas.flight import ErrorResponse, FlightListResponse, FlightResponse, RefreshResponse

__all__ = ["ErrorResponse", "FlightListResponse", "FlightResponse", "RefreshResponse"]
