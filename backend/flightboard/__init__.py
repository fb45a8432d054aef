"""Flightboard: airport flight-status scraper with a cached HTTP API."""

__version__ = "1.0.0"
