from contextlib import asynccontextmanager
from datetime import timedelta
from http import HTTPStatus
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from flightboard import __version__
from flightboard.api import flights, health, status
from flightboard.config import get_settings
from flightboard.scheduler import start_scheduler, stop_scheduler
from flightboard.schemas.flight import ErrorResponse
from flightboard.scrapers.fetcher import FlightBoardFetcher
from flightboard.scrapers.flight_table import TABLE_LAYOUTS
from flightboard.services.flight_cache import FlightCache

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def build_flight_cache() -> FlightCache:
    fetcher = FlightBoardFetcher(
        source_url=settings.source_url,
        layout=TABLE_LAYOUTS[settings.page_layout],
        timeout=settings.request_timeout_seconds,
        user_agent=settings.user_agent,
        timezone=settings.tz,
    )
    return FlightCache(fetcher, ttl=timedelta(minutes=settings.cache_ttl_minutes))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting Flightboard for {settings.source_name} ({settings.source_url})")

    cache = build_flight_cache()
    app.state.flight_cache = cache

    if settings.scheduler_enabled:
        try:
            start_scheduler(cache)
            logger.info("✅ APScheduler started")
        except Exception as e:
            logger.error(f"❌ Scheduler startup failed: {e}")

    yield

    logger.info("🛑 Shutting down Flightboard")
    try:
        stop_scheduler()
        await cache.fetcher.close()
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


app = FastAPI(
    title="Flightboard",
    description="Cached arrivals and departures scraped from an airport flight-status page",
    version=__version__,
    lifespan=lifespan
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods are both reported as not found
    status_code = 404 if exc.status_code == 405 else exc.status_code
    if status_code == 404:
        message = f"No route for {request.method} {request.url.path}"
    else:
        message = str(exc.detail)
    headers = {k: v for k, v in (exc.headers or {}).items() if k.lower() != "allow"}
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=HTTPStatus(status_code).phrase, message=message
        ).model_dump(exclude_none=True),
        headers=headers or None,
    )


@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal Server Error",
                message="An unexpected error occurred while handling the request.",
                details=str(e),
            ).model_dump(exclude_none=True),
        )


# Registered last so it wraps everything, including 500s
@app.middleware("http")
async def apply_cors_headers(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


app.include_router(flights.router, prefix=settings.api_prefix, tags=["flights"])
app.include_router(health.router, tags=["health"])
app.include_router(status.router, tags=["status"])
