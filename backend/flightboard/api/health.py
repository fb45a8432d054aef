from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/health", response_class=PlainTextResponse)
async def health_check():
    """Liveness only; does not touch the cache or the upstream page."""
    return "OK"
