"""
pollen_api/routers/forecast.py
Endpoints:
  GET /   → every region in the current snapshot, in page order
            Last-Modified = time of the last successful rebuild
            cold cache → 500 "Cache is empty, try again in a few seconds"

Reads from the in-memory cache only. Zero external calls.
"""

from datetime import timezone
from email.utils import format_datetime

from fastapi import APIRouter, Depends, Request, Response

from pollen_api.core.cache import PollenCache
from pollen_api.core.models import ForecastRecord

router = APIRouter(tags=["pollen"])


def get_pollen_cache(request: Request) -> PollenCache:
    return request.app.state.pollen_cache


@router.get("/", response_model=list[ForecastRecord])
async def get_forecast(response: Response, cache: PollenCache = Depends(get_pollen_cache)):
    # CacheEmpty propagates to the handler registered in main
    snapshot = cache.read()
    response.headers["Last-Modified"] = format_datetime(
        snapshot.captured_at.astimezone(timezone.utc), usegmt=True
    )
    return list(snapshot.records)
