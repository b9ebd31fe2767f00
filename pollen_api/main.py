"""
pollen_api/main.py  — DMI Pollen API
Startup: builds the snapshot cache, launches the refresh scheduler.
All endpoints are cache-read-only; a cold cache answers 500 and wakes the refresher.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from pollen_api.core.cache import PollenCache
from pollen_api.core.config import LOG_LEVEL, POLLEN_URL
from pollen_api.core.errors import CacheEmpty
from pollen_api.core.http_client import close_all
from pollen_api.core.scheduler import build_refresher, describe
from pollen_api.routers import forecast
from pollen_api.routers.forecast import get_pollen_cache
from pollen_api.scrapers.dmi_pollen import scrape_pollen

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")

RETRY_AFTER_S = 5


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"🌼 DMI Pollen API starting (source: {POLLEN_URL})")
    cache, scheduler = build_refresher(scrape_pollen)
    app.state.pollen_cache = cache
    app.state.scheduler = scheduler
    scheduler.start()
    yield
    log.info("🛑 Shutting down...")
    await scheduler.stop()
    await close_all()


app = FastAPI(
    title="DMI Pollen API",
    description=(
        "Pollen forecasts scraped from dmi.dk and served from an in-memory cache. "
        "Refreshed every 10 minutes and on demand when the cache is cold."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(CacheEmpty)
async def cache_empty_handler(request: Request, exc: CacheEmpty):
    return PlainTextResponse(
        str(exc),
        status_code=500,
        headers={"Retry-After": str(RETRY_AFTER_S)},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(forecast.router)


@app.get("/health", tags=["meta"])
async def health(cache: PollenCache = Depends(get_pollen_cache)):
    """Cache metadata. Never triggers a rebuild."""
    return describe(cache)
