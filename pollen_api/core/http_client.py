"""
pollen_api/core/http_client.py
Shared async httpx client for the upstream page.
  • plain_client() → lazily (re)created client with an explicit timeout
  • close_all()    → called once from the app lifespan on shutdown
"""

import httpx

from pollen_api.core.config import FETCH_TIMEOUT_S, SCRAPE_HEADERS

_plain_client: httpx.AsyncClient | None = None

_LIMITS  = httpx.Limits(max_connections=4, max_keepalive_connections=2)
_TIMEOUT = httpx.Timeout(FETCH_TIMEOUT_S, connect=min(FETCH_TIMEOUT_S, 15.0))


def plain_client() -> httpx.AsyncClient:
    global _plain_client
    if _plain_client is None or _plain_client.is_closed:
        _plain_client = httpx.AsyncClient(
            headers=SCRAPE_HEADERS,
            timeout=_TIMEOUT,
            follow_redirects=True,
            limits=_LIMITS,
        )
    return _plain_client


async def close_all() -> None:
    global _plain_client
    if _plain_client and not _plain_client.is_closed:
        await _plain_client.aclose()
    _plain_client = None
