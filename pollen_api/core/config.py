"""
pollen_api/core/config.py
═══════════════════════════════════════════════════════════════════════════════
Everything tunable comes from the environment. Defaults match the DMI page
and a 10-minute refresh cycle.

  LISTEN_ADDR             → host:port for uvicorn (":8080" = all interfaces)
  POLLEN_URL              → upstream HTML page
  REFRESH_INTERVAL_S      → periodic rebuild interval
  REFRESH_FAILURE_POLICY  → "continue" (log and wait) | "exit" (terminate)
  WARM_ON_START           → rebuild once when the scheduler starts
  FETCH_TIMEOUT_S         → upstream request timeout
  LOG_LEVEL               → root log level
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os

import pytz

LOCAL_TZ = pytz.timezone("Europe/Copenhagen")

# ── Server ────────────────────────────────────────────────────────────────────
LISTEN_ADDR = os.environ.get("LISTEN_ADDR", ":8080")
LOG_LEVEL   = os.environ.get("LOG_LEVEL", "INFO").upper()

# ── Upstream ──────────────────────────────────────────────────────────────────
POLLEN_URL      = os.environ.get("POLLEN_URL", "https://www.dmi.dk/vejr/sundhedsvejr/pollen/")
FETCH_TIMEOUT_S = float(os.environ.get("FETCH_TIMEOUT_S", "30"))

SCRAPE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "da-DK,da;q=0.9,en;q=0.5",
}

# ── Refresh ───────────────────────────────────────────────────────────────────
POLICY_CONTINUE = "continue"
POLICY_EXIT     = "exit"

REFRESH_INTERVAL_S = int(os.environ.get("REFRESH_INTERVAL_S", str(10 * 60)))
WARM_ON_START      = os.environ.get("WARM_ON_START", "1").lower() not in ("0", "false", "no", "")

REFRESH_FAILURE_POLICY = os.environ.get("REFRESH_FAILURE_POLICY", POLICY_CONTINUE).lower()
if REFRESH_FAILURE_POLICY not in (POLICY_CONTINUE, POLICY_EXIT):
    logging.getLogger("config").warning(
        f"Unknown REFRESH_FAILURE_POLICY={REFRESH_FAILURE_POLICY!r} — using '{POLICY_CONTINUE}'"
    )
    REFRESH_FAILURE_POLICY = POLICY_CONTINUE


def parse_listen_addr(addr: str) -> tuple[str, int]:
    """Split "host:port" (host optional, as in ":8080") into uvicorn arguments."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}, expected host:port")
    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ValueError(f"port out of range in listen address {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_num
