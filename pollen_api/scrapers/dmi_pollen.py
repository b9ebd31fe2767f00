"""
pollen_api/scrapers/dmi_pollen.py
═══════════════════════════════════════════════════════════════════════════════
DMI pollen page (dmi.dk/vejr/sundhedsvejr/pollen) → Snapshot.

Page layout (server-rendered HTML):
  div.tx-dmi-data-store
    table
      table          ← one block per region
        tr           ← first row: region name
        tr td td     ← pollen type | count ("-" = not reported)
        ...
        tr           ← last row: forecast text

Extraction is all-or-nothing: one bad count fails the whole document, so a
half-parsed page can never reach the cache.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import re
from datetime import datetime
from typing import Optional

import httpx
from bs4 import BeautifulSoup, Tag

from pollen_api.core.config import POLLEN_URL
from pollen_api.core.errors import FetchError, ParseError
from pollen_api.core.http_client import plain_client
from pollen_api.core.models import ForecastRecord, Measurement, Snapshot

log = logging.getLogger("dmi_pollen")

BLOCK_SELECTOR = "div.tx-dmi-data-store table table"
PLACEHOLDER    = "-"

_INT_RE = re.compile(r"[+-]?[0-9]+")

# counts must fit a signed 64-bit integer
_INT_MIN = -(2 ** 63)
_INT_MAX = 2 ** 63 - 1


# ── Parsing ───────────────────────────────────────────────────────────────────

def _parse_value(raw: str) -> int:
    if raw == PLACEHOLDER:
        return 0
    if not _INT_RE.fullmatch(raw):
        raise ParseError(f'unable to parse pollen value for "{raw}"', value=raw)
    if len(raw.lstrip("+-").lstrip("0")) > 19:
        raise ParseError(f'pollen value out of range: "{raw}"', value=raw)
    value = int(raw)
    if not _INT_MIN <= value <= _INT_MAX:
        raise ParseError(f'pollen value out of range: "{raw}"', value=raw)
    return value


def _parse_row(row: Tag) -> Optional[Measurement]:
    """Measurement for a two-cell row, None for anything else (headers, dividers)."""
    cells = row.find_all("td")
    if len(cells) != 2:
        return None
    return Measurement(
        name=cells[0].get_text(),
        value=_parse_value(cells[-1].get_text()),
    )


def _parse_block(block: Tag) -> ForecastRecord:
    rows = block.find_all("tr")
    measurements = []
    for row in rows:
        m = _parse_row(row)
        if m is not None:
            measurements.append(m)

    return ForecastRecord(
        location_name=rows[0].get_text() if rows else "",
        summary_text=rows[-1].get_text() if rows else "",
        measurements=tuple(measurements),
    )


def extract(markup: str, captured_at: Optional[datetime] = None) -> Snapshot:
    """Parse the whole page. Raises ParseError on the first malformed count."""
    soup = BeautifulSoup(markup, "lxml")
    records = tuple(_parse_block(block) for block in soup.select(BLOCK_SELECTOR))
    if captured_at is None:
        return Snapshot(records=records)
    return Snapshot(records=records, captured_at=captured_at)


# ── Fetching ──────────────────────────────────────────────────────────────────

async def fetch_markup(url: str = POLLEN_URL) -> str:
    client = plain_client()
    try:
        resp = await client.get(url)
    except httpx.HTTPError as ex:
        raise FetchError(f"error fetching from URL: {ex!r}") from ex

    if resp.status_code != 200:
        raise FetchError(f"error fetching from URL: HTTP {resp.status_code}")
    return resp.text


async def scrape_pollen(url: str = POLLEN_URL) -> Snapshot:
    """One rebuild's worth of work: fetch the page and extract every region."""
    html = await fetch_markup(url)
    snapshot = extract(html)
    log.info(f"Extracted {len(snapshot.records)} regions from {url}")
    return snapshot
