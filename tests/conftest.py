"""Shared fixtures: small DMI-shaped pages and snapshot helpers."""

import asyncio
from typing import Callable

import pytest

from pollen_api.core.models import ForecastRecord, Measurement, Snapshot

POLLEN_URL = "https://pollen.test.example/vejr/sundhedsvejr/pollen/"


def region_table(city: str, rows: list[tuple[str, str]], summary: str = "Moderate birk i morgen") -> str:
    """One inner forecast table: name row, two-cell value rows, text row."""
    value_rows = "".join(f"<tr><td>{name}</td><td>{value}</td></tr>" for name, value in rows)
    return (
        "<table>"
        f"<tr><th>{city}</th></tr>"
        "<tr><td>Pollentype</td><td>Antal</td><td>Niveau</td></tr>"
        f"{value_rows}"
        f'<tr><td colspan="2">{summary}</td></tr>'
        "</table>"
    )


def pollen_page(*tables: str) -> str:
    inner = "".join(f"<tr><td>{t}</td></tr>" for t in tables)
    return (
        "<html><body>"
        "<table><tr><td><table><tr><td>Not a forecast</td><td>1</td></tr></table></td></tr></table>"
        f'<div class="tx-dmi-data-store"><table>{inner}</table></div>'
        "</body></html>"
    )


def make_snapshot(city: str = "København", birk: int = 10) -> Snapshot:
    return Snapshot(records=(
        ForecastRecord(
            location_name=city,
            summary_text="Lav græs",
            measurements=(Measurement(name="Birk", value=birk), Measurement(name="Græs", value=0)),
        ),
    ))


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def aarhus_page() -> str:
    return pollen_page(region_table("Aarhus", [("Birk", "12"), ("El", "-")]))
