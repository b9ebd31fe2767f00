"""Tests for the single-slot snapshot cache."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from conftest import make_snapshot, pollen_page, region_table
from pollen_api.core.cache import PollenCache
from pollen_api.core.errors import CacheEmpty, FetchError, ParseError
from pollen_api.scrapers.dmi_pollen import extract


class TestRead:
    def test_cold_read_requests_rebuild_and_fails_fast(self):
        on_miss = MagicMock()
        cache = PollenCache(on_miss=on_miss)
        with pytest.raises(CacheEmpty, match="try again"):
            cache.read()
        on_miss.assert_called_once_with()

    def test_cold_read_without_hook(self):
        with pytest.raises(CacheEmpty):
            PollenCache().read()

    def test_reads_are_idempotent(self):
        cache = PollenCache()
        cache.write(make_snapshot())
        first, second = cache.read(), cache.read()
        assert first is second
        assert first.to_wire() == second.to_wire()

    def test_warm_read_does_not_request_rebuild(self):
        on_miss = MagicMock()
        cache = PollenCache(on_miss=on_miss)
        cache.write(make_snapshot())
        cache.read()
        on_miss.assert_not_called()

    def test_concurrent_cold_reads_all_miss(self):
        on_miss = MagicMock()
        cache = PollenCache(on_miss=on_miss)

        def attempt(_):
            try:
                cache.read()
            except CacheEmpty:
                return "empty"
            return "hit"

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(32)))
        assert results == ["empty"] * 32
        assert on_miss.call_count == 32

    def test_metadata_on_cold_and_warm_cache(self):
        cache = PollenCache()
        assert cache.peek() is None
        assert cache.age_s() is None
        assert cache.last_rebuild is None
        assert not cache.is_warm

        snapshot = make_snapshot()
        cache.write(snapshot)
        assert cache.is_warm
        assert cache.age_s() >= 0
        assert cache.last_rebuild == snapshot.captured_at


class TestRebuild:
    def test_rebuild_publishes_snapshot(self):
        cache = PollenCache()
        snapshot = make_snapshot()

        async def source():
            return snapshot

        assert asyncio.run(cache.rebuild(source)) is snapshot
        assert cache.read() is snapshot

    def test_parse_failure_keeps_last_good_snapshot(self):
        cache = PollenCache()
        good = make_snapshot()
        cache.write(good)

        async def source():
            return extract(pollen_page(region_table("Aarhus", [("Birk", "abc")])))

        with pytest.raises(ParseError):
            asyncio.run(cache.rebuild(source))
        assert cache.read() is good

    def test_failure_on_cold_cache_stays_empty(self):
        cache = PollenCache()

        async def source():
            raise FetchError("error fetching from URL: HTTP 502")

        with pytest.raises(FetchError):
            asyncio.run(cache.rebuild(source))
        with pytest.raises(CacheEmpty):
            cache.read()
        assert not cache.rebuilding

    def test_reads_do_not_wait_for_rebuild_in_flight(self):
        async def scenario():
            cache = PollenCache()
            old = make_snapshot(birk=1)
            cache.write(old)
            release = asyncio.Event()

            async def slow_source():
                await release.wait()
                return make_snapshot(birk=2)

            task = asyncio.create_task(cache.rebuild(slow_source))
            await asyncio.sleep(0)
            assert cache.rebuilding
            assert cache.read() is old

            release.set()
            new = await task
            assert cache.read() is new
            assert not cache.rebuilding

        asyncio.run(scenario())

    def test_cold_read_during_rebuild_fails_fast(self):
        async def scenario():
            cache = PollenCache()
            release = asyncio.Event()

            async def slow_source():
                await release.wait()
                return make_snapshot()

            task = asyncio.create_task(cache.rebuild(slow_source))
            await asyncio.sleep(0)
            with pytest.raises(CacheEmpty):
                cache.read()
            release.set()
            await task

        asyncio.run(scenario())

    def test_rebuilds_are_serialized_and_last_wins(self):
        async def scenario():
            cache = PollenCache()
            active = 0
            peak = 0

            def source_for(birk: int):
                async def source():
                    nonlocal active, peak
                    active += 1
                    peak = max(peak, active)
                    await asyncio.sleep(0.01)
                    active -= 1
                    return make_snapshot(birk=birk)
                return source

            await asyncio.gather(*(cache.rebuild(source_for(i)) for i in range(5)))
            assert peak == 1
            assert cache.read().records[0].measurements[0].value == 4

        asyncio.run(scenario())
