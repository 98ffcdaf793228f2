"""Tests for the single-flight cache."""

import asyncio

import pytest

from game_vault.cache.singleflight import SingleFlightCache


@pytest.fixture
def cache():
    """Create a case-insensitive single-flight cache for testing."""
    return SingleFlightCache(key_func=str.casefold)


class TestSingleFlightCache:
    """Tests for SingleFlightCache."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self, cache):
        """Test that N concurrent callers for one key compute once."""
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "snes"

        results = await asyncio.gather(*(cache.get_or_compute("SNES", compute) for _ in range(20)))

        assert results == ["snes"] * 20
        assert calls == 1

    @pytest.mark.asyncio
    async def test_result_is_cached(self, cache):
        """Test that later callers get the cached result."""
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            return 42

        assert await cache.get_or_compute("a", compute) == 42
        assert await cache.get_or_compute("A", compute) == 42
        assert calls == 1
        assert cache.get("a") == 42

    @pytest.mark.asyncio
    async def test_none_is_cached(self, cache):
        """Test that a None result is memoized like any other."""
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            return None

        await cache.get_or_compute("missing", compute)
        await cache.get_or_compute("missing", compute)
        assert calls == 1
        assert "missing" in cache

    @pytest.mark.asyncio
    async def test_distinct_keys_compute_independently(self, cache):
        """Test that different keys run their own computations concurrently."""
        started = []

        async def compute(key):
            started.append(key)
            await asyncio.sleep(0.01)
            return key.upper()

        keys = ["nes", "snes", "n64"]
        results = await asyncio.gather(
            *(cache.get_or_compute(key, lambda k=key: compute(k)) for key in keys)
        )

        assert results == ["NES", "SNES", "N64"]
        assert sorted(started) == sorted(keys)
        assert cache.size == 3

    @pytest.mark.asyncio
    async def test_failure_is_shared_then_evicted(self, cache):
        """Test that a failure reaches every waiter and the next call retries."""
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(0.01)
            if attempts == 1:
                raise RuntimeError("upstream down")
            return "ok"

        results = await asyncio.gather(
            cache.get_or_compute("k", flaky),
            cache.get_or_compute("k", flaky),
            return_exceptions=True,
        )
        assert all(isinstance(r, RuntimeError) for r in results)

        await asyncio.sleep(0)
        assert "k" not in cache
        assert await cache.get_or_compute("k", flaky) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_others(self, cache):
        """Test that cancelling one waiter leaves the shared computation running."""

        async def compute():
            await asyncio.sleep(0.05)
            return "done"

        first = asyncio.create_task(cache.get_or_compute("k", compute))
        second = asyncio.create_task(cache.get_or_compute("k", compute))
        await asyncio.sleep(0.01)
        first.cancel()

        with pytest.raises(asyncio.CancelledError):
            await first
        assert await second == "done"

    @pytest.mark.asyncio
    async def test_stats(self, cache):
        """Test that stats report size and in-flight entries."""
        gate = asyncio.Event()

        async def compute():
            await gate.wait()
            return 1

        task = asyncio.create_task(cache.get_or_compute("k", compute))
        await asyncio.sleep(0)
        assert cache.get_stats() == {"size": 1, "in_flight": 1}

        gate.set()
        await task
        assert cache.get_stats() == {"size": 1, "in_flight": 0}

    @pytest.mark.asyncio
    async def test_clear_cancels_in_flight(self, cache):
        """Test that clear cancels pending computations and empties the cache."""

        async def compute():
            await asyncio.sleep(10)

        task = asyncio.create_task(cache.get_or_compute("k", compute))
        await asyncio.sleep(0)
        await cache.clear()

        assert cache.size == 0
        with pytest.raises(asyncio.CancelledError):
            await task
