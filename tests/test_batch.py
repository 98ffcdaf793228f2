"""Tests for the batch runner."""

import asyncio
import logging

import pytest

from game_vault.core.batch import BatchRunner
from game_vault.core.config import BatchConfig
from game_vault.core.exceptions import InvalidConfigurationError
from game_vault.types.batch import ItemState, WorkItem


def make_items(count: int, weight: float = 1) -> list[WorkItem]:
    return [WorkItem(identity=f"game-{i}", display_name=f"Game {i}", weight=weight) for i in range(count)]


class TestBatchRunner:
    """Tests for BatchRunner.run."""

    @pytest.mark.asyncio
    async def test_runs_every_item(self):
        """Test that each item's job runs once and results keep input order."""
        runner = BatchRunner()

        async def job(item, progress):
            await asyncio.sleep(0.001 * (5 - int(item.identity.split("-")[1])))
            return item.display_name

        result = await runner.run(make_items(5), job)

        assert result.results == [f"Game {i}" for i in range(5)]
        assert result.ok
        assert all(o.state is ItemState.RELEASED for o in result.outcomes)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        """Test that no more than max_concurrency jobs run at once."""
        runner = BatchRunner()
        running = 0
        peak = 0

        async def job(item, progress):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            assert runner.status.running_items <= 2
            await asyncio.sleep(0.01)
            running -= 1

        await runner.run(make_items(5), job, max_concurrency=2)

        assert peak == 2

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self):
        """Test that one failing job leaves the other four to finalize."""
        runner = BatchRunner()
        finalized = []

        async def job(item, progress):
            if item.identity == "game-2":
                raise ValueError("corrupt archive")
            return item.identity

        result = await runner.run(make_items(5), job, finalize=finalized.extend)

        assert finalized == ["game-0", "game-1", "game-3", "game-4"]
        assert len(result.errors) == 1
        assert result.errors[0].display_name == "Game 2"
        assert result.errors[0].message == "corrupt archive"
        assert not result.ok
        assert (result.succeeded, result.failed) == (4, 1)
        assert runner.status.completed_items == 5
        assert [o.terminal_state for o in result.outcomes] == [
            ItemState.SUCCEEDED,
            ItemState.SUCCEEDED,
            ItemState.FAILED,
            ItemState.SUCCEEDED,
            ItemState.SUCCEEDED,
        ]
        assert all(o.state is ItemState.RELEASED for o in result.outcomes)

    @pytest.mark.asyncio
    async def test_errors_in_arrival_order(self):
        """Test that errors are recorded in the order jobs failed."""
        runner = BatchRunner()
        delays = {"game-0": 0.03, "game-1": 0.01, "game-2": 0.02}

        async def job(item, progress):
            await asyncio.sleep(delays[item.identity])
            raise RuntimeError(item.identity)

        result = await runner.run(make_items(3), job)

        assert [e.message for e in result.errors] == ["game-1", "game-2", "game-0"]
        assert result.results == []

    @pytest.mark.asyncio
    async def test_error_without_message_uses_type_name(self):
        """Test that an exception with no message is recorded by type."""
        runner = BatchRunner()

        async def job(item, progress):
            raise KeyError()

        result = await runner.run(make_items(1), job)

        assert result.errors[0].message == "KeyError"

    @pytest.mark.asyncio
    async def test_async_finalize(self):
        """Test that an async finalize is awaited and its value returned."""
        runner = BatchRunner()

        async def job(item, progress):
            return 2

        async def finalize(results):
            await asyncio.sleep(0)
            return sum(results)

        result = await runner.run(make_items(4), job, finalize=finalize)

        assert result.finalized == 8

    @pytest.mark.asyncio
    async def test_finalize_runs_once_for_empty_batch(self):
        """Test that an empty batch still finalizes with no results."""
        runner = BatchRunner()
        calls = []

        async def job(item, progress):
            raise AssertionError("no items")

        result = await runner.run([], job, finalize=calls.append)

        assert calls == [[]]
        assert result.total == 0
        assert runner.status.item_fraction == 1.0

    @pytest.mark.asyncio
    async def test_progress_reaches_total(self):
        """Test that progress ends at the declared total, failures included."""
        runner = BatchRunner()

        async def job(item, progress):
            progress.advance(1)
            if item.identity == "game-1":
                raise RuntimeError("boom")
            progress.report(2)

        result = await runner.run(make_items(3, weight=3), job, total_work_units=9)

        status = runner.status
        assert status.consumed_units == 9
        assert status.unit_fraction == 1.0
        assert status.completed_items == 3
        assert result.failed == 1

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_bounded(self):
        """Test that concurrent reporters never push progress down or past the total."""
        samples = []
        runner = BatchRunner(progress_callback=lambda status, item: samples.append(status.consumed_units))

        async def job(item, progress):
            for step in range(1, 11):
                progress.report(step * 10)
                progress.report(step * 5)
                await asyncio.sleep(0)
            progress.advance(50)

        await runner.run(make_items(6, weight=100), job, total_work_units=500, max_concurrency=3)

        assert samples == sorted(samples)
        assert max(samples) <= 500
        assert runner.status.consumed_units == 500

    @pytest.mark.asyncio
    async def test_progress_callback_per_item(self):
        """Test that the callback sees every item finish exactly once."""
        seen = []
        runner = BatchRunner(progress_callback=lambda status, item: seen.append((status.completed_items, item.identity)))

        async def job(item, progress):
            return None

        await runner.run(make_items(3), job)

        assert sorted(i for i, _ in seen) == [1, 2, 3]
        assert sorted(identity for _, identity in seen) == ["game-0", "game-1", "game-2"]

    @pytest.mark.asyncio
    async def test_failing_progress_callback_does_not_abort_run(self, caplog):
        """Test that an error in the callback is logged and siblings still finish."""

        def callback(status, item):
            if item.identity == "game-0":
                raise RuntimeError("display broke")

        runner = BatchRunner(progress_callback=callback)

        async def job(item, progress):
            if item.identity != "game-0":
                await asyncio.sleep(0.01)
            return item.identity

        with caplog.at_level(logging.WARNING, logger="game_vault.core.batch"):
            result = await runner.run(make_items(3), job)

        assert result.results == ["game-0", "game-1", "game-2"]
        assert result.ok
        assert runner.status.completed_items == 3
        assert "Progress callback failed for Game 0" in caplog.text

    @pytest.mark.asyncio
    async def test_duplicate_identities_keep_separate_progress(self):
        """Test that items sharing an identity each contribute their full weight."""
        runner = BatchRunner()
        items = [WorkItem(identity="same", weight=3), WorkItem(identity="same", weight=3)]

        async def job(item, progress):
            progress.report(2)
            await asyncio.sleep(0)
            return item.identity

        result = await runner.run(items, job)

        status = runner.status
        assert status.total_units == 6
        assert status.consumed_units == 6
        assert result.results == ["same", "same"]

    @pytest.mark.asyncio
    async def test_total_defaults_to_item_weights(self):
        """Test that the total is the sum of item weights when not given."""
        runner = BatchRunner()

        async def job(item, progress):
            return None

        await runner.run(make_items(4, weight=2.5), job)

        assert runner.status.total_units == 10
        assert runner.status.consumed_units == 10

    @pytest.mark.asyncio
    async def test_cancellation_releases_every_item(self):
        """Test that cancelling the run unwinds jobs and still runs their cleanup."""
        runner = BatchRunner()
        started = []

        async def job(item, progress):
            started.append(item.identity)
            await asyncio.sleep(10)

        task = asyncio.create_task(runner.run(make_items(4), job, max_concurrency=2))
        while len(started) < 2:
            await asyncio.sleep(0.001)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        status = runner.status
        assert status.running_items == 0
        assert status.completed_items == len(started) == 2

    @pytest.mark.asyncio
    async def test_default_concurrency_from_config(self):
        """Test that the config supplies the default concurrency."""
        runner = BatchRunner(BatchConfig(max_concurrency=1))
        running = 0
        peak = 0

        async def job(item, progress):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.001)
            running -= 1

        await runner.run(make_items(3), job)

        assert peak == 1

    @pytest.mark.asyncio
    async def test_invalid_concurrency(self):
        """Test that max_concurrency below one is rejected."""
        runner = BatchRunner()

        async def job(item, progress):
            return None

        with pytest.raises(InvalidConfigurationError):
            await runner.run(make_items(1), job, max_concurrency=0)


class TestWorkItem:
    """Tests for WorkItem."""

    def test_display_name_defaults_to_identity(self):
        """Test that a missing display name falls back to the identity."""
        item = WorkItem(identity="Mega Man.zip")
        assert item.display_name == "Mega Man.zip"
        assert item.weight == 1
