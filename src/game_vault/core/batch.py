"""Bounded-concurrency batch runner with weighted progress."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, TypeVar

from game_vault.core.config import BatchConfig
from game_vault.core.exceptions import InvalidConfigurationError
from game_vault.core.progress import ProgressLedger, ProgressReporter
from game_vault.types.batch import (
    BatchResult,
    BatchStatus,
    ItemError,
    ItemOutcome,
    ItemState,
    WorkItem,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

Job = Callable[[WorkItem, ProgressReporter], Awaitable[R]]
Finalize = Callable[[list[R]], Any]
ProgressCallback = Callable[[BatchStatus, WorkItem], None]


class BatchRunner(Generic[R]):
    """Run one async job per work item with bounded concurrency.

    Every item gets its own task, but only ``max_concurrency`` of them run
    the job at once; the rest wait for a permit. A job that raises is
    recorded in the error log and the batch carries on with the other
    items. Once every item has finished, an optional finalize step receives
    the successful results.

    Args:
        config: Batch configuration (uses defaults if None)
        progress_callback: Called with the live status after each item
            finishes

    Example:
        async def job(item: WorkItem, progress: ProgressReporter) -> Game | None:
            game = await catalog.search_game(item.display_name, "snes")
            progress.advance(1)
            return game

        runner = BatchRunner()
        result = await runner.run(items, job, max_concurrency=10)
        for error in result.errors:
            print(error.display_name, error.message)
    """

    def __init__(
        self,
        config: BatchConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.config = config or BatchConfig()
        self._progress_callback = progress_callback
        self._ledger = ProgressLedger(0)
        self._total_items = 0
        self._completed_items = 0
        self._running_items = 0
        self._errors: list[ItemError] = []

    @property
    def status(self) -> BatchStatus:
        """Live status of the current or last run."""
        return BatchStatus(
            total_items=self._total_items,
            completed_items=self._completed_items,
            running_items=self._running_items,
            total_units=self._ledger.total_units,
            consumed_units=self._ledger.consumed_units,
        )

    async def run(
        self,
        items: Iterable[WorkItem],
        job: Job[R],
        total_work_units: float | None = None,
        max_concurrency: int | None = None,
        finalize: Finalize[R] | None = None,
    ) -> BatchResult[R]:
        """Run ``job`` over every item.

        Args:
            items: Work items to process
            job: Async callable receiving the item and its progress reporter
            total_work_units: Total progress units (sum of item weights if None)
            max_concurrency: Jobs allowed to run at once (uses config if None)
            finalize: Called once with the successful results in input order;
                may be sync or async

        Returns:
            BatchResult with per-item outcomes and the errors in arrival order
        """
        items = list(items)
        if max_concurrency is None:
            max_concurrency = self.config.max_concurrency
        if max_concurrency < 1:
            raise InvalidConfigurationError(
                f"max_concurrency must be at least 1, got {max_concurrency}"
            )
        if total_work_units is None:
            total_work_units = sum(item.weight for item in items)

        self._ledger = ProgressLedger(total_work_units)
        self._total_items = len(items)
        self._completed_items = 0
        self._running_items = 0
        self._errors = []

        logger.debug(
            "Starting batch of %d items (%s units, concurrency %d)",
            len(items),
            total_work_units,
            max_concurrency,
        )

        outcomes: list[ItemOutcome[R]] = [ItemOutcome(item=item) for item in items]
        semaphore = asyncio.Semaphore(max_concurrency)

        async with asyncio.TaskGroup() as group:
            for index, outcome in enumerate(outcomes):
                group.create_task(self._run_item(index, outcome, job, semaphore))

        results = [outcome.value for outcome in outcomes if outcome.succeeded]
        result = BatchResult(outcomes=outcomes, errors=list(self._errors), results=results)

        logger.debug(
            "Batch finished: %d succeeded, %d failed",
            result.succeeded,
            result.failed,
        )

        if finalize is not None:
            finalized = finalize(results)
            if inspect.isawaitable(finalized):
                finalized = await finalized
            result.finalized = finalized

        return result

    async def _run_item(
        self,
        index: int,
        outcome: ItemOutcome[R],
        job: Job[R],
        semaphore: asyncio.Semaphore,
    ) -> None:
        item = outcome.item

        async with semaphore:
            outcome.state = ItemState.RUNNING
            self._running_items += 1
            # Keyed by position, identities may repeat
            reporter = ProgressReporter(self._ledger, index, item.weight)
            try:
                try:
                    outcome.value = await job(item, reporter)
                except Exception as e:
                    outcome.state = ItemState.FAILED
                    outcome.error = ItemError(
                        identity=item.identity,
                        display_name=item.display_name,
                        message=str(e) or type(e).__name__,
                    )
                    self._errors.append(outcome.error)
                    logger.warning("Failed to process %s: %s", item.display_name, outcome.error.message)
                    logger.debug("Traceback for %s", item.display_name, exc_info=True)
                else:
                    outcome.state = ItemState.SUCCEEDED
                    outcome.succeeded = True
            finally:
                reporter.complete()
                self._running_items -= 1
                self._completed_items += 1
                outcome.state = ItemState.RELEASED

        if self._progress_callback is not None:
            try:
                self._progress_callback(self.status, item)
            except Exception:
                logger.warning("Progress callback failed for %s", item.display_name, exc_info=True)
