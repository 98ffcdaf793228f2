"""Weighted progress accounting shared by concurrent jobs."""

from __future__ import annotations

import threading
from collections.abc import Hashable


class ProgressLedger:
    """Shared counter of consumed progress units.

    Jobs report either absolute progress (``report``), which is turned into
    a delta against the last value that job reported, or plain increments
    (``advance``). The consumed total never decreases and never exceeds
    ``total_units``.

    Updates take a threading lock so reporters can be called from worker
    threads as well as from the event loop.

    Args:
        total_units: Total progress units expected for the batch
    """

    def __init__(self, total_units: float) -> None:
        self.total_units = max(total_units, 0)
        self._consumed: float = 0
        self._last_reported: dict[Hashable, float] = {}
        self._lock = threading.Lock()

    @property
    def consumed_units(self) -> float:
        return self._consumed

    @property
    def fraction(self) -> float:
        if self.total_units <= 0:
            return 1.0
        return self._consumed / self.total_units

    def reported(self, task_id: Hashable) -> float:
        """Units reported so far by one task."""
        return self._last_reported.get(task_id, 0)

    def report(self, task_id: Hashable, absolute: float) -> float:
        """Record a task's absolute progress.

        Args:
            task_id: Reporting task
            absolute: Units the task has completed so far

        Returns:
            Units added to the consumed total
        """
        with self._lock:
            last = self._last_reported.get(task_id, 0)
            if absolute <= last:
                return 0
            self._last_reported[task_id] = absolute
            return self._consume(absolute - last)

    def advance(self, task_id: Hashable, delta: float) -> float:
        """Record an increment of a task's progress.

        Returns:
            Units added to the consumed total
        """
        if delta <= 0:
            return 0
        with self._lock:
            self._last_reported[task_id] = self._last_reported.get(task_id, 0) + delta
            return self._consume(delta)

    def _consume(self, delta: float) -> float:
        applied = min(delta, self.total_units - self._consumed)
        if applied <= 0:
            return 0
        self._consumed += applied
        return applied


class ProgressReporter:
    """Progress handle given to a single job.

    Args:
        ledger: Shared ledger the reports go to
        task_id: Key of the job in the ledger
        weight: Units the job is expected to contribute in total
    """

    def __init__(self, ledger: ProgressLedger, task_id: Hashable, weight: float) -> None:
        self._ledger = ledger
        self._task_id = task_id
        self.weight = weight

    @property
    def reported(self) -> float:
        return self._ledger.reported(self._task_id)

    def report(self, absolute: float) -> None:
        """Report absolute progress, e.g. bytes copied so far."""
        self._ledger.report(self._task_id, absolute)

    def advance(self, delta: float = 1) -> None:
        """Report that a step worth ``delta`` units has finished."""
        self._ledger.advance(self._task_id, delta)

    def complete(self) -> None:
        """Top the job up to its full weight."""
        remaining = self.weight - self.reported
        if remaining > 0:
            self.advance(remaining)

    def __call__(self, absolute: float) -> None:
        self.report(absolute)
