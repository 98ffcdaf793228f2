"""Type definitions for batch runs."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

R = TypeVar("R")


@dataclass
class WorkItem:
    """One unit of work handed to a batch job.

    Attributes:
        identity: Unique key of the item (e.g., the file path)
        display_name: Name used in logs and error summaries
        weight: Progress units the item contributes to the batch total
        payload: Opaque data for the job (e.g., a FileInfo-like object)
    """

    identity: str
    display_name: str = ""
    weight: float = 1
    payload: Any = None

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.identity


class ItemState(enum.StrEnum):
    """Lifecycle of an item inside a batch run."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RELEASED = "released"


@dataclass(frozen=True)
class ItemError:
    """A job failure recorded by the batch runner."""

    identity: str
    display_name: str
    message: str


@dataclass
class ItemOutcome(Generic[R]):
    """Result of one item: either a value or an error.

    Attributes:
        item: The work item
        state: Current lifecycle state
        succeeded: Whether the job returned without raising
        value: The job's return value when it succeeded
        error: The recorded failure when it did not
    """

    item: WorkItem
    state: ItemState = ItemState.QUEUED
    succeeded: bool = False
    value: R | None = None
    error: ItemError | None = None

    @property
    def terminal_state(self) -> ItemState | None:
        """SUCCEEDED or FAILED once the job has returned, None otherwise.

        Unlike ``state``, this survives the item's release.
        """
        if self.succeeded:
            return ItemState.SUCCEEDED
        if self.error is not None:
            return ItemState.FAILED
        return None


@dataclass(frozen=True)
class BatchStatus:
    """Snapshot of a batch run's progress.

    Attributes:
        total_items: Number of items in the run
        completed_items: Items whose job has finished
        running_items: Items whose job is executing now
        total_units: Declared total progress units
        consumed_units: Progress units reported so far
    """

    total_items: int = 0
    completed_items: int = 0
    running_items: int = 0
    total_units: float = 0
    consumed_units: float = 0

    @property
    def item_fraction(self) -> float:
        if self.total_items == 0:
            return 1.0
        return self.completed_items / self.total_items

    @property
    def unit_fraction(self) -> float:
        if self.total_units <= 0:
            return 1.0
        return self.consumed_units / self.total_units


@dataclass
class BatchResult(Generic[R]):
    """Result of a batch run.

    Attributes:
        outcomes: Per-item outcomes in input order
        errors: Recorded failures in the order they happened
        results: Values of the successful items in input order
        finalized: Return value of the finalize step, if one ran
    """

    outcomes: list[ItemOutcome[R]] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)
    results: list[R] = field(default_factory=list)
    finalized: Any = None

    @property
    def ok(self) -> bool:
        """True when no item failed."""
        return not self.errors

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)
