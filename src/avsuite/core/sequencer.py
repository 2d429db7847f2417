"""Batch sequencing of queued operations through a single process slot."""

import asyncio
import concurrent.futures
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from avsuite.core.runner import ProcessRunner
from avsuite.error_handling import AvSuiteError, BuildError
from avsuite.media import MediaDescriptor
from avsuite.operations.builder import ArgumentBuilder
from avsuite.operations.catalog import OperationKind
from avsuite.operations.parameters import OperationParameters

logger = logging.getLogger(__name__)


class QueueItemStatus(Enum):
    """Status of items in a batch."""

    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    FAILED = "failed"


class QueueItem:
    """One operation to apply to one file."""

    def __init__(
        self,
        descriptor: MediaDescriptor,
        kind: OperationKind,
        params: OperationParameters | None = None,
    ):
        # The descriptor may be swapped for a probed one until the item is dispatched
        self.descriptor = descriptor
        self.kind = kind
        self.params = params or OperationParameters()
        self.status = QueueItemStatus.PENDING
        self.output_path: Path | None = None
        self.error: AvSuiteError | None = None

    def __str__(self) -> str:
        return f"{self.kind.title}: {self.descriptor.path.name} ({self.status.value})"


class SequencerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ItemOutcome:
    """What happened to one dispatched item."""

    index: int
    item: QueueItem
    output_path: Path | None = None
    error: AvSuiteError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchProgress:
    """Progress snapshot pushed to subscribers on every change."""

    overall: float
    current_index: int
    current_fraction: float
    finished: int
    total: int
    current_item: QueueItem | None = None


@dataclass(frozen=True)
class BatchSummary:
    """Outcome of a whole batch. Items never started are not reported."""

    outcomes: tuple[ItemOutcome, ...]
    total: int
    cancelled: bool

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def not_started(self) -> int:
        return self.total - len(self.outcomes)


ProgressSubscriber = Callable[[BatchProgress], None]


class BatchSequencer:
    """Drives queue items through one runner strictly in order.

    The event loop running :meth:`run` owns all state. From other threads use
    :meth:`start_threadsafe` and :meth:`cancel_threadsafe`.
    """

    def __init__(self, builder: ArgumentBuilder, runner: ProcessRunner):
        self.builder = builder
        self.runner = runner

        self.state = SequencerState.IDLE
        self.items: list[QueueItem] = []
        self.outcomes: list[ItemOutcome] = []
        self.current_index = 0
        self.current_fraction = 0.0

        self._cancelled = False
        self._subscribers: list[ProgressSubscriber] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self.state is SequencerState.RUNNING

    @property
    def overall_progress(self) -> float:
        if not self.items:
            return 0.0
        return (len(self.outcomes) + self.current_fraction) / len(self.items)

    def subscribe(self, callback: ProgressSubscriber) -> Callable[[], None]:
        """Register for progress updates; returns a function that unsubscribes."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def summary(self) -> BatchSummary:
        return BatchSummary(
            outcomes=tuple(self.outcomes),
            total=len(self.items),
            cancelled=self.state is SequencerState.CANCELLED,
        )

    async def run(self, items: Iterable[QueueItem]) -> BatchSummary:
        """Process *items* one after another and return the summary.

        Raises:
            RuntimeError: a batch is already running.
        """
        self._begin(items)
        return await self._dispatch()

    def start(self, items: Iterable[QueueItem]) -> asyncio.Task:
        """Enter RUNNING and schedule the batch on the running loop.

        Must be called on that loop. A :meth:`cancel` issued right after this
        returns is honoured before the first item is dispatched.

        Raises:
            RuntimeError: a batch is already running.
        """
        self._begin(items)
        self._task = asyncio.get_running_loop().create_task(self._dispatch())
        return self._task

    def start_threadsafe(
        self,
        items: Iterable[QueueItem],
        loop: asyncio.AbstractEventLoop,
    ) -> concurrent.futures.Future:
        """Schedule :meth:`start` on *loop* from another thread.

        Callbacks run on the loop in submission order, so a later
        :meth:`cancel_threadsafe` always sees the batch as running.
        """
        items = list(items)
        self._loop = loop
        outcome: concurrent.futures.Future = concurrent.futures.Future()

        def deliver(task: asyncio.Task) -> None:
            if outcome.cancelled():
                return
            if task.cancelled():
                outcome.cancel()
            elif task.exception() is not None:
                outcome.set_exception(task.exception())
            else:
                outcome.set_result(task.result())

        def begin() -> None:
            try:
                task = self.start(items)
            except RuntimeError as e:
                outcome.set_exception(e)
                return
            task.add_done_callback(deliver)

        loop.call_soon_threadsafe(begin)
        return outcome

    def cancel(self) -> None:
        """Stop after the in-flight item; remaining items stay pending."""
        if not self.is_running or self._cancelled:
            return
        logger.info("Cancelling batch")
        self._cancelled = True
        self.runner.cancel()

    def cancel_threadsafe(self) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self.cancel)

    def _begin(self, items: Iterable[QueueItem]) -> None:
        """Reset run state and enter RUNNING (or COMPLETED for an empty batch)."""
        if self.is_running:
            msg = "A batch is already running"
            raise RuntimeError(msg)

        self._loop = asyncio.get_running_loop()
        self.items = list(items)
        self.outcomes = []
        self.current_index = 0
        self.current_fraction = 0.0
        self._cancelled = False
        self.state = SequencerState.RUNNING if self.items else SequencerState.COMPLETED

    async def _dispatch(self) -> BatchSummary:
        if not self.is_running:
            return self.summary()

        logger.info(f"Starting batch of {len(self.items)} item(s)")

        try:
            for index, item in enumerate(self.items):
                if self._cancelled:
                    break
                self.current_index = index
                self.current_fraction = 0.0
                self._publish()

                await self._process_item(index, item)

                self.current_fraction = 0.0
                self._publish()
        finally:
            self.state = (
                SequencerState.CANCELLED if self._cancelled else SequencerState.COMPLETED
            )

        summary = self.summary()
        logger.info(
            f"Batch {self.state.value}: {summary.succeeded} succeeded, "
            f"{summary.failed} failed, {summary.not_started} not started",
        )
        return summary

    async def _process_item(self, index: int, item: QueueItem) -> None:
        item.status = QueueItemStatus.ACTIVE

        try:
            invocation = self.builder.build(item.kind, item.descriptor, item.params)
        except BuildError as e:
            logger.warning(f"Could not prepare {item.descriptor.path.name}: {e.message}")
            self._record(index, item, error=e)
            return

        result = await self.runner.run(invocation, self._on_progress)
        if result.succeeded:
            self._record(index, item, output_path=result.output_path)
        else:
            self._record(index, item, error=result.error)

    def _record(
        self,
        index: int,
        item: QueueItem,
        *,
        output_path: Path | None = None,
        error: AvSuiteError | None = None,
    ) -> None:
        item.status = QueueItemStatus.DONE if error is None else QueueItemStatus.FAILED
        item.output_path = output_path
        item.error = error
        self.outcomes.append(ItemOutcome(index, item, output_path, error))

    def _on_progress(self, fraction: float) -> None:
        self.current_fraction = fraction
        self._publish()

    def _publish(self) -> None:
        current = self.items[self.current_index] if self.is_running else None
        event = BatchProgress(
            overall=self.overall_progress,
            current_index=self.current_index,
            current_fraction=self.current_fraction,
            finished=len(self.outcomes),
            total=len(self.items),
            current_item=current,
        )
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Progress subscriber failed: {e}")
