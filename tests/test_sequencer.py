"""Tests for batch sequencing."""

import asyncio
import threading

import pytest

from avsuite.core.runner import RunResult, RunStatus
from avsuite.core.sequencer import (
    BatchSequencer,
    QueueItem,
    QueueItemStatus,
    SequencerState,
)
from avsuite.error_handling import (
    ExecutionError,
    MissingMetadata,
    OperationCancelled,
)
from avsuite.operations.builder import ArgumentBuilder
from avsuite.operations.catalog import OperationKind


class FakeRunner:
    """Records invocations and plays back scripted progress and outcomes."""

    def __init__(self, progress=(0.5,), fail_on=()):
        self.progress = progress
        self.fail_on = set(fail_on)
        self.calls = []
        self.cancel_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(self, invocation, on_progress=None):
        self.calls.append(invocation)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            for fraction in self.progress:
                if on_progress:
                    on_progress(fraction)
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        if invocation.output_path.stem.split("-")[0] in self.fail_on:
            return RunResult(
                RunStatus.FAILED,
                invocation,
                exit_code=1,
                error=ExecutionError("ffmpeg", 1, "Invalid data found when processing input"),
            )
        return RunResult(RunStatus.SUCCEEDED, invocation, exit_code=0)

    def cancel(self):
        self.cancel_calls += 1


class BlockingRunner(FakeRunner):
    """Blocks inside run() until cancelled, like a long encode."""

    def __init__(self):
        super().__init__(progress=(0.25,))
        self.started = asyncio.Event()
        self._stop = asyncio.Event()

    async def run(self, invocation, on_progress=None):
        self.calls.append(invocation)
        if on_progress:
            on_progress(0.25)
        self.started.set()
        await self._stop.wait()
        return RunResult(
            RunStatus.CANCELLED, invocation, exit_code=-15, error=OperationCancelled(),
        )

    def cancel(self):
        super().cancel()
        self._stop.set()


@pytest.fixture
def builder(config):
    return ArgumentBuilder(config)


@pytest.fixture
def items(make_video):
    return [
        QueueItem(make_video(f"{name}.mp4"), OperationKind.COMPRESS)
        for name in ("first", "second", "third")
    ]


class TestBatchSequencer:
    @pytest.mark.asyncio
    async def test_empty_batch_completes_immediately(self, builder):
        runner = FakeRunner()
        sequencer = BatchSequencer(builder, runner)

        summary = await sequencer.run([])

        assert sequencer.state is SequencerState.COMPLETED
        assert summary.total == 0
        assert summary.outcomes == ()
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_items_run_in_order(self, builder, items):
        runner = FakeRunner()
        sequencer = BatchSequencer(builder, runner)

        summary = await sequencer.run(items)

        assert [inv.output_path.name for inv in runner.calls] == [
            "first-compressed.mp4",
            "second-compressed.mp4",
            "third-compressed.mp4",
        ]
        assert summary.succeeded == 3
        assert summary.failed == 0
        assert [o.index for o in summary.outcomes] == [0, 1, 2]
        assert all(item.status is QueueItemStatus.DONE for item in items)
        assert items[0].output_path == runner.calls[0].output_path
        assert sequencer.state is SequencerState.COMPLETED
        assert runner.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_build_failure_skips_runner_and_continues(self, builder, make_video):
        bad = QueueItem(make_video("bad.mp4", duration=None), OperationKind.SPLIT_BY_PARTS)
        good = QueueItem(make_video("good.mp4"), OperationKind.GRAYSCALE)
        runner = FakeRunner()

        summary = await BatchSequencer(builder, runner).run([bad, good])

        assert len(runner.calls) == 1
        assert runner.calls[0].output_path.name == "good-bw.mp4"
        assert bad.status is QueueItemStatus.FAILED
        assert isinstance(bad.error, MissingMetadata)
        assert good.status is QueueItemStatus.DONE
        assert (summary.succeeded, summary.failed) == (1, 1)

    @pytest.mark.asyncio
    async def test_runner_failure_is_isolated(self, builder, items):
        runner = FakeRunner(fail_on={"second"})

        summary = await BatchSequencer(builder, runner).run(items)

        assert len(runner.calls) == 3
        assert [o.succeeded for o in summary.outcomes] == [True, False, True]
        assert isinstance(items[1].error, ExecutionError)
        assert items[1].output_path is None

    @pytest.mark.asyncio
    async def test_overall_progress_is_pushed(self, builder, make_video):
        batch = [
            QueueItem(make_video("a.mp4"), OperationKind.COMPRESS),
            QueueItem(make_video("b.mp4"), OperationKind.COMPRESS),
        ]
        sequencer = BatchSequencer(builder, FakeRunner(progress=(0.5,)))
        events = []
        sequencer.subscribe(events.append)

        await sequencer.run(batch)

        overall = [e.overall for e in events]
        assert 0.25 in overall  # halfway through the first of two
        assert 0.5 in overall  # first done, second not started
        assert 0.75 in overall
        assert overall[-1] == 1.0
        assert overall == sorted(overall)
        assert events[0].current_item is batch[0]

    @pytest.mark.asyncio
    async def test_overall_progress_counts_finished_and_current(self, builder, items):
        """First item done, second halfway, third untouched: (1 + 0.5 + 0) / 3."""
        sequencer = BatchSequencer(builder, FakeRunner(progress=(0.5,)))
        events = []
        sequencer.subscribe(events.append)

        await sequencer.run(items)

        midway = [e for e in events if e.current_index == 1 and e.current_fraction == 0.5]
        assert len(midway) == 1
        assert midway[0].finished == 1
        assert midway[0].overall == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_unsubscribe(self, builder, items):
        sequencer = BatchSequencer(builder, FakeRunner())
        events = []
        unsubscribe = sequencer.subscribe(events.append)
        unsubscribe()

        await sequencer.run(items)

        assert events == []

    @pytest.mark.asyncio
    async def test_broken_subscriber_does_not_stop_batch(self, builder, items):
        sequencer = BatchSequencer(builder, FakeRunner())

        def broken(event):
            raise RuntimeError("display gone")

        sequencer.subscribe(broken)
        summary = await sequencer.run(items)

        assert summary.succeeded == 3

    @pytest.mark.asyncio
    async def test_cancel_stops_after_in_flight_item(self, builder, items):
        runner = BlockingRunner()
        sequencer = BatchSequencer(builder, runner)

        task = sequencer.start(items)
        await runner.started.wait()
        assert sequencer.is_running
        sequencer.cancel()
        summary = await task

        assert runner.cancel_calls == 1
        assert len(runner.calls) == 1
        assert sequencer.state is SequencerState.CANCELLED
        assert summary.cancelled
        assert summary.failed == 1
        assert summary.not_started == 2
        assert isinstance(items[0].error, OperationCancelled)
        assert items[0].status is QueueItemStatus.FAILED
        assert [item.status for item in items[1:]] == [QueueItemStatus.PENDING] * 2

    @pytest.mark.asyncio
    async def test_cancel_threadsafe_from_another_thread(self, builder, items):
        runner = BlockingRunner()
        sequencer = BatchSequencer(builder, runner)

        task = sequencer.start(items)
        await runner.started.wait()
        thread = threading.Thread(target=sequencer.cancel_threadsafe)
        thread.start()
        thread.join()
        summary = await task

        assert summary.cancelled
        assert len(summary.outcomes) == 1

    @pytest.mark.asyncio
    async def test_cancel_right_after_start(self, builder, items):
        runner = FakeRunner()
        sequencer = BatchSequencer(builder, runner)

        task = sequencer.start(items)
        assert sequencer.is_running
        sequencer.cancel()
        summary = await task

        assert runner.calls == []
        assert sequencer.state is SequencerState.CANCELLED
        assert summary.cancelled
        assert summary.not_started == 3
        assert [item.status for item in items] == [QueueItemStatus.PENDING] * 3

    def test_cancel_threadsafe_right_after_start_threadsafe(self, builder, items):
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever)
        thread.start()
        runner = FakeRunner()
        try:
            sequencer = BatchSequencer(builder, runner)
            future = sequencer.start_threadsafe(items, loop)
            sequencer.cancel_threadsafe()
            summary = future.result(timeout=10)
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join()
            loop.close()

        assert runner.calls == []
        assert summary.cancelled
        assert summary.not_started == 3

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self, builder):
        runner = FakeRunner()
        sequencer = BatchSequencer(builder, runner)

        sequencer.cancel()

        assert runner.cancel_calls == 0
        assert sequencer.state is SequencerState.IDLE

    @pytest.mark.asyncio
    async def test_run_while_running_raises(self, builder, items):
        runner = BlockingRunner()
        sequencer = BatchSequencer(builder, runner)

        task = sequencer.start(items)
        await runner.started.wait()
        with pytest.raises(RuntimeError):
            await sequencer.run(items)

        sequencer.cancel()
        await task

    @pytest.mark.asyncio
    async def test_descriptor_replaced_before_dispatch(self, builder, make_video):
        """A probe can patch in the duration after the item is queued."""
        item = QueueItem(make_video(duration=None), OperationKind.SPLIT_BY_PARTS)
        item.descriptor = item.descriptor.with_duration(90.0)
        runner = FakeRunner()

        summary = await BatchSequencer(builder, runner).run([item])

        assert summary.succeeded == 1
        assert "45.00" in runner.calls[0].arguments

    def test_start_threadsafe(self, builder, items):
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever)
        thread.start()
        try:
            sequencer = BatchSequencer(builder, FakeRunner())
            future = sequencer.start_threadsafe(items, loop)
            summary = future.result(timeout=10)
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join()
            loop.close()

        assert summary.succeeded == 3
