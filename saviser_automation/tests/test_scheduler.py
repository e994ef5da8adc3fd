"""
Tests for the Scheduler
"""

import asyncio
import pytest
from datetime import timedelta

from ..scheduler.executor import Scheduler
from ..scheduler.jobs import TimerKind


class TestDeferredTimers:
    """Test one-shot timers"""

    @pytest.mark.asyncio
    async def test_non_positive_delay_is_rejected(self):
        scheduler = Scheduler()
        calls = []

        assert scheduler.schedule_after(0, lambda: calls.append("zero")) is None
        assert scheduler.schedule_after(-5, lambda: calls.append("negative")) is None
        assert scheduler.schedule_after(timedelta(seconds=-1), lambda: calls.append("past")) is None

        await asyncio.sleep(0.02)
        assert calls == []
        assert scheduler.pending() == []
        assert scheduler.rejected_deferred == 3

    @pytest.mark.asyncio
    async def test_fires_once_and_drops_out(self):
        scheduler = Scheduler()
        calls = []

        handle = scheduler.schedule_after(0.01, lambda: calls.append("fired"), name="reminder")
        assert handle.kind == TimerKind.DEFERRED
        assert scheduler.pending(TimerKind.DEFERRED) == [handle]

        await asyncio.sleep(0.05)
        assert calls == ["fired"]
        assert scheduler.pending() == []
        assert handle.run_count == 1

    @pytest.mark.asyncio
    async def test_coroutine_callback_is_awaited(self):
        scheduler = Scheduler()
        calls = []

        async def callback():
            calls.append("async")

        scheduler.schedule_after(timedelta(milliseconds=10), callback)
        await asyncio.sleep(0.05)
        assert calls == ["async"]

    @pytest.mark.asyncio
    async def test_cancel_prevents_invocation(self):
        scheduler = Scheduler()
        calls = []

        handle = scheduler.schedule_after(0.02, lambda: calls.append("fired"))
        assert scheduler.cancel(handle)
        await asyncio.sleep(0.05)

        assert calls == []
        assert handle.cancelled


class TestPeriodicTimers:
    """Test periodic timers"""

    @pytest.mark.asyncio
    async def test_interval_must_be_positive(self):
        scheduler = Scheduler()
        with pytest.raises(ValueError):
            scheduler.every(0, lambda: None)

    @pytest.mark.asyncio
    async def test_runs_repeatedly(self):
        scheduler = Scheduler()
        calls = []

        scheduler.every(0.01, lambda: calls.append(1), name="tick")
        await asyncio.sleep(0.08)
        await scheduler.shutdown()

        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_ticking(self):
        scheduler = Scheduler()

        def broken():
            raise RuntimeError("tick failed")

        handle = scheduler.every(0.01, broken)
        await asyncio.sleep(0.08)

        assert handle.failure_count >= 2
        assert not handle.done
        assert handle.last_error == "tick failed"
        await scheduler.shutdown()


class TestShutdown:
    """Test group cancellation"""

    @pytest.mark.asyncio
    async def test_shutdown_cancels_everything(self):
        scheduler = Scheduler()
        calls = []

        periodic = scheduler.every(0.05, lambda: calls.append("tick"))
        deferred = scheduler.schedule_after(0.05, lambda: calls.append("deferred"))
        assert len(scheduler.pending()) == 2

        cancelled = await scheduler.shutdown()
        await asyncio.sleep(0.1)

        assert cancelled == 2
        assert calls == []
        assert scheduler.pending() == []
        assert periodic.cancelled
        assert deferred.cancelled

    @pytest.mark.asyncio
    async def test_cancel_all_on_empty_scheduler(self):
        assert Scheduler().cancel_all() == 0
