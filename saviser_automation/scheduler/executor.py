"""
Scheduler Executor

Provides:
- Periodic timers
- Deferred one-shot timers
- Group cancellation on shutdown
"""

import asyncio
import inspect
import logging
import uuid
from typing import Dict, List, Optional, Any, Callable, Union
from datetime import datetime, timedelta

from .jobs import TimerHandle, TimerKind

logger = logging.getLogger("Scheduler")

Delay = Union[float, int, timedelta]


def _to_seconds(delay: Delay) -> float:
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


class Scheduler:
    """
    Cooperative asyncio scheduler.

    Every timer runs as a task on the current event loop and is tracked
    until it finishes or is cancelled, so shutdown can release all of them.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self._timers: Dict[str, TimerHandle] = {}

        # Statistics
        self.total_runs: int = 0
        self.total_failures: int = 0
        self.rejected_deferred: int = 0

    def every(
        self,
        interval: Delay,
        callback: Callable[[], Any],
        name: str = "periodic"
    ) -> TimerHandle:
        """
        Run a callback every `interval`, starting one interval from now.

        The next wait starts only after the callback finishes; a failing
        callback is logged and the timer keeps running. Must be called from
        inside a running event loop.
        """
        seconds = _to_seconds(interval)
        if seconds <= 0:
            raise ValueError(f"Periodic interval must be positive, got {seconds}")

        loop = asyncio.get_running_loop()
        handle = TimerHandle(
            id=f"tmr_{uuid.uuid4().hex[:8]}",
            name=name,
            kind=TimerKind.PERIODIC,
            interval_seconds=seconds,
            created_at=self._clock()
        )
        handle.task = loop.create_task(self._run_periodic(handle, callback))
        self._timers[handle.id] = handle
        logger.debug("Started periodic timer %s (%s) every %.3fs", handle.id, name, seconds)
        return handle

    def schedule_after(
        self,
        delay: Delay,
        callback: Callable[[], Any],
        name: str = "deferred"
    ) -> Optional[TimerHandle]:
        """
        Run a callback once after `delay`.

        A non-positive delay is a caller error: nothing is scheduled, the
        callback is never invoked, and None is returned.
        """
        seconds = _to_seconds(delay)
        if seconds <= 0:
            self.rejected_deferred += 1
            logger.warning("Refusing to schedule %s: delay %.3fs is not in the future", name, seconds)
            return None

        loop = asyncio.get_running_loop()
        now = self._clock()
        handle = TimerHandle(
            id=f"tmr_{uuid.uuid4().hex[:8]}",
            name=name,
            kind=TimerKind.DEFERRED,
            interval_seconds=seconds,
            created_at=now,
            due_at=now + timedelta(seconds=seconds)
        )
        handle.task = loop.create_task(self._run_deferred(handle, callback))
        self._timers[handle.id] = handle
        logger.debug("Scheduled %s (%s) in %.3fs", handle.id, name, seconds)
        return handle

    async def _run_periodic(self, handle: TimerHandle, callback: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(handle.interval_seconds)
            await self._invoke(handle, callback)

    async def _run_deferred(self, handle: TimerHandle, callback: Callable[[], Any]) -> None:
        try:
            await asyncio.sleep(handle.interval_seconds)
            await self._invoke(handle, callback)
        finally:
            self._timers.pop(handle.id, None)

    async def _invoke(self, handle: TimerHandle, callback: Callable[[], Any]) -> None:
        handle.last_run_at = self._clock()
        handle.run_count += 1
        self.total_runs += 1
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            handle.failure_count += 1
            handle.last_error = str(e)
            self.total_failures += 1
            logger.exception("Timer %s (%s) callback failed", handle.id, handle.name)

    def cancel(self, handle: TimerHandle) -> bool:
        """Cancel one timer"""
        self._timers.pop(handle.id, None)
        return handle.cancel()

    def cancel_all(self) -> int:
        """Cancel every outstanding timer, returning how many were live"""
        handles = list(self._timers.values())
        self._timers.clear()
        cancelled = 0
        for handle in handles:
            if handle.cancel():
                cancelled += 1
        if cancelled:
            logger.info("Cancelled %d timer(s)", cancelled)
        return cancelled

    async def shutdown(self) -> int:
        """Cancel every timer and wait for their tasks to unwind"""
        handles = list(self._timers.values())
        cancelled = self.cancel_all()

        current = asyncio.current_task()
        tasks = [h.task for h in handles if h.task is not None and h.task is not current]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return cancelled

    def pending(self, kind: Optional[TimerKind] = None) -> List[TimerHandle]:
        """Outstanding timers, optionally filtered by kind"""
        handles = [h for h in self._timers.values() if not h.done]
        if kind is not None:
            handles = [h for h in handles if h.kind == kind]
        return handles

    def get_statistics(self) -> dict:
        return {
            "pending_periodic": len(self.pending(TimerKind.PERIODIC)),
            "pending_deferred": len(self.pending(TimerKind.DEFERRED)),
            "total_runs": self.total_runs,
            "total_failures": self.total_failures,
            "rejected_deferred": self.rejected_deferred,
            "timers": [h.to_dict() for h in self._timers.values()]
        }
