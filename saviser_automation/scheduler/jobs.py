"""
Timer Handles

Provides:
- Timer kinds
- Cancellable timer handles
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional
from datetime import datetime
from enum import Enum


class TimerKind(Enum):
    """Types of timers"""
    PERIODIC = "periodic"  # Fires every interval until cancelled
    DEFERRED = "deferred"  # Fires once after a delay


@dataclass
class TimerHandle:
    """Handle to a scheduled timer"""

    id: str
    name: str
    kind: TimerKind
    interval_seconds: float
    created_at: datetime
    due_at: Optional[datetime] = None  # Deferred timers only
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    # Statistics
    run_count: int = 0
    failure_count: int = 0
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.task is None or self.task.done()

    @property
    def cancelled(self) -> bool:
        return self.task is not None and self.task.cancelled()

    def cancel(self) -> bool:
        """Cancel the underlying task; false when it already finished"""
        if self.task is None or self.task.done():
            return False
        self.task.cancel()
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "interval_seconds": self.interval_seconds,
            "created_at": self.created_at.isoformat(),
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "done": self.done,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error
        }
