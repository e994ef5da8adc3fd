"""
Scheduler Module

Provides:
- Periodic and deferred timers
- Timer handles
- Group cancellation
"""

from .jobs import TimerHandle, TimerKind
from .executor import Scheduler

__all__ = [
    "TimerHandle",
    "TimerKind",
    "Scheduler"
]
