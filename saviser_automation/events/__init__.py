"""
Event Bus Module

Provides:
- Publish-subscribe messaging
- Known event types
- Event history
"""

from .bus import (
    Event,
    EventType,
    EventBus,
    WILDCARD
)

__all__ = [
    "Event",
    "EventType",
    "EventBus",
    "WILDCARD"
]
