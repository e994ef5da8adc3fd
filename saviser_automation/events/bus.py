"""
Event Bus

Provides:
- Event definitions
- Event publishing
- Subscriber management
"""

import asyncio
import inspect
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Callable, Union
from datetime import datetime
from enum import Enum

logger = logging.getLogger("EventBus")

WILDCARD = "*"


class EventType(Enum):
    """Event types produced and consumed by the automation engine"""
    TRIAGE_CREATED = "triage_created"
    CONSULTATION_COMPLETED = "consultation_completed"
    CONSULTATION_FOLLOW_UP = "consultation_follow_up"
    PATIENT_ASSIGNED = "patient_assigned"
    TASK_CREATED = "task_created"
    WORKLOAD_BALANCED = "workload_balanced"
    APPOINTMENT_REMINDER = "appointment_reminder"


@dataclass
class Event:
    """Published event; exists only for the duration of dispatch"""

    id: str
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    # Delivery tracking
    delivered_to: List[str] = field(default_factory=list)
    failed_for: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "delivered_to": self.delivered_to,
            "failed_for": self.failed_for
        }


def _type_key(event_type: Union[EventType, str]) -> str:
    return event_type.value if isinstance(event_type, EventType) else str(event_type)


class EventBus:
    """In-process publish-subscribe registry keyed by event type"""

    def __init__(self, history_size: int = 1000, clock: Optional[Callable[[], datetime]] = None):
        self._subscribers: Dict[str, Dict[str, Callable]] = {}  # event_type -> {subscriber_id: handler}
        self._history: deque = deque(maxlen=history_size)
        self._clock = clock or datetime.now
        self._stats = {
            "total_published": 0,
            "total_delivered": 0,
            "total_failed": 0,
            "by_type": {}
        }

    def subscribe(
        self,
        event_type: Union[EventType, str],
        handler: Callable,
        subscriber_id: Optional[str] = None
    ) -> str:
        """
        Register a handler for an event type ("*" receives every event).

        Handlers take the Event and may be plain functions or coroutine
        functions. Returns the subscriber id.

        Raises ValueError when the id is already registered for the type.
        """
        type_key = _type_key(event_type)
        subscriber_id = subscriber_id or f"sub_{uuid.uuid4().hex[:8]}"
        subscribers = self._subscribers.setdefault(type_key, {})
        if subscriber_id in subscribers:
            raise ValueError(f"Subscriber '{subscriber_id}' already registered for '{type_key}'")
        subscribers[subscriber_id] = handler
        return subscriber_id

    def unsubscribe(self, event_type: Union[EventType, str], subscriber_id: str) -> bool:
        """Remove a handler"""
        subscribers = self._subscribers.get(_type_key(event_type))
        if subscribers and subscriber_id in subscribers:
            del subscribers[subscriber_id]
            return True
        return False

    def clear(self) -> int:
        """Drop every subscriber, returning how many were removed"""
        count = sum(len(subs) for subs in self._subscribers.values())
        self._subscribers.clear()
        return count

    def has_subscribers(self, event_type: Union[EventType, str]) -> bool:
        type_key = _type_key(event_type)
        return bool(self._subscribers.get(type_key)) or bool(self._subscribers.get(WILDCARD))

    async def publish(
        self,
        event_type: Union[EventType, str],
        payload: Optional[Dict[str, Any]] = None
    ) -> Event:
        """
        Deliver an event to every handler for its type, then to wildcard
        handlers, sequentially and in registration order.

        A failing handler is logged and does not stop the others.
        """
        type_key = _type_key(event_type)
        event = Event(
            id=f"evt_{uuid.uuid4().hex[:12]}",
            event_type=type_key,
            payload=payload if payload is not None else {},
            timestamp=self._clock()
        )

        self._history.append(event)
        self._stats["total_published"] += 1
        self._stats["by_type"][type_key] = self._stats["by_type"].get(type_key, 0) + 1

        handlers = list(self._subscribers.get(type_key, {}).items())
        if type_key != WILDCARD:
            handlers.extend(self._subscribers.get(WILDCARD, {}).items())

        for subscriber_id, handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                event.delivered_to.append(subscriber_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                event.failed_for.append(subscriber_id)
                logger.error(
                    "Handler %s failed for event '%s': %s",
                    subscriber_id, type_key, e
                )

        self._stats["total_delivered"] += len(event.delivered_to)
        self._stats["total_failed"] += len(event.failed_for)
        return event

    def get_history(
        self,
        event_type: Optional[Union[EventType, str]] = None,
        limit: int = 100
    ) -> List[Event]:
        """Recently published events, oldest first"""
        events = list(self._history)
        if event_type is not None:
            type_key = _type_key(event_type)
            events = [e for e in events if e.event_type == type_key]
        return events[-limit:]

    def get_subscribers(self) -> Dict[str, List[str]]:
        """Subscriber ids by event type"""
        return {type_key: list(subs.keys()) for type_key, subs in self._subscribers.items() if subs}

    def get_statistics(self) -> dict:
        return {
            "total_published": self._stats["total_published"],
            "total_delivered": self._stats["total_delivered"],
            "total_failed": self._stats["total_failed"],
            "history_size": len(self._history),
            "subscriber_count": sum(len(subs) for subs in self._subscribers.values()),
            "by_type": dict(self._stats["by_type"])
        }
