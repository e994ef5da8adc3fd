"""
Notification Channels

Provides:
- Channel abstraction
- In-process system channel for UI listeners
- Channel routing and delivery history
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List, Optional, Callable

from .manager import Notification, ChannelType

logger = logging.getLogger("NotificationChannels")

NotificationListener = Callable[[Notification], None]


class NotificationChannel(ABC):
    """Abstract base class for notification channels"""

    @abstractmethod
    async def deliver(self, notification: Notification) -> None:
        """Hand a notification to this channel"""


class SystemChannel(NotificationChannel):
    """
    Synchronous in-process channel.

    UI components register listeners and receive every notification as it
    is delivered. Read/acknowledge state belongs to the listener.
    """

    def __init__(self):
        self._listeners: Dict[str, NotificationListener] = {}

    def subscribe(self, listener: NotificationListener, listener_id: Optional[str] = None) -> str:
        """Register a listener, returning its id"""
        listener_id = listener_id or f"lsn_{uuid.uuid4().hex[:8]}"
        self._listeners[listener_id] = listener
        return listener_id

    def unsubscribe(self, listener_id: str) -> bool:
        """Remove a listener"""
        return self._listeners.pop(listener_id, None) is not None

    def clear(self) -> None:
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def deliver(self, notification: Notification) -> None:
        for listener_id, listener in list(self._listeners.items()):
            try:
                listener(notification)
            except Exception as e:
                logger.error(
                    "System notification listener %s failed for %s: %s",
                    listener_id, notification.id, e
                )


class ChannelManager:
    """Routes notifications to the channel registered for their type"""

    def __init__(
        self,
        system_channel: Optional[SystemChannel] = None,
        fallback_to_system: bool = True,
        history_size: int = 500
    ):
        self.system_channel = system_channel or SystemChannel()
        self.fallback_to_system = fallback_to_system
        self._channels: Dict[ChannelType, NotificationChannel] = {
            ChannelType.SYSTEM: self.system_channel
        }
        self._history: deque = deque(maxlen=history_size)
        self._stats = {
            "total_delivered": 0,
            "total_fallback": 0,
            "by_channel": {},
            "by_template": {}
        }

    def register(self, channel_type: ChannelType, channel: NotificationChannel) -> None:
        """Register a sender for a channel type"""
        self._channels[channel_type] = channel

    def get_channel(self, channel_type: ChannelType) -> Optional[NotificationChannel]:
        return self._channels.get(channel_type)

    async def deliver(self, notification: Notification) -> Notification:
        """
        Hand a notification to its channel.

        Raises LookupError when no channel is registered for the type and
        fallback is disabled.
        """
        channel = self._channels.get(notification.channel)
        if channel is None:
            if not self.fallback_to_system:
                raise LookupError(f"No channel registered for '{notification.channel.value}'")
            logger.info(
                "No %s channel registered, delivering %s through system channel",
                notification.channel.value, notification.id
            )
            channel = self.system_channel
            self._stats["total_fallback"] += 1

        result = channel.deliver(notification)
        if asyncio.iscoroutine(result):
            await result

        notification.delivered = True
        self._history.append(notification)
        self._stats["total_delivered"] += 1
        channel_key = notification.channel.value
        template_key = notification.template.value
        self._stats["by_channel"][channel_key] = self._stats["by_channel"].get(channel_key, 0) + 1
        self._stats["by_template"][template_key] = self._stats["by_template"].get(template_key, 0) + 1
        return notification

    def get_history(self, template: Optional[str] = None, limit: int = 100) -> List[Notification]:
        """Recently delivered notifications, oldest first"""
        notifications = list(self._history)
        if template:
            notifications = [n for n in notifications if n.template.value == template]
        return notifications[-limit:]

    def get_statistics(self) -> dict:
        return {
            "total_delivered": self._stats["total_delivered"],
            "total_fallback": self._stats["total_fallback"],
            "history_size": len(self._history),
            "registered_channels": sorted(c.value for c in self._channels),
            "system_listeners": self.system_channel.listener_count,
            "by_channel": dict(self._stats["by_channel"]),
            "by_template": dict(self._stats["by_template"])
        }
