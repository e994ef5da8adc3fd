"""
Notification Records

Provides:
- Notification definition
- Priority levels
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Any, Callable, Optional
from datetime import datetime
from enum import Enum

from .templates import NotificationTemplate


class ChannelType(Enum):
    """Notification delivery channels"""
    SYSTEM = "system"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class NotificationPriority(Enum):
    """Notification priority levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Notification:
    """Structured message handed to a delivery channel"""

    id: str
    channel: ChannelType
    template: NotificationTemplate
    recipients: List[str] = field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    delivered: bool = False

    @classmethod
    def create(
        cls,
        channel: ChannelType,
        template: NotificationTemplate,
        recipients: List[str],
        priority: NotificationPriority,
        payload: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> "Notification":
        """Create a notification with a fresh id and timestamp"""
        now = (clock or datetime.now)()
        return cls(
            id=f"ntf_{uuid.uuid4().hex[:12]}",
            channel=channel,
            template=template,
            recipients=list(recipients),
            priority=priority,
            payload=dict(payload or {}),
            created_at=now
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "channel": self.channel.value,
            "template": self.template.value,
            "recipients": self.recipients,
            "priority": self.priority.value,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "delivered": self.delivered
        }
