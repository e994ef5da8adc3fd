"""
Notification System

Provides:
- Notification records and priorities
- Template catalog
- Channel routing (system, email, sms, push)
"""

from .templates import NotificationTemplate
from .manager import (
    Notification,
    NotificationPriority,
    ChannelType
)
from .channels import (
    NotificationChannel,
    SystemChannel,
    ChannelManager
)

__all__ = [
    # Templates
    "NotificationTemplate",
    # Records
    "Notification",
    "NotificationPriority",
    "ChannelType",
    # Channels
    "NotificationChannel",
    "SystemChannel",
    "ChannelManager"
]
