"""
Notification Templates

Fixed catalog of template identifiers. Template text is resolved by the
receiving UI, never here.
"""

from enum import Enum


class NotificationTemplate(Enum):
    """Known notification templates"""
    APPOINTMENT_REMINDER_24H = "appointment_reminder_24h"
    HIGH_PRIORITY_TRIAGE = "high_priority_triage"
    PATIENT_ASSIGNED = "patient_assigned"
    FOLLOW_UP_REMINDER = "follow_up_reminder"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    WORKLOAD_BALANCED = "workload_balanced"
    TASK_CREATED = "task_created"
