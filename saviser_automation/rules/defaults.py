"""
Default Rules

The five rules every engine starts with.
"""

from typing import List

from .conditions import Condition, ConditionOperator
from .actions import (
    Action,
    ActionType,
    NotificationConfig,
    AutoAssignConfig,
    UpdateStatusConfig,
    CreateTaskConfig,
    RedistributeConfig,
    SelectionCriteria
)
from .registry import Rule, TriggerType
from ..notifications.manager import ChannelType, NotificationPriority
from ..notifications.templates import NotificationTemplate

APPOINTMENT_REMINDER_RULE_ID = "appointment-reminder-24h"
HIGH_PRIORITY_TRIAGE_RULE_ID = "high-priority-triage-rule"
FOLLOW_UP_RULE_ID = "patient-follow-up"
AUTO_CONFIRM_RULE_ID = "appointment-auto-confirm"
WORKLOAD_BALANCE_RULE_ID = "doctor-workload-balance"

WORKLOAD_THRESHOLD = 10


def _notify(
    channel: ChannelType,
    template: NotificationTemplate,
    recipients: List[str],
    priority: NotificationPriority = NotificationPriority.MEDIUM
) -> Action:
    return Action(
        action_type=ActionType.NOTIFICATION,
        config=NotificationConfig(
            channel=channel,
            template=template,
            recipients=recipients,
            priority=priority
        )
    )


def default_rules() -> List[Rule]:
    """Fresh copies of the built-in rules"""
    return [
        Rule(
            id=APPOINTMENT_REMINDER_RULE_ID,
            name="Appointment reminder 24 hours ahead",
            trigger=TriggerType.TIME,
            description="Remind patients of scheduled appointments for tomorrow",
            conditions=[
                Condition("appointment.fecha", ConditionOperator.EQUALS, "tomorrow"),
                Condition("appointment.estado", ConditionOperator.EQUALS, "programada"),
            ],
            actions=[
                _notify(ChannelType.SMS, NotificationTemplate.APPOINTMENT_REMINDER_24H, ["paciente"]),
                _notify(ChannelType.SYSTEM, NotificationTemplate.APPOINTMENT_REMINDER_24H, ["recepcion"]),
            ]
        ),
        Rule(
            id=HIGH_PRIORITY_TRIAGE_RULE_ID,
            name="High-priority triage alert",
            trigger=TriggerType.EVENT,
            event_types=["triage_created"],
            description="Alert clinicians and auto-assign high-priority triage patients",
            conditions=[
                Condition("prioridad", ConditionOperator.EQUALS, "alta"),
            ],
            actions=[
                _notify(
                    ChannelType.PUSH,
                    NotificationTemplate.HIGH_PRIORITY_TRIAGE,
                    ["doctor", "enfermeria"],
                    NotificationPriority.URGENT
                ),
                Action(
                    action_type=ActionType.AUTO_ASSIGN,
                    config=AutoAssignConfig(role="doctor", criteria=SelectionCriteria.AVAILABLE)
                ),
            ]
        ),
        Rule(
            id=FOLLOW_UP_RULE_ID,
            name="Post-consultation follow-up",
            trigger=TriggerType.TIME,
            description="Follow up with patients seven days after a completed consultation",
            conditions=[
                Condition("consultation.fechaHora", ConditionOperator.DAYS_AGO, 7),
                Condition("consultation.estado", ConditionOperator.EQUALS, "completada"),
            ],
            actions=[
                _notify(ChannelType.SMS, NotificationTemplate.FOLLOW_UP_REMINDER, ["paciente"]),
                Action(
                    action_type=ActionType.CREATE_TASK,
                    config=CreateTaskConfig(assign_to="doctor", task="follow_up_call")
                ),
            ]
        ),
        Rule(
            id=AUTO_CONFIRM_RULE_ID,
            name="Same-day appointment auto-confirmation",
            trigger=TriggerType.TIME,
            description="Confirm scheduled appointments on the day they occur",
            conditions=[
                Condition("appointment.fecha", ConditionOperator.EQUALS, "today"),
                Condition("appointment.estado", ConditionOperator.EQUALS, "programada"),
            ],
            actions=[
                Action(
                    action_type=ActionType.UPDATE_STATUS,
                    config=UpdateStatusConfig(field="estado", value="confirmada", entity="appointment")
                ),
                _notify(
                    ChannelType.SYSTEM,
                    NotificationTemplate.APPOINTMENT_CONFIRMED,
                    ["recepcion"],
                    NotificationPriority.LOW
                ),
            ]
        ),
        Rule(
            id=WORKLOAD_BALANCE_RULE_ID,
            name="Doctor workload balancing",
            trigger=TriggerType.EVENT,
            description="Redistribute patients when a doctor exceeds the assignment threshold",
            conditions=[
                Condition("doctor.assigned_patients", ConditionOperator.GREATER_THAN, WORKLOAD_THRESHOLD),
            ],
            actions=[
                Action(
                    action_type=ActionType.REDISTRIBUTE_PATIENTS,
                    config=RedistributeConfig(criteria="least_busy_doctor")
                ),
                _notify(ChannelType.SYSTEM, NotificationTemplate.WORKLOAD_BALANCED, ["empresa"]),
            ]
        ),
    ]
