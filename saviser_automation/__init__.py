"""
SAVISER Automation

In-process rule engine for clinical operations: domain events and periodic
ticks become notifications, patient auto-assignment, status updates, task
creation and workload rebalancing.

Usage:

    engine = AutomationEngine(directory=my_directory, assignments=my_assignments)
    await engine.start()
    await engine.trigger_event("triage_created", {"prioridad": "alta", "pacienteId": "P1"})
    await engine.stop()
"""

from .automation import AutomationEngine, StateProvider, StaticStateProvider
from .config import AutomationConfig
from .events import Event, EventBus, EventType
from .integrations import (
    ClinicianSummary,
    AssignmentRequest,
    EntityRef,
    ClinicianDirectory,
    AssignmentService,
    StatusService,
    WorkloadBalancer
)
from .notifications import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationTemplate,
    ChannelManager,
    ChannelType,
    SystemChannel
)
from .rules import (
    Action,
    ActionType,
    Condition,
    ConditionOperator,
    Rule,
    RuleResult,
    TriggerType
)

__version__ = "0.1.0"

__all__ = [
    "AutomationEngine",
    "StateProvider",
    "StaticStateProvider",
    "AutomationConfig",
    "Event",
    "EventBus",
    "EventType",
    "ClinicianSummary",
    "AssignmentRequest",
    "EntityRef",
    "ClinicianDirectory",
    "AssignmentService",
    "StatusService",
    "WorkloadBalancer",
    "Notification",
    "NotificationChannel",
    "NotificationPriority",
    "NotificationTemplate",
    "ChannelManager",
    "ChannelType",
    "SystemChannel",
    "Action",
    "ActionType",
    "Condition",
    "ConditionOperator",
    "Rule",
    "RuleResult",
    "TriggerType"
]
