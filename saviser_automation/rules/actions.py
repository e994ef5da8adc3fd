"""
Rule Actions

Provides:
- Action types
- Typed configuration per action type
- Action results
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Mapping, Union
from datetime import datetime
from enum import Enum

from ..notifications.manager import ChannelType, NotificationPriority
from ..notifications.templates import NotificationTemplate


class ActionType(Enum):
    """Types of actions"""
    NOTIFICATION = "notification"
    AUTO_ASSIGN = "auto_assign"
    UPDATE_STATUS = "update_status"
    CREATE_TASK = "create_task"
    REDISTRIBUTE_PATIENTS = "redistribute_patients"


class ActionStatus(Enum):
    """Action execution status"""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SelectionCriteria(Enum):
    """Clinician selection strategies for auto-assignment"""
    AVAILABLE = "available"  # First active clinician
    LEAST_BUSY = "least_busy"  # Lowest open-assignment count


@dataclass
class NotificationConfig:
    """Send a templated notification"""

    channel: ChannelType
    template: NotificationTemplate
    recipients: List[str]
    priority: NotificationPriority

    def to_dict(self) -> dict:
        return {
            "channel": self.channel.value,
            "template": self.template.value,
            "recipients": self.recipients,
            "priority": self.priority.value
        }


@dataclass
class AutoAssignConfig:
    """Assign the triggering patient to a clinician"""

    role: str
    criteria: SelectionCriteria

    def to_dict(self) -> dict:
        return {"role": self.role, "criteria": self.criteria.value}


@dataclass
class UpdateStatusConfig:
    """Set a field on the referenced entity"""

    field: str
    value: Any
    entity: Optional[str] = None  # Entity kind, e.g. "appointment"

    def to_dict(self) -> dict:
        return {"field": self.field, "value": self.value, "entity": self.entity}


@dataclass
class CreateTaskConfig:
    """Create a pending task for a role"""

    assign_to: str
    task: str

    def to_dict(self) -> dict:
        return {"assignTo": self.assign_to, "task": self.task}


@dataclass
class RedistributeConfig:
    """Rebalance open assignments across the roster"""

    criteria: str

    def to_dict(self) -> dict:
        return {"criteria": self.criteria}


ActionConfig = Union[
    NotificationConfig,
    AutoAssignConfig,
    UpdateStatusConfig,
    CreateTaskConfig,
    RedistributeConfig,
]

_CONFIG_TYPES = {
    ActionType.NOTIFICATION: NotificationConfig,
    ActionType.AUTO_ASSIGN: AutoAssignConfig,
    ActionType.UPDATE_STATUS: UpdateStatusConfig,
    ActionType.CREATE_TASK: CreateTaskConfig,
    ActionType.REDISTRIBUTE_PATIENTS: RedistributeConfig,
}


def _require(config: Mapping[str, Any], action_type: ActionType, *keys: str) -> None:
    missing = [k for k in keys if config.get(k) in (None, "")]
    if missing:
        raise ValueError(f"{action_type.value} action missing required config: {', '.join(missing)}")


def _enum(enum_cls, value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValueError(f"Unknown {label} '{value}' (expected one of: {allowed})") from None


def parse_action_config(action_type: ActionType, config: Mapping[str, Any]) -> ActionConfig:
    """Validate a loose config mapping into the typed config for its action type"""
    if action_type == ActionType.NOTIFICATION:
        # "type" is accepted as an alias for the channel
        channel = config.get("channel", config.get("type"))
        _require(dict(config, channel=channel), action_type, "channel", "template", "priority")
        if "recipients" not in config:
            raise ValueError("notification action missing required config: recipients")
        recipients = config["recipients"]
        if isinstance(recipients, str):
            recipients = [recipients]
        return NotificationConfig(
            channel=_enum(ChannelType, channel, "channel"),
            template=_enum(NotificationTemplate, config["template"], "template"),
            recipients=[str(r) for r in recipients],
            priority=_enum(NotificationPriority, config["priority"], "priority")
        )
    elif action_type == ActionType.AUTO_ASSIGN:
        _require(config, action_type, "role", "criteria")
        return AutoAssignConfig(
            role=str(config["role"]),
            criteria=_enum(SelectionCriteria, config["criteria"], "selection criteria")
        )
    elif action_type == ActionType.UPDATE_STATUS:
        _require(config, action_type, "field")
        if "value" not in config:
            raise ValueError("update_status action missing required config: value")
        return UpdateStatusConfig(
            field=str(config["field"]),
            value=config["value"],
            entity=config.get("entity")
        )
    elif action_type == ActionType.CREATE_TASK:
        assign_to = config.get("assign_to", config.get("assignTo"))
        _require(dict(config, assign_to=assign_to), action_type, "assign_to", "task")
        return CreateTaskConfig(assign_to=str(assign_to), task=str(config["task"]))
    elif action_type == ActionType.REDISTRIBUTE_PATIENTS:
        _require(config, action_type, "criteria")
        return RedistributeConfig(criteria=str(config["criteria"]))

    raise ValueError(f"Unsupported action type: {action_type}")


@dataclass
class Action:
    """Rule action: a type tag with its typed configuration"""

    action_type: ActionType
    config: ActionConfig

    def __post_init__(self):
        expected = _CONFIG_TYPES[self.action_type]
        if not isinstance(self.config, expected):
            raise ValueError(
                f"{self.action_type.value} action requires {expected.__name__}, "
                f"got {type(self.config).__name__}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Action":
        """Build an action from {"type": ..., "config": {...}}"""
        if "type" not in data:
            raise ValueError(f"Action requires 'type': {dict(data)}")
        action_type = _enum(ActionType, data["type"], "action type")
        config = data.get("config") or {}
        if not isinstance(config, Mapping):
            raise ValueError(f"Action config must be a mapping, got {type(config).__name__}")
        return cls(action_type=action_type, config=parse_action_config(action_type, config))

    def to_dict(self) -> dict:
        return {
            "type": self.action_type.value,
            "config": self.config.to_dict()
        }


@dataclass
class ActionResult:
    """Result of action execution"""

    action_type: ActionType
    status: ActionStatus
    rule_id: Optional[str] = None
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == ActionStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "action_type": self.action_type.value,
            "status": self.status.value,
            "rule_id": self.rule_id,
            "output": self.output,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms
        }
