"""
Rules Module

Provides:
- Rule, condition and action definitions
- Condition evaluation
- Rule registry and default rules
- Rule loading from YAML
"""

from .conditions import (
    Condition,
    ConditionOperator,
    ConditionEvaluator,
    MISSING,
    resolve_field
)
from .actions import (
    Action,
    ActionType,
    ActionStatus,
    ActionResult,
    SelectionCriteria,
    NotificationConfig,
    AutoAssignConfig,
    UpdateStatusConfig,
    CreateTaskConfig,
    RedistributeConfig
)
from .registry import (
    Rule,
    RuleResult,
    RuleStatus,
    RuleRegistry,
    TriggerType
)
from .defaults import default_rules
from .loader import rule_from_dict, load_rules_file

__all__ = [
    # Conditions
    "Condition",
    "ConditionOperator",
    "ConditionEvaluator",
    "MISSING",
    "resolve_field",
    # Actions
    "Action",
    "ActionType",
    "ActionStatus",
    "ActionResult",
    "SelectionCriteria",
    "NotificationConfig",
    "AutoAssignConfig",
    "UpdateStatusConfig",
    "CreateTaskConfig",
    "RedistributeConfig",
    # Registry
    "Rule",
    "RuleResult",
    "RuleStatus",
    "RuleRegistry",
    "TriggerType",
    # Defaults and loading
    "default_rules",
    "rule_from_dict",
    "load_rules_file"
]
