"""
Rule Registry

Provides:
- Rule definitions
- Rule results
- Registration, enable/disable and trigger lookup
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from datetime import datetime, date
from enum import Enum

from .conditions import Condition
from .actions import Action, ActionResult, ActionStatus


class TriggerType(Enum):
    """Why a rule is considered"""
    TIME = "time"  # Periodic tick against a state snapshot
    EVENT = "event"  # Published domain event
    CONDITION = "condition"  # Any check: ticks and events alike


class RuleStatus(Enum):
    """Rule execution status"""
    EXECUTED = "executed"  # Every action completed or was skipped
    PARTIAL = "partial"  # At least one action failed
    FAILED = "failed"  # Every action failed


@dataclass
class Rule:
    """Rule definition"""

    id: str
    name: str
    trigger: TriggerType
    conditions: List[Condition] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    is_active: bool = True
    last_executed: Optional[datetime] = None
    description: str = ""
    event_types: List[str] = field(default_factory=list)  # Empty accepts any event type

    # Statistics
    execution_count: int = 0
    failure_count: int = 0

    def accepts_event(self, event_type: str) -> bool:
        """Check whether this rule listens to an event type"""
        return not self.event_types or event_type in self.event_types

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": [a.to_dict() for a in self.actions],
            "is_active": self.is_active,
            "last_executed": self.last_executed.isoformat() if self.last_executed else None,
            "description": self.description,
            "event_types": self.event_types,
            "execution_count": self.execution_count,
            "failure_count": self.failure_count
        }


@dataclass
class RuleResult:
    """Outcome of one rule invocation"""

    rule_id: str
    status: RuleStatus
    action_results: List[ActionResult] = field(default_factory=list)
    executed_at: Optional[datetime] = None
    trigger_source: str = ""  # Event type or "tick"

    @property
    def failed_actions(self) -> List[ActionResult]:
        return [r for r in self.action_results if r.status == ActionStatus.FAILED]

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "status": self.status.value,
            "action_results": [r.to_dict() for r in self.action_results],
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "trigger_source": self.trigger_source
        }


class RuleRegistry:
    """Ordered store of automation rules"""

    def __init__(self, rules: Optional[List[Rule]] = None):
        self._rules: List[Rule] = list(rules or [])

    def add(self, rule: Rule) -> Rule:
        """Append a rule; ids are not checked for collisions"""
        self._rules.append(rule)
        return rule

    def get(self, rule_id: str) -> Optional[Rule]:
        """Get the first rule registered under an id"""
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def toggle(self, rule_id: str, active: bool) -> bool:
        """Enable or disable a rule; unknown ids are ignored"""
        rule = self.get(rule_id)
        if rule is None:
            return False
        rule.is_active = active
        return True

    def rules_for_trigger(
        self,
        trigger: TriggerType,
        event_type: Optional[str] = None
    ) -> List[Rule]:
        """Active rules for a trigger kind, in registry order"""
        selected = []
        for rule in self._rules:
            if not rule.is_active or rule.trigger != trigger:
                continue
            if event_type is not None and not rule.accepts_event(event_type):
                continue
            selected.append(rule)
        return selected

    def rules_for_event(self, event_type: str) -> List[Rule]:
        """Active event- and condition-triggered rules accepting an event type"""
        return [
            rule for rule in self._rules
            if rule.is_active
            and rule.trigger in (TriggerType.EVENT, TriggerType.CONDITION)
            and rule.accepts_event(event_type)
        ]

    def rules_for_tick(self) -> List[Rule]:
        """Active time- and condition-triggered rules"""
        return [
            rule for rule in self._rules
            if rule.is_active and rule.trigger in (TriggerType.TIME, TriggerType.CONDITION)
        ]

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get_statistics(self, today: date) -> Dict[str, Any]:
        """Rule counts; executed_today compares calendar days"""
        return {
            "total_rules": len(self._rules),
            "active_rules": len([r for r in self._rules if r.is_active]),
            "executed_today": len([
                r for r in self._rules
                if r.last_executed is not None and r.last_executed.date() == today
            ])
        }
