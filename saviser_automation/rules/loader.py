"""
Rule Loader

Builds Rule objects from plain mappings and YAML rule files.

Example file:

    rules:
      - id: urgent-triage-sms
        name: Urgent triage SMS
        trigger: event
        event_types: [triage_created]
        conditions:
          - {field: prioridad, operator: equals, value: alta}
        actions:
          - type: notification
            config: {channel: sms, template: high_priority_triage,
                     recipients: [guardia], priority: urgent}
"""

import logging
from pathlib import Path
from typing import Any, List, Mapping, Union

import yaml

from .conditions import Condition
from .actions import Action
from .registry import Rule, TriggerType

logger = logging.getLogger("RuleLoader")


def rule_from_dict(data: Mapping[str, Any]) -> Rule:
    """Validate a mapping into a Rule; raises ValueError when malformed"""
    if not isinstance(data, Mapping):
        raise ValueError(f"Rule definition must be a mapping, got {type(data).__name__}")
    for key in ("id", "trigger"):
        if not data.get(key):
            raise ValueError(f"Rule definition missing '{key}': {dict(data)}")

    try:
        trigger = TriggerType(str(data["trigger"]))
    except ValueError:
        raise ValueError(f"Unknown trigger '{data['trigger']}' for rule {data['id']}") from None

    event_types = data.get("event_types") or []
    if isinstance(event_types, str):
        event_types = [event_types]

    return Rule(
        id=str(data["id"]),
        name=str(data.get("name") or data["id"]),
        trigger=trigger,
        conditions=[Condition.from_dict(c) for c in data.get("conditions") or []],
        actions=[Action.from_dict(a) for a in data.get("actions") or []],
        is_active=bool(data.get("is_active", data.get("isActive", True))),
        description=str(data.get("description", "")),
        event_types=[str(e) for e in event_types]
    )


def load_rules_file(path: Union[str, Path]) -> List[Rule]:
    """Load every rule defined under the top-level `rules` key of a YAML file"""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a mapping with a 'rules' list")

    entries = data.get("rules") or []
    if not isinstance(entries, list):
        raise ValueError(f"{path}: 'rules' must be a list")

    rules = [rule_from_dict(entry) for entry in entries]
    logger.info("Loaded %d rule(s) from %s", len(rules), path)
    return rules
