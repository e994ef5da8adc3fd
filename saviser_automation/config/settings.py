"""
Automation Settings

Provides:
- Engine configuration defaults
- Environment variable loading
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional, Any, Mapping


ENV_PREFIX = "SAVISER_AUTOMATION_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class AutomationConfig:
    """Automation engine configuration"""

    tick_interval_seconds: float = 60.0  # Time-rule polling interval
    follow_up_delay_days: int = 7  # Delay before consultation follow-up
    default_assignment_priority: str = "media"
    default_assignment_reason: str = "Consulta automática"
    fallback_to_system_channel: bool = True  # Route unknown channels to system
    event_history_size: int = 1000
    notification_history_size: int = 500
    task_history_size: int = 500  # Tasks kept in memory; persistence is external
    rules_file: Optional[str] = None  # Extra rules loaded after the defaults

    def __post_init__(self):
        if self.tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")
        if self.follow_up_delay_days <= 0:
            raise ValueError("follow_up_delay_days must be positive")
        if self.task_history_size <= 0:
            raise ValueError("task_history_size must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AutomationConfig":
        """Build configuration from SAVISER_AUTOMATION_* variables"""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{name}")
            if value is None or not value.strip():
                return None
            return value.strip()

        kwargs: Dict[str, Any] = {}

        value = get("TICK_INTERVAL_SECONDS")
        if value is not None:
            kwargs["tick_interval_seconds"] = _parse_number(value, "TICK_INTERVAL_SECONDS", float)
        value = get("FOLLOW_UP_DELAY_DAYS")
        if value is not None:
            kwargs["follow_up_delay_days"] = _parse_number(value, "FOLLOW_UP_DELAY_DAYS", int)
        value = get("DEFAULT_ASSIGNMENT_PRIORITY")
        if value is not None:
            kwargs["default_assignment_priority"] = value
        value = get("DEFAULT_ASSIGNMENT_REASON")
        if value is not None:
            kwargs["default_assignment_reason"] = value
        value = get("FALLBACK_TO_SYSTEM_CHANNEL")
        if value is not None:
            kwargs["fallback_to_system_channel"] = _parse_bool(value, "FALLBACK_TO_SYSTEM_CHANNEL")
        value = get("EVENT_HISTORY_SIZE")
        if value is not None:
            kwargs["event_history_size"] = _parse_number(value, "EVENT_HISTORY_SIZE", int)
        value = get("NOTIFICATION_HISTORY_SIZE")
        if value is not None:
            kwargs["notification_history_size"] = _parse_number(value, "NOTIFICATION_HISTORY_SIZE", int)
        value = get("TASK_HISTORY_SIZE")
        if value is not None:
            kwargs["task_history_size"] = _parse_number(value, "TASK_HISTORY_SIZE", int)
        value = get("RULES_FILE")
        if value is not None:
            kwargs["rules_file"] = value

        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "tick_interval_seconds": self.tick_interval_seconds,
            "follow_up_delay_days": self.follow_up_delay_days,
            "default_assignment_priority": self.default_assignment_priority,
            "default_assignment_reason": self.default_assignment_reason,
            "fallback_to_system_channel": self.fallback_to_system_channel,
            "event_history_size": self.event_history_size,
            "notification_history_size": self.notification_history_size,
            "task_history_size": self.task_history_size,
            "rules_file": self.rules_file
        }


def _parse_number(value: str, name: str, kind):
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from None


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {value!r}")
