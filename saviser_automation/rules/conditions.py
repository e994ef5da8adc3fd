"""
Rule Conditions

Provides:
- Condition definitions
- Dot-path field resolution
- Condition evaluation
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Callable, Mapping, Sequence, Union
from datetime import datetime, date, timedelta, timezone
from enum import Enum

logger = logging.getLogger("ConditionEvaluator")


class ConditionOperator(Enum):
    """Supported condition operators"""
    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    DAYS_AGO = "days_ago"


class _Missing:
    """Marker for a field path that does not resolve"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

ONE_DAY = timedelta(days=1)


@dataclass
class Condition:
    """Rule condition: field path, operator and expected value"""

    field: str
    operator: Union[ConditionOperator, str]  # Raw string when the operator is unknown
    value: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Condition":
        """Build a condition from a plain mapping"""
        if "field" not in data or "operator" not in data:
            raise ValueError(f"Condition requires 'field' and 'operator': {dict(data)}")
        operator = data["operator"]
        if not isinstance(operator, ConditionOperator):
            try:
                operator = ConditionOperator(str(operator))
            except ValueError:
                # Kept as-is so evaluation fails closed
                operator = str(operator)
        return cls(field=str(data["field"]), operator=operator, value=data.get("value"))

    @property
    def operator_name(self) -> str:
        if isinstance(self.operator, ConditionOperator):
            return self.operator.value
        return str(self.operator)

    def to_dict(self) -> dict:
        value = self.value
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        return {
            "field": self.field,
            "operator": self.operator_name,
            "value": value
        }


def resolve_field(context: Any, path: str) -> Any:
    """
    Resolve a dot-separated path against a context tree.

    Mappings are descended by key and sequences by integer index. Returns
    MISSING when any segment is absent or the path is malformed.
    """
    if not isinstance(path, str) or not path:
        return MISSING

    value = context
    for part in path.split("."):
        if not part:
            return MISSING
        if isinstance(value, Mapping):
            if part not in value:
                return MISSING
            value = value[part]
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            try:
                index = int(part)
            except ValueError:
                return MISSING
            if index < 0 or index >= len(value):
                return MISSING
            value = value[index]
        else:
            return MISSING

    return value


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not (isinstance(value, float) and math.isnan(value))
    return False


def strict_equals(actual: Any, expected: Any) -> bool:
    """Type-aware equality: booleans never equal numbers, strings never equal numbers"""
    if actual is MISSING or expected is MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if actual is None or expected is None:
        return actual is None and expected is None
    if type(actual) is not type(expected):
        return False
    return actual == expected


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce a datetime, date, ISO-8601 string or epoch seconds into a datetime"""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if _is_number(value):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _align(timestamp: datetime, now: datetime) -> datetime:
    """Bring a timestamp into the same awareness as `now`"""
    if now.tzinfo is None and timestamp.tzinfo is not None:
        return timestamp.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=now.tzinfo)
    return timestamp


class ConditionEvaluator:
    """Evaluates condition lists against event payloads and state snapshots"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self._operators: Dict[ConditionOperator, Callable[[Any, Any], bool]] = {
            ConditionOperator.EQUALS: self._equals,
            ConditionOperator.GREATER_THAN: self._greater_than,
            ConditionOperator.LESS_THAN: self._less_than,
            ConditionOperator.CONTAINS: self._contains,
            ConditionOperator.DAYS_AGO: self._days_ago,
        }

    def evaluate(self, conditions: List[Condition], context: Any) -> bool:
        """All conditions must hold; an empty list is true"""
        for condition in conditions:
            if not self.evaluate_condition(condition, context):
                return False
        return True

    def evaluate_condition(self, condition: Condition, context: Any) -> bool:
        """Evaluate a single condition, failing closed on any error"""
        handler = None
        if isinstance(condition.operator, ConditionOperator):
            handler = self._operators.get(condition.operator)
        if handler is None:
            logger.warning(
                "Unsupported operator '%s' on field '%s'",
                condition.operator_name, condition.field
            )
            return False

        actual = resolve_field(context, condition.field)
        try:
            return bool(handler(actual, condition.value))
        except Exception as e:
            logger.warning(
                "Condition %s %s failed to evaluate: %s",
                condition.field, condition.operator_name, e
            )
            return False

    @staticmethod
    def _equals(actual: Any, expected: Any) -> bool:
        return strict_equals(actual, expected)

    @staticmethod
    def _greater_than(actual: Any, expected: Any) -> bool:
        if not (_is_number(actual) and _is_number(expected)):
            return False
        return actual > expected

    @staticmethod
    def _less_than(actual: Any, expected: Any) -> bool:
        if not (_is_number(actual) and _is_number(expected)):
            return False
        return actual < expected

    @staticmethod
    def _contains(actual: Any, expected: Any) -> bool:
        if isinstance(actual, str):
            return isinstance(expected, str) and expected in actual
        if isinstance(actual, (list, tuple)):
            return any(strict_equals(item, expected) for item in actual)
        return False

    def _days_ago(self, actual: Any, expected: Any) -> bool:
        if not _is_number(expected):
            return False
        timestamp = parse_timestamp(actual)
        if timestamp is None:
            return False
        now = self._clock()
        elapsed = now - _align(timestamp, now)
        return elapsed // ONE_DAY == expected
