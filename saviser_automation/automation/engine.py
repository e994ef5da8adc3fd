"""
Automation Engine

Composition root that turns domain events and periodic ticks into
business actions.

Provides:
- Lifecycle (start/stop) for the periodic tick and deferred timers
- Event-triggered and time-triggered rule execution
- Rule management and statistics
"""

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Dict, List, Optional, Any, Callable, Mapping, Union
from datetime import datetime, timedelta

from ..actions.executor import ActionExecutor
from ..config.settings import AutomationConfig
from ..events.bus import Event, EventBus, EventType
from ..integrations.interfaces import (
    AssignmentService,
    ClinicianDirectory,
    StatusService,
    WorkloadBalancer
)
from ..integrations.memory import (
    InMemoryAssignmentService,
    InMemoryClinicianDirectory,
    InMemoryStatusService,
    InMemoryWorkloadBalancer
)
from ..notifications.channels import ChannelManager
from ..notifications.manager import ChannelType, NotificationPriority
from ..notifications.templates import NotificationTemplate
from ..rules.actions import Action, ActionResult, ActionStatus, ActionType, NotificationConfig
from ..rules.conditions import ConditionEvaluator
from ..rules.defaults import default_rules
from ..rules.loader import load_rules_file, rule_from_dict
from ..rules.registry import Rule, RuleRegistry, RuleResult, RuleStatus
from ..scheduler.executor import Scheduler
from ..scheduler.jobs import TimerHandle
from .state import StateProvider

logger = logging.getLogger("AutomationEngine")

TICK_SOURCE = "tick"


class AutomationEngine:
    """
    Automation engine for clinical operations.

    Owns the rule registry, event bus, scheduler, notification routing and
    action executor. Collaborators not supplied default to the in-memory
    implementations.
    """

    def __init__(
        self,
        directory: Optional[ClinicianDirectory] = None,
        assignments: Optional[AssignmentService] = None,
        status: Optional[StatusService] = None,
        balancer: Optional[WorkloadBalancer] = None,
        state_provider: Optional[StateProvider] = None,
        config: Optional[AutomationConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        channel_manager: Optional[ChannelManager] = None
    ):
        self.config = config or AutomationConfig()
        self._clock = clock or datetime.now

        self.directory = directory or InMemoryClinicianDirectory()
        self.state_provider = state_provider

        self.registry = RuleRegistry(default_rules())
        self.bus = EventBus(history_size=self.config.event_history_size, clock=self._clock)
        self.scheduler = Scheduler(clock=self._clock)
        self.evaluator = ConditionEvaluator(clock=self._clock)
        self.channels = channel_manager or ChannelManager(
            fallback_to_system=self.config.fallback_to_system_channel,
            history_size=self.config.notification_history_size
        )
        self.executor = ActionExecutor(
            directory=self.directory,
            assignments=assignments or self._default_assignments(),
            status=status or InMemoryStatusService(),
            balancer=balancer or InMemoryWorkloadBalancer(),
            channels=self.channels,
            publish=self.bus.publish,
            config=self.config,
            clock=self._clock
        )

        self._running = False
        self._tick_handle: Optional[TimerHandle] = None
        self._history: deque = deque(maxlen=self.config.event_history_size)
        self.tick_count = 0
        self.tick_failures = 0

        if self.config.rules_file:
            self.load_rules(self.config.rules_file)

    def _default_assignments(self) -> InMemoryAssignmentService:
        # Keep open-assignment counts current when the roster is in memory too
        if isinstance(self.directory, InMemoryClinicianDirectory):
            return InMemoryAssignmentService(self.directory)
        return InMemoryAssignmentService()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the periodic tick and wire the built-in subscribers"""
        if self._running:
            return

        self.bus.subscribe(
            EventType.PATIENT_ASSIGNED,
            self._on_patient_assigned,
            subscriber_id="engine:patient_assigned"
        )
        self.bus.subscribe(
            EventType.CONSULTATION_COMPLETED,
            self._on_consultation_completed,
            subscriber_id="engine:consultation_completed"
        )
        self._tick_handle = self.scheduler.every(
            self.config.tick_interval_seconds,
            self.run_time_rules,
            name="time-rules"
        )
        self._running = True
        logger.info(
            "Automation engine started: %d rule(s), tick every %.1fs",
            len(self.registry), self.config.tick_interval_seconds
        )

    async def stop(self) -> None:
        """
        Cancel every timer and drop every subscriber.

        Timers scheduled while the engine was not running are released too.
        """
        was_running = self._running
        self._running = False
        self._tick_handle = None
        cancelled = await self.scheduler.shutdown()
        removed = self.bus.clear()
        if was_running or cancelled:
            logger.info(
                "Automation engine stopped: cancelled %d timer(s), removed %d subscriber(s)",
                cancelled, removed
            )

    async def trigger_event(
        self,
        event_type: Union[EventType, str],
        payload: Optional[Dict[str, Any]] = None
    ) -> List[RuleResult]:
        """
        Run every matching event rule, then publish the event.

        Rules run sequentially in registry order. A stopped engine runs
        nothing and publishes nothing.
        """
        type_key = event_type.value if isinstance(event_type, EventType) else str(event_type)
        if not self._running:
            logger.warning("Ignoring '%s' event: automation engine is not running", type_key)
            return []
        payload = payload if payload is not None else {}

        results = []
        for rule in self.registry.rules_for_event(type_key):
            if not rule.is_active:
                continue
            if self.evaluator.evaluate(rule.conditions, payload):
                results.append(await self._execute_rule(rule, payload, type_key))

        await self.bus.publish(type_key, payload)
        return results

    async def run_time_rules(self) -> List[RuleResult]:
        """
        One tick: run time rules against the current state snapshot.

        A rule runs once per matching context; a rule without conditions
        runs once per tick.
        """
        self.tick_count += 1
        try:
            contexts = await self.state_provider.snapshot() if self.state_provider else []
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.tick_failures += 1
            logger.error("Tick %d could not load state snapshot: %s", self.tick_count, e)
            return []

        results = []
        for rule in self.registry.rules_for_tick():
            if not rule.is_active:
                continue
            if not rule.conditions:
                results.append(await self._execute_rule(rule, {}, TICK_SOURCE))
                continue
            for context in contexts:
                if not rule.is_active:
                    break
                if self.evaluator.evaluate(rule.conditions, context):
                    results.append(await self._execute_rule(rule, context, TICK_SOURCE))

        if results:
            logger.info("Tick %d executed %d rule invocation(s)", self.tick_count, len(results))
        return results

    async def _execute_rule(
        self,
        rule: Rule,
        payload: Mapping[str, Any],
        source: str
    ) -> RuleResult:
        action_results: List[ActionResult] = []
        for action in rule.actions:
            action_results.append(await self.executor.execute(action, payload, rule.id))

        rule.last_executed = self._clock()
        rule.execution_count += 1

        failed = [r for r in action_results if r.status == ActionStatus.FAILED]
        if not failed:
            status = RuleStatus.EXECUTED
        elif len(failed) == len(action_results):
            status = RuleStatus.FAILED
        else:
            status = RuleStatus.PARTIAL
        if failed:
            rule.failure_count += 1

        result = RuleResult(
            rule_id=rule.id,
            status=status,
            action_results=action_results,
            executed_at=rule.last_executed,
            trigger_source=source
        )
        self._history.append(result)
        logger.info(
            "Rule %s executed from %s: %s (%d action(s), %d failed)",
            rule.id, source, status.value, len(action_results), len(failed)
        )
        return result

    async def _on_patient_assigned(self, event: Event) -> None:
        clinician_id = event.payload.get("clinicianId")
        if not clinician_id:
            logger.warning("patient_assigned event %s has no clinicianId", event.id)
            return

        action = Action(
            action_type=ActionType.NOTIFICATION,
            config=NotificationConfig(
                channel=ChannelType.SYSTEM,
                template=NotificationTemplate.PATIENT_ASSIGNED,
                recipients=[str(clinician_id)],
                priority=NotificationPriority.MEDIUM
            )
        )
        await self.executor.execute(action, event.payload)

    def _on_consultation_completed(self, event: Event) -> None:
        payload = dict(event.payload)
        self.scheduler.schedule_after(
            timedelta(days=self.config.follow_up_delay_days),
            lambda: self.trigger_event(EventType.CONSULTATION_FOLLOW_UP, payload),
            name=f"follow-up:{payload.get('id', event.id)}"
        )

    def schedule_reminder(
        self,
        appointment_id: str,
        reminder_time: datetime,
        payload: Optional[Dict[str, Any]] = None
    ) -> Optional[TimerHandle]:
        """
        Publish an appointment_reminder event at `reminder_time`.

        Times that are not in the future are not scheduled.
        """
        delay = reminder_time - self._clock()
        event_payload = dict(payload or {})
        event_payload["appointmentId"] = appointment_id
        return self.scheduler.schedule_after(
            delay,
            lambda: self.trigger_event(EventType.APPOINTMENT_REMINDER, event_payload),
            name=f"reminder:{appointment_id}"
        )

    def toggle_rule(self, rule_id: str, active: bool) -> bool:
        """Enable or disable a rule; unknown ids are a no-op"""
        toggled = self.registry.toggle(rule_id, active)
        if toggled:
            logger.info("Rule %s %s", rule_id, "enabled" if active else "disabled")
        return toggled

    def add_rule(self, rule: Union[Rule, Mapping[str, Any]]) -> Rule:
        """Register a rule object or definition mapping"""
        if not isinstance(rule, Rule):
            rule = rule_from_dict(rule)
        return self.registry.add(rule)

    def load_rules(self, path: Union[str, Path]) -> List[Rule]:
        """Register every rule from a YAML rule file"""
        rules = load_rules_file(path)
        for rule in rules:
            self.registry.add(rule)
        return rules

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        return self.registry.get(rule_id)

    def get_rules(self) -> List[Rule]:
        return self.registry.rules

    def get_history(self, rule_id: Optional[str] = None, limit: int = 100) -> List[RuleResult]:
        """Recent rule invocations, oldest first"""
        results = list(self._history)
        if rule_id:
            results = [r for r in results if r.rule_id == rule_id]
        return results[-limit:]

    def get_stats(self) -> Dict[str, int]:
        """Total, active and executed-today rule counts"""
        return self.registry.get_statistics(self._clock().date())

    def get_statistics(self) -> dict:
        return {
            "running": self._running,
            "tick_count": self.tick_count,
            "tick_failures": self.tick_failures,
            "rules": self.get_stats(),
            "actions": self.executor.get_statistics(),
            "events": self.bus.get_statistics(),
            "scheduler": self.scheduler.get_statistics(),
            "notifications": self.channels.get_statistics(),
            "config": self.config.to_dict()
        }
