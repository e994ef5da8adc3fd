"""
Action Executor

Runs one rule action against the external collaborators. Every failure is
caught here and reported as a FAILED result, so one broken action never
stops the actions or rules that follow it.
"""

import asyncio
import logging
import uuid
from collections import deque
from typing import Dict, List, Optional, Any, Callable, Awaitable, Mapping
from datetime import datetime

from ..config.settings import AutomationConfig
from ..events.bus import EventType
from ..integrations.interfaces import (
    AssignmentRequest,
    AssignmentService,
    ClinicianDirectory,
    ClinicianSummary,
    EntityRef,
    StatusService,
    WorkloadBalancer
)
from ..notifications.channels import ChannelManager
from ..notifications.manager import Notification
from ..rules.actions import (
    Action,
    ActionResult,
    ActionStatus,
    ActionType,
    AutoAssignConfig,
    CreateTaskConfig,
    NotificationConfig,
    RedistributeConfig,
    SelectionCriteria,
    UpdateStatusConfig
)

logger = logging.getLogger("ActionExecutor")

Publisher = Callable[[str, Dict[str, Any]], Awaitable[Any]]


class ActionSkipped(Exception):
    """Raised by a handler when the action is a deliberate no-op"""


class ActionExecutor:
    """
    Executes automation actions.

    Handles:
    - Notifications through the channel manager
    - Auto-assignment of patients to clinicians
    - Entity status updates
    - Task creation
    - Workload redistribution

    Actions that produce follow-up events publish them through `publish`.
    """

    def __init__(
        self,
        directory: ClinicianDirectory,
        assignments: AssignmentService,
        status: StatusService,
        balancer: WorkloadBalancer,
        channels: ChannelManager,
        publish: Publisher,
        config: Optional[AutomationConfig] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.directory = directory
        self.assignments = assignments
        self.status = status
        self.balancer = balancer
        self.channels = channels
        self._publish = publish
        self.config = config or AutomationConfig()
        self._clock = clock or datetime.now

        self.tasks: deque = deque(maxlen=self.config.task_history_size)

        # Statistics
        self._stats = {
            "total_executed": 0,
            "completed": 0,
            "failed": 0,
            "skipped": 0,
            "tasks_created": 0,
            "by_type": {}
        }

    async def execute(
        self,
        action: Action,
        payload: Optional[Mapping[str, Any]] = None,
        rule_id: Optional[str] = None
    ) -> ActionResult:
        """
        Execute one action for a triggering payload.

        Never raises: failures come back as a FAILED result.
        """
        payload = payload if payload is not None else {}
        result = ActionResult(
            action_type=action.action_type,
            status=ActionStatus.COMPLETED,
            rule_id=rule_id,
            started_at=self._clock()
        )
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        try:
            if action.action_type == ActionType.NOTIFICATION:
                output = await self._execute_notification(action.config, payload)
            elif action.action_type == ActionType.AUTO_ASSIGN:
                output = await self._execute_auto_assign(action.config, payload)
            elif action.action_type == ActionType.UPDATE_STATUS:
                output = await self._execute_update_status(action.config, payload)
            elif action.action_type == ActionType.CREATE_TASK:
                output = await self._execute_create_task(action.config, payload)
            elif action.action_type == ActionType.REDISTRIBUTE_PATIENTS:
                output = await self._execute_redistribute(action.config, payload)
            else:
                raise ValueError(f"Unknown action type: {action.action_type}")

            result.output = output

        except ActionSkipped as e:
            result.status = ActionStatus.SKIPPED
            result.error = str(e)
            logger.warning(
                "Skipped %s action for rule %s: %s",
                action.action_type.value, rule_id, e
            )

        except asyncio.CancelledError:
            raise

        except Exception as e:
            result.status = ActionStatus.FAILED
            result.error = str(e)
            logger.error(
                "Action %s failed for rule %s: %s",
                action.action_type.value, rule_id, e
            )

        result.completed_at = self._clock()
        result.duration_ms = (loop.time() - start_time) * 1000
        self._record(result)
        return result

    async def _execute_notification(
        self,
        config: NotificationConfig,
        payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        notification = Notification.create(
            channel=config.channel,
            template=config.template,
            recipients=config.recipients,
            priority=config.priority,
            payload=dict(payload),
            clock=self._clock
        )
        await self.channels.deliver(notification)
        return {"notification_id": notification.id, "delivered": notification.delivered}

    async def _execute_auto_assign(
        self,
        config: AutoAssignConfig,
        payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        roster = await self.directory.list_active_clinicians(config.role)
        if not roster:
            raise ActionSkipped(f"No active clinicians with role '{config.role}'")

        clinician = self._select_clinician(roster, config.criteria)

        patient_id = payload.get("pacienteId")
        if patient_id in (None, ""):
            raise ValueError("Payload has no pacienteId to assign")

        request = AssignmentRequest(
            patient_id=str(patient_id),
            clinician_id=clinician.id,
            reason=payload.get("sintomas") or self.config.default_assignment_reason,
            priority=payload.get("prioridad") or self.config.default_assignment_priority
        )
        assignment_id = await self.assignments.create_assignment(request)

        assignment = {
            "assignmentId": assignment_id,
            "patientId": request.patient_id,
            "clinicianId": request.clinician_id,
            "reason": request.reason,
            "priority": request.priority
        }
        await self._publish(EventType.PATIENT_ASSIGNED.value, assignment)
        return assignment

    @staticmethod
    def _select_clinician(
        roster: List[ClinicianSummary],
        criteria: SelectionCriteria
    ) -> ClinicianSummary:
        if criteria == SelectionCriteria.LEAST_BUSY:
            # min keeps the first of equal counts
            return min(roster, key=lambda c: c.active_assignment_count)
        return roster[0]

    async def _execute_update_status(
        self,
        config: UpdateStatusConfig,
        payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        entity = self._resolve_entity(config, payload)
        updated = await self.status.set_field(entity, config.field, config.value)
        if not updated:
            raise RuntimeError(f"Status update rejected for {entity.kind} {entity.id}")
        return {
            "entity": entity.kind,
            "id": entity.id,
            "field": config.field,
            "value": config.value
        }

    @staticmethod
    def _resolve_entity(config: UpdateStatusConfig, payload: Mapping[str, Any]) -> EntityRef:
        kind = config.entity or "entity"
        source = payload
        if config.entity and isinstance(payload.get(config.entity), Mapping):
            source = payload[config.entity]

        entity_id = source.get("id")
        if entity_id in (None, ""):
            raise ValueError(f"Payload does not identify the {kind} to update")
        return EntityRef(kind=kind, id=str(entity_id))

    async def _execute_create_task(
        self,
        config: CreateTaskConfig,
        payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        task = {
            "id": f"task_{uuid.uuid4().hex[:8]}",
            "assignTo": config.assign_to,
            "task": config.task,
            "payload": dict(payload),
            "status": "pending",
            "createdAt": self._clock().isoformat()
        }
        self.tasks.append(task)
        self._stats["tasks_created"] += 1
        await self._publish(EventType.TASK_CREATED.value, task)
        return task

    async def _execute_redistribute(
        self,
        config: RedistributeConfig,
        payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        roster = await self.directory.list_active_clinicians()
        summary = await self.balancer.rebalance(roster, config.criteria)

        event_payload = dict(summary or {})
        event_payload["criteria"] = config.criteria
        await self._publish(EventType.WORKLOAD_BALANCED.value, event_payload)
        return event_payload

    def _record(self, result: ActionResult) -> None:
        self._stats["total_executed"] += 1
        self._stats[result.status.value] += 1
        type_key = result.action_type.value
        self._stats["by_type"][type_key] = self._stats["by_type"].get(type_key, 0) + 1

    def get_tasks(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most recent tasks created by create_task actions, oldest first"""
        if status:
            return [t for t in self.tasks if t["status"] == status]
        return list(self.tasks)

    def get_statistics(self) -> dict:
        return {
            "total_executed": self._stats["total_executed"],
            "completed": self._stats["completed"],
            "failed": self._stats["failed"],
            "skipped": self._stats["skipped"],
            "tasks_created": self._stats["tasks_created"],
            "by_type": dict(self._stats["by_type"])
        }
