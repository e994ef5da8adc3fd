"""
Tests for action definitions and the Action Executor
"""

import pytest
from unittest.mock import AsyncMock

from ..actions.executor import ActionExecutor
from ..config.settings import AutomationConfig
from ..integrations.interfaces import ClinicianSummary, EntityRef
from ..integrations.memory import (
    InMemoryAssignmentService,
    InMemoryClinicianDirectory,
    InMemoryStatusService,
    InMemoryWorkloadBalancer
)
from ..notifications.channels import ChannelManager
from ..notifications.manager import ChannelType, NotificationPriority
from ..notifications.templates import NotificationTemplate
from ..rules.actions import (
    Action,
    ActionStatus,
    ActionType,
    AutoAssignConfig,
    CreateTaskConfig,
    NotificationConfig,
    RedistributeConfig,
    SelectionCriteria,
    UpdateStatusConfig
)


def build_executor(clinicians=None, status=None, channels=None, config=None):
    directory = InMemoryClinicianDirectory(clinicians or [])
    published = []

    async def publish(event_type, payload):
        published.append((event_type, payload))

    executor = ActionExecutor(
        directory=directory,
        assignments=InMemoryAssignmentService(directory),
        status=status or InMemoryStatusService(),
        balancer=InMemoryWorkloadBalancer(),
        channels=channels or ChannelManager(),
        publish=publish,
        config=config or AutomationConfig()
    )
    return executor, published


def auto_assign(criteria=SelectionCriteria.AVAILABLE) -> Action:
    return Action(ActionType.AUTO_ASSIGN, AutoAssignConfig(role="doctor", criteria=criteria))


class TestActionDefinitions:
    """Test typed action configs"""

    def test_from_dict_notification(self):
        action = Action.from_dict({
            "type": "notification",
            "config": {
                "channel": "sms",
                "template": "follow_up_reminder",
                "recipients": "paciente",
                "priority": "high"
            }
        })
        assert action.action_type == ActionType.NOTIFICATION
        assert action.config.channel == ChannelType.SMS
        assert action.config.recipients == ["paciente"]
        assert action.config.priority == NotificationPriority.HIGH

    def test_notification_requires_recipients(self):
        with pytest.raises(ValueError):
            Action.from_dict({
                "type": "notification",
                "config": {"channel": "system", "template": "task_created", "priority": "low"}
            })

    def test_unknown_template_rejected(self):
        with pytest.raises(ValueError):
            Action.from_dict({
                "type": "notification",
                "config": {
                    "channel": "system",
                    "template": "birthday_card",
                    "recipients": [],
                    "priority": "low"
                }
            })

    def test_unknown_action_type_rejected(self):
        with pytest.raises(ValueError):
            Action.from_dict({"type": "send_fax", "config": {}})

    def test_create_task_alias(self):
        action = Action.from_dict({
            "type": "create_task",
            "config": {"assignTo": "enfermeria", "task": "call_patient"}
        })
        assert action.config == CreateTaskConfig(assign_to="enfermeria", task="call_patient")
        assert action.to_dict()["config"] == {"assignTo": "enfermeria", "task": "call_patient"}

    def test_config_must_match_type(self):
        with pytest.raises(ValueError):
            Action(ActionType.AUTO_ASSIGN, RedistributeConfig(criteria="least_busy_doctor"))


class TestNotificationAction:
    """Test notification delivery"""

    @pytest.mark.asyncio
    async def test_delivers_through_system_channel(self):
        channels = ChannelManager()
        received = []
        channels.system_channel.subscribe(received.append)
        executor, _ = build_executor(channels=channels)

        action = Action(ActionType.NOTIFICATION, NotificationConfig(
            channel=ChannelType.SYSTEM,
            template=NotificationTemplate.APPOINTMENT_CONFIRMED,
            recipients=["recepcion"],
            priority=NotificationPriority.LOW
        ))
        result = await executor.execute(action, {"appointment": {"id": "A1"}}, rule_id="r1")

        assert result.status == ActionStatus.COMPLETED
        assert result.rule_id == "r1"
        assert len(received) == 1
        assert received[0].delivered
        assert received[0].recipients == ["recepcion"]
        assert received[0].payload == {"appointment": {"id": "A1"}}
        assert result.output["notification_id"] == received[0].id

    @pytest.mark.asyncio
    async def test_unregistered_channel_without_fallback_fails(self):
        executor, _ = build_executor(channels=ChannelManager(fallback_to_system=False))
        action = Action(ActionType.NOTIFICATION, NotificationConfig(
            channel=ChannelType.SMS,
            template=NotificationTemplate.FOLLOW_UP_REMINDER,
            recipients=["paciente"],
            priority=NotificationPriority.MEDIUM
        ))

        result = await executor.execute(action, {})

        assert result.status == ActionStatus.FAILED
        assert "sms" in result.error


class TestAutoAssignAction:
    """Test auto-assignment"""

    @pytest.mark.asyncio
    async def test_empty_roster_is_skipped(self):
        executor, published = build_executor(clinicians=[])

        result = await executor.execute(auto_assign(), {"pacienteId": "P1"})

        assert result.status == ActionStatus.SKIPPED
        assert executor.assignments.assignments == {}
        assert published == []

    @pytest.mark.asyncio
    async def test_least_busy_selects_lowest_count(self):
        executor, published = build_executor(clinicians=[
            ClinicianSummary("D1", active_assignment_count=3),
            ClinicianSummary("D2", active_assignment_count=1),
        ])

        result = await executor.execute(
            auto_assign(SelectionCriteria.LEAST_BUSY),
            {"pacienteId": "P1", "sintomas": "fiebre", "prioridad": "alta"}
        )

        assert result.status == ActionStatus.COMPLETED
        assert result.output["clinicianId"] == "D2"
        event_type, payload = published[0]
        assert event_type == "patient_assigned"
        assert payload["patientId"] == "P1"
        assert payload["clinicianId"] == "D2"
        assert payload["reason"] == "fiebre"
        assert payload["priority"] == "alta"

    @pytest.mark.asyncio
    async def test_least_busy_tie_keeps_roster_order(self):
        executor, _ = build_executor(clinicians=[
            ClinicianSummary("D1", active_assignment_count=2),
            ClinicianSummary("D2", active_assignment_count=2),
        ])
        result = await executor.execute(auto_assign(SelectionCriteria.LEAST_BUSY), {"pacienteId": "P1"})
        assert result.output["clinicianId"] == "D1"

    @pytest.mark.asyncio
    async def test_available_selects_first_and_defaults(self):
        executor, _ = build_executor(clinicians=[
            ClinicianSummary("D1", active_assignment_count=9),
            ClinicianSummary("D2", active_assignment_count=0),
        ])

        result = await executor.execute(auto_assign(), {"pacienteId": "P7"})

        assert result.output["clinicianId"] == "D1"
        request = executor.assignments.assignments[result.output["assignmentId"]]
        assert request.reason == "Consulta automática"
        assert request.priority == "media"
        assert request.automatic

    @pytest.mark.asyncio
    async def test_role_filter(self):
        executor, _ = build_executor(clinicians=[
            ClinicianSummary("N1", role="enfermeria"),
            ClinicianSummary("D1"),
        ])
        result = await executor.execute(auto_assign(), {"pacienteId": "P1"})
        assert result.output["clinicianId"] == "D1"

    @pytest.mark.asyncio
    async def test_missing_patient_fails(self):
        executor, published = build_executor(clinicians=[ClinicianSummary("D1")])

        result = await executor.execute(auto_assign(), {"prioridad": "alta"})

        assert result.status == ActionStatus.FAILED
        assert published == []

    @pytest.mark.asyncio
    async def test_directory_failure_is_captured(self):
        executor, published = build_executor()
        executor.directory.list_active_clinicians = AsyncMock(side_effect=RuntimeError("directory offline"))

        result = await executor.execute(auto_assign(), {"pacienteId": "P1"}, rule_id="r1")

        assert result.status == ActionStatus.FAILED
        assert result.error == "directory offline"
        assert published == []
        assert executor.get_statistics()["failed"] == 1


class TestUpdateStatusAction:
    """Test entity status updates"""

    @pytest.mark.asyncio
    async def test_updates_nested_entity(self):
        status = InMemoryStatusService()
        executor, _ = build_executor(status=status)
        action = Action(ActionType.UPDATE_STATUS, UpdateStatusConfig(
            field="estado", value="confirmada", entity="appointment"
        ))

        result = await executor.execute(action, {"appointment": {"id": "A1", "estado": "programada"}})

        assert result.status == ActionStatus.COMPLETED
        assert status.entities[EntityRef("appointment", "A1")] == {"estado": "confirmada"}

    @pytest.mark.asyncio
    async def test_rejected_update_fails(self):
        executor, _ = build_executor(status=InMemoryStatusService(strict=True))
        action = Action(ActionType.UPDATE_STATUS, UpdateStatusConfig(
            field="estado", value="confirmada", entity="appointment"
        ))

        result = await executor.execute(action, {"appointment": {"id": "A404"}})

        assert result.status == ActionStatus.FAILED

    @pytest.mark.asyncio
    async def test_unidentified_entity_fails(self):
        executor, _ = build_executor()
        action = Action(ActionType.UPDATE_STATUS, UpdateStatusConfig(field="estado", value="x"))
        result = await executor.execute(action, {"estado": "programada"})
        assert result.status == ActionStatus.FAILED


class TestTaskAndRedistribution:
    """Test task creation and workload redistribution"""

    @pytest.mark.asyncio
    async def test_create_task_publishes_event(self):
        executor, published = build_executor()
        action = Action(ActionType.CREATE_TASK, CreateTaskConfig(assign_to="doctor", task="follow_up_call"))

        result = await executor.execute(action, {"consultation": {"id": "C1"}})

        assert result.status == ActionStatus.COMPLETED
        event_type, task = published[0]
        assert event_type == "task_created"
        assert task["assignTo"] == "doctor"
        assert task["task"] == "follow_up_call"
        assert task["status"] == "pending"
        assert task["payload"] == {"consultation": {"id": "C1"}}
        assert executor.get_tasks("pending") == [task]

    @pytest.mark.asyncio
    async def test_task_history_is_bounded(self):
        executor, published = build_executor(config=AutomationConfig(task_history_size=2))
        action = Action(ActionType.CREATE_TASK, CreateTaskConfig(assign_to="doctor", task="follow_up_call"))

        for n in range(3):
            await executor.execute(action, {"n": n})

        assert [t["payload"]["n"] for t in executor.get_tasks()] == [1, 2]
        assert executor.get_statistics()["tasks_created"] == 3
        assert len(published) == 3

    @pytest.mark.asyncio
    async def test_redistribute_rebalances_roster(self):
        clinicians = [
            ClinicianSummary("D1", active_assignment_count=12),
            ClinicianSummary("D2", active_assignment_count=2),
        ]
        executor, published = build_executor(clinicians=clinicians)
        action = Action(ActionType.REDISTRIBUTE_PATIENTS, RedistributeConfig(criteria="least_busy_doctor"))

        result = await executor.execute(action, {})

        assert result.status == ActionStatus.COMPLETED
        assert [c.active_assignment_count for c in clinicians] == [7, 7]
        event_type, summary = published[0]
        assert event_type == "workload_balanced"
        assert summary["criteria"] == "least_busy_doctor"
        assert summary["moved"] == 5

    @pytest.mark.asyncio
    async def test_balancer_failure_is_captured(self):
        executor, published = build_executor(clinicians=[ClinicianSummary("D1")])
        executor.balancer.rebalance = AsyncMock(side_effect=ConnectionError("roster service down"))
        action = Action(ActionType.REDISTRIBUTE_PATIENTS, RedistributeConfig(criteria="least_busy_doctor"))

        result = await executor.execute(action, {})

        assert result.status == ActionStatus.FAILED
        assert published == []
