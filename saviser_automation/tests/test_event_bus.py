"""
Tests for the Event Bus
"""

import pytest

from ..events.bus import EventBus, EventType, WILDCARD


class TestEventBus:
    """Test EventBus publish and subscribe"""

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        bus = EventBus()

        event = await bus.publish("no_such_type", {})

        assert event.event_type == "no_such_type"
        assert event.delivered_to == []
        assert event.failed_for == []

    @pytest.mark.asyncio
    async def test_handlers_run_in_registration_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("triage_created", lambda e: calls.append("first"))
        bus.subscribe("triage_created", lambda e: calls.append("second"))
        bus.subscribe("patient_assigned", lambda e: calls.append("other"))

        await bus.publish("triage_created", {"pacienteId": "P1"})

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self):
        bus = EventBus()
        calls = []

        def broken(event):
            raise RuntimeError("handler exploded")

        bus.subscribe("task_created", broken, subscriber_id="broken")
        bus.subscribe("task_created", lambda e: calls.append(e.payload["id"]), subscriber_id="ok")

        event = await bus.publish("task_created", {"id": "T1"})

        assert calls == ["T1"]
        assert event.failed_for == ["broken"]
        assert event.delivered_to == ["ok"]
        assert bus.get_statistics()["total_failed"] == 1

    @pytest.mark.asyncio
    async def test_coroutine_handlers_are_awaited(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event.payload)

        bus.subscribe(EventType.WORKLOAD_BALANCED, handler)
        await bus.publish("workload_balanced", {"moved": 2})

        assert received == [{"moved": 2}]

    @pytest.mark.asyncio
    async def test_wildcard_runs_after_typed_handlers(self):
        bus = EventBus()
        calls = []
        bus.subscribe(WILDCARD, lambda e: calls.append(("any", e.event_type)))
        bus.subscribe("task_created", lambda e: calls.append(("typed", e.event_type)))

        await bus.publish(EventType.TASK_CREATED, {})

        assert calls == [("typed", "task_created"), ("any", "task_created")]

    @pytest.mark.asyncio
    async def test_unsubscribe_and_clear(self):
        bus = EventBus()
        calls = []
        sub_id = bus.subscribe("triage_created", lambda e: calls.append(1))
        bus.subscribe("patient_assigned", lambda e: calls.append(2))

        assert bus.unsubscribe("triage_created", sub_id)
        assert not bus.unsubscribe("triage_created", sub_id)
        await bus.publish("triage_created", {})
        assert calls == []

        assert bus.clear() == 1
        assert not bus.has_subscribers("patient_assigned")
        await bus.publish("patient_assigned", {})
        assert calls == []

    @pytest.mark.asyncio
    async def test_duplicate_subscriber_id_rejected(self):
        bus = EventBus()
        calls = []
        bus.subscribe("task_created", lambda e: calls.append(1), subscriber_id="ui")

        with pytest.raises(ValueError):
            bus.subscribe("task_created", lambda e: calls.append(2), subscriber_id="ui")

        await bus.publish("task_created", {})
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_same_id_allowed_for_different_types(self):
        bus = EventBus()
        calls = []
        bus.subscribe("task_created", lambda e: calls.append("task"), subscriber_id="ui")
        bus.subscribe("patient_assigned", lambda e: calls.append("assigned"), subscriber_id="ui")

        await bus.publish("task_created", {})
        await bus.publish("patient_assigned", {})

        assert calls == ["task", "assigned"]

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        bus = EventBus(history_size=3)
        for i in range(5):
            await bus.publish("task_created", {"n": i})
        await bus.publish("patient_assigned", {})

        history = bus.get_history()
        assert len(history) == 3
        assert [e.payload.get("n") for e in bus.get_history("task_created")] == [3, 4]
        assert bus.get_statistics()["total_published"] == 6
        assert bus.get_statistics()["by_type"]["task_created"] == 5
