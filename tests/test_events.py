import asyncio
import json

import pytest

from a2a_hitl.events import InMemoryEventChannel, LoggingEventChannel, SinkRegistry
from a2a_hitl.models import Artifact, TaskArtifactUpdateEvent, TaskState, TaskStatus, TaskStatusUpdateEvent, TextPart


def _status_event(task_id: str = "t1", state: TaskState = TaskState.WORKING) -> TaskStatusUpdateEvent:
    return TaskStatusUpdateEvent(task_id=task_id, context_id="c1", status=TaskStatus(state=state))


def _parse_frame(frame: str):
    event_line, data_line, _, _ = frame.split("\n")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


@pytest.mark.asyncio
async def test_send_reaches_every_observer_of_the_task():
    channel = InMemoryEventChannel()
    first = await channel.subscribe("t1")
    second = await channel.subscribe("t1")
    other = await channel.subscribe("t2")

    await channel.send(_status_event("t1"))

    for queue in (first, second):
        event_type, data = _parse_frame(queue.get_nowait())
        assert event_type == "status-update"
        assert data["taskId"] == "t1"
        assert data["status"]["state"] == "working"
    assert other.empty()


@pytest.mark.asyncio
async def test_artifact_event_frame():
    channel = InMemoryEventChannel()
    queue = await channel.subscribe("t1")
    artifact = Artifact(artifact_id="a1", parts=[TextPart(text="x")], task_id="t1")
    await channel.send(TaskArtifactUpdateEvent(task_id="t1", context_id="c1", artifact=artifact))
    event_type, data = _parse_frame(queue.get_nowait())
    assert event_type == "artifact-update"
    assert data["artifact"]["artifactId"] == "a1"


@pytest.mark.asyncio
async def test_send_without_observers_is_a_noop():
    channel = InMemoryEventChannel()
    await channel.send(_status_event())
    assert channel.get_active_connections() == 0


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery():
    channel = InMemoryEventChannel()
    queue = await channel.subscribe("t1")
    assert channel.get_active_connections("t1") == 1
    await channel.unsubscribe("t1", queue)
    assert channel.get_active_connections("t1") == 0
    await channel.send(_status_event())
    assert queue.empty()


@pytest.mark.asyncio
async def test_full_observer_is_dropped():
    channel = InMemoryEventChannel(queue_maxsize=1)
    queue = await channel.subscribe("t1")
    await channel.send(_status_event())
    await channel.send(_status_event())
    assert queue.qsize() == 1
    assert channel.get_active_connections("t1") == 0


@pytest.mark.asyncio
async def test_close_task_connections_sends_end_marker():
    channel = InMemoryEventChannel()
    queue = await channel.subscribe("t1")
    await channel.close_task_connections("t1")
    assert queue.get_nowait() is None
    assert channel.get_active_connections() == 0


def test_sink_registry_close_makes_room_in_full_queue():
    registry = SinkRegistry(queue_maxsize=1)
    queue = registry.add("t1")
    registry.broadcast("t1", "frame")
    assert registry.close("t1") == 1
    assert queue.get_nowait() is None


def test_sink_registry_remove_reports_last_sink():
    registry = SinkRegistry()
    a = registry.add("t1")
    b = registry.add("t1")
    assert registry.remove("t1", a) is False
    assert registry.remove("t1", b) is True
    assert registry.task_ids() == []


@pytest.mark.asyncio
async def test_aclose_ends_all_streams():
    channel = InMemoryEventChannel()
    q1 = await channel.subscribe("t1")
    q2 = await channel.subscribe("t2")
    await channel.aclose()
    assert q1.get_nowait() is None
    assert q2.get_nowait() is None


@pytest.mark.asyncio
async def test_logging_channel_accepts_events(caplog):
    channel = LoggingEventChannel()
    with caplog.at_level("INFO"):
        await channel.send(_status_event())
    assert "status-update" in caplog.text
    queue = await channel.subscribe("t1")
    assert isinstance(queue, asyncio.Queue)
    assert channel.announce_on_subscribe is False
