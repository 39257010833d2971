import asyncio
import json

import pytest

from a2a_hitl.models import Artifact, TaskState, TaskStatus, TaskWithHistory, TextPart
from a2a_hitl.sse import HEARTBEAT_FRAME, format_sse_frame, snapshot_frames, sse_event_stream

from .conftest import build_task


def test_format_sse_frame_variants():
    assert format_sse_frame("connected", {"taskId": "t1"}) == 'event: connected\ndata: {"taskId": "t1"}\n\n'
    assert format_sse_frame("status-update", '{"raw": true}') == 'event: status-update\ndata: {"raw": true}\n\n'
    status = TaskStatus(state=TaskState.WORKING)
    assert format_sse_frame("x", status) == 'event: x\ndata: {"state": "working"}\n\n'


def test_snapshot_frames_marks_terminal_state_final():
    task = build_task(state=TaskState.COMPLETED)
    snapshot = TaskWithHistory(
        task=task,
        artifacts=[Artifact(artifact_id="a1", parts=[TextPart(text="x")], task_id=task.id)],
    )
    frames = snapshot_frames(snapshot)
    assert len(frames) == 2
    assert frames[0].startswith("event: status-update\n")
    assert '"final": true' in frames[0]
    assert frames[1].startswith("event: artifact-update\n")


@pytest.mark.asyncio
async def test_stream_yields_connected_then_frames_until_closed():
    queue: asyncio.Queue = asyncio.Queue()
    closed = []

    async def on_close():
        closed.append(True)

    await queue.put("event: status-update\ndata: {}\n\n")
    await queue.put(None)

    frames = [frame async for frame in sse_event_stream("t1", queue, on_close, heartbeat_seconds=5)]

    assert frames[0] == "event: connected\ndata: " + json.dumps({"taskId": "t1"}) + "\n\n"
    assert frames[1] == "event: status-update\ndata: {}\n\n"
    assert len(frames) == 2
    assert closed == [True]


@pytest.mark.asyncio
async def test_stream_sends_heartbeat_when_idle():
    queue: asyncio.Queue = asyncio.Queue()

    async def on_close():
        return None

    stream = sse_event_stream("t1", queue, on_close, heartbeat_seconds=0.01)
    assert (await stream.__anext__()).startswith("event: connected")
    assert await stream.__anext__() == HEARTBEAT_FRAME
    await stream.aclose()


@pytest.mark.asyncio
async def test_stream_replays_snapshot_and_stops_on_disconnect():
    queue: asyncio.Queue = asyncio.Queue()
    closed = []

    async def on_close():
        closed.append(True)

    async def is_disconnected():
        return True

    snapshot = TaskWithHistory(task=build_task())
    frames = [
        frame async for frame in sse_event_stream(
            "task-1", queue, on_close, is_disconnected=is_disconnected, snapshot=snapshot
        )
    ]
    assert [f.split("\n", 1)[0] for f in frames] == ["event: connected", "event: status-update"]
    assert closed == [True]
