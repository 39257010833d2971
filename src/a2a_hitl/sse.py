"""
Server-push (SSE) frame formatting and the per-connection stream generator.
"""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional, Union

from pydantic import BaseModel

from .constants import EVENT_KIND_ARTIFACT_UPDATE, EVENT_KIND_CONNECTED, EVENT_KIND_STATUS_UPDATE
from .models import (
    TERMINAL_STATES, TaskArtifactUpdateEvent, TaskStatusUpdateEvent, TaskWithHistory, to_wire,
)

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ": heartbeat\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse_frame(event_type: str, data: Union[str, BaseModel, Any]) -> str:
    """Formats one ``event: <type>`` frame. A ``str`` payload is written verbatim."""
    if isinstance(data, BaseModel):
        json_data = json.dumps(to_wire(data))
    elif isinstance(data, str):
        json_data = data
    else:
        json_data = json.dumps(data)
    return f"event: {event_type}\ndata: {json_data}\n\n"


def format_event_frame(event: Union[TaskStatusUpdateEvent, TaskArtifactUpdateEvent]) -> str:
    return format_sse_frame(event.kind, event)


def snapshot_frames(snapshot: TaskWithHistory) -> list:
    """Builds the frames that bring a late subscriber up to the stored task state."""
    task = snapshot.task
    frames = [
        format_sse_frame(EVENT_KIND_STATUS_UPDATE, TaskStatusUpdateEvent(
            task_id=task.id,
            context_id=task.context_id,
            status=task.status,
            final=task.status.state in TERMINAL_STATES,
        ))
    ]
    for artifact in snapshot.artifacts:
        frames.append(format_sse_frame(EVENT_KIND_ARTIFACT_UPDATE, TaskArtifactUpdateEvent(
            task_id=task.id, context_id=task.context_id, artifact=artifact,
        )))
    return frames


async def sse_event_stream(
    task_id: str,
    queue: "asyncio.Queue[Optional[str]]",
    on_close: Callable[[], Awaitable[None]],
    heartbeat_seconds: float = 30.0,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    snapshot: Optional[TaskWithHistory] = None,
) -> AsyncGenerator[str, None]:
    """
    Yields SSE frames for one observer of ``task_id``.

    The first frame is ``connected``; a snapshot (if given) is replayed next,
    then every frame delivered to ``queue``. A heartbeat comment is sent after
    ``heartbeat_seconds`` of silence. A ``None`` on the queue ends the stream.
    ``on_close`` always runs when the generator finishes.
    """
    try:
        yield format_sse_frame(EVENT_KIND_CONNECTED, {"taskId": task_id})
        if snapshot is not None:
            for frame in snapshot_frames(snapshot):
                yield frame
        while True:
            if is_disconnected is not None and await is_disconnected():
                logger.info(f"SSE client for task {task_id} disconnected.")
                break
            try:
                frame = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                yield HEARTBEAT_FRAME
                continue
            if frame is None:
                logger.info(f"SSE stream for task {task_id} closed by the event channel.")
                break
            yield frame
    finally:
        await on_close()
        logger.debug(f"SSE stream finished for task {task_id}")
