"""
Task lifecycle operations: every mutation is persisted through the storage
adapter and then announced on the event channel.
"""

import datetime
import logging
import uuid
from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_CANCEL_REASON
from .events.base import BaseEventChannel, Event, LoggingEventChannel
from .exceptions import StorageAdapterRequiredError, TaskNotFoundError
from .models import (
    TERMINAL_STATES, Artifact, Message, Task, TaskArtifactUpdateEvent, TaskState,
    TaskStatus, TaskStatusUpdateEvent, TextPart,
)
from .storage.base import BaseStorageAdapter

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def agent_text_message(text: str, task_id: Optional[str] = None, context_id: Optional[str] = None) -> Message:
    return Message(
        message_id=str(uuid.uuid4()),
        role="agent",
        parts=[TextPart(text=text)],
        task_id=task_id,
        context_id=context_id,
    )


def _coerce(model_cls, value: Union[Dict[str, Any], Any]):
    return model_cls.model_validate(value) if isinstance(value, dict) else value


class TaskLifecycle:
    """
    Mutates and reads task state on behalf of executors and external callers.

    Writes are persisted first, so a reader polling storage right after an
    operation returns sees the change. Event emission follows and is
    best-effort: a failing channel is logged and never undoes the write.
    Without a storage adapter the write operations only emit events.
    """

    def __init__(self, storage: Optional[BaseStorageAdapter] = None, event_channel: Optional[BaseEventChannel] = None):
        self.storage = storage
        self.event_channel = event_channel or LoggingEventChannel()

    async def _emit(self, event: Event) -> None:
        try:
            await self.event_channel.send(event)
        except Exception as e:
            logger.error(f"Failed to emit '{event.kind}' event for task {event.task_id}: {e}", exc_info=True)

    async def update_status(self, task_id: str, context_id: str, status: Union[TaskStatus, Dict[str, Any]]) -> None:
        status = _coerce(TaskStatus, status)
        if status.timestamp is None:
            status = status.model_copy(update={"timestamp": utc_now_iso()})
        logger.info(f"Task {task_id}: status -> {status.state.value}")
        if self.storage is not None:
            await self.storage.update_task_status(task_id, status)
        await self._emit(TaskStatusUpdateEvent(
            task_id=task_id,
            context_id=context_id,
            status=status,
            final=status.state in TERMINAL_STATES,
        ))

    async def update_message(self, task_id: str, context_id: str, message: Union[Message, Dict[str, Any]]) -> None:
        message = _coerce(Message, message)
        logger.info(f"Task {task_id}: message {message.message_id} from {message.role}")
        if self.storage is not None:
            await self.storage.save_message(task_id, message)
        await self._emit(TaskStatusUpdateEvent(
            task_id=task_id,
            context_id=context_id,
            status=TaskStatus(state=TaskState.WORKING, message=message, timestamp=utc_now_iso()),
            final=False,
        ))

    async def update_artifact(self, task_id: str, context_id: str, artifact: Union[Artifact, Dict[str, Any]]) -> None:
        artifact = _coerce(Artifact, artifact).model_copy(update={"task_id": task_id})
        logger.info(f"Task {task_id}: artifact {artifact.artifact_id} updated")
        if self.storage is not None:
            await self.storage.update_artifact(artifact)
        await self._emit(TaskArtifactUpdateEvent(task_id=task_id, context_id=context_id, artifact=artifact))

    async def cancel_task(self, task_id: str, context_id: str, message: Optional[Union[Message, Dict[str, Any]]] = None) -> None:
        if message is None:
            message = agent_text_message(DEFAULT_CANCEL_REASON, task_id=task_id, context_id=context_id)
        await self.update_status(task_id, context_id, TaskStatus(
            state=TaskState.CANCELED, message=_coerce(Message, message), timestamp=utc_now_iso(),
        ))

    async def get_task(self, task_id: str) -> Task:
        if self.storage is None:
            raise StorageAdapterRequiredError("get_task")
        task = await self.storage.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id=task_id)
        return task


class ExecutorContext:
    """
    Handed to an executor for one execution. ``task_id``/``context_id`` name
    the task being executed; the lifecycle operations take them explicitly so
    an executor may also report on related tasks.
    """

    def __init__(self, task_id: str, context_id: str, lifecycle: TaskLifecycle, message: Optional[Message] = None):
        self.task_id = task_id
        self.context_id = context_id
        self.message = message
        self._lifecycle = lifecycle

    async def update_status(self, task_id: str, context_id: str, status: Union[TaskStatus, Dict[str, Any]]) -> None:
        await self._lifecycle.update_status(task_id, context_id, status)

    async def update_message(self, task_id: str, context_id: str, message: Union[Message, Dict[str, Any]]) -> None:
        await self._lifecycle.update_message(task_id, context_id, message)

    async def update_artifact(self, task_id: str, context_id: str, artifact: Union[Artifact, Dict[str, Any]]) -> None:
        await self._lifecycle.update_artifact(task_id, context_id, artifact)

    async def cancel_task(self, task_id: str, context_id: str, message: Optional[Union[Message, Dict[str, Any]]] = None) -> None:
        await self._lifecycle.cancel_task(task_id, context_id, message)

    async def get_task(self, task_id: str) -> Task:
        return await self._lifecycle.get_task(task_id)

    def __repr__(self):
        return f"<ExecutorContext(task_id='{self.task_id}', context_id='{self.context_id}')>"
