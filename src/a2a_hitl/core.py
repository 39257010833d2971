"""
The A2A instance: executor registry, dispatch of inbound messages and the
task lifecycle facade, wired to one storage adapter and one event channel.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from .events.base import BaseEventChannel
from .exceptions import MissingIdentifiersError
from .executor import Executor, ExecutorRegistry, extract_input
from .lifecycle import ExecutorContext, TaskLifecycle, utc_now_iso
from .models import Artifact, Message, Task, TaskState, TaskStatus
from .storage.base import BaseStorageAdapter

logger = logging.getLogger(__name__)


class A2AInstance:
    """
    Dispatches messages to executors and exposes the lifecycle operations.

    Args:
        registry: Executor registry; a fresh one is created when omitted.
        storage: Optional storage adapter. Without it tasks are not persisted
            and :meth:`get_task` raises ``StorageAdapterRequiredError``.
        event_channel: Optional event channel; defaults to a logging channel.
    """

    def __init__(
        self,
        registry: Optional[ExecutorRegistry] = None,
        storage: Optional[BaseStorageAdapter] = None,
        event_channel: Optional[BaseEventChannel] = None,
    ):
        self.registry = registry if registry is not None else ExecutorRegistry()
        self.lifecycle = TaskLifecycle(storage=storage, event_channel=event_channel)

    @property
    def storage(self) -> Optional[BaseStorageAdapter]:
        return self.lifecycle.storage

    @property
    def event_channel(self) -> BaseEventChannel:
        return self.lifecycle.event_channel

    def register(self, executor: Executor) -> "A2AInstance":
        self.registry.register(executor)
        return self

    async def execute(
        self,
        message: Union[Message, Dict[str, Any]],
        task_id: Optional[str] = None,
        context_id: Optional[str] = None,
    ) -> Any:
        """
        Routes ``message`` to the executor of its first registered extension,
        records it as a freshly submitted task and runs the executor.

        Raises:
            NoExecutorFoundError: No extension of the message is registered.
            MissingIdentifiersError: Neither the arguments nor the message supply task/context ids.
            ExecutorInputError: The extracted input does not match the executor's input schema.
            ExecutorOutputError: The executor's result does not match its output schema.

        Exceptions raised by the executor itself propagate unchanged.
        """
        if isinstance(message, dict):
            message = Message.model_validate(message)
        executor = self.registry.resolve(message.extensions)

        task_id = task_id or message.task_id
        context_id = context_id or message.context_id
        if not task_id or not context_id:
            raise MissingIdentifiersError(task_id, context_id)

        logger.info(f"Executing '{executor.extension}' for task {task_id} (context {context_id})")
        if self.storage is not None:
            # Re-entry with an existing task id overwrites the task row; history is kept.
            await self.storage.save_task(Task(
                id=task_id,
                context_id=context_id,
                status=TaskStatus(state=TaskState.SUBMITTED, message=message, timestamp=utc_now_iso()),
                metadata={},
            ))
            await self.storage.save_message(task_id, message)

        value = executor.parse_input(extract_input(message))
        context = ExecutorContext(task_id, context_id, self.lifecycle, message=message)
        result = await executor.execute(value, context)
        return executor.parse_output(result)

    # --- Lifecycle facade ---

    async def update_status(self, task_id: str, context_id: str, status: Union[TaskStatus, Dict[str, Any]]) -> None:
        await self.lifecycle.update_status(task_id, context_id, status)

    async def update_message(self, task_id: str, context_id: str, message: Union[Message, Dict[str, Any]]) -> None:
        await self.lifecycle.update_message(task_id, context_id, message)

    async def update_artifact(self, task_id: str, context_id: str, artifact: Union[Artifact, Dict[str, Any]]) -> None:
        await self.lifecycle.update_artifact(task_id, context_id, artifact)

    async def cancel_task(self, task_id: str, context_id: str, message: Optional[Union[Message, Dict[str, Any]]] = None) -> None:
        await self.lifecycle.cancel_task(task_id, context_id, message)

    async def get_task(self, task_id: str) -> Task:
        return await self.lifecycle.get_task(task_id)

    async def aclose(self) -> None:
        await self.event_channel.aclose()
        if self.storage is not None:
            await self.storage.close()


def create_a2a(
    executors: Sequence[Executor] = (),
    storage: Optional[BaseStorageAdapter] = None,
    event_channel: Optional[BaseEventChannel] = None,
) -> A2AInstance:
    """Builds an :class:`A2AInstance` with its own registry holding ``executors``."""
    return A2AInstance(registry=ExecutorRegistry(executors), storage=storage, event_channel=event_channel)
