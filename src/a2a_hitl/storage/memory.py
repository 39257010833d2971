"""
In-memory storage adapter. Suitable for single-process development and testing.
Not persistent.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import TaskNotFoundError
from ..models import Artifact, Message, Task, TaskStatus, TaskWithHistory, to_wire
from .base import BaseStorageAdapter

logger = logging.getLogger(__name__)


class InMemoryStorageAdapter(BaseStorageAdapter):
    """
    Map-of-maps implementation of the storage adapter.

    Tasks are stored without their ``history``/``artifacts``; those are kept in
    per-task ordered collections and joined back in on read, so a task loaded
    after a write always reflects the latest messages and artifacts.
    """
    def __init__(self):
        self._tasks: Dict[str, Task] = {}
        # task_id -> message_id -> Message; dict insertion order is the sequence.
        self._messages: Dict[str, Dict[str, Message]] = {}
        # task_id -> artifact_id -> Artifact; insertion order is the first-upload position.
        self._artifacts: Dict[str, Dict[str, Artifact]] = {}
        logger.info("Initialized InMemoryStorageAdapter.")

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id=task_id)
        return task

    async def save_task(self, task: Task) -> None:
        logger.debug(f"Saving task '{task.id}' in InMemoryStorageAdapter.")
        self._tasks[task.id] = task.model_copy(update={"history": None, "artifacts": None}, deep=True)
        self._messages.setdefault(task.id, {})
        self._artifacts.setdefault(task.id, {})
        for message in task.history or []:
            await self.save_message(task.id, message)
        for artifact in task.artifacts or []:
            await self.update_artifact(artifact.model_copy(update={"task_id": task.id}))

    async def get_task(self, task_id: str) -> Optional[Task]:
        logger.debug(f"Getting task '{task_id}' from InMemoryStorageAdapter.")
        task = self._tasks.get(task_id)
        if task is None:
            return None
        return task.model_copy(
            update={
                "history": list(self._messages.get(task_id, {}).values()),
                "artifacts": await self.get_task_artifacts(task_id),
            },
            deep=True,
        )

    async def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        task = self._require_task(task_id)
        self._tasks[task_id] = task.model_copy(update={"status": status})
        if status.message is not None:
            await self.save_message(task_id, status.message)
        logger.debug(f"Task '{task_id}' status set to '{status.state.value}'.")

    async def save_message(self, task_id: str, message: Message) -> None:
        self._require_task(task_id)
        # Re-sending an existing id replaces the content in place, keeping its sequence.
        self._messages.setdefault(task_id, {})[message.message_id] = message
        logger.debug(f"Message '{message.message_id}' attached to task '{task_id}'.")

    async def get_messages(self, task_id: str) -> List[Message]:
        return list(self._messages.get(task_id, {}).values())

    async def update_artifact(self, artifact: Artifact) -> None:
        if not artifact.task_id:
            raise ValueError("Artifact must carry the owning task_id to be stored.")
        self._require_task(artifact.task_id)
        # Replacing an existing key keeps its position in the dict.
        self._artifacts.setdefault(artifact.task_id, {})[artifact.artifact_id] = artifact.model_copy(deep=True)
        logger.debug(f"Artifact '{artifact.artifact_id}' upserted for task '{artifact.task_id}'.")

    async def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        for artifacts in self._artifacts.values():
            artifact = artifacts.get(artifact_id)
            if artifact is not None:
                return artifact.model_copy(deep=True)
        return None

    async def get_task_artifacts(self, task_id: str) -> List[Artifact]:
        return [a.model_copy(deep=True) for a in self._artifacts.get(task_id, {}).values()]

    async def get_task_with_history(self, task_id: str) -> Optional[TaskWithHistory]:
        task = await self.get_task(task_id)
        if task is None:
            return None
        return TaskWithHistory(task=task, messages=list(task.history or []), artifacts=list(task.artifacts or []))

    # --- Development helpers ---

    def clear(self) -> None:
        """Remove every stored task, message and artifact."""
        self._tasks.clear()
        self._messages.clear()
        self._artifacts.clear()
        logger.info("InMemoryStorageAdapter cleared.")

    def get_stats(self) -> Dict[str, int]:
        return {
            "tasks_count": len(self._tasks),
            "messages_count": sum(len(m) for m in self._messages.values()),
            "artifacts_count": sum(len(a) for a in self._artifacts.values()),
        }

    def export_data(self) -> Dict[str, Any]:
        """Dumps the full store in wire form, keyed by task id."""
        return {
            "tasks": {task_id: to_wire(task) for task_id, task in self._tasks.items()},
            "messages": {
                task_id: [to_wire(m) for m in messages.values()]
                for task_id, messages in self._messages.items()
            },
            "artifacts": {
                task_id: [to_wire(a) for a in artifacts.values()]
                for task_id, artifacts in self._artifacts.items()
            },
        }
