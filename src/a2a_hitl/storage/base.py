"""
Defines the storage adapter contract every task persistence backend satisfies.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import Artifact, Message, Task, TaskStatus, TaskWithHistory


class BaseStorageAdapter(ABC):
    """Abstract base class for task, message and artifact persistence.

    Backends raise :class:`~a2a_hitl.exceptions.TaskNotFoundError` when a write
    targets an unknown task, and wrap any other backend failure in
    :class:`~a2a_hitl.exceptions.StorageError`.
    """

    @abstractmethod
    async def save_task(self, task: Task) -> None:
        """Insert or overwrite a task by its ``id``."""
        pass

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[Task]:
        """Retrieve a task, with ``history`` and ``artifacts`` populated, or None."""
        pass

    @abstractmethod
    async def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        """Replace the task's status; a status message is also appended to the history."""
        pass

    @abstractmethod
    async def save_message(self, task_id: str, message: Message) -> None:
        """Attach a message to the task's ordered history (upsert by message id)."""
        pass

    @abstractmethod
    async def get_messages(self, task_id: str) -> List[Message]:
        """Return the task's messages in attachment order."""
        pass

    @abstractmethod
    async def update_artifact(self, artifact: Artifact) -> None:
        """Insert or replace an artifact by ``artifact_id``; ``artifact.task_id`` names the owner."""
        pass

    @abstractmethod
    async def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        pass

    @abstractmethod
    async def get_task_artifacts(self, task_id: str) -> List[Artifact]:
        pass

    @abstractmethod
    async def get_task_with_history(self, task_id: str) -> Optional[TaskWithHistory]:
        """Composite read of task, messages and artifacts."""
        pass

    async def close(self) -> None:
        """Release backend resources. Default is a no-op."""
        return None
