"""
Defines the event channel contract used to notify live observers of task changes.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from ..models import TaskArtifactUpdateEvent, TaskStatusUpdateEvent

logger = logging.getLogger(__name__)

Event = Union[TaskStatusUpdateEvent, TaskArtifactUpdateEvent]


class BaseEventChannel(ABC):
    """
    Abstract base class for event delivery.

    ``send`` is best-effort and at-most-once. Observers attach through
    ``subscribe``, which returns a queue of ready-to-write SSE frames; a
    ``None`` placed on the queue tells the observer its stream is closed.
    """

    # When True the events endpoint emits a synthetic "working" status on subscribe.
    announce_on_subscribe: bool = False

    @abstractmethod
    async def send(self, event: Event) -> None:
        pass

    @abstractmethod
    async def subscribe(self, task_id: str) -> "asyncio.Queue[Optional[str]]":
        pass

    @abstractmethod
    async def unsubscribe(self, task_id: str, queue: "asyncio.Queue[Optional[str]]") -> None:
        pass

    def get_active_connections(self, task_id: Optional[str] = None) -> int:
        return 0

    async def close_task_connections(self, task_id: str) -> None:
        return None

    async def aclose(self) -> None:
        return None


class LoggingEventChannel(BaseEventChannel):
    """Default channel when none is configured: logs events and has no observers."""

    async def send(self, event: Event) -> None:
        logger.info(f"A2A event '{event.kind}' for task {event.task_id} (context {event.context_id})")

    async def subscribe(self, task_id: str) -> "asyncio.Queue[Optional[str]]":
        logger.warning(f"Subscription to task {task_id} on LoggingEventChannel will receive no events.")
        return asyncio.Queue()

    async def unsubscribe(self, task_id: str, queue: "asyncio.Queue[Optional[str]]") -> None:
        return None
