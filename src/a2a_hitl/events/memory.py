"""
In-process event channel: fans events out to the observers connected to this process.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from ..sse import format_event_frame
from .base import BaseEventChannel, Event

logger = logging.getLogger(__name__)


class SinkRegistry:
    """Tracks the output queues (one per connected observer) for each task id."""

    def __init__(self, queue_maxsize: int = 100):
        self._queue_maxsize = queue_maxsize
        self._sinks: Dict[str, Set[asyncio.Queue]] = {}

    def add(self, task_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._sinks.setdefault(task_id, set()).add(queue)
        return queue

    def remove(self, task_id: str, queue: asyncio.Queue) -> bool:
        """Removes a sink. Returns True when the task has no sinks left."""
        sinks = self._sinks.get(task_id)
        if sinks is None:
            return True
        sinks.discard(queue)
        if not sinks:
            del self._sinks[task_id]
            return True
        return False

    def broadcast(self, task_id: str, frame: str) -> int:
        """Writes a frame to every sink of the task; a full sink is dropped. Returns deliveries."""
        delivered = 0
        for queue in list(self._sinks.get(task_id, ())):
            try:
                queue.put_nowait(frame)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Observer queue full for task {task_id}; dropping observer.")
                self.remove(task_id, queue)
        return delivered

    def close(self, task_id: str) -> int:
        """Signals end-of-stream to every sink of the task and forgets them."""
        sinks = self._sinks.pop(task_id, set())
        for queue in sinks:
            try:
                queue.put_nowait(None)
            except asyncio.QueueFull:
                # Make room so the observer still sees the end-of-stream marker.
                queue.get_nowait()
                queue.put_nowait(None)
        return len(sinks)

    def count(self, task_id: Optional[str] = None) -> int:
        if task_id is not None:
            return len(self._sinks.get(task_id, ()))
        return sum(len(s) for s in self._sinks.values())

    def task_ids(self) -> List[str]:
        return list(self._sinks)


class InMemoryEventChannel(BaseEventChannel):
    """
    Event channel for a single process. Events reach only observers connected
    to this process; use the Redis channel when running several instances.
    """
    announce_on_subscribe = True

    def __init__(self, queue_maxsize: int = 100):
        self._registry = SinkRegistry(queue_maxsize)
        logger.info("Initialized InMemoryEventChannel.")

    async def send(self, event: Event) -> None:
        frame = format_event_frame(event)
        delivered = self._registry.broadcast(event.task_id, frame)
        logger.debug(f"Event '{event.kind}' for task {event.task_id} delivered to {delivered} observer(s).")

    async def subscribe(self, task_id: str) -> asyncio.Queue:
        queue = self._registry.add(task_id)
        logger.info(f"Observer subscribed to task {task_id} ({self._registry.count(task_id)} active).")
        return queue

    async def unsubscribe(self, task_id: str, queue: asyncio.Queue) -> None:
        self._registry.remove(task_id, queue)
        logger.info(f"Observer unsubscribed from task {task_id} ({self._registry.count(task_id)} remaining).")

    def get_active_connections(self, task_id: Optional[str] = None) -> int:
        return self._registry.count(task_id)

    async def close_task_connections(self, task_id: str) -> None:
        closed = self._registry.close(task_id)
        logger.info(f"Closed {closed} observer connection(s) for task {task_id}.")

    async def aclose(self) -> None:
        for task_id in self._registry.task_ids():
            self._registry.close(task_id)
