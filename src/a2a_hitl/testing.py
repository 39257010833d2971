"""
Helpers for testing code built on the A2A task core.
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from .events.memory import InMemoryEventChannel
from .events.base import Event
from .models import DataPart, Message, Part, TextPart


class RecordingEventChannel(InMemoryEventChannel):
    """In-process event channel that also keeps every sent event, in order."""

    def __init__(self, queue_maxsize: int = 100):
        super().__init__(queue_maxsize=queue_maxsize)
        self.events: List[Event] = []

    async def send(self, event: Event) -> None:
        self.events.append(event)
        await super().send(event)

    @property
    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]

    def for_task(self, task_id: str) -> List[Event]:
        return [e for e in self.events if e.task_id == task_id]

    def clear(self) -> None:
        self.events.clear()


def make_message(
    text: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    extensions: Optional[Sequence[str]] = None,
    role: str = "user",
    task_id: Optional[str] = None,
    context_id: Optional[str] = None,
    message_id: Optional[str] = None,
) -> Message:
    """Builds a message with an optional text part followed by an optional data part."""
    parts: List[Part] = []
    if text is not None:
        parts.append(TextPart(text=text))
    if data is not None:
        parts.append(DataPart(data=data))
    return Message(
        message_id=message_id or str(uuid.uuid4()),
        role=role,
        parts=parts,
        extensions=list(extensions) if extensions is not None else None,
        task_id=task_id,
        context_id=context_id,
    )


def assert_event_kinds(channel: RecordingEventChannel, expected: Sequence[str]) -> None:
    actual = channel.kinds
    assert actual == list(expected), f"Expected event kinds {list(expected)}, got {actual}"
