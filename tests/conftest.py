
from typing import Any, Dict

import pytest
import pytest_asyncio

from a2a_hitl.core import A2AInstance, create_a2a
from a2a_hitl.models import Task, TaskState, TaskStatus
from a2a_hitl.storage.memory import InMemoryStorageAdapter
from a2a_hitl.storage.sqlalchemy import SQLAlchemyStorageAdapter
from a2a_hitl.testing import RecordingEventChannel



def build_task(task_id: str = "task-1", context_id: str = "ctx-1", state: TaskState = TaskState.SUBMITTED) -> Task:
    return Task(id=task_id, context_id=context_id, status=TaskStatus(state=state, timestamp="2026-01-01T00:00:00.000Z"))


@pytest.fixture
def memory_storage() -> InMemoryStorageAdapter:
    """Provides a fresh InMemoryStorageAdapter for each test."""
    return InMemoryStorageAdapter()


@pytest_asyncio.fixture
async def sql_storage(tmp_path):
    """Provides a SQLAlchemyStorageAdapter backed by a temporary SQLite file."""
    adapter = SQLAlchemyStorageAdapter.from_url(f"sqlite+aiosqlite:///{tmp_path / 'a2a.db'}")
    await adapter.create_tables()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture(params=["memory", "sqlalchemy"])
async def storage(request, tmp_path):
    """Runs a test against every storage backend."""
    if request.param == "memory":
        yield InMemoryStorageAdapter()
        return
    adapter = SQLAlchemyStorageAdapter.from_url(f"sqlite+aiosqlite:///{tmp_path / 'contract.db'}")
    await adapter.create_tables()
    yield adapter
    await adapter.close()


@pytest.fixture
def recorder() -> RecordingEventChannel:
    return RecordingEventChannel()


@pytest.fixture
def a2a(memory_storage, recorder) -> A2AInstance:
    return create_a2a(storage=memory_storage, event_channel=recorder)


@pytest.fixture
def message_payload() -> Dict[str, Any]:
    return {
        "kind": "message",
        "messageId": "msg-1",
        "role": "user",
        "parts": [{"kind": "text", "text": "hello"}],
        "extensions": ["urn:test:echo"],
    }
