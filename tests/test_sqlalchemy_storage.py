import datetime

import pytest
from sqlalchemy import select, update

from a2a_hitl.exceptions import StorageError
from a2a_hitl.models import TaskState, TaskStatus
from a2a_hitl.storage.sqlalchemy import SQLAlchemyStorageAdapter, normalize_database_url
from a2a_hitl.storage.sqlalchemy.database import create_engine, create_session_factory
from a2a_hitl.storage.sqlalchemy.models import MessageRecord, TaskMessageRecord, TaskRecord
from a2a_hitl.testing import make_message

from .conftest import build_task


@pytest.mark.parametrize("url, expected", [
    ("postgresql://u:p@db/a2a", "postgresql+asyncpg://u:p@db/a2a"),
    ("sqlite:///./a2a.db", "sqlite+aiosqlite:///./a2a.db"),
    ("postgresql+asyncpg://u:p@db/a2a", "postgresql+asyncpg://u:p@db/a2a"),
])
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


@pytest.mark.asyncio
async def test_message_sequence_is_per_task(sql_storage):
    await sql_storage.save_task(build_task("t1", "c1"))
    await sql_storage.save_task(build_task("t2", "c2"))
    await sql_storage.save_message("t1", make_message("a", message_id="m1"))
    await sql_storage.save_message("t2", make_message("b", message_id="m1"))
    await sql_storage.save_message("t1", make_message("c", message_id="m2"))

    async with sql_storage._session_factory() as session:
        rows = (await session.execute(
            select(TaskMessageRecord.task_id, TaskMessageRecord.sequence).order_by(TaskMessageRecord.task_id, TaskMessageRecord.sequence)
        )).all()
    assert [tuple(r) for r in rows] == [("t1", 1), ("t1", 2), ("t2", 1)]


@pytest.mark.asyncio
async def test_status_columns_are_denormalized(sql_storage):
    await sql_storage.save_task(build_task())
    note = make_message("waiting", role="agent", message_id="m-agent")
    await sql_storage.update_task_status("task-1", TaskStatus(state=TaskState.INPUT_REQUIRED, message=note))

    async with sql_storage._session_factory() as session:
        record = await session.get(TaskRecord, "task-1")
    assert record.status_state == "input-required"
    assert record.status["state"] == "input-required"
    assert record.status_message["messageId"] == "m-agent"


@pytest.mark.asyncio
async def test_metadata_round_trips(sql_storage):
    task = build_task().model_copy(update={"metadata": {"origin": "test"}})
    await sql_storage.save_task(task)
    assert (await sql_storage.get_task("task-1")).metadata == {"origin": "test"}


@pytest.mark.asyncio
async def test_create_tables_requires_owned_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'external.db'}")
    adapter = SQLAlchemyStorageAdapter(create_session_factory(engine))
    with pytest.raises(StorageError):
        await adapter.create_tables()
    await engine.dispose()


@pytest.mark.asyncio
async def test_database_errors_are_wrapped(tmp_path):
    adapter = SQLAlchemyStorageAdapter.from_url(f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(StorageError):
        await adapter.get_task("t1")
    await adapter.close()


@pytest.mark.asyncio
async def test_message_order_follows_sequence_not_timestamps(sql_storage):
    await sql_storage.save_task(build_task())
    for i in range(4):
        await sql_storage.save_message("task-1", make_message(f"text {i}", message_id=f"m{i}"))

    same_instant = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)
    async with sql_storage._session_factory() as session:
        await session.execute(update(TaskMessageRecord).values(created_at=same_instant))
        await session.execute(update(MessageRecord).values(created_at=same_instant))
        await session.commit()

    assert [m.message_id for m in await sql_storage.get_messages("task-1")] == ["m0", "m1", "m2", "m3"]
