"""
Relational storage adapter built on the SQLAlchemy async ORM.

Messages are ordered through the ``a2a_task_messages`` join table, whose
``sequence`` column is assigned as ``max(sequence) + 1`` per task. The
composite read (:meth:`SQLAlchemyStorageAdapter.get_task_with_history`) runs in
a single session but without a repeatable-read transaction, so it is not
guaranteed to be atomic across the three tables.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ...exceptions import StorageError, TaskNotFoundError
from ...models import Artifact, Message, Task, TaskStatus, TaskWithHistory, to_wire
from ..base import BaseStorageAdapter
from .database import create_engine, create_session_factory, create_tables, dispose_engine
from .models import ArtifactRecord, MessageRecord, TaskMessageRecord, TaskRecord

logger = logging.getLogger(__name__)


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _task_from_record(record: TaskRecord) -> Task:
    return Task.model_validate(_drop_none({
        "id": record.id,
        "contextId": record.context_id or "",
        "kind": record.kind,
        "status": record.status,
        "metadata": record.task_metadata,
    }))


def _message_from_record(record: MessageRecord) -> Message:
    return Message.model_validate(_drop_none({
        "kind": record.kind,
        "messageId": record.message_id,
        "role": record.role,
        "parts": record.parts,
        "contextId": record.context_id,
        "taskId": record.message_task_id,
        "extensions": record.extensions,
        "referenceTaskIds": record.reference_task_ids,
        "metadata": record.message_metadata,
    }))


def _artifact_from_record(record: ArtifactRecord) -> Artifact:
    return Artifact.model_validate(_drop_none({
        "artifactId": record.artifact_id,
        "taskId": record.task_id,
        "name": record.name,
        "description": record.description,
        "parts": record.parts,
        "extensions": record.extensions,
        "metadata": record.artifact_metadata,
    }))


def _apply_status(record: TaskRecord, status: TaskStatus) -> None:
    record.status = to_wire(status)
    record.status_state = status.state.value
    record.status_message = to_wire(status.message) if status.message is not None else None
    record.status_reason = None


class SQLAlchemyStorageAdapter(BaseStorageAdapter):
    """Durable storage adapter for PostgreSQL (asyncpg) or SQLite (aiosqlite)."""

    def __init__(self, session_factory: async_sessionmaker, engine: Optional[AsyncEngine] = None):
        self._session_factory = session_factory
        # Only an engine created by from_url() is disposed on close().
        self._engine = engine
        logger.info("Initialized SQLAlchemyStorageAdapter.")

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SQLAlchemyStorageAdapter":
        engine = create_engine(database_url, echo=echo)
        return cls(create_session_factory(engine), engine=engine)

    async def create_tables(self) -> None:
        if self._engine is None:
            raise StorageError("create_tables requires an adapter built with from_url()")
        await create_tables(self._engine)

    async def close(self) -> None:
        await dispose_engine(self._engine)
        self._engine = None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except TaskNotFoundError:
                await session.rollback()
                raise
            except SQLAlchemyError as e:
                logger.exception(f"Database error, rolling back: {e}")
                await session.rollback()
                raise StorageError(f"Storage operation failed: {e}") from e

    # --- Internal helpers (caller owns the session) ---

    async def _require_task(self, session: AsyncSession, task_id: str) -> TaskRecord:
        record = await session.get(TaskRecord, task_id)
        if record is None:
            raise TaskNotFoundError(task_id=task_id)
        return record

    async def _attach_message(self, session: AsyncSession, task_id: str, message: Message) -> None:
        result = await session.execute(
            select(MessageRecord).where(
                MessageRecord.task_id == task_id, MessageRecord.message_id == message.message_id
            )
        )
        record = result.scalar_one_or_none()
        is_new = record is None
        if is_new:
            record = MessageRecord(task_id=task_id, message_id=message.message_id)
            session.add(record)
        record.kind = message.kind
        record.role = message.role
        record.parts = [to_wire(p) for p in message.parts]
        record.context_id = message.context_id
        record.message_task_id = message.task_id
        record.reference_task_ids = message.reference_task_ids
        record.extensions = message.extensions
        record.message_metadata = message.metadata
        await session.flush()

        if is_new:
            max_seq = await session.scalar(
                select(func.max(TaskMessageRecord.sequence)).where(TaskMessageRecord.task_id == task_id)
            )
            sequence = (max_seq or 0) + 1
            session.add(TaskMessageRecord(task_id=task_id, message_id=record.id, sequence=sequence))
            await session.flush()
            logger.debug(f"Message '{message.message_id}' attached to task '{task_id}' at sequence {sequence}.")
        else:
            logger.debug(f"Message '{message.message_id}' on task '{task_id}' updated in place.")

    async def _upsert_artifact(self, session: AsyncSession, task_id: str, artifact: Artifact) -> None:
        result = await session.execute(
            select(ArtifactRecord).where(
                ArtifactRecord.task_id == task_id, ArtifactRecord.artifact_id == artifact.artifact_id
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            max_seq = await session.scalar(
                select(func.max(ArtifactRecord.sequence)).where(ArtifactRecord.task_id == task_id)
            )
            record = ArtifactRecord(task_id=task_id, artifact_id=artifact.artifact_id, sequence=(max_seq or 0) + 1)
            session.add(record)
        record.name = artifact.name
        record.description = artifact.description
        record.parts = [to_wire(p) for p in artifact.parts]
        record.extensions = artifact.extensions
        record.artifact_metadata = artifact.metadata
        await session.flush()

    async def _load_messages(self, session: AsyncSession, task_id: str) -> List[Message]:
        result = await session.execute(
            select(MessageRecord)
            .join(TaskMessageRecord, TaskMessageRecord.message_id == MessageRecord.id)
            .where(TaskMessageRecord.task_id == task_id)
            .order_by(TaskMessageRecord.sequence.asc())
        )
        return [_message_from_record(r) for r in result.scalars().all()]

    async def _load_artifacts(self, session: AsyncSession, task_id: str) -> List[Artifact]:
        result = await session.execute(
            select(ArtifactRecord)
            .where(ArtifactRecord.task_id == task_id)
            .order_by(ArtifactRecord.sequence.asc())
        )
        return [_artifact_from_record(r) for r in result.scalars().all()]

    # --- Contract ---

    async def save_task(self, task: Task) -> None:
        async with self._session() as session:
            record = await session.get(TaskRecord, task.id)
            if record is None:
                record = TaskRecord(id=task.id)
                session.add(record)
            record.kind = task.kind
            record.context_id = task.context_id
            record.task_metadata = task.metadata
            _apply_status(record, task.status)
            await session.flush()
            for message in task.history or []:
                await self._attach_message(session, task.id, message)
            for artifact in task.artifacts or []:
                await self._upsert_artifact(session, task.id, artifact)
            await session.commit()
        logger.debug(f"Task '{task.id}' saved.")

    async def get_task(self, task_id: str) -> Optional[Task]:
        async with self._session() as session:
            record = await session.get(TaskRecord, task_id)
            if record is None:
                return None
            task = _task_from_record(record)
            task.history = await self._load_messages(session, task_id)
            task.artifacts = await self._load_artifacts(session, task_id)
            return task

    async def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        async with self._session() as session:
            record = await self._require_task(session, task_id)
            _apply_status(record, status)
            await session.flush()
            if status.message is not None:
                await self._attach_message(session, task_id, status.message)
            await session.commit()
        logger.debug(f"Task '{task_id}' status set to '{status.state.value}'.")

    async def save_message(self, task_id: str, message: Message) -> None:
        async with self._session() as session:
            await self._require_task(session, task_id)
            await self._attach_message(session, task_id, message)
            await session.commit()

    async def get_messages(self, task_id: str) -> List[Message]:
        async with self._session() as session:
            return await self._load_messages(session, task_id)

    async def update_artifact(self, artifact: Artifact) -> None:
        if not artifact.task_id:
            raise ValueError("Artifact must carry the owning task_id to be stored.")
        async with self._session() as session:
            await self._require_task(session, artifact.task_id)
            await self._upsert_artifact(session, artifact.task_id, artifact)
            await session.commit()
        logger.debug(f"Artifact '{artifact.artifact_id}' upserted for task '{artifact.task_id}'.")

    async def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        async with self._session() as session:
            result = await session.execute(
                select(ArtifactRecord).where(ArtifactRecord.artifact_id == artifact_id).limit(1)
            )
            record = result.scalar_one_or_none()
            return _artifact_from_record(record) if record is not None else None

    async def get_task_artifacts(self, task_id: str) -> List[Artifact]:
        async with self._session() as session:
            return await self._load_artifacts(session, task_id)

    async def get_task_with_history(self, task_id: str) -> Optional[TaskWithHistory]:
        async with self._session() as session:
            record = await session.get(TaskRecord, task_id)
            if record is None:
                return None
            messages = await self._load_messages(session, task_id)
            artifacts = await self._load_artifacts(session, task_id)
            task = _task_from_record(record)
            task.history = list(messages)
            task.artifacts = list(artifacts)
            return TaskWithHistory(task=task, messages=messages, artifacts=artifacts)
