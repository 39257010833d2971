import uuid
import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _new_row_id() -> str:
    return str(uuid.uuid4())


class TaskRecord(Base):
    """One row per task. The status is kept whole as JSON plus denormalised columns for querying."""
    __tablename__ = "a2a_tasks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    kind: Mapped[str] = mapped_column(String, nullable=False, default="task", server_default="task")
    status: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    status_state: Mapped[str] = mapped_column(String, nullable=False, index=True)
    status_message: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    status_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    context_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    extensions: Mapped[Optional[List[str]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    task_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<TaskRecord(id='{self.id}', state='{self.status_state}')>"


class MessageRecord(Base):
    """One row per message attached to a task."""
    __tablename__ = "a2a_messages"
    __table_args__ = (
        UniqueConstraint("a2a_task_id", "a2a_message_id", name="uq_a2a_messages_task_message"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_row_id)
    task_id: Mapped[str] = mapped_column(
        "a2a_task_id", String, ForeignKey("a2a_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String, nullable=False, default="message", server_default="message")
    message_id: Mapped[str] = mapped_column("a2a_message_id", String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False)
    parts: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    context_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    message_task_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    reference_task_ids: Mapped[Optional[List[str]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    extensions: Mapped[Optional[List[str]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    message_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<MessageRecord(task_id='{self.task_id}', message_id='{self.message_id}')>"


class TaskMessageRecord(Base):
    """Join table fixing the order of a task's messages."""
    __tablename__ = "a2a_task_messages"
    __table_args__ = (
        Index("ix_a2a_task_messages_task_sequence", "a2a_task_id", "sequence"),
    )

    task_id: Mapped[str] = mapped_column(
        "a2a_task_id", String, ForeignKey("a2a_tasks.id", ondelete="CASCADE"), primary_key=True
    )
    message_id: Mapped[str] = mapped_column(
        "a2a_message_id", String, ForeignKey("a2a_messages.id", ondelete="CASCADE"), primary_key=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ArtifactRecord(Base):
    """One row per artifact; re-uploading an artifact id updates the row in place."""
    __tablename__ = "a2a_artifacts"
    __table_args__ = (
        UniqueConstraint("a2a_task_id", "a2a_artifact_id", name="uq_a2a_artifacts_task_artifact"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_row_id)
    task_id: Mapped[str] = mapped_column(
        "a2a_task_id", String, ForeignKey("a2a_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    artifact_id: Mapped[str] = mapped_column("a2a_artifact_id", String, nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parts: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    extensions: Mapped[Optional[List[str]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    artifact_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON(none_as_null=True), nullable=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<ArtifactRecord(task_id='{self.task_id}', artifact_id='{self.artifact_id}')>"
