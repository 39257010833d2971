"""create a2a task tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "a2a_tasks",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("kind", sa.String(), server_default="task", nullable=False),
        sa.Column("status", sa.JSON(), nullable=False),
        sa.Column("status_state", sa.String(), nullable=False),
        sa.Column("status_message", sa.JSON(), nullable=True),
        sa.Column("status_reason", sa.Text(), nullable=True),
        sa.Column("context_id", sa.String(), nullable=True),
        sa.Column("extensions", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_a2a_tasks_status_state", "a2a_tasks", ["status_state"])
    op.create_index("ix_a2a_tasks_context_id", "a2a_tasks", ["context_id"])

    op.create_table(
        "a2a_messages",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("a2a_task_id", sa.String(), sa.ForeignKey("a2a_tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(), server_default="message", nullable=False),
        sa.Column("a2a_message_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("parts", sa.JSON(), nullable=False),
        sa.Column("context_id", sa.String(), nullable=True),
        sa.Column("message_task_id", sa.String(), nullable=True),
        sa.Column("reference_task_ids", sa.JSON(), nullable=True),
        sa.Column("extensions", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("a2a_task_id", "a2a_message_id", name="uq_a2a_messages_task_message"),
    )
    op.create_index("ix_a2a_messages_a2a_task_id", "a2a_messages", ["a2a_task_id"])

    op.create_table(
        "a2a_task_messages",
        sa.Column("a2a_task_id", sa.String(), sa.ForeignKey("a2a_tasks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("a2a_message_id", sa.String(), sa.ForeignKey("a2a_messages.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_a2a_task_messages_task_sequence", "a2a_task_messages", ["a2a_task_id", "sequence"])

    op.create_table(
        "a2a_artifacts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("a2a_task_id", sa.String(), sa.ForeignKey("a2a_tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("a2a_artifact_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parts", sa.JSON(), nullable=False),
        sa.Column("extensions", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("sequence", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("a2a_task_id", "a2a_artifact_id", name="uq_a2a_artifacts_task_artifact"),
    )
    op.create_index("ix_a2a_artifacts_a2a_task_id", "a2a_artifacts", ["a2a_task_id"])
    op.create_index("ix_a2a_artifacts_a2a_artifact_id", "a2a_artifacts", ["a2a_artifact_id"])


def downgrade() -> None:
    op.drop_table("a2a_artifacts")
    op.drop_table("a2a_task_messages")
    op.drop_table("a2a_messages")
    op.drop_table("a2a_tasks")
