"""
SQLAlchemy (async) backed storage for tasks, messages and artifacts.
"""
from .adapter import SQLAlchemyStorageAdapter
from .database import Base, create_engine, create_session_factory, create_tables, drop_tables, normalize_database_url
from .models import ArtifactRecord, MessageRecord, TaskMessageRecord, TaskRecord

__all__ = [
    "SQLAlchemyStorageAdapter",
    "Base", "create_engine", "create_session_factory", "create_tables", "drop_tables", "normalize_database_url",
    "ArtifactRecord", "MessageRecord", "TaskMessageRecord", "TaskRecord",
]
