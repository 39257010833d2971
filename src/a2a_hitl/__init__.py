"""
A2A HITL: an Agent-to-Agent task execution core with durable task storage,
human-in-the-loop suspension and real-time event fan-out.
"""

from .core import A2AInstance, create_a2a
from .events import BaseEventChannel, InMemoryEventChannel, LoggingEventChannel, RedisEventChannel, create_redis_event_channel
from .exceptions import (
    A2AHitlError, TaskNotFoundError, NoExecutorFoundError, MissingIdentifiersError,
    ExecutorValidationError, ExecutorInputError, ExecutorOutputError,
    StorageError, StorageAdapterRequiredError, ConfigurationError,
    A2AClientError, A2AConnectionError,
)
from .executor import Executor, ExecutorRegistry, a2a_executor, define_executor, extract_input
from .lifecycle import ExecutorContext, TaskLifecycle
from .storage import BaseStorageAdapter, InMemoryStorageAdapter

__version__ = "0.1.0"

__all__ = [
    "A2AInstance", "create_a2a",
    "BaseEventChannel", "InMemoryEventChannel", "LoggingEventChannel", "RedisEventChannel", "create_redis_event_channel",
    "A2AHitlError", "TaskNotFoundError", "NoExecutorFoundError", "MissingIdentifiersError",
    "ExecutorValidationError", "ExecutorInputError", "ExecutorOutputError",
    "StorageError", "StorageAdapterRequiredError", "ConfigurationError",
    "A2AClientError", "A2AConnectionError",
    "Executor", "ExecutorRegistry", "a2a_executor", "define_executor", "extract_input",
    "ExecutorContext", "TaskLifecycle",
    "BaseStorageAdapter", "InMemoryStorageAdapter",
]
