from .base import BaseEventChannel, LoggingEventChannel, Event
from .memory import InMemoryEventChannel, SinkRegistry
from .redis import RedisEventChannel, create_redis_event_channel

__all__ = [
    "BaseEventChannel", "LoggingEventChannel", "Event",
    "InMemoryEventChannel", "SinkRegistry",
    "RedisEventChannel", "create_redis_event_channel",
]
