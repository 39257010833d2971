from .base import BaseStorageAdapter
from .memory import InMemoryStorageAdapter

__all__ = ["BaseStorageAdapter", "InMemoryStorageAdapter"]
