"""Concrete collaborators: repository hosts and key-value stores."""
from __future__ import annotations

from .kv import JsonFileKeyValueStore, MemoryKeyValueStore
from .local import LocalRepository
from .memory import InMemoryRepository

__all__ = ["InMemoryRepository", "LocalRepository", "MemoryKeyValueStore", "JsonFileKeyValueStore"]
