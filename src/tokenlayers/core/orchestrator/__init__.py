"""Persistence orchestration: serialized load/save/refresh/export."""
from __future__ import annotations

from .errors import normalize_error
from .orchestrator import (
    DEFAULT_MAX_DOCUMENT_BYTES,
    REFRESH_FLAGS,
    PersistenceOrchestrator,
    PersistenceSettings,
    RefreshReason,
    SaveResult,
)
from .queue import OperationQueue, OperationRecord, OperationStatus

__all__ = [
    "PersistenceOrchestrator",
    "PersistenceSettings",
    "SaveResult",
    "RefreshReason",
    "REFRESH_FLAGS",
    "DEFAULT_MAX_DOCUMENT_BYTES",
    "OperationQueue",
    "OperationRecord",
    "OperationStatus",
    "normalize_error",
]
