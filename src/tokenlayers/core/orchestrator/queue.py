"""Single-flow operation queue.

Every load/save/refresh/validate/mutation runs through one ``OperationQueue``
so that no two of them touch the layer stores at the same time. Operations
are started in submission order (``asyncio.Lock`` wakes waiters FIFO) and each
one leaves an ``OperationRecord`` in a bounded history.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Deque, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class OperationRecord:
    id: int
    kind: str
    layer: Optional[str]
    status: OperationStatus = OperationStatus.PENDING
    error: Optional[str] = None


class OperationQueue:
    def __init__(self, *, history: int = 100) -> None:
        self._lock: Optional[asyncio.Lock] = None
        self._ids = itertools.count(1)
        self._records: Deque[OperationRecord] = deque(maxlen=history)
        self._current: Optional[OperationRecord] = None

    @property
    def records(self) -> List[OperationRecord]:
        return list(self._records)

    @property
    def current(self) -> Optional[OperationRecord]:
        return self._current

    @property
    def busy(self) -> bool:
        return self._current is not None

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the lock belongs to the running event loop.
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def run(
        self, kind: str, operation: Callable[[], Awaitable[T]], *, layer: Optional[str] = None
    ) -> T:
        record = OperationRecord(id=next(self._ids), kind=kind, layer=layer)
        self._records.append(record)
        try:
            async with self._get_lock():
                record.status = OperationStatus.IN_PROGRESS
                self._current = record
                logger.debug("Operation %d (%s %s) started", record.id, kind, layer or "")
                try:
                    result = await operation()
                except Exception as exc:
                    record.status = OperationStatus.FAILED
                    record.error = f"{type(exc).__name__}: {exc}"
                    raise
                finally:
                    self._current = None
        except asyncio.CancelledError:
            # Covers cancellation both while waiting for the lock and while running.
            record.status = OperationStatus.CANCELLED
            logger.debug("Operation %d (%s %s) cancelled", record.id, kind, layer or "")
            raise
        record.status = OperationStatus.COMPLETED
        return result


__all__ = ["OperationQueue", "OperationRecord", "OperationStatus"]
