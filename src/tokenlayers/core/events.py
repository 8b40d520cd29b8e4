"""Typed publish/subscribe bus.

Listeners run synchronously in subscription order. A listener that raises is
logged and skipped; the remaining listeners and the publisher are unaffected.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    CONTEXT_CHANGED = "context.changed"
    CONTEXT_SWITCH_CANCELLED = "context.switch_cancelled"
    CONTEXT_SWITCH_SUPERSEDED = "context.switch_superseded"
    EDIT_MODE_CHANGED = "context.edit_mode_changed"
    PERMISSIONS_CHANGED = "permission.changed"
    PERMISSION_CHECK_FAILED = "permission.check_failed"
    LAYER_LOADED = "layer.loaded"
    LAYER_BOOTSTRAPPED = "layer.bootstrapped"
    LAYER_SAVED = "layer.saved"
    LAYER_DIVERGED = "layer.diverged"
    REVIEW_OPENED = "layer.review_opened"
    PENDING_CHANGED = "edit.pending_changed"
    OPERATION_FAILED = "operation.failed"


@dataclass(frozen=True)
class Event:
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[Event], None]


class EventBus:
    """Registry of listeners keyed by event type (``None`` = every event)."""

    def __init__(self) -> None:
        self._listeners: List[Tuple[Optional[EventType], Listener]] = []

    def subscribe(self, event_type: Optional[EventType], listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        entry = (event_type, listener)
        self._listeners.append(entry)

        def _unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return _unsubscribe

    def publish(self, event_type: EventType, **data: Any) -> Event:
        event = Event(type=event_type, data=data)
        for wanted, listener in list(self._listeners):
            if wanted is not None and wanted != event_type:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener %r failed for %s", listener, event_type.value)
        return event

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["EventBus", "Event", "EventType", "Listener"]
