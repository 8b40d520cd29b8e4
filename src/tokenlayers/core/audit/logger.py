from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from tokenlayers.core.events import Event, EventBus
from tokenlayers.core.utils.io import append_jsonl

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def audit_event(path: Path, event: str, **fields: Any) -> None:
    """Append a single structured audit event as JSONL (fail-open).

    This is separate from stdlib ``logging`` so JSON-mode CLI output stays pure.
    """
    payload: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "event": event,
        "pid": os.getpid(),
    }
    payload.update({k: _json_safe(v) for k, v in fields.items()})
    try:
        append_jsonl(path, payload)
    except OSError:
        logger.warning("Could not write audit event %s to %s", event, path)


def attach_audit_sink(bus: EventBus, path: Path) -> Callable[[], None]:
    """Forward every event published on ``bus`` to the audit log at ``path``."""

    def _sink(event: Event) -> None:
        audit_event(path, event.type.value, **event.data)

    return bus.subscribe(None, _sink)


__all__ = ["audit_event", "attach_audit_sink"]
