"""Staged (not yet persisted) token overrides."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class PendingOverride:
    """One staged edit for a token against the active non-core layer.

    ``override_data`` holds the staged token fields (usually ``valuesByMode``);
    ``changed_fields`` names the fields the edit touched.
    """

    token_id: str
    override_data: Dict[str, Any] = field(default_factory=dict)
    changed_fields: Tuple[str, ...] = ()


__all__ = ["PendingOverride"]
