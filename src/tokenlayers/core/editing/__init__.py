"""Edit sessions and staged overrides."""
from __future__ import annotations

from .pending import PendingOverride
from .session import EditSession

__all__ = ["EditSession", "PendingOverride"]
