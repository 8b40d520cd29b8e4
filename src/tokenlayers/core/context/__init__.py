"""Active-layer context management."""
from __future__ import annotations

from .manager import ContextManager, SwitchResult, ViewMode, view_mode_for

__all__ = ["ContextManager", "SwitchResult", "ViewMode", "view_mode_for"]
