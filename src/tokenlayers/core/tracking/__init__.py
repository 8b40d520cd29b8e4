"""Change tracking against per-layer baselines."""
from __future__ import annotations

from .differ import ROOT_SECTION, ChangeTracker, sections_for
from .history import DEFAULT_UNDO_DEPTH, UndoHistory

__all__ = ["ChangeTracker", "ROOT_SECTION", "UndoHistory", "DEFAULT_UNDO_DEPTH", "sections_for"]
