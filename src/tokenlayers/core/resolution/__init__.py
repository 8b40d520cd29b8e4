"""Layered override resolution."""
from __future__ import annotations

from .engine import resolve
from .mode_keys import mode_key, replace_by_mode_key
from .snapshot import MergedSnapshot, ResolutionAnalytics, ResolutionWarning

__all__ = [
    "resolve",
    "mode_key",
    "replace_by_mode_key",
    "MergedSnapshot",
    "ResolutionAnalytics",
    "ResolutionWarning",
]
