"""Domain-specific configuration accessors."""
from __future__ import annotations

from .editing import EditingConfig
from .logging import LoggingConfig
from .permissions import PermissionsConfig
from .persistence import PersistenceConfig

__all__ = ["EditingConfig", "LoggingConfig", "PermissionsConfig", "PersistenceConfig"]
