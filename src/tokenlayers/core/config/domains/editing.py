"""Domain-specific configuration for edit sessions and operation history."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class EditingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "editing"

    @cached_property
    def undo_depth(self) -> int:
        return int(self.section.get("undo_depth", 50))

    @cached_property
    def operation_history(self) -> int:
        return int(self.section.get("operation_history", 100))


__all__ = ["EditingConfig"]
