"""Domain-specific configuration for repository write-access checks."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class PermissionsConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "permissions"

    @cached_property
    def ttl_seconds(self) -> float:
        """How long a write-access answer stays cached."""
        return float(self.require("ttl_seconds"))


__all__ = ["PermissionsConfig"]
