"""Domain-specific configuration for logging and the audit JSONL sink."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Optional

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level", "WARNING")).upper()

    @cached_property
    def audit_enabled(self) -> bool:
        audit = self.section.get("audit") or {}
        return bool(audit.get("enabled", False))

    @cached_property
    def audit_path(self) -> Optional[Path]:
        """Absolute audit log path, or None when auditing is disabled."""
        if not self.audit_enabled:
            return None
        audit = self.section.get("audit") or {}
        raw = str(audit.get("path") or ".tokenlayers/logs/audit.jsonl")
        path = Path(raw).expanduser()
        return path if path.is_absolute() else self.repo_root / path


__all__ = ["LoggingConfig"]
