"""Typed accessors over one top-level section of the merged config.

Each accessor names its section via ``_config_section``. The merged config is
shared through ``cache.get_cached_config``, so constructing many accessors for
the same ``repo_root`` reads the YAML layers once.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .cache import get_cached_config


class BaseDomainConfig(ABC):
    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self._repo_root = repo_root
        self._config = get_cached_config(repo_root=repo_root)

    @property
    def repo_root(self) -> Path:
        """Project root used to anchor relative paths (cwd when unset)."""
        return self._repo_root or Path.cwd()

    @abstractmethod
    def _config_section(self) -> str:
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        return self._config.get(self._config_section(), {}) or {}

    def require(self, key: str) -> Any:
        """Value of a mandatory key; RuntimeError names ``section.key`` when absent."""
        name = self._config_section()
        if not self.section:
            raise RuntimeError(f"{name} section missing from configuration")
        if key not in self.section:
            raise RuntimeError(f"{name}.{key} missing from configuration")
        return self.section[key]


__all__ = ["BaseDomainConfig"]
