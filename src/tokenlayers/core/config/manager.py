"""
tokenlayers configuration: bundled YAML, project YAML, then environment.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from tokenlayers.core.utils.io import iter_yaml_files, read_yaml
from tokenlayers.core.utils.merge import deep_merge
from tokenlayers.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "TOKENLAYERS_"
PROJECT_CONFIG_DIRNAME = ".tokenlayers"


def _env_value(raw: str) -> Any:
    """Typed value for an environment override.

    Scalars and flow collections go through ``yaml.safe_load`` so ``true``,
    ``5``, ``12.5`` and ``["+", "x"]`` arrive typed; anything YAML cannot
    parse stays a stripped string.
    """
    text = raw.strip()
    try:
        value = yaml.safe_load(text) if text else ""
    except yaml.YAMLError:
        return text
    return text if value is None else value


def _env_path(suffix: str, *, strict: bool) -> List[str]:
    segments = suffix.split("__")
    if "" in segments:
        if strict:
            raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{suffix}'.")
        logger.warning("Ignoring malformed %s%s override", ENV_PREFIX, suffix)
        return []
    return [segment.lower() for segment in segments]


class ConfigManager:
    """Load, merge, and validate tokenlayers configuration.

    Later sources win:
    1. Bundled defaults: tokenlayers.data/config/*.yaml (alphabetical order)
    2. Project config: <repo_root>/.tokenlayers/config/*.yaml (alphabetical order)
    3. Environment variables: TOKENLAYERS_*

    Environment keys use ``__`` to separate path segments, e.g.
    ``TOKENLAYERS_PERSISTENCE__MAX_DOCUMENT_BYTES=2048``.
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = self.repo_root / PROJECT_CONFIG_DIRNAME / "config"

    def _merge_directory(self, cfg: Dict[str, Any], directory: Path) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            # Invalid YAML raises; a config layer is never skipped silently.
            fragment = read_yaml(path, default={}, raise_on_error=True) or {}
            if not isinstance(fragment, dict):
                raise ValueError(f"Config file must contain a mapping: {path}")
            cfg = deep_merge(cfg, fragment)
        return cfg

    def env_overrides(self, *, strict: bool = False) -> Iterator[Tuple[List[str], Any]]:
        """``(path, value)`` pairs for every ``TOKENLAYERS_*`` variable, sorted by name."""
        for name in sorted(os.environ):
            if not name.startswith(ENV_PREFIX):
                continue
            path = _env_path(name[len(ENV_PREFIX):], strict=strict)
            if path:
                yield path, _env_value(os.environ[name])

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool = False) -> Dict[str, Any]:
        for path, value in self.env_overrides(strict=strict):
            patch: Dict[str, Any] = {path[-1]: value}
            for segment in reversed(path[:-1]):
                patch = {segment: patch}
            cfg = deep_merge(cfg, patch)
        return cfg

    def _load_config_uncached(self, validate: bool = False) -> Dict[str, Any]:
        cfg = self._merge_directory({}, self.core_config_dir)
        cfg = self._merge_directory(cfg, self.project_config_dir)
        cfg = self.apply_env_overrides(cfg, strict=validate)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Merged configuration from the shared cache (treat it as read-only).

        With ``validate`` malformed environment keys raise ``ValueError`` and
        the merged result is checked against ``config.schema.yaml``.
        """
        from .cache import get_cached_config

        cfg = get_cached_config(repo_root=self.repo_root)
        if validate:
            for _ in self.env_overrides(strict=True):
                pass
            self.validate_schema(cfg)
        return cfg

    def validate_schema(self, config: Dict[str, Any]) -> None:
        from tokenlayers.core.schemas.validation import validate_payload

        validate_payload(config, "config.schema.yaml")

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-notation lookup, e.g. ``permissions.ttl_seconds``."""
        node: Any = self.load_config(validate=False)
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_DIRNAME"]
