"""Process-wide cache of merged configuration, one entry per project state.

An entry is keyed by the resolved project root plus a fingerprint of the
``TOKENLAYERS_*`` environment and the project's config fragments (name, mtime,
size). Changing either yields a fresh load on the next lookup.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

_config_cache: Dict[Tuple[Path, str], Dict[str, Any]] = {}


def _fingerprint(root: Path) -> str:
    from tokenlayers.core.utils.io import iter_yaml_files

    from .manager import ENV_PREFIX, PROJECT_CONFIG_DIRNAME

    digest = hashlib.sha256()
    for name in sorted(k for k in os.environ if k.startswith(ENV_PREFIX)):
        digest.update(f"{name}={os.environ[name]}\0".encode("utf-8"))
    for fragment in iter_yaml_files(root / PROJECT_CONFIG_DIRNAME / "config"):
        stat = fragment.stat()
        digest.update(f"{fragment.name}:{stat.st_mtime_ns}:{stat.st_size}\0".encode("utf-8"))
    return digest.hexdigest()


def get_cached_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Merged config for ``repo_root`` (cwd by default); shared, do not mutate."""
    from .manager import ConfigManager

    root = Path(repo_root).expanduser().resolve() if repo_root is not None else Path.cwd().resolve()
    key = (root, _fingerprint(root))
    if key not in _config_cache:
        _config_cache[key] = ConfigManager(repo_root=root)._load_config_uncached(validate=False)
    return _config_cache[key]


def clear_all_caches() -> None:
    _config_cache.clear()


__all__ = ["get_cached_config", "clear_all_caches"]
