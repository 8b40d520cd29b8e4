"""YAML loading for bundled/project config fragments and schemas."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from .core import PathLike, locked


def read_yaml(path: PathLike, default: Any = None, raise_on_error: bool = False) -> Any:
    """Load ``path`` with ``yaml.safe_load``.

    Missing, empty or unparsable files give ``default``; with
    ``raise_on_error`` the FileNotFoundError / YAMLError propagates instead.
    """
    source = Path(path)
    try:
        with open(source, encoding="utf-8") as handle, locked(handle):
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return default if data is None else data


def iter_yaml_files(directory: PathLike) -> List[Path]:
    """Config fragments in ``directory`` sorted by stem; ``x.yaml`` shadows ``x.yml``."""
    root = Path(directory)
    if not root.is_dir():
        return []
    by_stem: Dict[str, Path] = {}
    for suffix in (".yml", ".yaml"):
        for candidate in root.glob(f"*{suffix}"):
            by_stem[candidate.stem] = candidate
    return [by_stem[stem] for stem in sorted(by_stem)]


__all__ = ["read_yaml", "iter_yaml_files"]
