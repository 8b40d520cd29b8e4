"""Bundled package data: default config fragments and JSON Schemas (as YAML)."""
from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of ``data/<subpackage>[/<filename>]``.

    >>> get_data_path("schemas", "core.schema.yaml").name
    'core.schema.yaml'
    """
    directory = Path(str(resources.files(__name__).joinpath(subpackage)))
    return directory.joinpath(filename) if filename else directory


__all__ = ["get_data_path"]
