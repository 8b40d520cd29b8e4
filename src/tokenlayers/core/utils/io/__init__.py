"""File I/O helpers with atomic writes."""
from __future__ import annotations

from .core import atomic_write, ensure_directory, ensure_parent_dir, read_text, write_text
from .json import append_jsonl, dumps_document, read_json, write_json_atomic
from .yaml import iter_yaml_files, read_yaml

__all__ = [
    "atomic_write",
    "ensure_directory",
    "ensure_parent_dir",
    "read_text",
    "write_text",
    "append_jsonl",
    "dumps_document",
    "read_json",
    "write_json_atomic",
    "iter_yaml_files",
    "read_yaml",
]
