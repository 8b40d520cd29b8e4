"""Key-value stores backing the layer stores."""
from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any, Dict

from tokenlayers.core.utils.io import ensure_directory, read_json, write_json_atomic

_SLOT_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class MemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}

    def get(self, slot: str) -> Any:
        return copy.deepcopy(self.data.get(slot))

    def set(self, slot: str, value: Any) -> None:
        self.data[slot] = copy.deepcopy(value)

    def delete(self, slot: str) -> None:
        self.data.pop(slot, None)


class JsonFileKeyValueStore:
    """One ``<slot>.json`` file per slot, written atomically."""

    def __init__(self, directory: Path) -> None:
        self.directory = ensure_directory(Path(directory))

    def _path(self, slot: str) -> Path:
        if not _SLOT_RE.match(slot):
            raise ValueError(f"Invalid slot name: {slot!r}")
        return self.directory / f"{slot}.json"

    def get(self, slot: str) -> Any:
        return read_json(self._path(slot), default=None)

    def set(self, slot: str, value: Any) -> None:
        write_json_atomic(self._path(slot), value, sort_keys=False)

    def delete(self, slot: str) -> None:
        self._path(slot).unlink(missing_ok=True)


__all__ = ["MemoryKeyValueStore", "JsonFileKeyValueStore"]
