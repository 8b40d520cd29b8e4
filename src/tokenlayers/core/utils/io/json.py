"""JSON helpers: repository document text, local JSON state, JSONL audit lines."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

from .core import PathLike, atomic_write, ensure_parent_dir, locked

_MISSING = object()


def dumps_document(data: Any) -> str:
    """Serialize a layer document the way it is written to a repository.

    Key order is preserved so that a document read, unchanged, and written
    back produces a minimal diff.
    """
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def read_json(file_path: PathLike, *, default: Any = _MISSING) -> Any:
    """Parsed contents of ``file_path``; ``default`` when it is missing.

    Without a default a missing file raises FileNotFoundError. Malformed JSON
    always raises ``json.JSONDecodeError``.
    """
    source = Path(file_path)
    if not source.exists():
        if default is _MISSING:
            raise FileNotFoundError(f"JSON file not found: {source}")
        return default
    with open(source, encoding="utf-8") as handle, locked(handle):
        return json.load(handle)


def write_json_atomic(
    file_path: PathLike,
    data: Any,
    *,
    indent: Optional[int] = 2,
    sort_keys: bool = True,
) -> None:
    atomic_write(
        file_path,
        lambda handle: json.dump(data, handle, indent=indent, sort_keys=sort_keys, ensure_ascii=False),
    )


def append_jsonl(path: PathLike, payload: Mapping[str, Any]) -> None:
    """Append ``payload`` as one line; values JSON cannot encode are stringified."""
    target = Path(path)
    ensure_parent_dir(target)
    line = json.dumps(dict(payload), ensure_ascii=False, sort_keys=True, default=str) + "\n"
    with open(target, "a", encoding="utf-8") as handle, locked(handle, exclusive=True):
        handle.write(line)
        handle.flush()


__all__ = ["dumps_document", "read_json", "write_json_atomic", "append_jsonl"]
