"""Non-mutating deep merge for config layers and platform metadata overlays.

Mappings merge key by key. Lists are replaced by the overriding list unless
its first item is a marker string: ``"+"`` appends the remaining items and
``"="`` replaces explicitly. Results never alias either input.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List

APPEND_MARKER = "+"
REPLACE_MARKER = "="


def _merge_value(current: Any, incoming: Any) -> Any:
    if isinstance(current, dict) and isinstance(incoming, dict):
        return deep_merge(current, incoming)
    if isinstance(current, list) and isinstance(incoming, list):
        return merge_arrays(current, incoming)
    return copy.deepcopy(incoming)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay ``override`` onto ``base``.

    >>> deep_merge({"syntax": {"css": "--x"}}, {"syntax": {"swift": "x"}})
    {'syntax': {'css': '--x', 'swift': 'x'}}
    """
    merged = copy.deepcopy(dict(base))
    for key, incoming in (override or {}).items():
        merged[key] = _merge_value(merged[key], incoming) if key in merged else copy.deepcopy(incoming)
    return merged


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """
    >>> merge_arrays(["web"], ["ios"])
    ['ios']
    >>> merge_arrays(["web"], ["+", "ios"])
    ['web', 'ios']
    """
    if not override:
        return list(base)
    head, tail = override[0], override[1:]
    if head == APPEND_MARKER:
        return list(base) + copy.deepcopy(tail)
    if head == REPLACE_MARKER:
        return copy.deepcopy(list(tail))
    return copy.deepcopy(list(override))


__all__ = ["deep_merge", "merge_arrays"]
