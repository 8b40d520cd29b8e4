"""Mode-key helpers.

A mode-key is the *set* of mode ids of one ``valuesByMode`` entry; two entries
address the same slot when their mode id sets are equal, whatever the order.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Set

ModeKey = FrozenSet[str]


def mode_key(entry: Mapping[str, Any]) -> ModeKey:
    ids = entry.get("modeIds") or []
    if not isinstance(ids, (list, tuple)):
        ids = [ids]
    return frozenset(str(m) for m in ids)


def replace_by_mode_key(
    base: Iterable[Mapping[str, Any]], overrides: Iterable[Mapping[str, Any]]
) -> List[Dict[str, Any]]:
    """Overlay ``overrides`` onto ``base`` entry-by-entry.

    An override whose mode-key matches a base entry replaces it in place;
    unmatched overrides are appended in their own order. Inputs are not
    mutated.
    """
    result: List[Dict[str, Any]] = [copy.deepcopy(dict(e)) for e in base]
    index = {mode_key(e): i for i, e in enumerate(result)}
    for entry in overrides:
        key = mode_key(entry)
        replacement = copy.deepcopy(dict(entry))
        if key in index:
            result[index[key]] = replacement
        else:
            index[key] = len(result)
            result.append(replacement)
    return result


def drop_excluded(entries: Iterable[Dict[str, Any]], excluded: Set[str]) -> List[Dict[str, Any]]:
    """Remove entries whose mode-key shares any mode id with ``excluded``."""
    if not excluded:
        return list(entries)
    return [e for e in entries if not (mode_key(e) & excluded)]


__all__ = ["ModeKey", "mode_key", "replace_by_mode_key", "drop_excluded"]
