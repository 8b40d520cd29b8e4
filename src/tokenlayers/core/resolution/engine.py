"""Override resolution: combine core, the active layer and staged edits.

``resolve`` is a pure function. It performs no I/O, reads no clock and never
mutates its inputs, so calling it twice on equal inputs yields equal
snapshots.

Per core token, in core order:

1. start from the token's ``valuesByMode``;
2. ``PlatformLayer``: overlay the extension's entries by mode-key, then drop
   entries touching an omitted mode or a mode of an omitted dimension
   (``omit: true`` drops the whole token);
3. ``ThemeLayer``: overlay the theme's entries by mode-key, only for tokens
   flagged ``themeable``; other overrides are skipped with a warning;
4. ``CoreLayer``: nothing to overlay;
5. a pending override for the token wins over whatever 2-4 produced.

Only one non-core layer is active per pass, so platform and theme values
never compete for the same token.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from tokenlayers.core.editing.pending import PendingOverride
from tokenlayers.core.layers.refs import CORE, CoreLayer, LayerRef, PlatformLayer, ThemeLayer
from tokenlayers.core.utils.merge import deep_merge

from .mode_keys import drop_excluded, replace_by_mode_key
from .snapshot import MergedSnapshot, ResolutionAnalytics, ResolutionWarning

# Core keys that are copied through untouched.
PASS_THROUGH_KEYS = ("tokenCollections", "dimensions", "themes", "taxonomies", "resolvedValueTypes")
ARRAY_KEYS = ("tokens", "platforms", *PASS_THROUGH_KEYS)

# Platform metadata that an extension may overlay on the core platform entry.
PLATFORM_METADATA_KEYS = ("syntaxPatterns", "valueFormatters")

# Token fields a pending override may never change.
_IMMUTABLE_TOKEN_FIELDS = frozenset({"id"})


def _list(doc: Optional[Mapping[str, Any]], key: str) -> List[Any]:
    value = (doc or {}).get(key)
    return list(value) if isinstance(value, list) else []


def _unique(items: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(str(i) for i in items))


def _modes_of_dimensions(core: Mapping[str, Any], dimension_ids: Set[str]) -> Set[str]:
    modes: Set[str] = set()
    for dimension in _list(core, "dimensions"):
        if isinstance(dimension, dict) and dimension.get("id") in dimension_ids:
            raw = dimension.get("modes")
            modes |= {
                str(m["id"]) for m in (raw if isinstance(raw, list) else []) if isinstance(m, dict) and "id" in m
            }
    return modes


def _mode_entries(
    value: Any, warnings: List[ResolutionWarning], label: str, token_id: Any, source: str
) -> List[Dict[str, Any]]:
    """The mapping entries of a ``valuesByMode`` value; anything else is dropped with a warning."""
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    entries = [e for e in items if isinstance(e, dict)]
    if len(entries) != len(items):
        warnings.append(
            ResolutionWarning(
                code="malformed-value",
                message=f"Ignored malformed valuesByMode entries in {source} for '{token_id}'",
                layer=label,
                token_id=None if token_id is None else str(token_id),
            )
        )
    return entries


def _collect_overrides(
    layer_doc: Mapping[str, Any],
    id_key: str,
    into: Dict[str, Mapping[str, Any]],
    warnings: List[ResolutionWarning],
    label: str,
) -> None:
    for position, entry in enumerate(_list(layer_doc, "tokenOverrides")):
        if not isinstance(entry, dict) or not isinstance(entry.get(id_key), str):
            warnings.append(
                ResolutionWarning(
                    code="malformed-override",
                    message=f"tokenOverrides[{position}] is not an object with a string '{id_key}'; ignored",
                    layer=label,
                )
            )
            continue
        into[entry.get(id_key)] = entry


def _apply_pending(token: Dict[str, Any], pending: PendingOverride) -> Dict[str, Any]:
    data = pending.override_data or {}
    for name in pending.changed_fields:
        if name == "valuesByMode" or name in _IMMUTABLE_TOKEN_FIELDS or name not in data:
            continue
        token[name] = copy.deepcopy(data[name])
    if "valuesByMode" in data:
        token["valuesByMode"] = replace_by_mode_key(
            token.get("valuesByMode") or [], data.get("valuesByMode") or []
        )
    return token


def resolve(
    core: Mapping[str, Any],
    platform_extensions: Optional[Mapping[str, Mapping[str, Any]]] = None,
    theme_overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    layer: LayerRef = CORE,
    pending: Optional[Mapping[str, PendingOverride]] = None,
    *,
    include_omitted: bool = False,
) -> MergedSnapshot:
    """Resolve the merged view of ``core`` for the active ``layer``.

    Args:
        core: Core document.
        platform_extensions: Platform extension documents keyed by platform id.
        theme_overrides: Theme override documents keyed by theme id.
        layer: The active layer.
        pending: Staged overrides keyed by token id.
        include_omitted: Keep tokens whose platform override sets ``omit``.
    """
    warnings: List[ResolutionWarning] = []
    label = str(layer)
    core_tokens = [t for t in _list(core, "tokens") if isinstance(t, dict)]
    known_ids = {t.get("id") for t in core_tokens}

    overrides: Dict[str, Mapping[str, Any]] = {}
    excluded_modes: Set[str] = set()
    omitted_modes: Tuple[str, ...] = ()
    omitted_dimensions: Tuple[str, ...] = ()
    layer_doc: Optional[Mapping[str, Any]] = None

    if isinstance(layer, CoreLayer):
        pass
    elif isinstance(layer, PlatformLayer):
        layer_doc = (platform_extensions or {}).get(layer.platform_id)
        if layer_doc is not None:
            _collect_overrides(layer_doc, "id", overrides, warnings, label)
            omitted_modes = _unique(_list(layer_doc, "omittedModes"))
            omitted_dimensions = _unique(_list(layer_doc, "omittedDimensions"))
            excluded_modes = set(omitted_modes) | _modes_of_dimensions(
                core, set(omitted_dimensions)
            )
    elif isinstance(layer, ThemeLayer):
        layer_doc = (theme_overrides or {}).get(layer.theme_id)
        if layer_doc is not None:
            _collect_overrides(layer_doc, "tokenId", overrides, warnings, label)
    else:
        raise TypeError(f"Unknown layer reference: {layer!r}")

    if layer_doc is None and not isinstance(layer, CoreLayer):
        warnings.append(
            ResolutionWarning(
                code="missing-layer-document",
                message=f"No document loaded for {label}; showing core values",
                layer=label,
            )
        )

    for token_id in overrides:
        if token_id not in known_ids:
            warnings.append(
                ResolutionWarning(
                    code="unknown-token",
                    message=f"Override references unknown core token '{token_id}'",
                    layer=label,
                    token_id=token_id,
                )
            )
    for token_id in (pending or {}):
        if token_id not in known_ids:
            warnings.append(
                ResolutionWarning(
                    code="unknown-token",
                    message=f"Pending override references unknown core token '{token_id}'",
                    layer=label,
                    token_id=token_id,
                )
            )

    resolved: List[Dict[str, Any]] = []
    overridden = omitted = pending_applied = 0

    for base in core_tokens:
        token = copy.deepcopy(base)
        token_id = token.get("id")
        themeable = token.get("themeable") is True
        changed = False
        if "valuesByMode" in token:
            token["valuesByMode"] = _mode_entries(token["valuesByMode"], warnings, label, token_id, "core")

        override = overrides.get(token_id)
        if override is not None:
            if isinstance(layer, PlatformLayer):
                if override.get("omit") and not include_omitted:
                    omitted += 1
                    continue
                values = _mode_entries(override.get("valuesByMode"), warnings, label, token_id, label)
                if values:
                    token["valuesByMode"] = replace_by_mode_key(token.get("valuesByMode") or [], values)
                    changed = True
            elif isinstance(layer, ThemeLayer):
                if themeable:
                    values = _mode_entries(override.get("valuesByMode"), warnings, label, token_id, label)
                    token["valuesByMode"] = replace_by_mode_key(token.get("valuesByMode") or [], values)
                    changed = True
                else:
                    warnings.append(
                        ResolutionWarning(
                            code="non-themeable-override",
                            message=f"Theme override for non-themeable token '{token_id}' ignored",
                            layer=label,
                            token_id=token_id,
                        )
                    )

        staged = (pending or {}).get(token_id)
        if staged is not None:
            if isinstance(layer, ThemeLayer) and not themeable:
                warnings.append(
                    ResolutionWarning(
                        code="non-themeable-override",
                        message=f"Pending theme edit for non-themeable token '{token_id}' ignored",
                        layer=label,
                        token_id=token_id,
                    )
                )
            else:
                token = _apply_pending(token, staged)
                pending_applied += 1
                changed = True

        if excluded_modes:
            entries = drop_excluded(token.get("valuesByMode") or [], excluded_modes)
            if not entries and token.get("valuesByMode"):
                omitted += 1
                continue
            token["valuesByMode"] = entries

        if changed:
            overridden += 1
        resolved.append(token)

    platforms = [copy.deepcopy(p) for p in _list(core, "platforms")]
    if isinstance(layer, PlatformLayer) and layer_doc is not None:
        overlay = {
            key: layer_doc[key]
            for key in PLATFORM_METADATA_KEYS
            if isinstance(layer_doc.get(key), dict) and layer_doc[key]
        }
        if overlay:
            platforms = [
                deep_merge(p, overlay) if isinstance(p, dict) and p.get("id") == layer.platform_id else p
                for p in platforms
            ]

    metadata = {k: copy.deepcopy(v) for k, v in core.items() if k not in ARRAY_KEYS}

    return MergedSnapshot(
        layer=layer,
        tokens=tuple(resolved),
        token_collections=tuple(copy.deepcopy(_list(core, "tokenCollections"))),
        dimensions=tuple(copy.deepcopy(_list(core, "dimensions"))),
        platforms=tuple(platforms),
        themes=tuple(copy.deepcopy(_list(core, "themes"))),
        taxonomies=tuple(copy.deepcopy(_list(core, "taxonomies"))),
        resolved_value_types=tuple(copy.deepcopy(_list(core, "resolvedValueTypes"))),
        metadata=metadata,
        omitted_modes=omitted_modes,
        omitted_dimensions=omitted_dimensions,
        warnings=tuple(warnings),
        analytics=ResolutionAnalytics(
            total_tokens=len(core_tokens),
            resolved_tokens=len(resolved),
            overridden_tokens=overridden,
            omitted_tokens=omitted,
            pending_applied=pending_applied,
        ),
    )


__all__ = ["resolve", "PASS_THROUGH_KEYS", "PLATFORM_METADATA_KEYS"]
