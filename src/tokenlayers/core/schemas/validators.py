"""Layer document validators.

Each validator runs the layer's JSON schema first and then, when a core
document is available, cross-reference checks that a schema cannot express:
unknown token ids, non-themeable theme targets, unknown modes/dimensions.
All problems are collected; nothing here raises for invalid input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from tokenlayers.core.layers.refs import CoreLayer, LayerRef, PlatformLayer, ThemeLayer

from .validation import validate_payload_safe

CORE_SCHEMA = "core.schema.yaml"
PLATFORM_SCHEMA = "platform-extension.schema.yaml"
THEME_SCHEMA = "theme-override.schema.yaml"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> "ValidationResult":
        collected = list(errors)
        return cls(is_valid=not collected, errors=collected)


def _ids(items: Any) -> Set[str]:
    if not isinstance(items, list):
        return set()
    return {str(i["id"]) for i in items if isinstance(i, dict) and "id" in i}


def _mode_ids(core: Mapping[str, Any]) -> Set[str]:
    modes: Set[str] = set()
    for dim in _entries(core.get("dimensions")):
        modes |= _ids(dim.get("modes"))
    return modes


def _entries(items: Any, id_key: str = "id") -> List[Dict[str, Any]]:
    """Mapping entries of ``items`` that carry a string ``id_key``."""
    if not isinstance(items, list):
        return []
    return [i for i in items if isinstance(i, dict) and isinstance(i.get(id_key), str)]


def _strings(items: Any) -> List[str]:
    return [i for i in items if isinstance(i, str)] if isinstance(items, list) else []


def _check_values_by_mode(
    owner: str, entries: Any, known_modes: Optional[Set[str]]
) -> List[str]:
    errors: List[str] = []
    if not isinstance(entries, list):
        return errors
    keys: List[frozenset] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        mode_ids = _strings(entry.get("modeIds"))
        keys.append(frozenset(mode_ids))
        if known_modes is not None:
            for mode_id in mode_ids:
                if mode_id not in known_modes:
                    errors.append(f"{owner}: unknown mode id '{mode_id}'")
    if frozenset() in keys and len(keys) > 1:
        errors.append(
            f"{owner}: an entry with empty modeIds must be the only entry in valuesByMode"
        )
    if len(set(keys)) != len(keys):
        errors.append(f"{owner}: duplicate mode-key in valuesByMode")
    return errors


class LayerValidator:
    """Validates core, platform-extension and theme-override documents.

    Cross-reference checks run even when the schema check fails; they only
    look at the entries that are well-formed enough to be checked.
    """

    def validate_core_data(self, doc: Any) -> ValidationResult:
        errors = validate_payload_safe(doc, CORE_SCHEMA)
        if not isinstance(doc, dict):
            return ValidationResult.from_errors(errors)

        known_modes = _mode_ids(doc)
        collections = _ids(doc.get("tokenCollections"))
        value_types = _ids(doc.get("resolvedValueTypes"))

        seen: Set[str] = set()
        for token in _entries(doc.get("tokens")):
            token_id = token["id"]
            owner = f"tokens.{token_id}"
            if token_id in seen:
                errors.append(f"{owner}: duplicate token id")
            seen.add(token_id)
            value_type = token.get("resolvedValueTypeId")
            if isinstance(value_type, str) and value_type not in value_types:
                errors.append(f"{owner}: unknown resolvedValueTypeId '{value_type}'")
            collection_id = token.get("tokenCollectionId")
            if collection_id and collection_id not in collections:
                errors.append(f"{owner}: unknown tokenCollectionId '{collection_id}'")
            errors.extend(_check_values_by_mode(owner, token.get("valuesByMode"), known_modes))

        for name in ("dimensions", "platforms", "themes", "tokenCollections"):
            items = _entries(doc.get(name))
            if len(_ids(items)) != len(items):
                errors.append(f"{name}: duplicate id")

        return ValidationResult.from_errors(errors)

    def validate_platform_extension(
        self, doc: Any, core: Optional[Mapping[str, Any]] = None
    ) -> ValidationResult:
        errors = validate_payload_safe(doc, PLATFORM_SCHEMA)
        if not isinstance(doc, dict) or core is None:
            return ValidationResult.from_errors(errors)

        platform_id = doc.get("platformId")
        if isinstance(platform_id, str) and platform_id not in _ids(core.get("platforms")):
            errors.append(f"platformId: '{platform_id}' is not declared in core platforms")

        token_ids = _ids(core.get("tokens"))
        known_modes = _mode_ids(core)
        seen: Set[str] = set()
        for override in _entries(doc.get("tokenOverrides")):
            token_id = override["id"]
            owner = f"tokenOverrides.{token_id}"
            if token_id not in token_ids:
                errors.append(f"{owner}: references unknown core token")
            if token_id in seen:
                errors.append(f"{owner}: duplicate override")
            seen.add(token_id)
            errors.extend(_check_values_by_mode(owner, override.get("valuesByMode"), known_modes))

        for mode_id in _strings(doc.get("omittedModes")):
            if mode_id not in known_modes:
                errors.append(f"omittedModes: unknown mode id '{mode_id}'")
        dimension_ids = _ids(core.get("dimensions"))
        for dimension_id in _strings(doc.get("omittedDimensions")):
            if dimension_id not in dimension_ids:
                errors.append(f"omittedDimensions: unknown dimension id '{dimension_id}'")

        return ValidationResult.from_errors(errors)

    def validate_theme_override_file(
        self, doc: Any, core: Optional[Mapping[str, Any]] = None
    ) -> ValidationResult:
        errors = validate_payload_safe(doc, THEME_SCHEMA)
        if not isinstance(doc, dict) or core is None:
            return ValidationResult.from_errors(errors)

        theme_id = doc.get("themeId")
        if isinstance(theme_id, str) and theme_id not in _ids(core.get("themes")):
            errors.append(f"themeId: '{theme_id}' is not declared in core themes")

        tokens = {t["id"]: t for t in _entries(core.get("tokens"))}
        known_modes = _mode_ids(core)
        seen: Set[str] = set()
        for override in _entries(doc.get("tokenOverrides"), "tokenId"):
            token_id = override["tokenId"]
            owner = f"tokenOverrides.{token_id}"
            token = tokens.get(token_id)
            if token is None:
                errors.append(f"{owner}: references unknown core token")
            elif token.get("themeable") is not True:
                errors.append(f"{owner}: token is not themeable")
            if token_id in seen:
                errors.append(f"{owner}: duplicate override")
            seen.add(token_id)
            errors.extend(_check_values_by_mode(owner, override.get("valuesByMode"), known_modes))

        return ValidationResult.from_errors(errors)

    def validate(
        self, layer: LayerRef, doc: Any, core: Optional[Mapping[str, Any]] = None
    ) -> ValidationResult:
        """Dispatch to the validator for ``layer``'s kind.

        A platform or theme document must also name the layer it is stored
        under.
        """
        if isinstance(layer, CoreLayer):
            return self.validate_core_data(doc)
        if isinstance(layer, PlatformLayer):
            result = self.validate_platform_extension(doc, core)
            if isinstance(doc, dict) and doc.get("platformId") not in (None, layer.platform_id):
                return ValidationResult.from_errors(
                    [*result.errors, f"platformId: expected '{layer.platform_id}'"]
                )
            return result
        if isinstance(layer, ThemeLayer):
            result = self.validate_theme_override_file(doc, core)
            if isinstance(doc, dict) and doc.get("themeId") not in (None, layer.theme_id):
                return ValidationResult.from_errors(
                    [*result.errors, f"themeId: expected '{layer.theme_id}'"]
                )
            return result
        raise TypeError(f"Unknown layer reference: {layer!r}")


__all__ = [
    "LayerValidator",
    "ValidationResult",
    "CORE_SCHEMA",
    "PLATFORM_SCHEMA",
    "THEME_SCHEMA",
]
