"""Merged snapshot: the derived, never-persisted view of all layers."""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from tokenlayers.core.layers.refs import LayerRef


@dataclass(frozen=True)
class ResolutionWarning:
    code: str
    message: str
    layer: str
    token_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "layer": self.layer,
            "tokenId": self.token_id,
        }


@dataclass(frozen=True)
class ResolutionAnalytics:
    total_tokens: int = 0
    resolved_tokens: int = 0
    overridden_tokens: int = 0
    omitted_tokens: int = 0
    pending_applied: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalTokens": self.total_tokens,
            "resolvedTokens": self.resolved_tokens,
            "overriddenTokens": self.overridden_tokens,
            "omittedTokens": self.omitted_tokens,
            "pendingApplied": self.pending_applied,
        }


@dataclass(frozen=True)
class MergedSnapshot:
    layer: LayerRef
    tokens: Tuple[Dict[str, Any], ...]
    token_collections: Tuple[Dict[str, Any], ...]
    dimensions: Tuple[Dict[str, Any], ...]
    platforms: Tuple[Dict[str, Any], ...]
    themes: Tuple[Dict[str, Any], ...]
    taxonomies: Tuple[Dict[str, Any], ...]
    resolved_value_types: Tuple[Dict[str, Any], ...]
    metadata: Dict[str, Any] = field(default_factory=dict)
    omitted_modes: Tuple[str, ...] = ()
    omitted_dimensions: Tuple[str, ...] = ()
    warnings: Tuple[ResolutionWarning, ...] = ()
    analytics: ResolutionAnalytics = ResolutionAnalytics()

    def token(self, token_id: str) -> Optional[Dict[str, Any]]:
        for token in self.tokens:
            if token.get("id") == token_id:
                return copy.deepcopy(token)
        return None

    def value_for(self, token_id: str, mode_ids: Tuple[str, ...] = ()) -> Any:
        """Resolved ``value`` payload of ``token_id`` for a mode-key (None if absent)."""
        token = self.token(token_id)
        if token is None:
            return None
        wanted = frozenset(mode_ids)
        for entry in token.get("valuesByMode") or []:
            if frozenset(entry.get("modeIds") or []) == wanted:
                return entry.get("value")
        return None

    def to_dict(self, *, include_diagnostics: bool = False) -> Dict[str, Any]:
        """Render as a core-shaped document."""
        doc: Dict[str, Any] = copy.deepcopy(self.metadata)
        doc.update(
            {
                "tokenCollections": copy.deepcopy(list(self.token_collections)),
                "dimensions": copy.deepcopy(list(self.dimensions)),
                "tokens": copy.deepcopy(list(self.tokens)),
                "platforms": copy.deepcopy(list(self.platforms)),
                "themes": copy.deepcopy(list(self.themes)),
                "taxonomies": copy.deepcopy(list(self.taxonomies)),
                "resolvedValueTypes": copy.deepcopy(list(self.resolved_value_types)),
            }
        )
        if include_diagnostics:
            doc["activeLayer"] = str(self.layer)
            doc["omittedModes"] = list(self.omitted_modes)
            doc["omittedDimensions"] = list(self.omitted_dimensions)
            doc["warnings"] = [w.to_dict() for w in self.warnings]
            doc["analytics"] = self.analytics.to_dict()
        return doc

    def to_json(self, *, include_diagnostics: bool = False) -> str:
        return json.dumps(
            self.to_dict(include_diagnostics=include_diagnostics), sort_keys=True, indent=2
        )


__all__ = ["MergedSnapshot", "ResolutionAnalytics", "ResolutionWarning"]
