"""Empty, schema-compliant seed documents for brand-new layer files."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .refs import CoreLayer, LayerRef, PlatformLayer, ThemeLayer

SEED_VERSION = "1.0.0"


def seed_document(layer: LayerRef, *, system_id: Optional[str] = None) -> Dict[str, Any]:
    """Return a fresh seed document for ``layer``.

    ``system_id`` ties platform/theme seeds to an existing core system; it
    defaults to a placeholder when no core document is loaded yet.
    """
    sid = system_id or "design-system"
    if isinstance(layer, CoreLayer):
        return {
            "systemName": "Design System",
            "systemId": sid,
            "description": "",
            "version": SEED_VERSION,
            "versionHistory": [],
            "tokenCollections": [],
            "dimensions": [],
            "tokens": [],
            "platforms": [],
            "themes": [],
            "taxonomies": [],
            "resolvedValueTypes": [],
        }
    if isinstance(layer, PlatformLayer):
        return {
            "systemId": sid,
            "platformId": layer.platform_id,
            "version": SEED_VERSION,
            "metadata": {"name": layer.platform_id},
            "syntaxPatterns": {},
            "valueFormatters": {},
            "tokenOverrides": [],
            "omittedModes": [],
            "omittedDimensions": [],
        }
    if isinstance(layer, ThemeLayer):
        return {
            "systemId": sid,
            "themeId": layer.theme_id,
            "tokenOverrides": [],
        }
    raise TypeError(f"Unknown layer reference: {layer!r}")


__all__ = ["seed_document", "SEED_VERSION"]
