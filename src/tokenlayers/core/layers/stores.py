"""Layer stores: typed holders for the core, platform and theme documents.

Documents go in and come out as deep copies, so callers can never mutate the
stored state behind the store's back. When a ``KeyValueStore`` is attached,
every write is mirrored into named slots and ``hydrate()`` rebuilds the stores
from them.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from tokenlayers.core.ports import KeyValueStore

from .refs import CORE, CoreLayer, LayerRef, PlatformLayer, ThemeLayer

logger = logging.getLogger(__name__)

# Core document key -> key-value slot name.
CORE_SLOTS: Dict[str, str] = {
    "tokens": "tokens",
    "tokenCollections": "collections",
    "dimensions": "dimensions",
    "platforms": "platforms",
    "themes": "themes",
    "taxonomies": "taxonomies",
    "resolvedValueTypes": "resolvedValueTypes",
}
ROOT_SLOT = "root"
PLATFORM_EXTENSIONS_SLOT = "platformExtensions"
THEME_OVERRIDES_SLOT = "themeOverrides"


class LayerStores:
    """Process-wide holder of one core document and the per-id layer maps."""

    def __init__(self, kv: Optional[KeyValueStore] = None) -> None:
        self._kv = kv
        self._core: Optional[Dict[str, Any]] = None
        self._platforms: Dict[str, Dict[str, Any]] = {}
        self._themes: Dict[str, Dict[str, Any]] = {}

    # ---------- access ----------

    @property
    def core(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._core)

    def platform_extensions(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._platforms)

    def theme_overrides(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._themes)

    def get(self, layer: LayerRef) -> Optional[Dict[str, Any]]:
        """Return a deep copy of the document stored for ``layer`` (or None)."""
        if isinstance(layer, CoreLayer):
            return copy.deepcopy(self._core)
        if isinstance(layer, PlatformLayer):
            return copy.deepcopy(self._platforms.get(layer.platform_id))
        if isinstance(layer, ThemeLayer):
            return copy.deepcopy(self._themes.get(layer.theme_id))
        raise TypeError(f"Unknown layer reference: {layer!r}")

    def layers(self) -> List[LayerRef]:
        """Every layer that currently holds a document, core first."""
        held: List[LayerRef] = [CORE] if self._core is not None else []
        held.extend(PlatformLayer(platform_id) for platform_id in self._platforms)
        held.extend(ThemeLayer(theme_id) for theme_id in self._themes)
        return held

    def has(self, layer: LayerRef) -> bool:
        if isinstance(layer, CoreLayer):
            return self._core is not None
        if isinstance(layer, PlatformLayer):
            return layer.platform_id in self._platforms
        if isinstance(layer, ThemeLayer):
            return layer.theme_id in self._themes
        raise TypeError(f"Unknown layer reference: {layer!r}")

    # ---------- mutation ----------

    def put(self, layer: LayerRef, document: Dict[str, Any]) -> None:
        doc = copy.deepcopy(document)
        if isinstance(layer, CoreLayer):
            self._core = doc
        elif isinstance(layer, PlatformLayer):
            self._platforms[layer.platform_id] = doc
        elif isinstance(layer, ThemeLayer):
            self._themes[layer.theme_id] = doc
        else:
            raise TypeError(f"Unknown layer reference: {layer!r}")
        self._persist(layer)

    def remove(self, layer: LayerRef) -> None:
        if isinstance(layer, CoreLayer):
            self._core = None
        elif isinstance(layer, PlatformLayer):
            self._platforms.pop(layer.platform_id, None)
        elif isinstance(layer, ThemeLayer):
            self._themes.pop(layer.theme_id, None)
        else:
            raise TypeError(f"Unknown layer reference: {layer!r}")
        self._persist(layer)

    def clear(self) -> None:
        self._core = None
        self._platforms.clear()
        self._themes.clear()
        if self._kv is not None:
            for slot in (*CORE_SLOTS.values(), ROOT_SLOT, PLATFORM_EXTENSIONS_SLOT, THEME_OVERRIDES_SLOT):
                self._kv.delete(slot)

    # ---------- key-value mirroring ----------

    def _persist(self, layer: LayerRef) -> None:
        if self._kv is None:
            return
        if isinstance(layer, CoreLayer):
            if self._core is None:
                for slot in (*CORE_SLOTS.values(), ROOT_SLOT):
                    self._kv.delete(slot)
                return
            for key, slot in CORE_SLOTS.items():
                self._kv.set(slot, copy.deepcopy(self._core.get(key, [])))
            root = {k: v for k, v in self._core.items() if k not in CORE_SLOTS}
            self._kv.set(ROOT_SLOT, copy.deepcopy(root))
        elif isinstance(layer, PlatformLayer):
            self._kv.set(PLATFORM_EXTENSIONS_SLOT, copy.deepcopy(self._platforms))
        else:
            self._kv.set(THEME_OVERRIDES_SLOT, copy.deepcopy(self._themes))

    def hydrate(self) -> bool:
        """Rebuild the stores from the attached key-value store.

        Returns True when a core document was found.
        """
        if self._kv is None:
            return False

        root = self._kv.get(ROOT_SLOT)
        if isinstance(root, dict):
            core: Dict[str, Any] = dict(root)
            for key, slot in CORE_SLOTS.items():
                value = self._kv.get(slot)
                core[key] = value if isinstance(value, list) else []
            self._core = core
        else:
            self._core = None

        platforms = self._kv.get(PLATFORM_EXTENSIONS_SLOT)
        self._platforms = dict(platforms) if isinstance(platforms, dict) else {}
        themes = self._kv.get(THEME_OVERRIDES_SLOT)
        self._themes = dict(themes) if isinstance(themes, dict) else {}

        logger.debug(
            "Hydrated layer stores: core=%s platforms=%d themes=%d",
            self._core is not None,
            len(self._platforms),
            len(self._themes),
        )
        return self._core is not None


__all__ = [
    "LayerStores",
    "CORE_SLOTS",
    "ROOT_SLOT",
    "PLATFORM_EXTENSIONS_SLOT",
    "THEME_OVERRIDES_SLOT",
]
