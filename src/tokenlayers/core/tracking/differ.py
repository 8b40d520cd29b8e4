"""Baseline differ: local dirtiness, remote divergence and export gating.

A baseline is a deep copy of a layer document taken at its last successful
load or save. ``diff_count`` compares whole top-level entity arrays by value,
so one edited token counts as one differing array. Every other top-level key
is grouped under the ``root`` pseudo-section, which counts as unsaved but not
towards ``diff_count``.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from tokenlayers.core.exceptions import DivergenceError
from tokenlayers.core.layers.refs import CoreLayer, LayerRef, PlatformLayer, ThemeLayer

logger = logging.getLogger(__name__)

CORE_SECTIONS: Tuple[str, ...] = (
    "tokens",
    "tokenCollections",
    "dimensions",
    "platforms",
    "themes",
    "taxonomies",
)
PLATFORM_SECTIONS: Tuple[str, ...] = ("tokenOverrides", "omittedModes", "omittedDimensions")
THEME_SECTIONS: Tuple[str, ...] = ("tokenOverrides",)
ROOT_SECTION = "root"


def sections_for(layer: LayerRef) -> Tuple[str, ...]:
    if isinstance(layer, CoreLayer):
        return CORE_SECTIONS
    if isinstance(layer, PlatformLayer):
        return PLATFORM_SECTIONS
    if isinstance(layer, ThemeLayer):
        return THEME_SECTIONS
    raise TypeError(f"Unknown layer reference: {layer!r}")


class ChangeTracker:
    """Per-layer baselines plus divergence flags."""

    def __init__(self) -> None:
        self._baselines: Dict[LayerRef, Dict[str, Any]] = {}
        self._diverged: Dict[LayerRef, bool] = {}

    def set_baseline(self, layer: LayerRef, document: Mapping[str, Any]) -> None:
        """Record ``document`` as the layer's baseline and clear its divergence."""
        self._baselines[layer] = copy.deepcopy(dict(document))
        self._diverged[layer] = False

    def baseline(self, layer: LayerRef) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._baselines.get(layer))

    def has_baseline(self, layer: LayerRef) -> bool:
        return layer in self._baselines

    def layers(self) -> List[LayerRef]:
        return list(self._baselines)

    def changed_sections(self, layer: LayerRef, document: Optional[Mapping[str, Any]]) -> List[str]:
        baseline = self._baselines.get(layer)
        current = document or {}
        changed: List[str] = []
        for name in sections_for(layer):
            if baseline is None:
                if name in current:
                    changed.append(name)
            elif baseline.get(name) != current.get(name):
                changed.append(name)
        return changed

    def diff_count(self, layer: LayerRef, document: Optional[Mapping[str, Any]]) -> int:
        return len(self.changed_sections(layer, document))

    def unsaved_sections(self, layer: LayerRef, document: Optional[Mapping[str, Any]]) -> List[str]:
        """``changed_sections`` plus ``ROOT_SECTION`` when any non-array key differs."""
        arrays = sections_for(layer)
        current = {k: v for k, v in (document or {}).items() if k not in arrays}
        baseline = self._baselines.get(layer)
        unsaved = self.changed_sections(layer, document)
        if baseline is None:
            root_changed = bool(current)
        else:
            root_changed = current != {k: v for k, v in baseline.items() if k not in arrays}
        if root_changed:
            unsaved.append(ROOT_SECTION)
        return unsaved

    def has_changes(self, layer: LayerRef, document: Optional[Mapping[str, Any]]) -> bool:
        return bool(self.unsaved_sections(layer, document))

    def check_divergence(self, layer: LayerRef, remote_document: Optional[Mapping[str, Any]]) -> bool:
        """Compare freshly fetched remote content with the baseline.

        The whole document is compared, not only the entity arrays, so a
        remote change to metadata also counts.
        """
        baseline = self._baselines.get(layer)
        diverged = baseline is not None and dict(remote_document or {}) != baseline
        self._diverged[layer] = diverged
        if diverged:
            logger.info("Remote content for %s diverged from the local baseline", layer)
        return diverged

    def is_diverged(self, layer: LayerRef) -> bool:
        return self._diverged.get(layer, False)

    def assert_exportable(self, layer: LayerRef, document: Optional[Mapping[str, Any]]) -> None:
        """Raise ``DivergenceError`` while local edits are unsaved or the remote moved."""
        changed = self.unsaved_sections(layer, document)
        diverged = self.is_diverged(layer)
        if not changed and not diverged:
            return
        reasons = []
        if changed:
            reasons.append(f"{len(changed)} unsaved section(s): {', '.join(changed)}")
        if diverged:
            reasons.append("remote content changed since last load")
        raise DivergenceError(
            f"Cannot export {layer}: " + "; ".join(reasons),
            context={
                "layer": str(layer),
                "diff_count": len([name for name in changed if name != ROOT_SECTION]),
                "changed_sections": changed,
                "diverged": diverged,
            },
        )

    def forget(self, layer: LayerRef) -> None:
        self._baselines.pop(layer, None)
        self._diverged.pop(layer, None)

    def clear(self) -> None:
        self._baselines.clear()
        self._diverged.clear()


__all__ = ["ChangeTracker", "ROOT_SECTION", "CORE_SECTIONS", "PLATFORM_SECTIONS", "THEME_SECTIONS", "sections_for"]
