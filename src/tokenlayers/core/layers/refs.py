"""Layer references: which of the three layers a document or context belongs to.

``LayerRef`` is a closed union of three frozen dataclasses. Code that needs to
behave differently per layer matches on the concrete type and raises
``TypeError`` for anything else.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class LayerKind(str, Enum):
    CORE = "core"
    PLATFORM = "platform-extension"
    THEME = "theme-override"


@dataclass(frozen=True)
class CoreLayer:
    @property
    def kind(self) -> LayerKind:
        return LayerKind.CORE

    @property
    def layer_id(self) -> Optional[str]:
        return None

    def __str__(self) -> str:
        return "core"


@dataclass(frozen=True)
class PlatformLayer:
    platform_id: str

    @property
    def kind(self) -> LayerKind:
        return LayerKind.PLATFORM

    @property
    def layer_id(self) -> Optional[str]:
        return self.platform_id

    def __str__(self) -> str:
        return f"platform:{self.platform_id}"


@dataclass(frozen=True)
class ThemeLayer:
    theme_id: str

    @property
    def kind(self) -> LayerKind:
        return LayerKind.THEME

    @property
    def layer_id(self) -> Optional[str]:
        return self.theme_id

    def __str__(self) -> str:
        return f"theme:{self.theme_id}"


LayerRef = Union[CoreLayer, PlatformLayer, ThemeLayer]

CORE = CoreLayer()


def platform_or_core(platform_id: Optional[str]) -> LayerRef:
    """``None`` (or an empty id) means "back to core"."""
    return PlatformLayer(platform_id) if platform_id else CORE


def theme_or_core(theme_id: Optional[str]) -> LayerRef:
    return ThemeLayer(theme_id) if theme_id else CORE


def parse_layer(text: str) -> LayerRef:
    """Parse ``core``, ``platform:<id>`` or ``theme:<id>``.

    Raises:
        ValueError: On any other spelling.
    """
    raw = (text or "").strip()
    if raw == "core":
        return CORE
    prefix, sep, ident = raw.partition(":")
    if sep and ident:
        if prefix == "platform":
            return PlatformLayer(ident)
        if prefix == "theme":
            return ThemeLayer(ident)
    raise ValueError(f"Invalid layer '{text}': expected core, platform:<id> or theme:<id>")


def layer_slug(layer: LayerRef) -> str:
    """Filesystem/branch-safe name for a layer."""
    return str(layer).replace(":", "-")


__all__ = [
    "LayerKind",
    "CoreLayer",
    "PlatformLayer",
    "ThemeLayer",
    "LayerRef",
    "CORE",
    "platform_or_core",
    "theme_or_core",
    "parse_layer",
    "layer_slug",
]
