"""Layer references, bindings, seeds and stores."""
from __future__ import annotations

from .bindings import BindingRegistry, RepositoryBinding
from .refs import (
    CORE,
    CoreLayer,
    LayerKind,
    LayerRef,
    PlatformLayer,
    ThemeLayer,
    layer_slug,
    parse_layer,
    platform_or_core,
    theme_or_core,
)
from .seeds import seed_document
from .stores import LayerStores

__all__ = [
    "CORE",
    "CoreLayer",
    "PlatformLayer",
    "ThemeLayer",
    "LayerKind",
    "LayerRef",
    "layer_slug",
    "parse_layer",
    "platform_or_core",
    "theme_or_core",
    "BindingRegistry",
    "RepositoryBinding",
    "seed_document",
    "LayerStores",
]
