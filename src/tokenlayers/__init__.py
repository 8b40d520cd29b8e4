"""
tokenlayers - layered design-token override resolution

Combines a core design-token document with per-platform extensions and
per-theme overrides, tracks unsaved and remote changes per layer, and
persists each layer to its own bound repository.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
