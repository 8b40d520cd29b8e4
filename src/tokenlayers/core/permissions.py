"""Write-access checks for bound repositories.

Answers are cached per repository URI for ``ttl_seconds``. A check that
raises is treated as "no access": the failure is logged and published on the
event bus, never raised to the caller.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from tokenlayers.core.events import EventBus, EventType
from tokenlayers.core.layers.bindings import BindingRegistry
from tokenlayers.core.layers.refs import CORE, CoreLayer, LayerRef, PlatformLayer, ThemeLayer
from tokenlayers.core.ports import RepositoryClient

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class PermissionMap:
    core: bool = False
    platforms: Dict[str, bool] = field(default_factory=dict)
    themes: Dict[str, bool] = field(default_factory=dict)


class PermissionService:
    def __init__(
        self,
        repository: RepositoryClient,
        bindings: BindingRegistry,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        events: Optional[EventBus] = None,
    ) -> None:
        self._repository = repository
        self._bindings = bindings
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._events = events
        self._cache: Dict[str, Tuple[bool, float]] = {}

    def cached_write_access(self, repository_uri: str) -> Optional[bool]:
        """Cached answer for ``repository_uri``; None when missing or expired."""
        entry = self._cache.get(repository_uri)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._cache[repository_uri]
            return None
        return value

    async def has_write_access(self, repository_uri: str, *, force_refresh: bool = False) -> bool:
        previous = self._cache.get(repository_uri)
        if force_refresh:
            self.invalidate(repository_uri)
        else:
            cached = self.cached_write_access(repository_uri)
            if cached is not None:
                return cached

        try:
            allowed = bool(await self._repository.has_write_access_to_repository(repository_uri))
        except Exception as exc:
            logger.warning("Write-access check failed for %s: %s", repository_uri, exc)
            allowed = False
            if self._events is not None:
                self._events.publish(
                    EventType.PERMISSION_CHECK_FAILED,
                    repository_uri=repository_uri,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        self._cache[repository_uri] = (allowed, self._clock() + self.ttl_seconds)
        if self._events is not None and (previous is None or previous[0] != allowed):
            self._events.publish(
                EventType.PERMISSIONS_CHANGED, repository_uri=repository_uri, write_access=allowed
            )
        return allowed

    async def refresh_for(self, layer: LayerRef) -> bool:
        """Force a fresh check for ``layer``'s repository (False when unbound)."""
        binding = self._bindings.get(layer)
        if binding is None:
            return False
        return await self.has_write_access(binding.repository_uri, force_refresh=True)

    def _cached_for(self, layer: LayerRef) -> bool:
        binding = self._bindings.get(layer)
        if binding is None:
            return False
        return bool(self.cached_write_access(binding.repository_uri))

    def get_current_edit_permissions(self, active: LayerRef = CORE) -> bool:
        """Write permission for the active layer, from the cache only.

        Precedence: an active platform decides, else an active theme, else
        core. Unknown or expired answers count as no access.
        """
        if isinstance(active, PlatformLayer):
            return self._cached_for(active)
        if isinstance(active, ThemeLayer):
            return self._cached_for(active)
        if isinstance(active, CoreLayer):
            return self._cached_for(CORE)
        raise TypeError(f"Unknown layer reference: {active!r}")

    def get_permission_map(self) -> PermissionMap:
        platforms: Dict[str, bool] = {}
        themes: Dict[str, bool] = {}
        for binding in self._bindings.bindings():
            layer = binding.layer
            if isinstance(layer, PlatformLayer):
                platforms[layer.platform_id] = self._cached_for(layer)
            elif isinstance(layer, ThemeLayer):
                themes[layer.theme_id] = self._cached_for(layer)
        return PermissionMap(core=self._cached_for(CORE), platforms=platforms, themes=themes)

    def invalidate(self, repository_uri: str) -> None:
        self._cache.pop(repository_uri, None)

    def clear(self) -> None:
        self._cache.clear()


__all__ = ["PermissionService", "PermissionMap", "DEFAULT_TTL_SECONDS"]
