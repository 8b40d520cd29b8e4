"""Application container.

``TokenLayersApp.build`` wires every service bottom-up (stores, bindings and
permissions, context, orchestrator) from one config snapshot. There are no
module-level singletons: each container owns its own state, and ``reset()``
returns it to an empty Core context.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from tokenlayers.core.audit.logger import attach_audit_sink
from tokenlayers.core.config.domains import (
    EditingConfig,
    LoggingConfig,
    PermissionsConfig,
    PersistenceConfig,
)
from tokenlayers.core.context.manager import ConfirmDiscard, ContextManager
from tokenlayers.core.events import EventBus
from tokenlayers.core.layers.bindings import BindingRegistry, RepositoryBinding
from tokenlayers.core.layers.refs import LayerRef
from tokenlayers.core.layers.stores import LayerStores
from tokenlayers.core.orchestrator import PersistenceOrchestrator, PersistenceSettings
from tokenlayers.core.permissions import DEFAULT_TTL_SECONDS, PermissionService
from tokenlayers.core.ports import KeyValueStore, RepositoryClient
from tokenlayers.core.schemas.validators import LayerValidator
from tokenlayers.core.tracking.differ import ChangeTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    persistence: PersistenceSettings = field(default_factory=PersistenceSettings)
    audit_path: Optional[Path] = None

    @classmethod
    def from_config(cls, repo_root: Optional[Path] = None) -> "AppSettings":
        """Read the permissions/persistence/editing/logging config sections."""
        persistence = PersistenceConfig(repo_root=repo_root)
        editing = EditingConfig(repo_root=repo_root)
        return cls(
            ttl_seconds=PermissionsConfig(repo_root=repo_root).ttl_seconds,
            persistence=PersistenceSettings(
                max_document_bytes=persistence.max_document_bytes,
                commit_message=persistence.commit_message,
                bootstrap_message=persistence.bootstrap_message,
                review=persistence.review,
                undo_depth=editing.undo_depth,
                operation_history=editing.operation_history,
            ),
            audit_path=LoggingConfig(repo_root=repo_root).audit_path,
        )


class TokenLayersApp:
    def __init__(
        self,
        *,
        stores: LayerStores,
        bindings: BindingRegistry,
        permissions: PermissionService,
        tracker: ChangeTracker,
        context: ContextManager,
        orchestrator: PersistenceOrchestrator,
        events: EventBus,
        settings: AppSettings,
    ) -> None:
        self.stores = stores
        self.bindings = bindings
        self.permissions = permissions
        self.tracker = tracker
        self.context = context
        self.orchestrator = orchestrator
        self.events = events
        self.settings = settings

    @classmethod
    def build(
        cls,
        repository: RepositoryClient,
        kv_store: Optional[KeyValueStore] = None,
        *,
        config: Optional[AppSettings] = None,
        confirm_discard: Optional[ConfirmDiscard] = None,
        repo_root: Optional[Path] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "TokenLayersApp":
        """Construct a fully wired container.

        ``config`` defaults to ``AppSettings.from_config(repo_root)``.
        """
        settings = config or AppSettings.from_config(repo_root)
        events = EventBus()
        if settings.audit_path is not None:
            attach_audit_sink(events, settings.audit_path)

        stores = LayerStores(kv_store)
        if kv_store is not None:
            stores.hydrate()

        bindings = BindingRegistry()
        permissions = PermissionService(
            repository, bindings, ttl_seconds=settings.ttl_seconds, clock=clock, events=events
        )
        tracker = ChangeTracker()

        def _unsaved() -> bool:
            # Bound below; the context only calls this once a switch is requested.
            return orchestrator.has_unsaved_changes()

        context = ContextManager(
            bindings,
            permissions,
            events,
            has_unsaved_changes=_unsaved,
            confirm_discard=confirm_discard,
            undo_depth=settings.persistence.undo_depth,
        )
        orchestrator = PersistenceOrchestrator(
            stores,
            bindings,
            permissions,
            tracker,
            repository,
            LayerValidator(),
            events,
            context=context,
            settings=settings.persistence,
        )
        logger.debug("Built tokenlayers app (ttl=%ss)", settings.ttl_seconds)
        return cls(
            stores=stores,
            bindings=bindings,
            permissions=permissions,
            tracker=tracker,
            context=context,
            orchestrator=orchestrator,
            events=events,
            settings=settings,
        )

    def bind(
        self, layer: LayerRef, repository_uri: str, file_path: str, *, branch: str = "main"
    ) -> RepositoryBinding:
        binding = RepositoryBinding(
            repository_uri=repository_uri, branch=branch, file_path=file_path, layer=layer
        )
        self.bindings.bind(binding)
        return binding

    def reset(self) -> None:
        """Drop all documents, baselines, caches and sessions; back to Core."""
        self.context.reset()
        self.orchestrator.reset()
        self.stores.clear()
        self.tracker.clear()
        self.permissions.clear()
        self.bindings.clear_branch_overrides()


__all__ = ["TokenLayersApp", "AppSettings"]
