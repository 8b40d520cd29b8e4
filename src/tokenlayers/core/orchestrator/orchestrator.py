"""Persistence orchestrator: load, bootstrap, save, review, refresh and export.

All public coroutines are serialized through one ``OperationQueue``; the
``_..._unlocked`` helpers do the actual work so that an operation already
holding the queue (``refresh`` calling ``load``) never waits on itself.
Anything raised below this layer leaves it as a ``TokenLayersError``.
"""
from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from tokenlayers.core.config.domains.persistence import ReviewSettings
from tokenlayers.core.context.manager import ContextManager
from tokenlayers.core.editing.pending import PendingOverride
from tokenlayers.core.events import EventBus, EventType
from tokenlayers.core.exceptions import (
    BranchExistsError,
    DivergenceError,
    LayerPermissionError,
    NotFoundError,
    SessionError,
    SizeLimitError,
    TokenLayersError,
    ValidationError,
)
from tokenlayers.core.layers.bindings import BindingRegistry, RepositoryBinding
from tokenlayers.core.layers.refs import CORE, CoreLayer, LayerRef, ThemeLayer, layer_slug
from tokenlayers.core.layers.seeds import seed_document
from tokenlayers.core.layers.stores import LayerStores
from tokenlayers.core.permissions import PermissionService
from tokenlayers.core.ports import PullRequest, RepositoryClient
from tokenlayers.core.resolution.engine import resolve
from tokenlayers.core.resolution.snapshot import MergedSnapshot
from tokenlayers.core.schemas.validators import LayerValidator, ValidationResult
from tokenlayers.core.tracking.differ import ChangeTracker
from tokenlayers.core.tracking.history import DEFAULT_UNDO_DEPTH, UndoHistory
from tokenlayers.core.utils.io import dumps_document

from .errors import is_not_found, normalize_error
from .queue import OperationQueue, OperationRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_DOCUMENT_BYTES = 1_048_576
MAX_REVIEW_BRANCH_ATTEMPTS = 50

Document = Dict[str, Any]
Mutation = Callable[[Document], Optional[Document]]


class RefreshReason(str, Enum):
    BRANCH_SWITCH = "branch-switch"
    MANUAL = "manual"
    EXIT_EDIT = "exit-edit"


# reason -> (preserve_permissions, preserve_branch)
REFRESH_FLAGS: Dict[RefreshReason, tuple] = {
    RefreshReason.BRANCH_SWITCH: (False, True),
    RefreshReason.MANUAL: (True, True),
    RefreshReason.EXIT_EDIT: (True, False),
}


@dataclass(frozen=True)
class PersistenceSettings:
    max_document_bytes: int = DEFAULT_MAX_DOCUMENT_BYTES
    commit_message: str = "Update {layer} design tokens"
    bootstrap_message: str = "Bootstrap empty {layer} document"
    review: ReviewSettings = field(
        default_factory=lambda: ReviewSettings(
            branch_pattern="tokenlayers/{layer_slug}-{sequence}",
            pr_title="Update {layer} design tokens",
            pr_body="Automated change proposal for {file_path}.",
        )
    )
    undo_depth: int = DEFAULT_UNDO_DEPTH
    operation_history: int = 100


@dataclass(frozen=True)
class SaveResult:
    layer: LayerRef
    branch: str
    size: int
    pull_request: Optional[PullRequest] = None


class PersistenceOrchestrator:
    def __init__(
        self,
        stores: LayerStores,
        bindings: BindingRegistry,
        permissions: PermissionService,
        tracker: ChangeTracker,
        repository: RepositoryClient,
        validator: LayerValidator,
        events: EventBus,
        *,
        context: Optional[ContextManager] = None,
        settings: Optional[PersistenceSettings] = None,
    ) -> None:
        self._stores = stores
        self._bindings = bindings
        self._permissions = permissions
        self._tracker = tracker
        self._repository = repository
        self._validator = validator
        self._events = events
        self._context = context
        self.settings = settings or PersistenceSettings()
        self._queue = OperationQueue(history=self.settings.operation_history)
        self._document_history: Dict[LayerRef, UndoHistory[Document]] = {}
        self._review_sequence = 0

    # ---------- introspection ----------

    @property
    def records(self) -> List[OperationRecord]:
        return self._queue.records

    @property
    def queue(self) -> OperationQueue:
        return self._queue

    def diff_count(self, layer: LayerRef) -> int:
        return self._tracker.diff_count(layer, self._stores.get(layer))

    def has_unsaved_changes(self) -> bool:
        """True when edits are staged or any layer differs from its baseline.

        A stored document without a baseline (restored from the key-value
        store, never loaded or saved) counts as unsaved.
        """
        session = self._context.session if self._context is not None else None
        if session is not None and session.has_pending:
            return True
        layers = dict.fromkeys([*self._tracker.layers(), *self._stores.layers()])
        return any(self._tracker.has_changes(layer, self._stores.get(layer)) for layer in layers)

    # ---------- queue plumbing ----------

    async def _run(
        self,
        kind: str,
        layer: Optional[LayerRef],
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        label = str(layer) if layer is not None else None
        try:
            return await self._queue.run(kind, operation, layer=label)
        except Exception as exc:
            error = self._failed(exc, kind, label)
            if error is exc:
                raise
            raise error from exc

    def _failed(self, exc: Exception, kind: str, label: Optional[str]) -> TokenLayersError:
        error = normalize_error(exc, operation=kind, layer=label)
        self._events.publish(
            EventType.OPERATION_FAILED,
            operation=kind,
            layer=label,
            error=str(error),
            code=type(error).__name__,
        )
        return error

    def _binding_for(self, layer: LayerRef) -> RepositoryBinding:
        binding = self._bindings.get(layer)
        if binding is None:
            raise NotFoundError(
                f"No repository is bound to {layer}", context={"layer": str(layer)}
            )
        return binding

    def _system_id(self) -> Optional[str]:
        core = self._stores.core
        return core.get("systemId") if core else None

    def _history_for(self, layer: LayerRef) -> UndoHistory[Document]:
        history = self._document_history.get(layer)
        if history is None:
            history = UndoHistory(self.settings.undo_depth)
            self._document_history[layer] = history
        return history

    # ---------- load ----------

    async def load(self, layer: LayerRef = CORE) -> Document:
        """Fetch ``layer``'s document, bootstrapping it when it does not exist."""
        return await self._run("load", layer, lambda: self._load_unlocked(layer))

    async def load_all(self) -> Dict[str, Document]:
        """Load core first, then every other bound layer."""
        loaded: Dict[str, Document] = {}
        layers = [CORE] + [b.layer for b in self._bindings.bindings() if b.layer != CORE]
        for layer in layers:
            if self._bindings.get(layer) is None:
                continue
            loaded[str(layer)] = await self.load(layer)
        return loaded

    async def _fetch(self, binding: RepositoryBinding) -> Optional[str]:
        """Return the raw file content, or None when it does not exist.

        An authenticated fetch that fails is retried once on the public path.
        """
        repo, path, branch = binding.repository_uri, binding.file_path, binding.branch
        try:
            found = await self._repository.get_file_content(repo, path, branch, authenticated=True)
            return found.content
        except Exception as exc:
            first: Exception = exc
            logger.info("Authenticated fetch of %s from %s failed (%s); retrying", path, repo, exc)

        try:
            found = await self._repository.get_file_content(repo, path, branch, authenticated=False)
            return found.content
        except Exception as second:
            if is_not_found(first) and is_not_found(second):
                return None
            raise second if not is_not_found(second) else first

    @staticmethod
    def _parse(content: str, layer: LayerRef) -> Document:
        try:
            document = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"{layer} document is not valid JSON: {exc.msg} (line {exc.lineno})",
                context={"layer": str(layer)},
            ) from exc
        if not isinstance(document, dict):
            raise ValidationError(
                f"{layer} document must be a JSON object", context={"layer": str(layer)}
            )
        return document

    async def _load_unlocked(self, layer: LayerRef) -> Document:
        binding = self._binding_for(layer)
        content = await self._fetch(binding)

        if content is None:
            return await self._bootstrap(layer, binding)

        document = self._parse(content, layer)
        result = self._validate(layer, document)
        if not result.is_valid:
            logger.warning(
                "Loaded %s with %d validation error(s): %s",
                layer,
                len(result.errors),
                "; ".join(result.errors[:5]),
            )

        self._install(layer, document)
        logger.debug("Loaded %s from %s@%s", layer, binding.repository_uri, binding.branch)
        self._events.publish(
            EventType.LAYER_LOADED,
            layer=str(layer),
            repository=binding.repository_uri,
            branch=binding.branch,
            valid=result.is_valid,
        )
        return document

    async def _bootstrap(self, layer: LayerRef, binding: RepositoryBinding) -> Document:
        document = seed_document(layer, system_id=self._system_id())
        await self._repository.create_file(
            binding.repository_uri,
            binding.file_path,
            dumps_document(document),
            binding.branch,
            self.settings.bootstrap_message.format(layer=str(layer)),
        )
        self._install(layer, document)
        logger.info("Bootstrapped empty %s at %s", layer, binding.file_path)
        self._events.publish(
            EventType.LAYER_BOOTSTRAPPED,
            layer=str(layer),
            repository=binding.repository_uri,
            branch=binding.branch,
            path=binding.file_path,
        )
        return document

    def _install(self, layer: LayerRef, document: Document) -> None:
        self._stores.put(layer, document)
        self._tracker.set_baseline(layer, document)
        self._document_history.pop(layer, None)

    # ---------- validation ----------

    def _validate(self, layer: LayerRef, document: Any) -> ValidationResult:
        core = None if isinstance(layer, CoreLayer) else self._stores.core
        return self._validator.validate(layer, document, core)

    async def validate(self, layer: LayerRef = CORE) -> ValidationResult:
        """Validate the in-memory document for ``layer``."""

        async def _op() -> ValidationResult:
            document = self._stores.get(layer)
            if document is None:
                raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})
            return self._validate(layer, document)

        return await self._run("validate", layer, _op)

    # ---------- save ----------

    async def save(
        self,
        layer: LayerRef = CORE,
        *,
        message: Optional[str] = None,
        review: bool = False,
        title: Optional[str] = None,
        body: Optional[str] = None,
        force: bool = False,
    ) -> SaveResult:
        """Write ``layer``'s document to its bound repository.

        Order: validate, size check, permission check, write. The first two
        fail without any network traffic. With ``review=True`` the document
        goes to a fresh branch and a pull request is opened against the bound
        branch.

        Raises:
            ValidationError: Invalid document.
            SizeLimitError: Serialized document too large.
            DivergenceError: The remote moved since the last load (unless ``force``).
            LayerPermissionError: No write access.
        """
        return await self._run(
            "save",
            layer,
            lambda: self._save_unlocked(
                layer, message=message, review=review, title=title, body=body, force=force
            ),
        )

    async def _save_unlocked(
        self,
        layer: LayerRef,
        *,
        message: Optional[str],
        review: bool,
        title: Optional[str],
        body: Optional[str],
        force: bool,
    ) -> SaveResult:
        binding = self._binding_for(layer)
        document = self._stores.get(layer)
        if document is None:
            raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})

        result = self._validate(layer, document)
        if not result.is_valid:
            raise ValidationError(
                f"{layer} document failed validation",
                errors=result.errors,
                context={"layer": str(layer)},
            )

        content = dumps_document(document)
        size = len(content.encode("utf-8"))
        limit = self.settings.max_document_bytes
        if size > limit:
            raise SizeLimitError(size, limit, context={"layer": str(layer)})

        if self._tracker.is_diverged(layer) and not force:
            raise DivergenceError(
                f"Remote content for {layer} changed since it was loaded; refresh first",
                context={"layer": str(layer), "diverged": True},
            )

        if not await self._permissions.has_write_access(binding.repository_uri):
            raise LayerPermissionError(
                f"No write access to {binding.repository_uri}",
                context={"layer": str(layer), "repository": binding.repository_uri},
            )

        fmt = {"layer": str(layer), "layer_slug": layer_slug(layer), "file_path": binding.file_path}
        commit_message = message or self.settings.commit_message.format(**fmt)
        pull_request: Optional[PullRequest] = None

        if review:
            settings = self.settings.review
            branch = await self._create_review_branch(binding, fmt)
            await self._repository.create_file(
                binding.repository_uri, binding.file_path, content, branch, commit_message
            )
            pull_request = await self._repository.create_pull_request(
                binding.repository_uri,
                title or settings.pr_title.format(**fmt),
                body or settings.pr_body.format(**fmt),
                branch,
                binding.branch,
            )
            logger.info("Opened review #%s for %s (%s)", pull_request.number, layer, pull_request.url)
            self._events.publish(
                EventType.REVIEW_OPENED,
                layer=str(layer),
                branch=branch,
                base=binding.branch,
                number=pull_request.number,
                url=pull_request.url,
            )
        else:
            branch = binding.branch
            await self._repository.create_file(
                binding.repository_uri, binding.file_path, content, branch, commit_message
            )

        self._tracker.set_baseline(layer, document)
        self._events.publish(
            EventType.LAYER_SAVED,
            layer=str(layer),
            repository=binding.repository_uri,
            branch=branch,
            size=size,
            review=review,
        )
        return SaveResult(layer=layer, branch=branch, size=size, pull_request=pull_request)

    async def _create_review_branch(self, binding: RepositoryBinding, fmt: Dict[str, str]) -> str:
        """Create the first free branch the review pattern yields.

        The sequence continues from this orchestrator's last review; names
        already taken on the host (another client, or this one before
        ``reset()``) are skipped.
        """
        tried: List[str] = []
        for _ in range(MAX_REVIEW_BRANCH_ATTEMPTS):
            self._review_sequence += 1
            branch = self.settings.review.branch_pattern.format(sequence=self._review_sequence, **fmt)
            if branch in tried:
                break
            tried.append(branch)
            try:
                await self._repository.create_branch(binding.repository_uri, binding.branch, branch)
            except BranchExistsError:
                logger.info("Review branch %s already exists; trying the next one", branch)
                continue
            return branch
        raise BranchExistsError(
            f"No free review branch for {fmt['layer']} (tried {', '.join(tried)})",
            context={"layer": fmt["layer"], "tried": tried},
        )

    # ---------- refresh ----------

    async def refresh(
        self,
        layer: Optional[LayerRef] = None,
        *,
        reason: Optional[RefreshReason] = None,
        preserve_permissions: Optional[bool] = None,
        preserve_branch: Optional[bool] = None,
    ) -> Document:
        """Reload ``layer`` (default: the active layer).

        ``reason`` picks the cache/branch flags from ``REFRESH_FLAGS``;
        explicit ``preserve_*`` arguments win over it.
        """
        target = layer or (self._context.active if self._context is not None else CORE)
        perm_default, branch_default = REFRESH_FLAGS[reason or RefreshReason.MANUAL]
        keep_permissions = perm_default if preserve_permissions is None else preserve_permissions
        keep_branch = branch_default if preserve_branch is None else preserve_branch

        async def _op() -> Document:
            if not keep_permissions:
                self._permissions.clear()
            if not keep_branch:
                self._bindings.clear_branch_overrides()
            document = await self._load_unlocked(target)
            if reason is RefreshReason.EXIT_EDIT and self._context is not None:
                self._context.exit_edit_mode()
            if not keep_permissions:
                await self._permissions.refresh_for(target)
            return document

        return await self._run("refresh", target, _op)

    async def switch_branch(self, layer: LayerRef, branch: str) -> Document:
        """Rebind ``layer`` to ``branch`` and reload it from there."""
        if self._bindings.get(layer) is None:
            raise NotFoundError(f"No repository is bound to {layer}", context={"layer": str(layer)})
        self._bindings.with_branch(layer, branch)
        return await self.refresh(layer, reason=RefreshReason.BRANCH_SWITCH)

    # ---------- divergence / export ----------

    async def check_remote(self, layer: LayerRef = CORE) -> bool:
        """Fetch the remote document and update the divergence flag; stores are untouched."""

        async def _op() -> bool:
            content = await self._fetch(self._binding_for(layer))
            remote = None if content is None else self._parse(content, layer)
            diverged = self._tracker.check_divergence(layer, remote)
            if diverged:
                self._events.publish(EventType.LAYER_DIVERGED, layer=str(layer))
            return diverged

        return await self._run("check_remote", layer, _op)

    async def export(self, layer: LayerRef = CORE) -> str:
        """Return the serialized document; refused while unsaved or diverged."""

        async def _op() -> str:
            document = self._stores.get(layer)
            if document is None:
                raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})
            self._tracker.assert_exportable(layer, document)
            return dumps_document(document)

        return await self._run("export", layer, _op)

    # ---------- direct document edits ----------

    async def update_document(self, layer: LayerRef, mutate: Mutation) -> Document:
        """Apply ``mutate`` to a copy of ``layer``'s document and store the result.

        ``mutate`` may edit the copy in place or return a replacement. The
        previous document is kept for ``undo_document``.
        """

        async def _op() -> Document:
            current = self._stores.get(layer)
            if current is None:
                raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})
            draft = copy.deepcopy(current)
            updated = mutate(draft)
            document = draft if updated is None else updated
            if not isinstance(document, dict):
                raise ValidationError(
                    f"{layer} document must be a JSON object", context={"layer": str(layer)}
                )
            self._history_for(layer).record(current)
            self._stores.put(layer, document)
            return copy.deepcopy(document)

        return await self._run("update", layer, _op)

    async def undo_document(self, layer: LayerRef) -> Document:
        return await self._run("undo", layer, lambda: self._step_document(layer, redo=False))

    async def redo_document(self, layer: LayerRef) -> Document:
        return await self._run("redo", layer, lambda: self._step_document(layer, redo=True))

    async def _step_document(self, layer: LayerRef, *, redo: bool) -> Document:
        current = self._stores.get(layer)
        if current is None:
            raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})
        history = self._history_for(layer)
        try:
            document = history.redo(current) if redo else history.undo(current)
        except IndexError as exc:
            raise TokenLayersError(
                f"Nothing to {'redo' if redo else 'undo'} for {layer}",
                context={"layer": str(layer)},
            ) from exc
        self._stores.put(layer, document)
        return document

    # ---------- staged edits ----------

    def _require_context(self) -> ContextManager:
        if self._context is None:
            raise SessionError("No context manager is attached", operation="stage")
        return self._context

    def stage_override(
        self,
        token_id: str,
        override_data: Mapping[str, Any],
        changed_fields: Iterable[str] = ("valuesByMode",),
        *,
        session_id: Optional[str] = None,
    ) -> PendingOverride:
        """Stage an override for ``token_id`` in the active edit session.

        Raises:
            SessionError: No open session (or a stale ``session_id``).
            ValidationError: Unknown token, or a non-themeable token on a theme.
        """
        session = self._require_context().require_session(session_id)
        core = self._stores.core
        if core is not None:
            token = next((t for t in core.get("tokens") or [] if t.get("id") == token_id), None)
            if token is None:
                raise ValidationError(
                    f"Unknown core token '{token_id}'",
                    context={"layer": str(session.layer), "token_id": token_id},
                )
            if isinstance(session.layer, ThemeLayer) and token.get("themeable") is not True:
                raise ValidationError(
                    f"Token '{token_id}' is not themeable",
                    context={"layer": str(session.layer), "token_id": token_id},
                )
        entry = session.stage(token_id, override_data, changed_fields)
        self._publish_pending(session.layer, session.session_id, len(session.pending))
        return entry

    def unstage_override(self, token_id: str, *, session_id: Optional[str] = None) -> None:
        session = self._require_context().require_session(session_id)
        session.unstage(token_id)
        self._publish_pending(session.layer, session.session_id, len(session.pending))

    async def commit_session(self, session_id: Optional[str] = None) -> Document:
        """Fold the session's pending overrides into its layer's document.

        The session stays open with nothing pending; the result is unsaved
        until ``save`` runs.
        """
        session = self._require_context().require_session(session_id)
        layer = session.layer

        async def _op() -> Document:
            current = self._stores.get(layer)
            if current is None:
                raise NotFoundError(f"{layer} is not loaded", context={"layer": str(layer)})
            document = session.build_commit_document(current)
            self._history_for(layer).record(current)
            self._stores.put(layer, document)
            committed = len(session.pending)
            session.clear()
            logger.info("Committed %d pending override(s) into %s", committed, layer)
            self._publish_pending(layer, session.session_id, 0)
            return document

        return await self._run("commit", layer, _op)

    def discard_session(self, session_id: Optional[str] = None) -> int:
        """Drop every pending override; returns how many were discarded."""
        session = self._require_context().require_session(session_id)
        dropped = len(session.pending)
        session.clear()
        self._publish_pending(session.layer, session.session_id, 0)
        return dropped

    def _publish_pending(self, layer: LayerRef, session_id: str, count: int) -> None:
        self._events.publish(
            EventType.PENDING_CHANGED, layer=str(layer), session_id=session_id, pending=count
        )

    # ---------- merged view ----------

    def snapshot(
        self, layer: Optional[LayerRef] = None, *, include_omitted: bool = False
    ) -> MergedSnapshot:
        """Resolve the merged view for ``layer`` (default: the active layer).

        Pending overrides are included when the open session belongs to the
        resolved layer.
        """
        core = self._stores.core
        if core is None:
            raise NotFoundError("Core document is not loaded", context={"layer": "core"})
        target = layer or (self._context.active if self._context is not None else CORE)
        session = self._context.session if self._context is not None else None
        pending = session.pending if session is not None and session.layer == target else None
        try:
            return resolve(
                core,
                self._stores.platform_extensions(),
                self._stores.theme_overrides(),
                target,
                pending,
                include_omitted=include_omitted,
            )
        except Exception as exc:
            error = self._failed(exc, "snapshot", str(target))
            if error is exc:
                raise
            raise error from exc

    def reset(self) -> None:
        self._document_history.clear()
        self._review_sequence = 0


__all__ = [
    "PersistenceOrchestrator",
    "PersistenceSettings",
    "SaveResult",
    "RefreshReason",
    "REFRESH_FLAGS",
    "DEFAULT_MAX_DOCUMENT_BYTES",
]
