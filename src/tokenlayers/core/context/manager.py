"""Active-layer context: which layer is viewed/edited, and how switches happen.

States are ``CoreLayer``, ``PlatformLayer(id)`` and ``ThemeLayer(id)``; at most
one non-core layer is active. A switch:

1. asks for confirmation when unsaved changes exist (cancel = stay);
2. resolves the target's repository binding;
3. force-refreshes the write-access check for that repository;
4. recomputes the view mode and leaves edit mode;
5. publishes ``context.changed``.

Switches are async because of step 3. A later switch supersedes an earlier
one still in flight: when the earlier one completes it sees that it is no
longer the latest request and discards its result.
"""
from __future__ import annotations

import inspect
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from tokenlayers.core.editing.session import EditSession
from tokenlayers.core.events import EventBus, EventType
from tokenlayers.core.exceptions import LayerPermissionError, SessionError
from tokenlayers.core.layers.bindings import BindingRegistry, RepositoryBinding
from tokenlayers.core.layers.refs import (
    CORE,
    CoreLayer,
    LayerRef,
    PlatformLayer,
    ThemeLayer,
    platform_or_core,
    theme_or_core,
)
from tokenlayers.core.permissions import PermissionService
from tokenlayers.core.tracking.history import DEFAULT_UNDO_DEPTH

logger = logging.getLogger(__name__)

ConfirmDiscard = Callable[[LayerRef, LayerRef], Union[bool, Awaitable[bool]]]
UnsavedCheck = Callable[[], bool]


class ViewMode(str, Enum):
    CORE_ONLY = "core-only"
    PLATFORM_ONLY = "platform-only"
    THEME_ONLY = "theme-only"
    MERGED = "merged"


def view_mode_for(layer: LayerRef, *, merged: bool = False) -> ViewMode:
    if isinstance(layer, CoreLayer):
        return ViewMode.CORE_ONLY
    if merged:
        return ViewMode.MERGED
    if isinstance(layer, PlatformLayer):
        return ViewMode.PLATFORM_ONLY
    if isinstance(layer, ThemeLayer):
        return ViewMode.THEME_ONLY
    raise TypeError(f"Unknown layer reference: {layer!r}")


@dataclass(frozen=True)
class SwitchResult:
    target: LayerRef
    applied: bool
    cancelled: bool = False
    superseded: bool = False
    binding: Optional[RepositoryBinding] = None
    write_access: bool = False


class ContextManager:
    def __init__(
        self,
        bindings: BindingRegistry,
        permissions: PermissionService,
        events: EventBus,
        *,
        has_unsaved_changes: Optional[UnsavedCheck] = None,
        confirm_discard: Optional[ConfirmDiscard] = None,
        undo_depth: int = DEFAULT_UNDO_DEPTH,
    ) -> None:
        self._bindings = bindings
        self._permissions = permissions
        self._events = events
        self._has_unsaved_changes = has_unsaved_changes
        self._confirm_discard = confirm_discard
        self._undo_depth = undo_depth

        self._active: LayerRef = CORE
        self._view_mode = ViewMode.CORE_ONLY
        self._session: Optional[EditSession] = None
        self._editing = False
        self._requests = itertools.count(1)
        self._session_ids = itertools.count(1)
        self._latest_request = 0
        self._latest_target: Optional[LayerRef] = None

    # ---------- state ----------

    @property
    def active(self) -> LayerRef:
        return self._active

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def edit_mode(self) -> bool:
        return self._editing

    @property
    def session(self) -> Optional[EditSession]:
        return self._session

    @property
    def active_binding(self) -> Optional[RepositoryBinding]:
        return self._bindings.get(self._active)

    def require_session(self, session_id: Optional[str] = None) -> EditSession:
        """Return the open edit session, optionally checking its id.

        Raises:
            SessionError: When no session is open or ``session_id`` is stale.
        """
        session = self._session
        if session is None:
            raise SessionError("No edit session is open", session_id=session_id)
        if session_id is not None and session.session_id != session_id:
            raise SessionError(
                f"Edit session {session_id} does not exist",
                session_id=session_id,
                context={"current_session_id": session.session_id},
            )
        return session

    def set_view_merged(self, merged: bool) -> ViewMode:
        self._view_mode = view_mode_for(self._active, merged=merged)
        return self._view_mode

    def _unsaved(self) -> bool:
        if self._session is not None and self._session.has_pending:
            return True
        if self._has_unsaved_changes is not None:
            return bool(self._has_unsaved_changes())
        return False

    # ---------- transitions ----------

    async def switch_to_platform(self, platform_id: Optional[str]) -> SwitchResult:
        return await self.switch_to(platform_or_core(platform_id))

    async def switch_to_theme(self, theme_id: Optional[str]) -> SwitchResult:
        return await self.switch_to(theme_or_core(theme_id))

    async def switch_to(self, target: Optional[LayerRef]) -> SwitchResult:
        target = target or CORE
        previous = self._active

        if self._unsaved() and target != previous:
            confirmed = False
            if self._confirm_discard is not None:
                answer = self._confirm_discard(previous, target)
                if inspect.isawaitable(answer):
                    answer = await answer
                confirmed = bool(answer)
            if not confirmed:
                logger.info("Switch from %s to %s cancelled: unsaved changes", previous, target)
                self._events.publish(
                    EventType.CONTEXT_SWITCH_CANCELLED, current=str(previous), target=str(target)
                )
                return SwitchResult(target=target, applied=False, cancelled=True)

        request_id = next(self._requests)
        self._latest_request = request_id
        self._latest_target = target

        binding = self._bindings.get(target)
        write_access = False
        if binding is not None:
            write_access = await self._permissions.has_write_access(
                binding.repository_uri, force_refresh=True
            )

        if request_id != self._latest_request:
            logger.debug("Switch to %s superseded by a later request", target)
            self._events.publish(
                EventType.CONTEXT_SWITCH_SUPERSEDED,
                target=str(target),
                current_target=str(self._latest_target),
            )
            return SwitchResult(target=target, applied=False, superseded=True, binding=binding)

        self._active = target
        self._view_mode = view_mode_for(target)
        self._close_session()
        self._events.publish(
            EventType.CONTEXT_CHANGED,
            previous=str(previous),
            current=str(target),
            view_mode=self._view_mode.value,
            write_access=write_access,
        )
        return SwitchResult(target=target, applied=True, binding=binding, write_access=write_access)

    # ---------- edit mode ----------

    def enter_edit_mode(self) -> Optional[EditSession]:
        """Enter edit mode for the active layer.

        Non-core layers get a fresh ``EditSession`` for staging overrides; core
        edits go straight to the document, so no session is opened for core.

        Raises:
            LayerPermissionError: Without cached write access to the layer.
        """
        if not self._permissions.get_current_edit_permissions(self._active):
            raise LayerPermissionError(
                f"No write access to {self._active}", context={"layer": str(self._active)}
            )
        self._close_session()
        session = None
        if not isinstance(self._active, CoreLayer):
            session = EditSession(
                self._active,
                undo_depth=self._undo_depth,
                session_id=f"edit-{next(self._session_ids)}",
            )
            self._session = session
        self._editing = True
        self._events.publish(
            EventType.EDIT_MODE_CHANGED,
            layer=str(self._active),
            edit_mode=True,
            session_id=session.session_id if session else None,
        )
        return session

    def exit_edit_mode(self) -> None:
        was_editing = self._editing
        self._close_session()
        if was_editing:
            self._events.publish(EventType.EDIT_MODE_CHANGED, layer=str(self._active), edit_mode=False)

    def _close_session(self) -> None:
        self._editing = False
        if self._session is not None:
            self._session.close()
            self._session = None

    def reset(self) -> None:
        self._close_session()
        self._active = CORE
        self._view_mode = ViewMode.CORE_ONLY
        self._latest_request = 0
        self._latest_target = None


__all__ = ["ContextManager", "SwitchResult", "ViewMode", "view_mode_for", "ConfirmDiscard"]
