"""Edit sessions: staged overrides against the active non-core layer.

A session holds at most one pending override per token id; staging the same
token again replaces the earlier entry. Every stage/unstage is undoable.
Committing folds the pending overrides into the layer document's
``tokenOverrides``.
"""
from __future__ import annotations

import copy
import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tokenlayers.core.exceptions import SessionError
from tokenlayers.core.layers.refs import CoreLayer, LayerRef, PlatformLayer, ThemeLayer
from tokenlayers.core.resolution.mode_keys import replace_by_mode_key
from tokenlayers.core.tracking.history import DEFAULT_UNDO_DEPTH, UndoHistory

from .pending import PendingOverride

logger = logging.getLogger(__name__)

PendingMap = Dict[str, PendingOverride]


class EditSession:
    def __init__(
        self,
        layer: LayerRef,
        *,
        undo_depth: int = DEFAULT_UNDO_DEPTH,
        session_id: Optional[str] = None,
    ) -> None:
        if isinstance(layer, CoreLayer):
            raise SessionError(
                "Pending overrides can only be staged against a platform or theme layer",
                operation="open",
            )
        self.layer = layer
        self.session_id = session_id or f"edit-{uuid.uuid4().hex[:12]}"
        self._pending: PendingMap = {}
        self._history: UndoHistory[PendingMap] = UndoHistory(undo_depth)
        self._closed = False

    # ---------- state ----------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> PendingMap:
        return dict(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise SessionError(
                f"Edit session {self.session_id} is closed",
                session_id=self.session_id,
                operation=operation,
            )

    # ---------- staging ----------

    def stage(
        self,
        token_id: str,
        override_data: Mapping[str, Any],
        changed_fields: Iterable[str] = ("valuesByMode",),
    ) -> PendingOverride:
        self._ensure_open("stage")
        entry = PendingOverride(
            token_id=token_id,
            override_data=copy.deepcopy(dict(override_data)),
            changed_fields=tuple(changed_fields),
        )
        self._history.record(self._pending)
        self._pending[token_id] = entry
        logger.debug("Staged override for %s in %s", token_id, self.session_id)
        return entry

    def unstage(self, token_id: str) -> None:
        self._ensure_open("unstage")
        if token_id not in self._pending:
            raise SessionError(
                f"No pending override for token '{token_id}'",
                session_id=self.session_id,
                operation="unstage",
            )
        self._history.record(self._pending)
        del self._pending[token_id]

    def undo(self) -> None:
        self._ensure_open("undo")
        self._pending = self._history.undo(self._pending)

    def redo(self) -> None:
        self._ensure_open("redo")
        self._pending = self._history.redo(self._pending)

    def clear(self) -> None:
        """Drop every pending override and the undo history; the session stays open."""
        self._pending = {}
        self._history.clear()

    def close(self) -> None:
        self._pending = {}
        self._history.clear()
        self._closed = True

    # ---------- commit ----------

    def build_commit_document(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        """Return ``document`` with every pending override folded in.

        Platform overrides are keyed by ``id`` and theme overrides by
        ``tokenId``; existing entries are updated by mode-key, new tokens get
        a new entry appended.
        """
        self._ensure_open("commit")
        id_key = "id" if isinstance(self.layer, PlatformLayer) else "tokenId"
        if not isinstance(self.layer, (PlatformLayer, ThemeLayer)):
            raise TypeError(f"Unknown layer reference: {self.layer!r}")

        result: Dict[str, Any] = copy.deepcopy(dict(document))
        overrides: List[Dict[str, Any]] = list(result.get("tokenOverrides") or [])
        index = {o.get(id_key): i for i, o in enumerate(overrides)}

        for token_id, staged in self._pending.items():
            data = staged.override_data
            current = overrides[index[token_id]] if token_id in index else {id_key: token_id}
            updated = dict(current)
            if "valuesByMode" in data:
                updated["valuesByMode"] = replace_by_mode_key(
                    current.get("valuesByMode") or [], data["valuesByMode"] or []
                )
            if isinstance(self.layer, PlatformLayer):
                for name in staged.changed_fields:
                    if name in data and name not in ("valuesByMode", "id"):
                        updated[name] = copy.deepcopy(data[name])
            if token_id in index:
                overrides[index[token_id]] = updated
            else:
                index[token_id] = len(overrides)
                overrides.append(updated)

        result["tokenOverrides"] = overrides
        return result


__all__ = ["EditSession", "PendingMap"]
