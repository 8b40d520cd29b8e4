"""Bounded undo/redo history for an edit session."""
from __future__ import annotations

import copy
from collections import deque
from typing import Deque, Generic, List, TypeVar

T = TypeVar("T")

DEFAULT_UNDO_DEPTH = 50


class UndoHistory(Generic[T]):
    """Snapshots of prior states; the oldest entry falls off past ``max_depth``."""

    def __init__(self, max_depth: int = DEFAULT_UNDO_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth
        self._undo: Deque[T] = deque(maxlen=max_depth)
        self._redo: List[T] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)

    def record(self, prior_state: T) -> None:
        """Push the state that existed before a committed mutation."""
        self._undo.append(copy.deepcopy(prior_state))
        self._redo.clear()

    def undo(self, current: T) -> T:
        """Return the previous state; ``current`` becomes redoable.

        Raises:
            IndexError: When there is nothing to undo.
        """
        if not self._undo:
            raise IndexError("nothing to undo")
        previous = self._undo.pop()
        self._redo.append(copy.deepcopy(current))
        return previous

    def redo(self, current: T) -> T:
        if not self._redo:
            raise IndexError("nothing to redo")
        following = self._redo.pop()
        self._undo.append(copy.deepcopy(current))
        return following

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()


__all__ = ["UndoHistory", "DEFAULT_UNDO_DEPTH"]
