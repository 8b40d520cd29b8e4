"""Errors raised by layer loading, editing and persistence.

Each error also derives from the closest builtin (``ValueError``,
``PermissionError``, ``FileNotFoundError``) so callers that only know the
builtin still catch it. ``context`` carries structured details for the CLI's
JSON output and for ``operation.failed`` events.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional


class TokenLayersError(Exception):
    def __init__(self, message: str = "", *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})

    def to_json_error(self) -> Dict[str, Any]:
        return {"message": str(self), "code": type(self).__name__, "context": self.context}


class ValidationError(TokenLayersError, ValueError):
    """A document failed its schema, or a save/export precondition did not hold."""

    def __init__(
        self,
        message: str = "",
        *,
        errors: Optional[Iterable[str]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.errors = list(errors or [])
        details = dict(context or {})
        if self.errors:
            details.setdefault("errors", list(self.errors))
        super().__init__(message, context=details)


class LayerPermissionError(TokenLayersError, PermissionError):
    """The repository bound to a layer is not writable by the current user."""


class NotFoundError(TokenLayersError, FileNotFoundError):
    """A layer has no binding, no loaded document, or no remote file."""


class SizeLimitError(ValidationError):
    def __init__(self, size: int, limit: int, *, context: Optional[Mapping[str, Any]] = None) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"Serialized document is {size} bytes, exceeding the limit of {limit} bytes",
            context={**(context or {}), "size": size, "limit": limit},
        )


class BranchExistsError(TokenLayersError, FileExistsError):
    """``create_branch`` was asked for a name the repository already has."""


class DivergenceError(ValidationError):
    """Export refused: unsaved edits, or the remote moved since the last load."""


class SessionError(TokenLayersError):
    """An edit-session call referenced a closed, stale or missing session."""

    def __init__(
        self,
        message: str,
        *,
        session_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        details = dict(context or {})
        if session_id:
            details["session_id"] = session_id
        if operation:
            details["operation"] = operation
        super().__init__(message, context=details)


__all__ = [
    "TokenLayersError",
    "ValidationError",
    "LayerPermissionError",
    "NotFoundError",
    "SizeLimitError",
    "DivergenceError",
    "BranchExistsError",
    "SessionError",
]
