"""Map lower-level failures onto the tokenlayers error taxonomy."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from tokenlayers.core.exceptions import (
    LayerPermissionError,
    NotFoundError,
    TokenLayersError,
    ValidationError,
)
from tokenlayers.core.schemas.validation import SchemaValidationError


def normalize_error(
    exc: BaseException, *, operation: str, layer: Optional[str] = None
) -> TokenLayersError:
    """Return ``exc`` as a ``TokenLayersError`` (unchanged when it already is one)."""
    if isinstance(exc, TokenLayersError):
        return exc

    context: Dict[str, Any] = {"operation": operation, "cause": type(exc).__name__}
    if layer is not None:
        context["layer"] = layer

    if isinstance(exc, json.JSONDecodeError):
        return ValidationError(f"Layer document is not valid JSON: {exc}", context=context)
    if isinstance(exc, SchemaValidationError):
        return ValidationError(str(exc), context=context)
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(str(exc) or "Document not found", context=context)
    if isinstance(exc, PermissionError):
        return LayerPermissionError(str(exc) or "Permission denied", context=context)
    if isinstance(exc, (ValueError, TypeError, KeyError)):
        return ValidationError(f"Invalid layer data: {exc}", context=context)
    return TokenLayersError(f"{operation} failed: {exc}", context=context)


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, FileNotFoundError)


__all__ = ["normalize_error", "is_not_found"]
