"""Schema loading and layer document validation."""
from __future__ import annotations

from .validation import SchemaValidationError, load_schema, validate_payload, validate_payload_safe
from .validators import LayerValidator, ValidationResult

__all__ = [
    "LayerValidator",
    "ValidationResult",
    "SchemaValidationError",
    "load_schema",
    "validate_payload",
    "validate_payload_safe",
]
