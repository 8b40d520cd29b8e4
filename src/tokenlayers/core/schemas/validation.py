"""JSON Schema checks for layer documents and configuration.

Schemas live as YAML under ``tokenlayers.data/schemas`` and are compiled once
into Draft 2020-12 validators.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from tokenlayers.core.utils.io import read_yaml
from tokenlayers.data import get_data_path


class SchemaValidationError(ValueError):
    pass


@lru_cache(maxsize=16)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Bundled schema ``schema_name`` (``.yaml`` is appended when no suffix is given)."""
    if not schema_name.lower().endswith((".yaml", ".yml")):
        schema_name += ".yaml"
    path = get_data_path("schemas", schema_name)
    if not path.is_file():
        raise FileNotFoundError(f"Schema not found: {schema_name}")
    schema = read_yaml(path, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema {schema_name} must be a YAML mapping, got {type(schema).__name__}")
    return schema


def _validator(schema_name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema(schema_name))


def validate_payload(payload: Dict[str, Any], schema_name: str) -> None:
    """Raise SchemaValidationError describing the most relevant violation."""
    error = best_match(_validator(schema_name).iter_errors(payload))
    if error is not None:
        raise SchemaValidationError(f"Validation failed against schema '{schema_name}': {error.message}")


def validate_payload_safe(payload: Any, schema_name: str) -> List[str]:
    """Every violation as ``"dotted.path: message"``, in document order.

    Violations at the document root carry no path prefix.
    """
    messages: List[str] = []
    violations = sorted(_validator(schema_name).iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    for violation in violations:
        where = ".".join(str(part) for part in violation.path)
        messages.append(f"{where}: {violation.message}" if where else violation.message)
    return messages


__all__ = [
    "load_schema",
    "validate_payload",
    "validate_payload_safe",
    "SchemaValidationError",
]
