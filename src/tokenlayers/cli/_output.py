"""Printing helpers shared by commands: results on stdout, diagnostics on stderr."""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

from tokenlayers.core.exceptions import TokenLayersError


class OutputFormatter:
    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def _dumps(self, data: Any) -> str:
        return json.dumps(data, indent=self.indent, default=str, ensure_ascii=False)

    def error(
        self,
        error: Exception | str,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Report a failure on stderr.

        In JSON mode the payload is ``{"error", "message"}`` plus a
        ``context`` built from the error's own context and ``context``.
        """
        text = message or str(error)
        if not self.json_mode:
            print(f"Error: {text}", file=sys.stderr)
            return
        structured = isinstance(error, TokenLayersError)
        details: Dict[str, Any] = dict(error.to_json_error()["context"]) if structured else {}
        details.update(context or {})
        payload: Dict[str, Any] = {"error": error_code, "message": text}
        if details or structured:
            payload["context"] = details
        print(self._dumps(payload), file=sys.stderr)

    def warning(self, message: str) -> None:
        if not self.json_mode:
            print(f"Warning: {message}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(self._dumps(data))

    def text(self, message: str) -> None:
        print(message)


__all__ = ["OutputFormatter"]
