from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from tokenlayers.core.utils.io import ensure_directory

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_INSTALLED_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, level: str = "WARNING", log_path: Optional[Path] = None) -> None:
    """Route stdlib logging for the ``tokenlayers`` tree to stderr or a file.

    Idempotent: a handler installed by a previous call is replaced, never
    stacked.
    """
    global _INSTALLED_HANDLER

    logger = logging.getLogger("tokenlayers")
    logger.setLevel(_level_from_name(level))

    if _INSTALLED_HANDLER is not None:
        logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        resolved = Path(log_path).resolve()
        ensure_directory(resolved.parent)
        handler = logging.FileHandler(resolved, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _INSTALLED_HANDLER = handler


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the installed handler."""
    global _INSTALLED_HANDLER
    if _INSTALLED_HANDLER is not None:
        logging.getLogger("tokenlayers").removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None


__all__ = ["configure_stdlib_logging", "reset_stdlib_logging_for_tests", "LOG_FORMAT"]
