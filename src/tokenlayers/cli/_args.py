"""Common argument registration helpers for CLI commands."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output as JSON")


def add_log_level_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level for stderr diagnostics (default: logging.level from config)",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo-root", type=str, help="Project root holding .tokenlayers/config")


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    add_json_flag(parser)
    add_log_level_flag(parser)
    add_repo_root_flag(parser)


def get_repo_root(args: argparse.Namespace) -> Optional[Path]:
    raw = getattr(args, "repo_root", None)
    return Path(raw).expanduser().resolve() if raw else None


__all__ = [
    "LOG_LEVELS",
    "add_json_flag",
    "add_log_level_flag",
    "add_repo_root_flag",
    "add_standard_flags",
    "get_repo_root",
]
