"""
tokenlayers CLI package.

Commands are auto-discovered from ``cli/commands``. Shared helpers:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
"""
from ._args import (
    add_json_flag,
    add_log_level_flag,
    add_repo_root_flag,
    add_standard_flags,
    get_repo_root,
)
from ._output import OutputFormatter

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_log_level_flag",
    "add_repo_root_flag",
    "add_standard_flags",
    "get_repo_root",
]
