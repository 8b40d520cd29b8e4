"""
tokenlayers command-line entry point.

Subcommands are the public modules of ``tokenlayers.cli.commands``. Each one
defines ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``; a
``snake_case`` module is exposed as ``kebab-case`` with the original name as
an alias.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import pkgutil
import sys
from dataclasses import dataclass
from functools import lru_cache
from types import ModuleType
from typing import Callable, Dict, List, Optional

from tokenlayers.cli._args import get_repo_root
from tokenlayers.cli._output import OutputFormatter
from tokenlayers.core.audit.stdlib_logging import configure_stdlib_logging
from tokenlayers.core.exceptions import TokenLayersError

logger = logging.getLogger(__name__)

COMMANDS_PACKAGE = "tokenlayers.cli.commands"


@dataclass(frozen=True)
class Command:
    name: str
    module: ModuleType

    @property
    def summary(self) -> str:
        return getattr(self.module, "SUMMARY", self.name)

    @property
    def flag_name(self) -> str:
        return self.name.replace("_", "-")

    def install(self, subparsers: argparse._SubParsersAction) -> None:
        aliases = [self.name] if self.flag_name != self.name else []
        parser = subparsers.add_parser(self.flag_name, aliases=aliases, help=self.summary)
        register = getattr(self.module, "register_args", None)
        if register is not None:
            register(parser)
        handler = getattr(self.module, "main", None)
        if handler is not None:
            parser.set_defaults(_func=handler)


@lru_cache(maxsize=1)
def discover_commands() -> Dict[str, Command]:
    package = importlib.import_module(COMMANDS_PACKAGE)
    found: Dict[str, Command] = {}
    for info in sorted(pkgutil.iter_modules(package.__path__), key=lambda m: m.name):
        if info.name.startswith("_"):
            continue
        try:
            module = importlib.import_module(f"{COMMANDS_PACKAGE}.{info.name}")
        except ImportError as exc:
            logger.warning("Skipping command %s: %s", info.name, exc)
            continue
        found[info.name] = Command(info.name, module)
    return found


def build_parser() -> argparse.ArgumentParser:
    from tokenlayers import __version__

    parser = argparse.ArgumentParser(
        prog="tokenlayers",
        description="Resolve and validate layered design-token documents",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")
    for command in discover_commands().values():
        command.install(subparsers)
    return parser


def _setup_logging(args: argparse.Namespace) -> None:
    level = getattr(args, "log_level", None)
    if level is None:
        from tokenlayers.core.config.domains import LoggingConfig

        level = LoggingConfig(repo_root=get_repo_root(args)).level
    configure_stdlib_logging(level=level)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one command; 0 on success, 1 when it fails with a reportable error."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))

    handler: Optional[Callable[[argparse.Namespace], int]] = getattr(args, "_func", None)
    if handler is None:
        parser.print_help()
        return 0

    formatter = OutputFormatter(json_mode=bool(getattr(args, "json", False)))
    try:
        _setup_logging(args)
        return int(handler(args) or 0)
    except (TokenLayersError, OSError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        formatter.error(exc, error_code=type(exc).__name__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
