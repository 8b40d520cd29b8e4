"""tokenlayers validate command.

SUMMARY: Validate a core, platform extension or theme override document.

Schema checks come first, then cross-reference checks. Platform and theme
documents are checked against ``--core`` when it is given.
"""
from __future__ import annotations

import argparse
from pathlib import Path

from tokenlayers.cli import OutputFormatter, add_standard_flags
from tokenlayers.core.schemas import LayerValidator
from tokenlayers.core.utils.io import read_json

SUMMARY = "Validate a layer document against its schema and the core"

KINDS = ("core", "platform", "theme")


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Layer document (JSON)")
    parser.add_argument("--kind", choices=KINDS, required=True, help="Layer kind of the document")
    parser.add_argument("--core", help="Core document for cross-reference checks")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    path = Path(str(args.path))
    if not path.exists():
        formatter.error(f"File not found: {path}", error_code="not_found")
        return 1

    document = read_json(path)
    core = read_json(Path(args.core)) if args.core else None

    validator = LayerValidator()
    if args.kind == "core":
        result = validator.validate_core_data(document)
    elif args.kind == "platform":
        result = validator.validate_platform_extension(document, core)
    else:
        result = validator.validate_theme_override_file(document, core)

    if not result.is_valid:
        if formatter.json_mode:
            formatter.json_output(
                {"ok": False, "kind": args.kind, "path": str(path), "errors": result.errors}
            )
        else:
            formatter.text("Validation errors:")
            for e in result.errors:
                formatter.text(f"- {e}")
        return 1

    if formatter.json_mode:
        formatter.json_output({"ok": True, "kind": args.kind, "path": str(path)})
    else:
        formatter.text(f"{args.kind} document valid")
    return 0
