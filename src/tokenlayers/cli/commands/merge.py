"""tokenlayers merge command.

SUMMARY: Resolve core + platform/theme documents into one merged view.

Platform and theme documents are keyed by their own ``platformId`` /
``themeId``; ``--layer`` picks which one is active.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List

from tokenlayers.cli import OutputFormatter, add_standard_flags
from tokenlayers.core.exceptions import ValidationError
from tokenlayers.core.layers.refs import parse_layer
from tokenlayers.core.resolution import resolve
from tokenlayers.core.utils.io import dumps_document, read_json

SUMMARY = "Print the merged snapshot for a layer as JSON"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--core", required=True, help="Core document (JSON)")
    parser.add_argument(
        "--platform",
        action="append",
        default=[],
        metavar="FILE",
        help="Platform extension document (repeatable)",
    )
    parser.add_argument(
        "--theme",
        action="append",
        default=[],
        metavar="FILE",
        help="Theme override document (repeatable)",
    )
    parser.add_argument(
        "--layer",
        default="core",
        help="Active layer: core, platform:<id> or theme:<id> (default: core)",
    )
    parser.add_argument(
        "--include-omitted",
        action="store_true",
        help="Keep tokens a platform marks with omit: true",
    )
    add_standard_flags(parser)


def _read_document(path: str) -> Dict[str, Any]:
    data = read_json(Path(path))
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: expected a JSON object", context={"path": path})
    return data


def _keyed(paths: List[str], id_key: str) -> Dict[str, Dict[str, Any]]:
    documents: Dict[str, Dict[str, Any]] = {}
    for path in paths:
        doc = _read_document(path)
        ident = doc.get(id_key)
        if not ident:
            raise ValidationError(f"{path}: missing {id_key}", context={"path": path})
        documents[str(ident)] = doc
    return documents


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    layer = parse_layer(args.layer)
    snapshot = resolve(
        _read_document(args.core),
        _keyed(args.platform, "platformId"),
        _keyed(args.theme, "themeId"),
        layer,
        include_omitted=bool(args.include_omitted),
    )

    if formatter.json_mode:
        formatter.json_output(snapshot.to_dict(include_diagnostics=True))
        return 0

    for warning in snapshot.warnings:
        formatter.warning(f"[{warning.code}] {warning.message}")
    formatter.text(dumps_document(snapshot.to_dict()).rstrip("\n"))
    return 0
