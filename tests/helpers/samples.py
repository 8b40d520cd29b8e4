"""Sample layer documents.

Every function returns a fresh dict, so tests may mutate what they get.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List


def value(v: Any, *modes: str) -> Dict[str, Any]:
    return {"modeIds": list(modes), "value": {"value": v}}


def core_document() -> Dict[str, Any]:
    return {
        "systemName": "Acme Design System",
        "systemId": "acme",
        "description": "Sample system",
        "version": "1.0.0",
        "versionHistory": [],
        "tokenCollections": [
            {"id": "colors", "name": "Colors", "resolvedValueTypeIds": ["color"]},
            {"id": "spacing", "name": "Spacing", "resolvedValueTypeIds": ["dimension"]},
        ],
        "dimensions": [
            {
                "id": "color-scheme",
                "displayName": "Color scheme",
                "defaultMode": "light",
                "modes": [{"id": "light", "name": "Light"}, {"id": "night", "name": "Night"}],
            },
            {
                "id": "density",
                "displayName": "Density",
                "defaultMode": "comfortable",
                "modes": [
                    {"id": "compact", "name": "Compact"},
                    {"id": "comfortable", "name": "Comfortable"},
                ],
            },
        ],
        "tokens": [
            {
                "id": "color-blue-500",
                "displayName": "Blue 500",
                "tokenCollectionId": "colors",
                "resolvedValueTypeId": "color",
                "themeable": True,
                "valuesByMode": [value("#1E90FF")],
            },
            {
                "id": "color-text",
                "displayName": "Text",
                "tokenCollectionId": "colors",
                "resolvedValueTypeId": "color",
                "themeable": False,
                "valuesByMode": [value("#111111", "light"), value("#EEEEEE", "night")],
            },
            {
                "id": "color-surface",
                "displayName": "Surface",
                "tokenCollectionId": "colors",
                "resolvedValueTypeId": "color",
                "themeable": True,
                "valuesByMode": [value("#FFFFFF", "light"), value("#000000", "night")],
            },
            {
                "id": "spacing-md",
                "displayName": "Spacing M",
                "tokenCollectionId": "spacing",
                "resolvedValueTypeId": "dimension",
                "valuesByMode": [value(8, "compact"), value(12, "comfortable")],
            },
        ],
        "platforms": [
            {
                "id": "web",
                "displayName": "Web",
                "syntaxPatterns": {"prefix": "--", "delimiter": "-"},
                "valueFormatters": {"color": "hex", "dimension": "px"},
            },
            {"id": "ios", "displayName": "iOS"},
        ],
        "themes": [{"id": "dark", "displayName": "Dark"}],
        "taxonomies": [],
        "resolvedValueTypes": [
            {"id": "color", "displayName": "Color"},
            {"id": "dimension", "displayName": "Dimension"},
        ],
    }


def web_platform() -> Dict[str, Any]:
    return {
        "systemId": "acme",
        "platformId": "web",
        "version": "1.0.0",
        "metadata": {"name": "Web"},
        "syntaxPatterns": {"prefix": "--acme"},
        "valueFormatters": {"dimension": "rem"},
        "tokenOverrides": [{"id": "color-blue-500", "valuesByMode": [value("#1a85f0")]}],
        "omittedModes": [],
        "omittedDimensions": [],
    }


def ios_platform() -> Dict[str, Any]:
    return {
        "systemId": "acme",
        "platformId": "ios",
        "version": "1.0.0",
        "tokenOverrides": [{"id": "color-surface", "omit": True}],
        "omittedModes": ["compact"],
        "omittedDimensions": [],
    }


def dark_theme() -> Dict[str, Any]:
    return {
        "systemId": "acme",
        "themeId": "dark",
        "tokenOverrides": [
            {"tokenId": "color-blue-500", "valuesByMode": [value("#4DA3FF")]},
        ],
    }


def dump(doc: Dict[str, Any]) -> str:
    return json.dumps(doc, indent=2)


def token_ids(tokens: List[Dict[str, Any]]) -> List[str]:
    return [t["id"] for t in tokens]
