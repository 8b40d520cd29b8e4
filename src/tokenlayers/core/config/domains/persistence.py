"""Domain-specific configuration for the persistence orchestrator.

Covers the serialized size limit, commit messages and the naming of review
branches / pull requests created by ``save(review=True)``.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict

from ..base import BaseDomainConfig


@dataclass(frozen=True)
class ReviewSettings:
    branch_pattern: str
    pr_title: str
    pr_body: str


class PersistenceConfig(BaseDomainConfig):
    """Typed accessor for the ``persistence`` section."""

    def _config_section(self) -> str:
        return "persistence"

    @cached_property
    def max_document_bytes(self) -> int:
        return int(self.require("max_document_bytes"))

    @cached_property
    def commit_message(self) -> str:
        return str(self.require("commit_message"))

    @cached_property
    def bootstrap_message(self) -> str:
        return str(self.require("bootstrap_message"))

    @cached_property
    def review(self) -> ReviewSettings:
        raw: Dict[str, Any] = self.require("review") or {}
        return ReviewSettings(
            branch_pattern=str(raw.get("branch_pattern", "tokenlayers/{layer_slug}-{sequence}")),
            pr_title=str(raw.get("pr_title", "Update {layer} design tokens")),
            pr_body=str(raw.get("pr_body", "")),
        )


__all__ = ["PersistenceConfig", "ReviewSettings"]
