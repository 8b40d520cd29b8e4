"""Collaborator interfaces.

The engine depends only on these protocols, never on a concrete repository
host or storage backend. Implementations live in ``tokenlayers.adapters``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class FileContent:
    content: str
    sha: Optional[str] = None


@dataclass(frozen=True)
class PullRequest:
    number: int
    url: str
    head: str
    base: str


class RepositoryClient(Protocol):
    """Repository-hosting capabilities used by the orchestrator and permissions.

    ``get_file_content`` raises ``tokenlayers.core.exceptions.NotFoundError``
    when the file (or the branch) does not exist. ``create_file`` creates or
    replaces the file. ``create_branch`` raises ``BranchExistsError`` when
    ``name`` is already taken.
    """

    async def get_file_content(
        self, repo: str, path: str, branch: str, *, authenticated: bool = True
    ) -> FileContent: ...

    async def create_file(
        self, repo: str, path: str, content: str, branch: str, message: str
    ) -> None: ...

    async def create_branch(self, repo: str, from_branch: str, name: str) -> None: ...

    async def create_pull_request(
        self, repo: str, title: str, body: str, head: str, base: str
    ) -> PullRequest: ...

    async def has_write_access_to_repository(self, repo: str) -> bool: ...


class KeyValueStore(Protocol):
    """Named-slot persistence for the layer stores."""

    def get(self, slot: str) -> Any: ...

    def set(self, slot: str, value: Any) -> None: ...

    def delete(self, slot: str) -> None: ...


__all__ = ["FileContent", "PullRequest", "RepositoryClient", "KeyValueStore"]
