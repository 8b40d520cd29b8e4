"""Repository host backed by a local directory tree.

Layout: ``<root>/<repo>/<branch>/<path>``; ``/`` in repository names and
branch names is stored as ``__``. Pull requests are recorded as JSON files
under ``<root>/<repo>/.pulls/``.
"""
from __future__ import annotations

import os
import shutil
from pathlib import Path

from tokenlayers.core.exceptions import BranchExistsError, NotFoundError
from tokenlayers.core.ports import FileContent, PullRequest
from tokenlayers.core.utils.io import ensure_directory, read_json, read_text, write_json_atomic, write_text


def _safe(name: str) -> str:
    return name.replace("/", "__")


class LocalRepository:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _branch_dir(self, repo: str, branch: str) -> Path:
        return self.root / _safe(repo) / _safe(branch)

    def _file(self, repo: str, path: str, branch: str) -> Path:
        return self._branch_dir(repo, branch) / path.lstrip("/")

    async def get_file_content(
        self, repo: str, path: str, branch: str, *, authenticated: bool = True
    ) -> FileContent:
        target = self._file(repo, path, branch)
        if not target.is_file():
            raise NotFoundError(
                f"{path} not found on {repo}@{branch}",
                context={"repo": repo, "path": path, "branch": branch},
            )
        return FileContent(content=read_text(target))

    async def create_file(
        self, repo: str, path: str, content: str, branch: str, message: str
    ) -> None:
        write_text(self._file(repo, path, branch), content)

    async def create_branch(self, repo: str, from_branch: str, name: str) -> None:
        source = self._branch_dir(repo, from_branch)
        if not source.is_dir():
            raise NotFoundError(f"Branch {from_branch} not found on {repo}")
        target = self._branch_dir(repo, name)
        if target.exists():
            raise BranchExistsError(f"Branch {name} already exists on {repo}", context={"branch": name})
        shutil.copytree(source, target)

    async def create_pull_request(
        self, repo: str, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        pulls = ensure_directory(self.root / _safe(repo) / ".pulls")
        number = len(list(pulls.glob("*.json"))) + 1
        record = {"number": number, "title": title, "body": body, "head": head, "base": base}
        write_json_atomic(pulls / f"{number}.json", record)
        return PullRequest(number=number, url=(pulls / f"{number}.json").as_uri(), head=head, base=base)

    def read_pull_request(self, repo: str, number: int) -> dict:
        return read_json(self.root / _safe(repo) / ".pulls" / f"{number}.json")

    async def has_write_access_to_repository(self, repo: str) -> bool:
        repo_dir = self.root / _safe(repo)
        candidate = repo_dir if repo_dir.exists() else self.root
        return candidate.exists() and os.access(candidate, os.W_OK)


__all__ = ["LocalRepository"]
