"""In-memory repository host.

Used by tests and the CLI's dry runs. Every call is recorded in ``calls`` and
failures can be injected per method with ``fail_next``.
"""
from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Set, Tuple

from tokenlayers.core.exceptions import BranchExistsError, NotFoundError
from tokenlayers.core.ports import FileContent, PullRequest

logger = logging.getLogger(__name__)


class InMemoryRepository:
    def __init__(self) -> None:
        self.files: Dict[Tuple[str, str, str], str] = {}
        self.branches: Set[Tuple[str, str]] = set()
        self.write_access: Dict[str, bool] = {}
        self.private_repos: Set[str] = set()
        self.pull_requests: List[PullRequest] = []
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self._failures: Dict[str, Deque[BaseException]] = defaultdict(deque)

    # ---------- test helpers ----------

    def seed_file(self, repo: str, path: str, content: str, branch: str = "main") -> None:
        self.branches.add((repo, branch))
        self.files[(repo, branch, path)] = content

    def read(self, repo: str, path: str, branch: str = "main") -> str:
        return self.files[(repo, branch, path)]

    def fail_next(self, method: str, exc: BaseException) -> None:
        """Make the next call to ``method`` raise ``exc``."""
        self._failures[method].append(exc)

    def calls_to(self, method: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        pending = self._failures.get(method)
        if pending:
            raise pending.popleft()

    # ---------- RepositoryClient ----------

    async def get_file_content(
        self, repo: str, path: str, branch: str, *, authenticated: bool = True
    ) -> FileContent:
        self._enter("get_file_content", repo, path, branch, authenticated)
        if not authenticated and repo in self.private_repos:
            raise NotFoundError(f"{repo} is not publicly readable", context={"repo": repo})
        key = (repo, branch, path)
        if key not in self.files:
            raise NotFoundError(
                f"{path} not found on {repo}@{branch}",
                context={"repo": repo, "path": path, "branch": branch},
            )
        return FileContent(content=self.files[key])

    async def create_file(
        self, repo: str, path: str, content: str, branch: str, message: str
    ) -> None:
        self._enter("create_file", repo, path, branch, message)
        self.branches.add((repo, branch))
        self.files[(repo, branch, path)] = content

    async def create_branch(self, repo: str, from_branch: str, name: str) -> None:
        self._enter("create_branch", repo, from_branch, name)
        if (repo, from_branch) not in self.branches:
            raise NotFoundError(f"Branch {from_branch} not found on {repo}")
        if (repo, name) in self.branches:
            raise BranchExistsError(f"Branch {name} already exists on {repo}", context={"branch": name})
        self.branches.add((repo, name))
        for (r, b, p), content in list(self.files.items()):
            if r == repo and b == from_branch:
                self.files[(repo, name, p)] = content

    async def create_pull_request(
        self, repo: str, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        self._enter("create_pull_request", repo, title, head, base)
        pr = PullRequest(
            number=len(self.pull_requests) + 1,
            url=f"memory://{repo}/pull/{len(self.pull_requests) + 1}",
            head=head,
            base=base,
        )
        self.pull_requests.append(pr)
        return pr

    async def has_write_access_to_repository(self, repo: str) -> bool:
        self._enter("has_write_access_to_repository", repo)
        return self.write_access.get(repo, True)


__all__ = ["InMemoryRepository"]
