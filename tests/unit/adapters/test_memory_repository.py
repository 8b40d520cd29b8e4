from __future__ import annotations

import pytest

from tokenlayers.adapters import InMemoryRepository
from tokenlayers.core.exceptions import BranchExistsError, NotFoundError


@pytest.mark.asyncio
async def test_get_file_content_and_missing_file() -> None:
    repo = InMemoryRepository()
    repo.seed_file("acme/tokens", "core.json", "{}")

    content = await repo.get_file_content("acme/tokens", "core.json", "main")
    assert content.content == "{}"

    with pytest.raises(NotFoundError):
        await repo.get_file_content("acme/tokens", "missing.json", "main")


@pytest.mark.asyncio
async def test_private_repo_is_not_publicly_readable() -> None:
    repo = InMemoryRepository()
    repo.seed_file("acme/private", "core.json", "{}")
    repo.private_repos.add("acme/private")

    with pytest.raises(NotFoundError):
        await repo.get_file_content("acme/private", "core.json", "main", authenticated=False)
    assert (await repo.get_file_content("acme/private", "core.json", "main")).content == "{}"


@pytest.mark.asyncio
async def test_create_branch_copies_files() -> None:
    repo = InMemoryRepository()
    repo.seed_file("acme/tokens", "core.json", '{"a": 1}')

    await repo.create_branch("acme/tokens", "main", "feature")
    await repo.create_file("acme/tokens", "core.json", '{"a": 2}', "feature", "msg")

    assert repo.read("acme/tokens", "core.json") == '{"a": 1}'
    assert repo.read("acme/tokens", "core.json", "feature") == '{"a": 2}'

    with pytest.raises(NotFoundError):
        await repo.create_branch("acme/tokens", "nope", "other")
    with pytest.raises(BranchExistsError):
        await repo.create_branch("acme/tokens", "main", "feature")
    assert repo.read("acme/tokens", "core.json", "feature") == '{"a": 2}'


@pytest.mark.asyncio
async def test_pull_requests_are_numbered() -> None:
    repo = InMemoryRepository()
    first = await repo.create_pull_request("acme/tokens", "t", "b", "feature", "main")
    second = await repo.create_pull_request("acme/tokens", "t", "b", "feature-2", "main")
    assert (first.number, second.number) == (1, 2)
    assert second.url == "memory://acme/tokens/pull/2"


@pytest.mark.asyncio
async def test_fail_next_and_call_log() -> None:
    repo = InMemoryRepository()
    repo.write_access["acme/tokens"] = False
    repo.fail_next("has_write_access_to_repository", RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        await repo.has_write_access_to_repository("acme/tokens")
    assert await repo.has_write_access_to_repository("acme/tokens") is False
    assert await repo.has_write_access_to_repository("acme/other") is True
    assert repo.calls_to("has_write_access_to_repository") == [
        ("acme/tokens",),
        ("acme/tokens",),
        ("acme/other",),
    ]
