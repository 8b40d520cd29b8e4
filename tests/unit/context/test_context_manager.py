from __future__ import annotations

import asyncio

import pytest

from tokenlayers.adapters.memory import InMemoryRepository
from tokenlayers.core.context import ContextManager, ViewMode, view_mode_for
from tokenlayers.core.events import EventBus, EventType
from tokenlayers.core.exceptions import LayerPermissionError
from tokenlayers.core.layers.bindings import BindingRegistry, RepositoryBinding
from tokenlayers.core.layers.refs import CORE, PlatformLayer, ThemeLayer
from tokenlayers.core.permissions import PermissionService

WEB = PlatformLayer("web")
DARK = ThemeLayer("dark")


class GatedRepository(InMemoryRepository):
    """Write-access checks for gated repositories wait until released."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: dict[str, asyncio.Event] = {}

    async def has_write_access_to_repository(self, repo: str) -> bool:
        gate = self.gates.get(repo)
        if gate is not None:
            await gate.wait()
        return await super().has_write_access_to_repository(repo)


def _build(repo=None, **kwargs):
    repo = repo or InMemoryRepository()
    bindings = BindingRegistry()
    bindings.bind(RepositoryBinding("acme/core", "main", "core.json", CORE))
    bindings.bind(RepositoryBinding("acme/web", "main", "web.json", WEB))
    bindings.bind(RepositoryBinding("acme/themes", "main", "dark.json", DARK))
    events = EventBus()
    seen: list = []
    events.subscribe(None, seen.append)
    permissions = PermissionService(repo, bindings, events=events)
    manager = ContextManager(bindings, permissions, events, **kwargs)
    return manager, seen, repo


def _types(seen) -> list:
    return [e.type for e in seen]


def test_view_modes() -> None:
    assert view_mode_for(CORE) is ViewMode.CORE_ONLY
    assert view_mode_for(CORE, merged=True) is ViewMode.CORE_ONLY
    assert view_mode_for(WEB) is ViewMode.PLATFORM_ONLY
    assert view_mode_for(DARK) is ViewMode.THEME_ONLY
    assert view_mode_for(DARK, merged=True) is ViewMode.MERGED


@pytest.mark.asyncio
async def test_switch_to_platform_then_back_to_core() -> None:
    manager, seen, repo = _build()

    result = await manager.switch_to_platform("web")
    assert result.applied and result.write_access
    assert manager.active == WEB
    assert manager.view_mode is ViewMode.PLATFORM_ONLY
    assert manager.active_binding.repository_uri == "acme/web"
    assert repo.calls_to("has_write_access_to_repository") == [("acme/web",)]

    await manager.switch_to_platform(None)
    assert manager.active == CORE
    changed = [e for e in seen if e.type is EventType.CONTEXT_CHANGED]
    assert [(e.data["previous"], e.data["current"]) for e in changed] == [
        ("core", "platform:web"),
        ("platform:web", "core"),
    ]


@pytest.mark.asyncio
async def test_platform_and_theme_are_mutually_exclusive() -> None:
    manager, _, _ = _build()
    await manager.switch_to_platform("web")
    await manager.switch_to_theme("dark")
    assert manager.active == DARK
    manager.set_view_merged(True)
    assert manager.view_mode is ViewMode.MERGED


@pytest.mark.asyncio
async def test_unbound_target_is_view_only() -> None:
    manager, _, repo = _build()
    result = await manager.switch_to_theme("contrast")
    assert result.applied
    assert result.binding is None
    assert result.write_access is False
    assert repo.calls_to("has_write_access_to_repository") == []
    with pytest.raises(LayerPermissionError):
        manager.enter_edit_mode()


class TestUnsavedChanges:
    @pytest.mark.asyncio
    async def test_switch_is_cancelled_without_callback(self) -> None:
        manager, seen, _ = _build(has_unsaved_changes=lambda: True)
        result = await manager.switch_to_platform("web")
        assert result.cancelled and not result.applied
        assert manager.active == CORE
        assert _types(seen) == [EventType.CONTEXT_SWITCH_CANCELLED]

    @pytest.mark.asyncio
    async def test_declined_confirmation_cancels(self) -> None:
        asked = []

        def confirm(current, target):
            asked.append((current, target))
            return False

        manager, _, _ = _build(has_unsaved_changes=lambda: True, confirm_discard=confirm)
        result = await manager.switch_to_theme("dark")
        assert result.cancelled
        assert asked == [(CORE, DARK)]

    @pytest.mark.asyncio
    async def test_async_confirmation_allows_switch(self) -> None:
        async def confirm(current, target):
            await asyncio.sleep(0)
            return True

        manager, _, _ = _build(has_unsaved_changes=lambda: True, confirm_discard=confirm)
        result = await manager.switch_to_theme("dark")
        assert result.applied
        assert manager.active == DARK

    @pytest.mark.asyncio
    async def test_pending_session_edits_count_as_unsaved(self) -> None:
        manager, _, _ = _build()
        await manager.switch_to_platform("web")
        session = manager.enter_edit_mode()
        session.stage("color-blue-500", {"valuesByMode": []})

        result = await manager.switch_to_theme("dark")
        assert result.cancelled
        assert manager.session is session


@pytest.mark.asyncio
async def test_later_switch_supersedes_slow_one() -> None:
    repo = GatedRepository()
    repo.gates["acme/web"] = asyncio.Event()
    manager, seen, _ = _build(repo)

    slow = asyncio.create_task(manager.switch_to_platform("web"))
    await asyncio.sleep(0)
    fast = await manager.switch_to_theme("dark")
    repo.gates["acme/web"].set()
    stale = await slow

    assert fast.applied
    assert stale.superseded and not stale.applied
    assert manager.active == DARK
    assert EventType.CONTEXT_SWITCH_SUPERSEDED in _types(seen)


class TestEditMode:
    @pytest.mark.asyncio
    async def test_requires_write_access(self) -> None:
        repo = InMemoryRepository()
        repo.write_access["acme/web"] = False
        manager, _, _ = _build(repo)
        await manager.switch_to_platform("web")
        with pytest.raises(LayerPermissionError):
            manager.enter_edit_mode()
        assert manager.edit_mode is False

    @pytest.mark.asyncio
    async def test_platform_edit_opens_session_and_switch_closes_it(self) -> None:
        manager, seen, _ = _build()
        await manager.switch_to_platform("web")
        session = manager.enter_edit_mode()

        assert manager.edit_mode is True
        assert session is manager.require_session(session.session_id)
        assert session.layer == WEB

        await manager.switch_to_theme("dark")
        assert manager.edit_mode is False
        assert manager.session is None
        assert session.closed

    @pytest.mark.asyncio
    async def test_core_edit_mode_has_no_session(self) -> None:
        manager, _, _ = _build()
        await manager.switch_to(CORE)
        assert manager.enter_edit_mode() is None
        assert manager.edit_mode is True
        manager.exit_edit_mode()
        assert manager.edit_mode is False

    @pytest.mark.asyncio
    async def test_session_ids_are_numbered_per_manager(self) -> None:
        first, _, _ = _build()
        second, _, _ = _build()
        for manager in (first, second):
            await manager.switch_to_platform("web")

        assert first.enter_edit_mode().session_id == "edit-1"
        assert first.enter_edit_mode().session_id == "edit-2"
        assert second.enter_edit_mode().session_id == "edit-1"

    @pytest.mark.asyncio
    async def test_stale_session_id_is_rejected(self) -> None:
        from tokenlayers.core.exceptions import SessionError

        manager, _, _ = _build()
        await manager.switch_to_platform("web")
        manager.enter_edit_mode()
        with pytest.raises(SessionError):
            manager.require_session("edit-does-not-exist")


@pytest.mark.asyncio
async def test_reset_returns_to_core() -> None:
    manager, _, _ = _build()
    await manager.switch_to_platform("web")
    manager.enter_edit_mode()
    manager.reset()
    assert manager.active == CORE
    assert manager.view_mode is ViewMode.CORE_ONLY
    assert manager.session is None
