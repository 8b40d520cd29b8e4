from __future__ import annotations

import pytest

from helpers.harness import CORE_REPO, WEB, build_app, seeded_repository
from helpers.samples import core_document, dump, value
from tokenlayers.core.exceptions import DivergenceError, NotFoundError, TokenLayersError
from tokenlayers.core.layers.refs import CORE, ThemeLayer
from tokenlayers.core.orchestrator import RefreshReason
from tokenlayers.core.utils.io import dumps_document


def _seed_develop(repo) -> None:
    develop = core_document()
    develop["version"] = "2.0.0"
    repo.seed_file(CORE_REPO, "tokens/core.json", dump(develop), branch="develop")


@pytest.mark.asyncio
async def test_branch_switch_reloads_and_rechecks_permissions() -> None:
    repo = seeded_repository()
    _seed_develop(repo)
    app = build_app(repo)
    await app.orchestrator.load(CORE)

    document = await app.orchestrator.switch_branch(CORE, "develop")

    assert document["version"] == "2.0.0"
    assert app.bindings.get(CORE).branch == "develop"
    assert repo.calls_to("has_write_access_to_repository") == [(CORE_REPO,)]
    assert app.permissions.get_current_edit_permissions(CORE) is True


@pytest.mark.asyncio
async def test_manual_refresh_keeps_branch_and_permission_cache() -> None:
    repo = seeded_repository()
    _seed_develop(repo)
    app = build_app(repo)
    await app.orchestrator.switch_branch(CORE, "develop")

    await app.orchestrator.update_document(CORE, lambda doc: doc.update(version="9.9.9"))
    document = await app.orchestrator.refresh(CORE)

    assert document["version"] == "2.0.0"
    assert app.orchestrator.diff_count(CORE) == 0
    assert len(repo.calls_to("has_write_access_to_repository")) == 1


@pytest.mark.asyncio
async def test_exit_edit_refresh_restores_bound_branch_and_leaves_edit_mode() -> None:
    repo = seeded_repository()
    _seed_develop(repo)
    app = build_app(repo)
    await app.orchestrator.switch_branch(CORE, "develop")
    app.context.enter_edit_mode()
    assert app.context.edit_mode

    document = await app.orchestrator.refresh(reason=RefreshReason.EXIT_EDIT)

    assert document["version"] == "1.0.0"
    assert app.bindings.get(CORE).branch == "main"
    assert not app.context.edit_mode


@pytest.mark.asyncio
async def test_refresh_defaults_to_active_layer() -> None:
    app = build_app()
    await app.orchestrator.load_all()
    await app.context.switch_to_platform("web")

    await app.orchestrator.update_document(WEB, lambda doc: doc.update(omittedModes=["night"]))
    await app.orchestrator.refresh()

    assert app.stores.get(WEB)["omittedModes"] == []


@pytest.mark.asyncio
async def test_switch_branch_requires_binding() -> None:
    app = build_app()
    with pytest.raises(NotFoundError):
        await app.orchestrator.switch_branch(ThemeLayer("sepia"), "develop")


@pytest.mark.asyncio
async def test_export_is_refused_while_unsaved() -> None:
    app = build_app()
    await app.orchestrator.load(CORE)
    assert await app.orchestrator.export(CORE) == dumps_document(app.stores.core)

    def _recolor(doc):
        doc["tokens"][0]["valuesByMode"] = [value("#000000")]

    await app.orchestrator.update_document(CORE, _recolor)
    with pytest.raises(DivergenceError) as exc_info:
        await app.orchestrator.export(CORE)
    assert exc_info.value.context["diff_count"] == 1
    assert exc_info.value.context["changed_sections"] == ["tokens"]

    await app.orchestrator.save(CORE)
    assert "#000000" in await app.orchestrator.export(CORE)


@pytest.mark.asyncio
async def test_export_of_unloaded_layer() -> None:
    app = build_app()
    with pytest.raises(NotFoundError):
        await app.orchestrator.export(WEB)


@pytest.mark.asyncio
async def test_undo_redo_document_edits() -> None:
    app = build_app()
    await app.orchestrator.load(CORE)
    await app.orchestrator.update_document(CORE, lambda doc: doc.update(version="1.1.0"))
    await app.orchestrator.update_document(CORE, lambda doc: doc.update(version="1.2.0"))

    assert (await app.orchestrator.undo_document(CORE))["version"] == "1.1.0"
    assert (await app.orchestrator.undo_document(CORE))["version"] == "1.0.0"
    with pytest.raises(TokenLayersError, match="Nothing to undo"):
        await app.orchestrator.undo_document(CORE)
    assert (await app.orchestrator.redo_document(CORE))["version"] == "1.1.0"
    assert app.stores.core["version"] == "1.1.0"
    assert [(r.kind, r.layer) for r in app.orchestrator.records[-4:]] == [
        ("undo", "core"),
        ("undo", "core"),
        ("undo", "core"),
        ("redo", "core"),
    ]

    await app.orchestrator.refresh(CORE)
    with pytest.raises(TokenLayersError, match="Nothing to redo"):
        await app.orchestrator.redo_document(CORE)


@pytest.mark.asyncio
async def test_update_must_produce_an_object() -> None:
    app = build_app()
    await app.orchestrator.load(CORE)
    with pytest.raises(TokenLayersError):
        await app.orchestrator.update_document(CORE, lambda doc: ["not", "a", "document"])
    assert app.stores.core["systemId"] == "acme"
