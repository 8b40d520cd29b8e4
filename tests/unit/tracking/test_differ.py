from __future__ import annotations

import copy

import pytest

from tokenlayers.core.exceptions import DivergenceError, ValidationError
from tokenlayers.core.layers.refs import CORE, PlatformLayer, ThemeLayer
from tokenlayers.core.tracking import ROOT_SECTION, ChangeTracker, sections_for

WEB = PlatformLayer("web")


def test_sections_per_layer_kind() -> None:
    assert "tokens" in sections_for(CORE)
    assert "resolvedValueTypes" not in sections_for(CORE)
    assert sections_for(WEB) == ("tokenOverrides", "omittedModes", "omittedDimensions")
    assert sections_for(ThemeLayer("dark")) == ("tokenOverrides",)
    with pytest.raises(TypeError):
        sections_for("core")  # type: ignore[arg-type]


def test_diff_count_counts_sections_not_items(core_doc) -> None:
    tracker = ChangeTracker()
    tracker.set_baseline(CORE, core_doc)
    assert tracker.diff_count(CORE, core_doc) == 0

    edited = copy.deepcopy(core_doc)
    edited["tokens"][0]["displayName"] = "Blue"
    edited["tokens"][1]["displayName"] = "Body text"
    assert tracker.diff_count(CORE, edited) == 1

    edited["themes"].append({"id": "hc", "displayName": "High contrast"})
    assert tracker.changed_sections(CORE, edited) == ["tokens", "themes"]


def test_metadata_edits_are_unsaved_but_not_counted(web_doc) -> None:
    tracker = ChangeTracker()
    tracker.set_baseline(WEB, web_doc)
    edited = dict(web_doc, version="2.0.0")

    assert tracker.diff_count(WEB, edited) == 0
    assert tracker.unsaved_sections(WEB, edited) == [ROOT_SECTION]
    assert tracker.has_changes(WEB, edited) is True


def test_document_without_baseline_is_unsaved(core_doc) -> None:
    tracker = ChangeTracker()
    assert tracker.has_changes(CORE, core_doc) is True
    assert tracker.diff_count(CORE, core_doc) == 6
    assert tracker.has_changes(CORE, None) is False


def test_baseline_is_a_copy(web_doc) -> None:
    tracker = ChangeTracker()
    tracker.set_baseline(WEB, web_doc)
    web_doc["omittedModes"].append("compact")
    assert tracker.baseline(WEB)["omittedModes"] == []
    assert tracker.diff_count(WEB, web_doc) == 1


def test_divergence_compares_whole_document(web_doc) -> None:
    tracker = ChangeTracker()
    tracker.set_baseline(WEB, web_doc)
    assert tracker.check_divergence(WEB, copy.deepcopy(web_doc)) is False

    remote = dict(web_doc, version="1.0.1")
    assert tracker.check_divergence(WEB, remote) is True
    assert tracker.is_diverged(WEB)

    tracker.set_baseline(WEB, remote)
    assert not tracker.is_diverged(WEB)


def test_divergence_without_baseline_is_false(web_doc) -> None:
    assert ChangeTracker().check_divergence(WEB, web_doc) is False


class TestExportGate:
    def test_unsaved_edits_block_export(self, web_doc) -> None:
        tracker = ChangeTracker()
        tracker.set_baseline(WEB, web_doc)
        web_doc["omittedModes"] = ["compact"]

        with pytest.raises(DivergenceError) as exc_info:
            tracker.assert_exportable(WEB, web_doc)
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.context["changed_sections"] == ["omittedModes"]

    def test_remote_divergence_blocks_export(self, web_doc) -> None:
        tracker = ChangeTracker()
        tracker.set_baseline(WEB, web_doc)
        tracker.check_divergence(WEB, {"platformId": "web"})
        with pytest.raises(DivergenceError) as exc_info:
            tracker.assert_exportable(WEB, web_doc)
        assert exc_info.value.context["diverged"] is True

    def test_metadata_edit_blocks_export(self, core_doc) -> None:
        tracker = ChangeTracker()
        tracker.set_baseline(CORE, core_doc)
        edited = dict(core_doc, version="1.0.1")

        with pytest.raises(DivergenceError) as exc_info:
            tracker.assert_exportable(CORE, edited)
        assert exc_info.value.context["changed_sections"] == [ROOT_SECTION]
        assert exc_info.value.context["diff_count"] == 0

    def test_clean_layer_exports(self, web_doc) -> None:
        tracker = ChangeTracker()
        tracker.set_baseline(WEB, web_doc)
        tracker.assert_exportable(WEB, web_doc)


def test_forget_and_clear(core_doc, web_doc) -> None:
    tracker = ChangeTracker()
    tracker.set_baseline(CORE, core_doc)
    tracker.set_baseline(WEB, web_doc)
    tracker.forget(WEB)
    assert tracker.layers() == [CORE]
    tracker.clear()
    assert not tracker.has_baseline(CORE)
