from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from tokenlayers.core.audit.logger import attach_audit_sink, audit_event
from tokenlayers.core.audit.stdlib_logging import (
    configure_stdlib_logging,
    reset_stdlib_logging_for_tests,
)
from tokenlayers.core.events import EventBus, EventType


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_stdlib_logging_for_tests()
    logging.getLogger("tokenlayers").setLevel(logging.NOTSET)


def test_audit_event_appends_json_lines(tmp_path: Path) -> None:
    path = tmp_path / "audit.jsonl"
    audit_event(path, "layer.saved", layer="core", file=Path("a/b.json"), modes={"light"})

    (entry,) = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert entry["event"] == "layer.saved"
    assert entry["file"] == "a/b.json"
    assert entry["modes"] == ["light"]
    assert isinstance(entry["pid"], int)


def test_unwritable_audit_path_only_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="tokenlayers"):
        audit_event(blocker / "audit.jsonl", "layer.loaded")
    assert "Could not write audit event" in caplog.text


def test_sink_can_be_detached(tmp_path: Path) -> None:
    path = tmp_path / "audit.jsonl"
    bus = EventBus()
    detach = attach_audit_sink(bus, path)

    bus.publish(EventType.LAYER_LOADED, layer="core")
    detach()
    bus.publish(EventType.LAYER_SAVED, layer="core")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["layer.loaded"]


def test_configure_logging_to_file_is_idempotent(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "tokenlayers.log"
    configure_stdlib_logging(level="info", log_path=log_path)
    configure_stdlib_logging(level="info", log_path=log_path)

    logger = logging.getLogger("tokenlayers.core.test")
    logger.info("hello")
    logger.debug("hidden")

    root = logging.getLogger("tokenlayers")
    assert len([h for h in root.handlers if isinstance(h, logging.FileHandler)]) == 1
    root.handlers[-1].flush()
    text = log_path.read_text(encoding="utf-8")
    assert text.count("hello") == 1
    assert "hidden" not in text
    assert "INFO tokenlayers.core.test: hello" in text
