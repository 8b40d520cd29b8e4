from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from tokenlayers.core.utils.io import (
    append_jsonl,
    dumps_document,
    ensure_directory,
    iter_yaml_files,
    read_json,
    read_text,
    read_yaml,
    write_json_atomic,
    write_text,
)


def test_dumps_document_preserves_key_order() -> None:
    text = dumps_document({"z": 1, "a": "é"})
    assert text.endswith("\n")
    assert text.index('"z"') < text.index('"a"')
    assert "é" in text


def test_json_round_trip_and_default(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "data.json"
    assert read_json(path, default={}) == {}
    with pytest.raises(FileNotFoundError):
        read_json(path)

    write_json_atomic(path, {"b": 1, "a": 2})
    assert read_json(path) == {"a": 2, "b": 1}
    assert list(path.parent.iterdir()) == [path]


def test_append_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "audit.jsonl"
    append_jsonl(path, {"event": "a"})
    append_jsonl(path, {"event": "b"})
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["a", "b"]


def test_text_helpers(tmp_path: Path) -> None:
    path = tmp_path / "a" / "b.txt"
    write_text(path, "hello")
    assert read_text(path) == "hello"
    with pytest.raises(FileNotFoundError):
        read_text(tmp_path / "missing.txt")


def test_ensure_directory(tmp_path: Path) -> None:
    target = ensure_directory(tmp_path / "x" / "y")
    assert target.is_dir()
    with pytest.raises(FileNotFoundError):
        ensure_directory(tmp_path / "z", create=False)
    (tmp_path / "file").write_text("", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        ensure_directory(tmp_path / "file")


def test_yaml_helpers(tmp_path: Path) -> None:
    (tmp_path / "b.yml").write_text("x: 1\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("x: 2\n", encoding="utf-8")
    (tmp_path / "a.yaml").write_text("bad: [\n", encoding="utf-8")

    files = iter_yaml_files(tmp_path)
    assert [p.name for p in files] == ["a.yaml", "b.yaml"]
    assert read_yaml(tmp_path / "b.yaml") == {"x": 2}
    assert read_yaml(tmp_path / "a.yaml", default={}) == {}
    with pytest.raises(yaml.YAMLError):
        read_yaml(tmp_path / "a.yaml", raise_on_error=True)
    assert iter_yaml_files(tmp_path / "missing") == []
