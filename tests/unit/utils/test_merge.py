from __future__ import annotations

from tokenlayers.core.utils.merge import deep_merge, merge_arrays


def test_deep_merge_nested_without_mutation() -> None:
    base = {"a": 1, "b": {"c": 2, "d": [1]}}
    override = {"b": {"e": 3}}

    merged = deep_merge(base, override)

    assert merged == {"a": 1, "b": {"c": 2, "d": [1], "e": 3}}
    merged["b"]["d"].append(2)
    assert base["b"]["d"] == [1]


def test_scalar_override_replaces() -> None:
    assert deep_merge({"a": {"b": 1}}, {"a": 5}) == {"a": 5}


def test_array_semantics() -> None:
    assert merge_arrays([1, 2], [3]) == [3]
    assert merge_arrays([1, 2], ["+", 3]) == [1, 2, 3]
    assert merge_arrays([1, 2], ["=", 3]) == [3]
    assert merge_arrays([1, 2], []) == [1, 2]


def test_deep_merge_with_arrays() -> None:
    merged = deep_merge({"xs": [1]}, {"xs": ["+", 2]})
    assert merged == {"xs": [1, 2]}
