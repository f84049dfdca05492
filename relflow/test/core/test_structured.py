"""Tests for relflow.core.structured module."""

from relflow.core.structured import as_obj_list, as_str_dict, get_str, get_table


def test_as_str_dict_rejects_non_string_keys() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([1]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "x"]) == [1, "x"]
    assert as_obj_list({"a": 1}) is None


def test_get_str_strips_and_drops_empty() -> None:
    table: dict[str, object] = {"a": "  main ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "main"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_get_table() -> None:
    table: dict[str, object] = {"label": {"name": "release"}, "x": "y"}
    assert get_table(table, "label") == {"name": "release"}
    assert get_table(table, "x") is None
