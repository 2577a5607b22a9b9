"""Tests for JSON projection of query results."""

from __future__ import annotations

import json

import pytest

from ldpathjson.errors import SerializationError
from ldpathjson.projector import project


def test_compact_output():
    assert project({"id": ["http://localhost:8080/rest/abc"]}) == (
        '{"id":["http://localhost:8080/rest/abc"]}'
    )


def test_key_order_is_kept():
    output = project({"z": [1], "a": [2], "m": []})
    assert list(json.loads(output)) == ["z", "a", "m"]


def test_non_ascii_is_not_escaped():
    output = project({"title": ["物", "Ünïcödé"]})
    assert "物" in output
    assert "\\u" not in output


def test_mixed_value_types():
    output = project({"n": [1, 2.5], "b": [True], "s": ["x"]})
    assert json.loads(output) == {"n": [1, 2.5], "b": [True], "s": ["x"]}


def test_tuple_values_become_arrays():
    assert project({"v": ("a", "b")}) == '{"v":["a","b"]}'


def test_empty_result():
    assert project({}) == "{}"


@pytest.mark.parametrize("value", [float("nan"), object()])
def test_unserializable_values(value):
    with pytest.raises(SerializationError):
        project({"v": [value]})
