"""Tests for structural equality."""
import pytest

from mutationwatch import deep_equal


@pytest.mark.parametrize("a, b", [
    (1, 1),
    (1, 1.0),
    ("a", "a"),
    (None, None),
    ({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}),
    ([], []),
    ((1, 2), (1, 2)),
])
def test_equal(a, b):
    assert deep_equal(a, b)


@pytest.mark.parametrize("a, b", [
    (1, 2),
    (1, True),
    (0, None),
    ("1", 1),
    ({"a": 1}, {"a": 1, "b": 2}),
    ({"a": 1}, {"b": 1}),
    ([1, 2], [2, 1]),
    ([1], (1,)),
    ({}, []),
])
def test_not_equal(a, b):
    assert not deep_equal(a, b)


def test_comparison_errors_fall_back_to_identity():
    class Ambiguous:
        def __eq__(self, other):
            raise ValueError("no truth value")

    x = Ambiguous()
    assert deep_equal(x, x)
    assert not deep_equal(x, Ambiguous())
