"""
Structural equality used to suppress no-op writes.

Containers compare by value (mappings by key set and per-key values, lists by
length and per-index values), so a watched wrapper equals the plain dict or
list it was built from. Scalars compare with ==, except that values of
different types are never equal (True does not equal 1 here). Comparison
never raises: objects whose == fails or returns something without a truth
value fall back to identity.
"""
from collections.abc import Mapping, MutableSequence
from numbers import Number
from typing import Any


def _is_list_like(value: Any) -> bool:
    return isinstance(value, (list, MutableSequence))


def _comparable_types(a: Any, b: Any) -> bool:
    if type(a) is type(b):
        return True
    # 1 == 1.0 is a non-change, but bool is kept distinct from int
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    return isinstance(a, Number) and isinstance(b, Number)


def deep_equal(a: Any, b: Any) -> bool:
    """Return True when a and b are structurally equal."""
    if a is b:
        return True

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key in a:
            if key not in b or not deep_equal(a[key], b[key]):
                return False
        return True

    if _is_list_like(a) and _is_list_like(b):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if not _comparable_types(a, b):
        return False

    try:
        return bool(a == b)
    except Exception:
        return False
