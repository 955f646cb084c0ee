"""
Watched containers: the interceptors placed over every dict and list in a
watched graph.

A wrapper does not copy. The container it is built from stays the backing
storage, and every read goes straight to it. Every assignment is routed
through the owning Watcher, which wraps container values, stores the result
in the backing storage and dispatches the change.

Why two classes:
- WatchedRecord: string-keyed containers (any MutableMapping), keys double as attributes
- WatchedList: integer-indexed containers (list), index becomes the path segment

Deletion is applied to backing storage and is not reported.
"""
from collections.abc import Mapping, MutableMapping, MutableSequence
import logging
from typing import Any, Iterator, List, TYPE_CHECKING

if TYPE_CHECKING:
    from mutationwatch.watcher import Watcher

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a key that held no value before a write."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class WatchedRecord(MutableMapping):
    """Interceptor for a mapping node of the watched graph.

    Keys are also reachable as attributes when the owning Watcher has
    attribute access enabled: record.user.name = "Ann" is the same write as
    record["user"]["name"] = "Ann". A stored key takes precedence over a
    mapping method of the same name (record.items = [...] stores a key named
    'items'); the method stays reachable as WatchedRecord.items(record).
    """

    __slots__ = ('_data', '_prefix', '_coordinator')

    def __init__(self, data: MutableMapping, prefix: str, coordinator: 'Watcher'):
        """Initialize WatchedRecord.

        Args:
            data: Backing mapping (not copied)
            prefix: Path prefix for keys of this record ('' for the root)
            coordinator: The Watcher that owns the graph
        """
        object.__setattr__(self, '_data', data)
        object.__setattr__(self, '_prefix', prefix)
        object.__setattr__(self, '_coordinator', coordinator)

    # === Mapping API ===

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._coordinator.on_write(self, key, value)

    def __delitem__(self, key: Any) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        # Mapping.__eq__ goes through self.items(), which a stored key can shadow
        if not isinstance(other, Mapping):
            return NotImplemented
        data = self._data
        return len(data) == len(other) and all(k in other and data[k] == other[k] for k in data)

    __hash__ = None

    def clear(self) -> None:
        self._data.clear()

    # === Attribute access ===

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith('_'):
            data = object.__getattribute__(self, '_data')
            if name in data and object.__getattribute__(self, '_coordinator').config.attribute_access:
                return data[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        # Reached only when neither a stored key nor a class attribute matched
        raise AttributeError(f"No key '{name}' at '{self._prefix or '<root>'}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in WatchedRecord.__slots__:
            raise AttributeError(f"'{name}' is managed by the watcher and cannot be reassigned")
        if not self._coordinator.config.attribute_access:
            raise AttributeError(f"Attribute access is disabled; use record[{name!r}] = value")
        self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __dir__(self) -> List[str]:
        names = list(super().__dir__())
        if self._coordinator.config.attribute_access:
            names.extend(k for k in self._data if isinstance(k, str) and k.isidentifier())
        return names

    # === Coordinator hooks ===

    def _peek(self, key: Any) -> Any:
        return self._data.get(key, MISSING)

    def _store(self, key: Any, value: Any) -> None:
        self._data[key] = value

    def _keys(self) -> List[Any]:
        return list(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({unwrap(self)!r})"


class WatchedList(MutableSequence):
    """Interceptor for a list node of the watched graph.

    Index assignment, append, insert, extend and sort all go through the
    write path; the reported path uses the (non-negative) index as its last
    segment. Slice assignment is decomposed into per-index writes and must
    not change the list length. Inserts and deletions shift later items
    without reporting them, but containers that move are re-wrapped under
    their new index so later writes report the right path.
    """

    __slots__ = ('_data', '_prefix', '_coordinator')

    def __init__(self, data: list, prefix: str, coordinator: 'Watcher'):
        self._data = data
        self._prefix = prefix
        self._coordinator = coordinator

    def __getitem__(self, index):
        return self._data[index]

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            positions = range(*index.indices(len(self._data)))
            values = list(value)
            if len(values) != len(positions):
                raise TypeError(
                    f"Slice assignment cannot change the length of a watched list "
                    f"(got {len(values)} values for {len(positions)} slots)"
                )
            for position, item in zip(positions, values):
                self._coordinator.on_write(self, position, item)
            return
        self._coordinator.on_write(self, self._normalize(index), value)

    def __delitem__(self, index) -> None:
        if isinstance(index, slice):
            positions = range(*index.indices(len(self._data)))
            start = min(positions) if positions else len(self._data)
        else:
            start = self._normalize(index)
        del self._data[index]
        self._reindex(start)

    def __len__(self) -> int:
        return len(self._data)

    def insert(self, index: int, value: Any) -> None:
        size = len(self._data)
        if index < 0:
            index = max(size + index, 0)
        index = min(index, size)
        # Open the slot first so the write sees no previous value there
        self._data.insert(index, MISSING)
        try:
            self._coordinator.on_write(self, index, value)
        except BaseException:
            if self._data[index] is MISSING:
                del self._data[index]
                raise
            self._reindex(index + 1)
            raise
        self._reindex(index + 1)

    def clear(self) -> None:
        self._data.clear()

    def sort(self, *, key=None, reverse: bool = False) -> None:
        """Sort in place; every slot whose value changes is reported."""
        self[:] = sorted(self._data, key=key, reverse=reverse)

    def copy(self) -> list:
        """Plain, detached copy of the list and everything nested in it."""
        return unwrap(self)

    def __add__(self, other) -> list:
        if not isinstance(other, (list, WatchedList)):
            return NotImplemented
        return unwrap(self) + unwrap(other)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (list, WatchedList)):
            return len(self) == len(other) and all(a == b for a, b in zip(self, other))
        return NotImplemented

    __hash__ = None

    def _normalize(self, index: int) -> int:
        size = len(self._data)
        position = index + size if index < 0 else index
        if not 0 <= position < size:
            raise IndexError("list index out of range")
        return position

    def _reindex(self, start: int) -> None:
        """Re-wrap containers from start onward under their current index, without events."""
        separator = self._coordinator.config.path_separator
        for position in range(start, len(self._data)):
            child = self._data[position]
            if is_container(child):
                self._data[position] = wrap(child, f"{self._prefix}{position}{separator}", self._coordinator)

    # === Coordinator hooks ===

    def _peek(self, index: int) -> Any:
        return self._data[index]

    def _store(self, index: int, value: Any) -> None:
        self._data[index] = value

    def _keys(self) -> List[int]:
        return list(range(len(self._data)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({unwrap(self)!r})"


WATCHED_TYPES = (WatchedRecord, WatchedList)


def is_container(value: Any) -> bool:
    """True for values that get wrapped: mutable mappings and lists."""
    return isinstance(value, (MutableMapping, list, WatchedList))


def is_watched(value: Any) -> bool:
    return isinstance(value, WATCHED_TYPES)


def backing_of(value: Any) -> Any:
    """Return the backing storage of a wrapper, or value itself."""
    return value._data if isinstance(value, WATCHED_TYPES) else value


def children_of(value: Any) -> List[Any]:
    """Direct child values of a container (wrapped or plain)."""
    data = backing_of(value)
    if isinstance(data, list):
        return list(data)
    return list(data.values())


def wrap(container: Any, prefix: str, coordinator: 'Watcher') -> Any:
    """Wrap container, and every container nested in it, for coordinator.

    Nested containers are wrapped in place in the backing storage without
    emitting events. Wrapping a wrapper that already belongs to coordinator
    under the same prefix returns it unchanged; under another prefix its
    backing storage is wrapped afresh, so wrappers never stack.

    Args:
        container: A dict-like or list value, or an existing wrapper
        prefix: Path prefix for the keys of container ('' for the root)
        coordinator: The owning Watcher

    Returns:
        WatchedRecord or WatchedList over container's backing storage
    """
    if isinstance(container, WATCHED_TYPES):
        if container._coordinator is coordinator and container._prefix == prefix:
            return container
        logger.debug(f"Re-wrapping container at '{container._prefix}' as '{prefix}'")
        container = container._data

    if isinstance(container, list):
        wrapped = WatchedList(container, prefix, coordinator)
    elif isinstance(container, MutableMapping):
        wrapped = WatchedRecord(container, prefix, coordinator)
    else:
        raise TypeError(f"Cannot watch {type(container).__name__}; expected a mapping or list")

    separator = coordinator.config.path_separator
    for key in wrapped._keys():
        child = container[key]
        if is_container(child):
            container[key] = wrap(child, f"{prefix}{key}{separator}", coordinator)
    return wrapped


def unwrap(value: Any) -> Any:
    """Return a plain deep copy of value with every wrapper replaced by dict/list."""
    data = backing_of(value)
    if isinstance(data, list):
        return [unwrap(item) for item in data]
    if isinstance(data, MutableMapping):
        return {key: unwrap(item) for key, item in data.items()}
    return value
