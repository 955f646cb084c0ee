"""
Watcher: path-addressed mutation observation over a nested dict/list graph.

The Watcher owns the watched root (``watcher.obj``) and a WatchRegistry.
Every assignment anywhere in the graph reaches ``Watcher.on_write``, which:

1. reads the previous value at the written key,
2. computes the dotted path from the container's prefix and the key,
3. wraps container values so the new sub-graph is watched too,
4. stores the result in the container's backing storage,
5. stops if the new value is structurally equal to the old one,
6. re-assigns every entry of a newly attached container through the same
   path, so each contained leaf is reported individually,
7. dispatches (path, new, old) to the registry.

Usage:
    w = Watcher({'count': 0})
    w.watch('count', lambda new, old: print(old, '->', new))
    w.obj.count = 1      # prints "0 -> 1"
    w.obj.count = 1      # equal value, nothing printed
"""
import logging
from typing import Any, List, Optional, Set

from mutationwatch.collection_containers import (
    MISSING,
    WatchedList,
    WatchedRecord,
    backing_of,
    children_of,
    is_container,
    is_watched,
    unwrap,
    wrap,
)
from mutationwatch.config import WatcherConfig, get_default_config
from mutationwatch.equality import deep_equal
from mutationwatch.exceptions import CyclicStructureError
from mutationwatch.registry import GlobalCallback, PathListener, WatchRegistry

logger = logging.getLogger(__name__)


def _public(value: Any) -> Any:
    """Listeners see None where there was no previous value."""
    return None if value is MISSING else value


def _child_of(container: Any, key: Any) -> Any:
    """Value at key in a replaced container, or MISSING."""
    if not is_container(container):
        return MISSING
    data = backing_of(container)
    if isinstance(data, list):
        if isinstance(key, int) and 0 <= key < len(data):
            return data[key]
        return MISSING
    return data.get(key, MISSING)


class Watcher:
    """Coordinator of a watched graph.

    Args:
        obj: Initial root (dict-like or list). A new empty dict when None.
        callback: Optional global callback, called as (path, new, old) after
            the path listeners of every change.
        config: Behavior switches. Defaults to get_default_config() at
            construction time.
    """

    def __init__(self, obj: Any = None, callback: Optional[GlobalCallback] = None,
                 config: Optional[WatcherConfig] = None):
        self.config = config if config is not None else get_default_config()
        self._registry = WatchRegistry(callback, raise_errors=self.config.raise_listener_errors)

        if obj is None:
            obj = {}
        if not is_container(obj):
            raise TypeError(f"Watcher root must be a mapping or list, got {type(obj).__name__}")

        self._verify_acyclic(obj, None, '<root>')
        self.obj = wrap(obj, '', self)
        logger.debug(f"Watcher created over {type(backing_of(self.obj)).__name__} with {len(self.obj)} entries")

    # === Subscription API ===

    @property
    def callback(self) -> Optional[GlobalCallback]:
        return self._registry.global_callback

    @callback.setter
    def callback(self, callback: Optional[GlobalCallback]) -> None:
        self._registry.global_callback = callback

    def set_callback(self, callback: Optional[GlobalCallback]) -> 'Watcher':
        """Replace the global callback (None removes it)."""
        self.callback = callback
        return self

    def watch(self, path: str, callback: PathListener) -> 'Watcher':
        """Call callback(new, old) whenever the value at exactly path changes.

        Returns:
            self, so registrations can be chained
        """
        self._registry.watch(path, callback)
        return self

    def unwatch(self, path: str, callback: PathListener) -> bool:
        """Remove one registration of callback for path.

        Returns:
            True if a registration was removed
        """
        return self._registry.unwatch(path, callback)

    unWatch = unwatch

    def listeners(self, path: str) -> List[PathListener]:
        return self._registry.listeners(path)

    def clear_watches(self, path: Optional[str] = None) -> 'Watcher':
        """Remove every listener, or only those registered for path."""
        self._registry.clear(path)
        return self

    # === Write path ===

    def on_write(self, target: Any, name: Any, new_value: Any) -> Any:
        """Handle an assignment target[name] = new_value.

        Called by the watched containers for every write. Returns the value
        actually stored (the wrapper for container values).
        """
        return self._assign(target, name, new_value, target._peek(name), verified=False)

    def _assign(self, target: Any, name: Any, new_value: Any, old_value: Any, verified: bool) -> Any:
        full_path = f"{target._prefix}{name}"

        if is_container(new_value):
            if not verified:
                self._verify_acyclic(new_value, target, full_path)
            final_value = wrap(new_value, f"{full_path}{self.config.path_separator}", self)
        else:
            final_value = new_value

        target._store(name, final_value)

        if deep_equal(new_value, old_value):
            return final_value

        if is_watched(final_value) and self.config.report_attached_leaves:
            for key in final_value._keys():
                self._assign(final_value, key, final_value._peek(key), _child_of(old_value, key), verified=True)

        self._registry.dispatch(full_path, final_value, _public(old_value))
        return final_value

    def _verify_acyclic(self, value: Any, target: Any, path: str) -> None:
        """Raise CyclicStructureError if value's graph has a cycle or reaches target.

        The existing graph is acyclic, so storing value under target creates a
        cycle exactly when value can reach target.
        """
        target_data = backing_of(target) if target is not None else None
        ancestors: Set[int] = set()

        def visit(node: Any) -> None:
            data = backing_of(node)
            if data is target_data or id(data) in ancestors:
                raise CyclicStructureError(path)
            ancestors.add(id(data))
            for child in children_of(data):
                if is_container(child):
                    visit(child)
            ancestors.discard(id(data))

        visit(value)

    # === Path API ===

    def _split(self, path: str) -> List[str]:
        if not path:
            raise KeyError("Empty path")
        return path.split(self.config.path_separator)

    @staticmethod
    def _step(node: Any, segment: str) -> Any:
        if isinstance(node, WatchedRecord):
            return node[segment]
        if isinstance(node, WatchedList):
            try:
                return node[int(segment)]
            except (ValueError, IndexError):
                raise KeyError(segment) from None
        raise KeyError(segment)

    def get(self, path: str, default: Any = None) -> Any:
        """Read the value at a dotted path, or default if any segment is missing."""
        node = self.obj
        try:
            for segment in self._split(path):
                node = self._step(node, segment)
        except KeyError:
            return default
        return node

    def set(self, path: str, value: Any) -> Any:
        """Assign value at a dotted path through the normal write path.

        Intermediate containers are not created.

        Raises:
            KeyError: if the parent of path does not exist
            TypeError: if the parent is not a container

        Returns:
            The stored value
        """
        *parents, last = self._split(path)
        node = self.obj
        for segment in parents:
            node = self._step(node, segment)

        if isinstance(node, WatchedList):
            try:
                index = node._normalize(int(last))
            except (ValueError, IndexError):
                raise KeyError(path) from None
            return self.on_write(node, index, value)
        if isinstance(node, WatchedRecord):
            return self.on_write(node, last, value)
        raise TypeError(f"Cannot assign into {type(node).__name__} at '{path}'")

    def snapshot(self) -> Any:
        """Plain deep copy of the root, detached from the watcher."""
        return unwrap(self.obj)

    def __repr__(self) -> str:
        return f"Watcher(obj={self.obj!r}, watched_paths={self._registry.watched_paths()!r})"
