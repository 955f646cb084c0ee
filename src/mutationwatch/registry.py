"""
WatchRegistry: path-keyed listener storage and change dispatch.

Each Watcher owns one registry. Listeners are keyed by exact dotted path;
there is no prefix or wildcard matching, so a listener on 'user' is not
notified when 'user.name' changes. The optional global callback is invoked
last for every change.
"""
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from mutationwatch.change_event import ChangeEvent
from mutationwatch.exceptions import ListenerError

logger = logging.getLogger(__name__)

PathListener = Callable[[Any, Any], None]
GlobalCallback = Callable[[str, Any, Any], None]


def _listener_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, '__qualname__', None) or repr(callback)


def _same_callback(registered: Callable[..., Any], callback: Callable[..., Any]) -> bool:
    if registered is callback:
        return True
    return (
        inspect.ismethod(registered)
        and inspect.ismethod(callback)
        and registered.__self__ is callback.__self__
        and registered.__func__ is callback.__func__
    )


class WatchRegistry:
    """Registry of path listeners plus one optional global callback.

    Registration is permissive: the same callback registered twice on a path
    is invoked twice per change. Listener failures are isolated, so a raising
    listener never prevents the remaining listeners or the global callback
    from running.
    """

    def __init__(self, global_callback: Optional[GlobalCallback] = None, raise_errors: bool = False):
        """Initialize registry.

        Args:
            global_callback: Called as (path, new, old) after path listeners
            raise_errors: Raise ListenerError after dispatch if any listener failed
        """
        self._listeners: Dict[str, List[PathListener]] = {}
        self.global_callback = global_callback
        self.raise_errors = raise_errors

    def watch(self, path: str, callback: PathListener) -> None:
        """Append callback to the listener list for path."""
        if not callable(callback):
            raise TypeError(f"Listener for '{path}' is not callable: {callback!r}")
        self._listeners.setdefault(path, []).append(callback)
        logger.debug(f"Watching '{path}' with {_listener_name(callback)}")

    def unwatch(self, path: str, callback: PathListener) -> bool:
        """Remove the first registration of callback from path.

        Callbacks match by identity. Bound methods are created anew on every
        attribute lookup, so a bound method also matches another bound method
        of the same function on the same object.

        Returns:
            True if a registration was removed, False otherwise
        """
        callbacks = self._listeners.get(path)
        if not callbacks:
            return False
        for i, registered in enumerate(callbacks):
            if _same_callback(registered, callback):
                del callbacks[i]
                if not callbacks:
                    del self._listeners[path]
                logger.debug(f"Unwatched '{path}' from {_listener_name(callback)}")
                return True
        return False

    def listeners(self, path: str) -> List[PathListener]:
        """Snapshot of the listeners registered for path, in call order."""
        return list(self._listeners.get(path, ()))

    def watched_paths(self) -> List[str]:
        return list(self._listeners)

    def clear(self, path: Optional[str] = None) -> None:
        """Drop all listeners, or only those registered for path."""
        if path is None:
            self._listeners.clear()
        else:
            self._listeners.pop(path, None)

    def dispatch(self, path: str, new_value: Any, old_value: Any) -> int:
        """Notify listeners of path, then the global callback.

        Listeners are called synchronously in registration order. The list is
        copied first so listeners may watch/unwatch during dispatch.

        Returns:
            Number of callbacks that completed without raising
        """
        event = ChangeEvent(path, new_value, old_value)
        logger.debug(f"Change {event.path}: {event.old_value!r} -> {event.new_value!r}")

        failures: List[Tuple[Callable[..., Any], BaseException]] = []
        delivered = 0

        for callback in list(self._listeners.get(path, ())):
            if self._invoke(callback, event.as_listener_args(), event, failures):
                delivered += 1

        if self.global_callback is not None:
            if self._invoke(self.global_callback, event.as_global_args(), event, failures):
                delivered += 1

        if failures and self.raise_errors:
            raise ListenerError(path, failures)
        return delivered

    @staticmethod
    def _invoke(callback: Callable[..., Any], args: Tuple[Any, ...], event: ChangeEvent,
                failures: List[Tuple[Callable[..., Any], BaseException]]) -> bool:
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Error in change listener {_listener_name(callback)} for '{event.path}': {e}")
            failures.append((callback, e))
            return False
        return True
