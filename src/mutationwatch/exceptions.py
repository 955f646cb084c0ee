"""Exceptions raised by mutationwatch."""

from typing import Any, Callable, List, Tuple


class CyclicStructureError(ValueError):
    """Raised when an assignment would make the watched graph self-referential."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Assigning to '{path}' would create a cycle in the watched graph")


class ListenerError(RuntimeError):
    """Raised after a dispatch in which one or more listeners failed.

    Only raised when WatcherConfig.raise_listener_errors is set; every listener
    has already been called by the time this is raised.
    """

    def __init__(self, path: str, failures: List[Tuple[Callable[..., Any], BaseException]]):
        self.path = path
        self.failures = failures
        names = ", ".join(getattr(cb, '__name__', repr(cb)) for cb, _ in failures)
        super().__init__(f"{len(failures)} listener(s) failed for '{path}': {names}")
