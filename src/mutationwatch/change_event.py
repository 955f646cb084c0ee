"""
ChangeEvent: the transient record of a single detected change.

Constructed by the dispatcher for each real change and discarded once every
listener has been called. Never stored by the library.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChangeEvent:
    """Immutable description of one write that changed a value."""
    path: str
    new_value: Any
    old_value: Any

    def as_listener_args(self):
        """Arguments for a per-path listener: (new, old)."""
        return (self.new_value, self.old_value)

    def as_global_args(self):
        """Arguments for the global callback: (path, new, old)."""
        return (self.path, self.new_value, self.old_value)
