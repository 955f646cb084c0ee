"""
Watcher configuration.

Provides the WatcherConfig dataclass and module-level storage for the default
configuration used by every Watcher constructed without an explicit config.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class WatcherConfig:
    """Behavior switches for a Watcher.

    Attributes:
        attribute_access: Expose record keys as attributes (w.obj.user.name).
        report_attached_leaves: When a container is attached, re-assign each of
            its entries through the write path so every leaf is reported.
        raise_listener_errors: After a dispatch in which listeners failed, raise
            ListenerError. Other listeners are always notified first.
        path_separator: Joins path segments.
    """
    attribute_access: bool = True
    report_attached_leaves: bool = True
    raise_listener_errors: bool = False
    path_separator: str = "."

    def with_overrides(self, **overrides) -> 'WatcherConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)


_default_config: Optional[WatcherConfig] = None


def set_default_config(config: WatcherConfig) -> None:
    """Set the config used by Watchers created without one.

    Args:
        config: The new default configuration
    """
    global _default_config
    if not isinstance(config, WatcherConfig):
        raise TypeError(f"Expected WatcherConfig, got {type(config).__name__}")
    _default_config = config


def get_default_config() -> WatcherConfig:
    """Get the current default config, creating it on first access."""
    global _default_config
    if _default_config is None:
        _default_config = WatcherConfig()
    return _default_config


def reset_default_config() -> None:
    global _default_config
    _default_config = None
