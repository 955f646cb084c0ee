"""
Path-addressed mutation observation for nested dicts and lists.

Wrap a graph once and every assignment in it, at any depth, is detected
without instrumenting individual fields. Listeners subscribe by dotted path
and are told the new and old value whenever a real change occurs.

Quick Start:
    >>> from mutationwatch import Watcher
    >>> changes = []
    >>> w = Watcher({}, lambda path, new, old: changes.append(path))
    >>> w.obj.user = {'name': 'Ann'}
    >>> w.obj.user.name = 'Bob'
    >>> changes
    ['user.name', 'user', 'user.name']

Architecture:
    - collection_containers: WatchedRecord/WatchedList interceptors and wrap()
    - watcher: Watcher, the write coordinator and public entry point
    - registry: WatchRegistry, path listeners and dispatch
    - equality: structural comparison used to skip no-op writes
    - change_event: ChangeEvent, the transient per-change record
    - config: WatcherConfig and the module-level default
    - exceptions: CyclicStructureError, ListenerError
"""

# Coordinator
from mutationwatch.watcher import Watcher

# Interceptors
from mutationwatch.collection_containers import (
    MISSING,
    WatchedRecord,
    WatchedList,
    wrap,
    unwrap,
    is_container,
    is_watched,
)

# Dispatch
from mutationwatch.registry import WatchRegistry
from mutationwatch.change_event import ChangeEvent

# Equality
from mutationwatch.equality import deep_equal

# Configuration
from mutationwatch.config import (
    WatcherConfig,
    set_default_config,
    get_default_config,
    reset_default_config,
)

# Errors
from mutationwatch.exceptions import CyclicStructureError, ListenerError

__all__ = [
    # Coordinator
    'Watcher',
    # Interceptors
    'MISSING',
    'WatchedRecord',
    'WatchedList',
    'wrap',
    'unwrap',
    'is_container',
    'is_watched',
    # Dispatch
    'WatchRegistry',
    'ChangeEvent',
    # Equality
    'deep_equal',
    # Configuration
    'WatcherConfig',
    'set_default_config',
    'get_default_config',
    'reset_default_config',
    # Errors
    'CyclicStructureError',
    'ListenerError',
]

__version__ = '1.0.0'
__description__ = 'Path-addressed mutation observation for nested dicts and lists'
