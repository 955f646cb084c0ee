"""Pytest configuration and shared fixtures."""
import pytest

from mutationwatch import Watcher
import mutationwatch.config as config_module


class Recorder:
    """Collects callback invocations in call order."""

    def __init__(self):
        self.calls = []

    def listener(self, new, old):
        self.calls.append((new, old))

    def global_callback(self, path, new, old):
        self.calls.append((path, new, old))

    @property
    def paths(self):
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def restore_default_config():
    """Restore the module-level default config after each test."""
    original = config_module._default_config
    yield
    config_module._default_config = original


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def watcher(recorder):
    """Empty watcher whose global callback records every change."""
    return Watcher({}, recorder.global_callback)
