"""Shared test fixtures."""

import pytest

from kvdefaults import Defaults, ObservableDefaults, reset_shared
from kvdefaults.kv.disk import Disk
from kvdefaults.kv.memory import Memory


@pytest.fixture
def backend():
    return Memory()


@pytest.fixture
def defaults(backend):
    return Defaults(backend)


@pytest.fixture
def observable(backend):
    return ObservableDefaults(backend)


@pytest.fixture
def disk_backend(tmp_path):
    store = Disk(str(tmp_path / "defaults"))
    yield store
    store.close()


@pytest.fixture
def shared_state(monkeypatch):
    """Isolate the process-wide shared instances for one test."""
    monkeypatch.delenv("KVDEFAULTS_PATH", raising=False)
    reset_shared()
    yield
    reset_shared()
