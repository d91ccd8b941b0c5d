"""Tests for the create_defaults() factory and shared instances."""

import pytest

from kvdefaults import (
    Defaults,
    Key,
    ObservableDefaults,
    QueueDispatcher,
    configure,
    create_defaults,
    reset_shared,
    shared,
    shared_observable,
)
from kvdefaults.kv.disk import Disk
from kvdefaults.kv.memory import Memory


class ToggleTestKey(Key[bool]):
    default = False


class LayoutKey(Key[dict]):
    default = {}


class TestCreateDefaults:
    def test_default_returns_plain(self):
        d = create_defaults()
        assert type(d) is Defaults
        assert isinstance(d.backend, Memory)

    def test_observable_type(self):
        assert isinstance(create_defaults(type="observable"), ObservableDefaults)

    def test_invalid_type(self):
        with pytest.raises(ValueError, match="Unknown type"):
            create_defaults(type="bogus")

    def test_invalid_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            create_defaults(storage="redis")

    def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            create_defaults(storage="disk")

    def test_dispatcher_only_for_observable(self):
        with pytest.raises(ValueError, match="dispatcher"):
            create_defaults(dispatcher=lambda fn: fn())

    def test_disk_storage(self, tmp_path):
        d = create_defaults(storage="disk", path=str(tmp_path))
        try:
            assert isinstance(d.backend, Disk)
            d[ToggleTestKey] = True
            assert d.backend.get("ToggleTestKey") is True
        finally:
            d.backend.close()

    def test_explicit_backend(self, backend):
        d = create_defaults(backend=backend)
        assert d.backend is backend

    def test_observable_with_dispatcher(self):
        dispatcher = QueueDispatcher()
        try:
            d = create_defaults(type="observable", dispatcher=dispatcher)
            received = []
            d.subscribe(lambda: received.append(True))
            d[ToggleTestKey] = True
            dispatcher.flush()
            assert received == [True]
        finally:
            dispatcher.close()


class TestShared:
    def test_created_once(self, shared_state):
        assert shared() is shared()
        assert shared_observable() is shared_observable()

    def test_plain_and_observable_share_backend(self, shared_state):
        shared()[ToggleTestKey] = True
        assert shared_observable()[ToggleTestKey] is True
        assert shared().backend is shared_observable().backend

    def test_reset_through_plain_is_seen_by_observable(self, shared_state):
        shared()[ToggleTestKey] = True
        assert shared_observable()[ToggleTestKey] is True
        shared().reset()
        assert shared_observable()[ToggleTestKey] is False

    def test_overwrite_is_seen_by_both(self, shared_state):
        shared_observable()[LayoutKey] = {"a": 1}
        shared()[LayoutKey] = {"a": 2}
        assert shared_observable()[LayoutKey] == {"a": 2}
        shared_observable()[LayoutKey] = {"a": 3}
        assert shared()[LayoutKey] == {"a": 3}

    def test_reset_shared_builds_new_instances(self, shared_state):
        first = shared()
        reset_shared()
        assert shared() is not first

    def test_configure_disk(self, shared_state, tmp_path):
        configure(storage="disk", path=str(tmp_path))
        assert isinstance(shared().backend, Disk)

    def test_environment_selects_disk(self, shared_state, tmp_path, monkeypatch):
        monkeypatch.setenv("KVDEFAULTS_PATH", str(tmp_path))
        assert isinstance(shared().backend, Disk)

    def test_configure_after_use_raises(self, shared_state):
        shared()
        with pytest.raises(RuntimeError, match="already in use"):
            configure()

    def test_configure_validates(self, shared_state):
        with pytest.raises(ValueError, match="path is required"):
            configure(storage="disk")
        with pytest.raises(ValueError, match="Unknown storage"):
            configure(storage="redis")

    def test_values_persist_across_reset_shared_on_disk(self, shared_state, tmp_path):
        configure(storage="disk", path=str(tmp_path))
        shared()[ToggleTestKey] = True
        reset_shared()
        configure(storage="disk", path=str(tmp_path))
        assert shared()[ToggleTestKey] is True
