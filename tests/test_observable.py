"""Tests for change notification."""

import threading

import pytest

from kvdefaults import Key, ObservableDefaults, Publisher, QueueDispatcher


class ToggleTestKey(Key[bool]):
    default = False


class OptionalTestKey(Key[str | None]):
    pass


@pytest.fixture
def events(observable):
    received = []
    observable.subscribe(lambda: received.append(True))
    return received


class TestObservableDefaults:
    def test_store_notifies(self, observable, events):
        observable[ToggleTestKey] = True
        assert len(events) == 1

    def test_remove_notifies(self, observable, events):
        observable[ToggleTestKey] = True
        observable[ToggleTestKey] = False
        assert len(events) == 2

    def test_skipped_write_does_not_notify(self, observable, events):
        observable[OptionalTestKey] = "same"
        observable[OptionalTestKey] = "same"
        assert len(events) == 1

    def test_explicit_remove_and_reset_notify(self, observable, events):
        observable.remove(ToggleTestKey)
        observable.reset()
        assert len(events) == 2

    def test_store_updated_before_notification(self, observable, backend):
        seen = []
        observable.subscribe(lambda: seen.append(backend.get("OptionalTestKey")))
        observable[OptionalTestKey] = "new"
        assert seen == ["new"]

    def test_subscriber_can_read_store(self, observable):
        seen = []
        observable.subscribe(lambda: seen.append(observable[OptionalTestKey]))
        observable[OptionalTestKey] = "value"
        assert seen == ["value"]

    def test_unsubscribe(self, observable):
        received = []
        unsubscribe = observable.subscribe(lambda: received.append(True))
        unsubscribe()
        observable[ToggleTestKey] = True
        assert received == []
        assert len(observable.changed) == 0


class TestPublisher:
    def test_failing_subscriber_does_not_block_others(self, caplog):
        publisher = Publisher()
        received = []

        def broken():
            raise RuntimeError("boom")

        publisher.subscribe(broken)
        publisher.subscribe(lambda: received.append(True))
        publisher.send()
        assert received == [True]
        assert "Change subscriber" in caplog.text

    def test_send_without_subscribers(self):
        Publisher().send()


class TestQueueDispatcher:
    def test_delivers_on_worker_thread(self, backend):
        dispatcher = QueueDispatcher()
        store = ObservableDefaults(backend, dispatcher=dispatcher)
        threads = []
        store.subscribe(lambda: threads.append(threading.current_thread()))
        try:
            store[ToggleTestKey] = True
            dispatcher.flush()
        finally:
            dispatcher.close()
        assert len(threads) == 1
        assert threads[0] is not threading.current_thread()

    def test_mutation_completes_before_delivery(self, backend):
        dispatcher = QueueDispatcher()
        store = ObservableDefaults(backend, dispatcher=dispatcher)
        gate = threading.Event()
        dispatcher(gate.wait)
        store.subscribe(lambda: None)
        try:
            store[OptionalTestKey] = "written"
            assert backend.get("OptionalTestKey") == "written"
            gate.set()
            dispatcher.flush()
        finally:
            dispatcher.close()

    def test_preserves_order(self):
        dispatcher = QueueDispatcher()
        order = []
        try:
            for i in range(10):
                dispatcher(lambda i=i: order.append(i))
            dispatcher.flush()
        finally:
            dispatcher.close()
        assert order == list(range(10))
