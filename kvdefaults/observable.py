"""Change notification for defaults stores."""

import itertools
import logging
import queue
import threading
from functools import partial
from typing import Callable

from .defaults import Defaults
from .kv.base import RawStore

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]
"""Runs a callback on some execution context: ``dispatcher(fn)``."""


def immediate(fn: Callable[[], None]) -> None:
    """Run the callback on the calling thread."""
    fn()


class QueueDispatcher:
    """Runs callbacks in order on a dedicated worker thread.

    Stands in for posting to a UI thread: the caller returns as soon as
    the callback is queued.
    """

    def __init__(self, name: str = "kvdefaults-notify") -> None:
        self._queue: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._worker, name=name, daemon=True)
        self._thread.start()

    def __call__(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    break
                item()
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Wait for all queued callbacks to run."""
        self._queue.join()

    def close(self) -> None:
        """Run what is queued, then stop the worker thread."""
        self._queue.put(None)
        self._thread.join()


class Publisher:
    """A "something changed" signal with no payload."""

    def __init__(self, dispatcher: Dispatcher = immediate) -> None:
        self._dispatcher = dispatcher
        self._subscribers: dict[int, Callable[[], None]] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback``. Returns a function that unsubscribes it."""
        with self._lock:
            token = next(self._ids)
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def send(self) -> None:
        """Notify every current subscriber through the dispatcher."""
        with self._lock:
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            self._dispatcher(partial(_deliver, callback))

    def __len__(self) -> int:
        return len(self._subscribers)


def _deliver(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("Change subscriber %r failed", callback)


class ObservableDefaults(Defaults):
    """A ``Defaults`` that publishes a signal on every effective change.

    Removals, stores and ``reset()`` send on ``changed``; writes skipped
    by ``should_overwrite`` do not. The raw store and cache are updated
    before the signal is dispatched.

    Args:
        backend: The raw store. Defaults to a fresh ``Memory``.
        cache: Whether to keep decoded values in memory.
        dispatcher: Where subscribers run. Defaults to ``immediate``.
    """

    def __init__(
        self,
        backend: RawStore | None = None,
        *,
        cache: bool = True,
        dispatcher: Dispatcher = immediate,
    ) -> None:
        super().__init__(backend, cache=cache)
        self.changed = Publisher(dispatcher)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Shorthand for ``self.changed.subscribe(callback)``."""
        return self.changed.subscribe(callback)

    def _did_change(self) -> None:
        self.changed.send()
