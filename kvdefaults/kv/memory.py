"""In-memory raw store."""

import copy
import threading
from typing import Any, Iterable

from .base import RawStore, check_raw


class Memory(RawStore):
    """A memory-backed raw store.

    Contents are lost when the process exits. All operations are
    protected by a single lock. Values are copied on the way in and out,
    so callers never share a list or dict with the store (a disk store
    gets the same effect from serializing).
    """

    def __init__(self) -> None:
        self.memory: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self.memory.get(key))

    def set(self, key: str, value: Any) -> None:
        check_raw(key, value)
        value = copy.deepcopy(value)
        with self._lock:
            self.memory[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self.memory.pop(key, None)

    def keys(self) -> Iterable[str]:
        with self._lock:
            return list(self.memory.keys())

    def items(self) -> Iterable[tuple[str, Any]]:
        with self._lock:
            return copy.deepcopy(list(self.memory.items()))

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self.memory
