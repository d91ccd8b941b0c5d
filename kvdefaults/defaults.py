"""Defaults: typed, cached access to a raw store through keys."""

import copy
import logging
import threading
from typing import Any

from .errors import DecodeError
from .key import Key
from .kv.base import RawStore
from .kv.memory import Memory

logger = logging.getLogger(__name__)


class Defaults:
    """Typed settings store over a ``RawStore``.

    Reads and writes go through ``Key`` declarations, which carry the
    store name, default value, conversion and write policies::

        defaults[ToggleKey] = True
        defaults[ToggleKey]  # -> True

    A write is handled in three steps: if ``key.should_remove(new)``
    the entry is deleted; otherwise the current value is read and, if
    ``key.should_overwrite(old, new)``, the encoded value is stored.
    Anything else is a silent no-op.

    Decoded values (and defaults for absent keys) are cached by key
    name. The cache only sees writes made through this instance (or
    through stores joined with ``share_cache_with()``); call
    ``invalidate()`` or ``reconcile()`` after changing the raw store
    directly. Values go in and come out of the cache as deep copies, so
    mutating a returned value never changes what the store holds.

    Every operation holds an ``RLock`` for its cache and raw store
    access, so one instance may be shared between threads.

    Args:
        backend: The raw store. Defaults to a fresh ``Memory``.
        cache: Whether to keep decoded values in memory.
    """

    def __init__(self, backend: RawStore | None = None, *, cache: bool = True) -> None:
        self._store = backend if backend is not None else Memory()
        self._cache: dict[str, Any] | None = {} if cache else None
        self._lock = threading.RLock()

    @property
    def backend(self) -> RawStore:
        """The underlying raw store."""
        return self._store

    def share_cache_with(self, other: "Defaults") -> None:
        """Use ``other``'s cache and lock from now on.

        Writes, removals and resets through either store are then seen
        by both. Both must wrap the same backend and agree on caching.
        """
        if other.backend is not self._store:
            raise ValueError("Stores sharing a cache must share a backend")
        if (other._cache is None) != (self._cache is None):
            raise ValueError("Stores sharing a cache must both cache or both not")
        self._cache = other._cache
        self._lock = other._lock

    # -- Read operations --

    def get(self, key: type[Key]) -> Any:
        """Get the value for ``key``, or its default when absent.

        Raises:
            DecodeError: The stored raw value is not a valid value for
                ``key`` and its value type has no fallback default.
        """
        with self._lock:
            return self._get(key)

    def __getitem__(self, key: type[Key]) -> Any:
        return self.get(key)

    def contains(self, key: type[Key]) -> bool:
        """Whether the raw store holds an entry for ``key``."""
        return key.name in self._store

    def __contains__(self, key: type[Key]) -> bool:
        return self.contains(key)

    def is_missing(self, key: type[Key]) -> bool:
        return not self.contains(key)

    def raw_keys(self) -> set[str]:
        """Names of all entries in the raw store."""
        return set(self._store.keys())

    def dictionary_representation(self) -> dict[str, Any]:
        """A snapshot of the raw store's contents."""
        return dict(self._store.items())

    # -- Write operations --

    def set(self, key: type[Key], value: Any) -> None:
        """Write ``value`` for ``key``, subject to the key's policies.

        Raises:
            EncodeError: The key's conversion cannot encode ``value``.
        """
        with self._lock:
            changed = self._set(key, value)
        if changed:
            self._did_change()

    def __setitem__(self, key: type[Key], value: Any) -> None:
        self.set(key, value)

    def remove(self, key: type[Key]) -> None:
        """Delete the entry for ``key`` regardless of its policies."""
        with self._lock:
            self._forget(key.name)
        logger.debug("Removed %r", key.name)
        self._did_change()

    def __delitem__(self, key: type[Key]) -> None:
        self.remove(key)

    def reset(self) -> None:
        """Remove every entry from the raw store and clear the cache."""
        with self._lock:
            names = list(self._store.keys())
            for name in names:
                self._store.remove(name)
            if self._cache is not None:
                self._cache.clear()
        logger.info("Reset defaults, removed %d keys", len(names))
        self._did_change()

    # -- Cache maintenance --

    def invalidate(self, key: type[Key] | None = None) -> None:
        """Drop the cached value for ``key``, or every cached value."""
        if self._cache is None:
            return
        with self._lock:
            if key is None:
                self._cache.clear()
            else:
                self._cache.pop(key.name, None)

    def reconcile(self, key: type[Key]) -> bool:
        """Drop the cached value for ``key`` if its entry was removed externally.

        Returns:
            True if a stale cache entry was dropped.
        """
        if self._cache is None:
            return False
        with self._lock:
            if key.name in self._cache and key.name not in self._store:
                del self._cache[key.name]
                logger.debug("Dropped stale cache entry for %r", key.name)
                return True
            return False

    # -- Internals --

    def _get(self, key: type[Key]) -> Any:
        name = key.name
        if self._cache is not None and name in self._cache:
            value = self._cache[name]
            assert key.accepts(value), (
                f"Cached value for {name!r} is {type(value).__name__}, "
                f"expected {key.type_name()}"
            )
            return copy.deepcopy(value)

        raw = self._store.get(name)
        if raw is None:
            value = key.default
        else:
            try:
                value = key.conversion.load(raw)
            except DecodeError as exc:
                logger.error(
                    "Stored value for %r is not a valid %s: %s",
                    name,
                    exc.expected,
                    exc.detail,
                )
                raise DecodeError(exc.expected, exc.detail, key=name) from exc

        if self._cache is not None:
            self._cache[name] = value
        return copy.deepcopy(value)

    def _set(self, key: type[Key], value: Any) -> bool:
        name = key.name
        if key.should_remove(value):
            self._forget(name)
            logger.debug("Removed %r", name)
            return True

        old = self._get(key)
        if not key.should_overwrite(old, value):
            logger.debug("Skipped write to %r", name)
            return False

        raw = key.conversion.dump(value)
        self._store.set(name, raw)
        if self._cache is not None:
            self._cache[name] = copy.deepcopy(value)
        logger.debug("Stored %r", name)
        return True

    def _forget(self, name: str) -> None:
        if self._cache is not None:
            self._cache.pop(name, None)
        self._store.remove(name)

    def _did_change(self) -> None:
        """Called after a mutation, outside the lock."""
