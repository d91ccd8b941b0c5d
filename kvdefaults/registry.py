"""Defaults factory and process-wide shared instances."""

from __future__ import annotations

import os
import threading
from typing import Any, Literal

from .defaults import Defaults
from .kv.base import RawStore
from .observable import Dispatcher, ObservableDefaults, immediate

PATH_ENV = "KVDEFAULTS_PATH"
"""When set, shared instances use a disk store at this directory."""

_lock = threading.Lock()
_settings: dict[str, Any] | None = None
_backend: RawStore | None = None
_instances: dict[str, Defaults] = {}


def _backend_for(storage: str, path: str | None) -> RawStore:
    if storage == "memory":
        from .kv.memory import Memory

        return Memory()
    if storage == "disk":
        if path is None:
            raise ValueError("path is required when storage='disk'")
        from .kv.disk import Disk

        return Disk(path)
    raise ValueError(f"Unknown storage: {storage!r}")


def create_defaults(
    type: Literal["plain", "observable"] = "plain",
    storage: str = "memory",
    *,
    path: str | None = None,
    backend: RawStore | None = None,
    cache: bool = True,
    dispatcher: Dispatcher | None = None,
) -> Defaults:
    """Create a Defaults store.

    Args:
        type: ``"plain"`` (default) or ``"observable"`` for an
            ``ObservableDefaults`` that publishes changes.
        storage: ``"memory"`` (default) or ``"disk"``. Ignored when
            ``backend`` is given.
        path: Required when ``storage="disk"``. Directory path for
            the disk backend.
        backend: Use this raw store instead of building one.
        cache: Keep decoded values in memory (default True).
        dispatcher: Where change subscribers run (observable only,
            defaults to ``immediate``).

    Returns:
        A ``Defaults`` or ``ObservableDefaults`` instance.
    """
    if type not in ("plain", "observable"):
        raise ValueError(f"Unknown type: {type!r}")
    if type == "plain" and dispatcher is not None:
        raise ValueError("dispatcher is only valid for type='observable'")

    if backend is None:
        backend = _backend_for(storage, path)

    if type == "observable":
        return ObservableDefaults(
            backend, cache=cache, dispatcher=dispatcher or immediate
        )
    return Defaults(backend, cache=cache)


def configure(
    storage: str = "memory",
    *,
    path: str | None = None,
    cache: bool = True,
    dispatcher: Dispatcher | None = None,
) -> None:
    """Set how the shared instances are built.

    Must be called before the first ``shared()`` or
    ``shared_observable()`` call (or after ``reset_shared()``).
    """
    global _settings
    if storage not in ("memory", "disk"):
        raise ValueError(f"Unknown storage: {storage!r}")
    if storage == "disk" and path is None:
        raise ValueError("path is required when storage='disk'")
    with _lock:
        if _instances:
            raise RuntimeError("Shared defaults are already in use")
        _settings = {
            "storage": storage,
            "path": path,
            "cache": cache,
            "dispatcher": dispatcher,
        }


def _current_settings() -> dict[str, Any]:
    if _settings is not None:
        return _settings
    path = os.environ.get(PATH_ENV)
    return {
        "storage": "disk" if path else "memory",
        "path": path or None,
        "cache": True,
        "dispatcher": None,
    }


def _shared(kind: Literal["plain", "observable"]) -> Defaults:
    global _backend
    with _lock:
        instance = _instances.get(kind)
        if instance is None:
            settings = _current_settings()
            if _backend is None:
                _backend = _backend_for(settings["storage"], settings["path"])
            instance = create_defaults(
                kind,
                backend=_backend,
                cache=settings["cache"],
                dispatcher=settings["dispatcher"] if kind == "observable" else None,
            )
            for sibling in _instances.values():
                instance.share_cache_with(sibling)
            _instances[kind] = instance
        return instance


def shared() -> Defaults:
    """The process-wide plain store, created on first use."""
    return _shared("plain")


def shared_observable() -> ObservableDefaults:
    """The process-wide observable store, created on first use.

    Shares its raw store and cache with ``shared()``, so a write or
    ``reset()`` through either is visible through both. Only writes made
    through this instance notify its subscribers.
    """
    instance = _shared("observable")
    assert isinstance(instance, ObservableDefaults)
    return instance


def reset_shared() -> None:
    """Forget the shared instances and configuration.

    Stored values are untouched; the next ``shared()`` call builds new
    instances. Tests use this to isolate the process-wide state.
    """
    global _settings, _backend
    with _lock:
        close = getattr(_backend, "close", None)
        if close is not None:
            close()
        _instances.clear()
        _backend = None
        _settings = None
