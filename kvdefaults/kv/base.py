"""Abstract raw store interface."""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Iterable

RAW_TYPES: tuple[type, ...] = (bool, int, float, str, bytes, uuid.UUID, list, dict)
"""Primitive types a backend accepts as raw values."""


def check_raw(name: str, value: Any) -> None:
    """Raise ``TypeError`` unless ``value`` is a storable raw value."""
    if not isinstance(value, RAW_TYPES):
        raise TypeError(f"Expected raw value for {name}, got {type(value).__name__}")
    if isinstance(value, dict) and not all(isinstance(k, str) for k in value):
        raise TypeError(f"Expected str keys in dict for {name}")


class RawStore(ABC):
    """Untyped, string-keyed persistent dictionary.

    Values are primitives (see ``RAW_TYPES``). Conversion to and from
    typed values is handled at higher layers (e.g., Defaults).
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get the raw value for key, or None if not found."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set the raw value for key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    def keys(self) -> Iterable[str]:
        """Iterate over all keys."""

    @abstractmethod
    def items(self) -> Iterable[tuple[str, Any]]:
        """Iterate over all key-value pairs."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""
