"""Typed accessors binding a key to a defaults store."""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from .defaults import Defaults
    from .key import Key

T = TypeVar("T")


@dataclass
class Binding(Generic[T]):
    """A get/set closure pair for two-way data binding."""

    get: Callable[[], T]
    set: Callable[[T], None]

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)


@dataclass(frozen=True)
class Projection:
    """Narrows a full value to a nested part, for reads and writes.

    Attributes:
        get: whole -> part.
        set: (whole, part) -> a new whole with ``part`` substituted.
            Must not modify ``whole``.
    """

    get: Callable[[Any], Any]
    set: Callable[[Any, Any], Any]

    def then(self, inner: Projection) -> Projection:
        """Compose with a projection applied to this one's part."""
        return Projection(
            get=lambda whole: inner.get(self.get(whole)),
            set=lambda whole, part: self.set(
                whole, inner.set(self.get(whole), part)
            ),
        )


IDENTITY = Projection(get=lambda whole: whole, set=lambda whole, part: part)


def _read(whole: Any, name: str) -> Any:
    if isinstance(whole, Mapping):
        return whole[name]
    return getattr(whole, name)


def _replace(whole: Any, name: str, part: Any) -> Any:
    if isinstance(whole, Mapping):
        return {**whole, name: part}
    if isinstance(whole, BaseModel):
        return whole.model_copy(update={name: part})
    if dataclasses.is_dataclass(whole) and not isinstance(whole, type):
        return dataclasses.replace(whole, **{name: part})
    updated = copy.copy(whole)
    setattr(updated, name, part)
    return updated


def keypath(*names: str) -> Projection:
    """Projection onto a (nested) attribute or mapping item.

    ``keypath("window", "width")`` reads ``value.window.width`` (or
    ``value["window"]["width"]``) and writes by copying each level.
    """
    if not names:
        return IDENTITY
    projection: Projection | None = None
    for name in names:
        step = Projection(
            get=lambda whole, name=name: _read(whole, name),
            set=lambda whole, part, name=name: _replace(whole, name, part),
        )
        projection = step if projection is None else projection.then(step)
    return projection


class DefaultsProperty(Generic[T]):
    """Typed read/write handle for one key in one defaults store.

    Can be used directly or declared as a class attribute::

        toggle = DefaultsProperty(ToggleKey, defaults=store)
        toggle.set(True)

        class Settings:
            width = DefaultsProperty(WindowKey, keypath("width"))

    Args:
        key: The key to read and write.
        projection: Optional narrowing to a part of the key's value.
        defaults: A store, or a zero-argument callable returning one.
            Defaults to the shared plain store, looked up on each access.
    """

    def __init__(
        self,
        key: type[Key],
        projection: Projection | None = None,
        *,
        defaults: Defaults | Callable[[], Defaults] | None = None,
    ) -> None:
        self.key = key
        self.projection = projection if projection is not None else IDENTITY
        self._defaults = defaults

    @property
    def defaults(self) -> Defaults:
        """The store this property reads and writes."""
        from .defaults import Defaults
        from .registry import shared

        if self._defaults is None:
            return shared()
        if isinstance(self._defaults, Defaults):
            return self._defaults
        return self._defaults()

    def get(self) -> T:
        return self.projection.get(self.defaults.get(self.key))

    def set(self, value: T) -> None:
        store = self.defaults
        whole = store.get(self.key)
        store.set(self.key, self.projection.set(whole, value))

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def binding(self) -> Binding[T]:
        """A get/set pair over this property."""
        return Binding(get=self.get, set=self.set)

    def update(self) -> None:
        """Drop the cached value if the entry was removed externally.

        Call once per refresh cycle of whatever displays the value.
        """
        self.defaults.reconcile(self.key)

    # -- Descriptor protocol --

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return self.get()

    def __set__(self, instance: Any, value: T) -> None:
        self.set(value)

    def __repr__(self) -> str:
        return f"DefaultsProperty({self.key.name})"
