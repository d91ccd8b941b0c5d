"""Key declarations: name, default, conversion and write policies."""

from __future__ import annotations

import types
from typing import Any, Callable, ClassVar, Generic, TypeVar, Union, get_args, get_origin

from .conversion import (
    ValueConversion,
    describe_type,
    is_infallible,
    passthrough,
    runtime_type,
)

V = TypeVar("V")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()
"""Marks a key attribute that was not declared."""


# -- Default policy strategies --


def remove_if_nil(key: type[Key], new_value: Any) -> bool:
    return key.is_nil(new_value)


def remove_if_default(key: type[Key], new_value: Any) -> bool:
    return new_value == key.default


def never_remove(key: type[Key], new_value: Any) -> bool:
    return False


def overwrite_if_changed(key: type[Key], old_value: Any, new_value: Any) -> bool:
    return new_value != key.default and new_value != old_value


def always_overwrite(key: type[Key], old_value: Any, new_value: Any) -> bool:
    return True


def _generic_argument(cls: type) -> Any:
    """The ``X`` in ``class SomeKey(Key[X])``, if declared."""
    for base in getattr(cls, "__orig_bases__", ()):
        if get_origin(base) is Key:
            (arg,) = get_args(base)
            if not isinstance(arg, TypeVar):
                return arg
    return None


def _split_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``."""
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation, False
    args = get_args(annotation)
    if type(None) not in args:
        return annotation, False
    rest = tuple(a for a in args if a is not type(None))
    if len(rest) == 1:
        return rest[0], True
    return Union[rest], True


class Key(Generic[V]):
    """A typed identifier for one setting.

    Declare a key by subclassing; the class itself is the key and is
    never instantiated::

        class ToggleKey(Key[bool]):
            default = False

        class LabelKey(Key[str | None]):
            pass

    Missing attributes are resolved once, when the class is created:

    - ``name`` is the class name.
    - ``value_type`` comes from ``Key[X]`` or from ``type(default)``.
    - ``nullable`` is true for ``Key[X | None]``, a ``None`` default, or
      a declared ``nil`` sentinel.
    - ``default`` is the nil value for nullable keys, or
      ``value_type.default_value()`` for ``Infallible`` value types.
    - ``conversion`` is ``passthrough(value_type)``.

    Write policy defaults are picked by capability: nullable keys are
    removed when written with nil, other equatable keys when written
    with their default. Equatable keys skip writes that change nothing.
    Keys with ``equatable = False`` never auto-remove and always write.
    Override ``should_remove`` / ``should_overwrite`` as classmethods to
    supply a custom policy.
    """

    name: ClassVar[str]
    default: ClassVar[Any] = MISSING
    value_type: ClassVar[Any] = None
    conversion: ClassVar[ValueConversion]
    nullable: ClassVar[bool | None] = None
    equatable: ClassVar[bool] = True
    nil: ClassVar[Any] = MISSING

    _remove: ClassVar[Callable[[type[Key], Any], bool]]
    _overwrite: ClassVar[Callable[[type[Key], Any, Any], bool]]

    def __new__(cls, *args: Any, **kwargs: Any) -> Key:
        raise TypeError(f"{cls.__name__} is a key declaration and cannot be instantiated")

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "name" not in cls.__dict__:
            cls.name = cls.__name__

        declared = _generic_argument(cls)
        optional = False
        if declared is not None and cls.value_type is None:
            cls.value_type, optional = _split_optional(declared)
        if cls.value_type is None and cls.default is not MISSING and cls.default is not None:
            cls.value_type = type(cls.default)

        if cls.nullable is None:
            cls.nullable = optional or cls.default is None or cls.nil is not MISSING

        if cls.default is MISSING:
            if cls.nullable:
                cls.default = None if cls.nil is MISSING else cls.nil
            elif is_infallible(cls.value_type):
                cls.default = cls.value_type.default_value()
            else:
                raise TypeError(f"Key {cls.name!r} must declare a default value")

        if not hasattr(cls, "conversion"):
            cls.conversion = passthrough(cls.value_type)

        if cls.nullable:
            cls._remove = remove_if_nil
        elif cls.equatable:
            cls._remove = remove_if_default
        else:
            cls._remove = never_remove
        cls._overwrite = overwrite_if_changed if cls.equatable else always_overwrite

    @classmethod
    def should_remove(cls, new_value: Any) -> bool:
        """Whether writing ``new_value`` should delete the entry instead."""
        return cls._remove(cls, new_value)

    @classmethod
    def should_overwrite(cls, old_value: Any, new_value: Any) -> bool:
        """Whether writing ``new_value`` over ``old_value`` reaches storage."""
        return cls._overwrite(cls, old_value, new_value)

    @classmethod
    def is_nil(cls, value: Any) -> bool:
        if value is None:
            return True
        return cls.nil is not MISSING and value == cls.nil

    @classmethod
    def accepts(cls, value: Any) -> bool:
        """Whether ``value`` has this key's value type."""
        if value is None and cls.nullable:
            return True
        expected = runtime_type(cls.value_type)
        return expected is None or isinstance(value, expected)

    @classmethod
    def type_name(cls) -> str:
        return describe_type(cls.value_type)


def key(
    name: str,
    default: Any = MISSING,
    *,
    value_type: Any = None,
    conversion: ValueConversion | None = None,
    nullable: bool | None = None,
    equatable: bool = True,
    nil: Any = MISSING,
    should_remove: Callable[[Any], bool] | None = None,
    should_overwrite: Callable[[Any, Any], bool] | None = None,
) -> type[Key]:
    """Declare a key without writing a class statement.

    Args:
        name: The key's name in the backing store.
        default: Value returned when nothing is stored.
        value_type: The value type (inferred from ``default`` if omitted).
        conversion: Defaults to ``passthrough(value_type)``.
        nullable: Whether ``None`` (or ``nil``) deletes the entry.
        equatable: Whether default-value and no-change checks apply.
        nil: A value that counts as nil in addition to ``None``.
        should_remove: Custom removal policy, ``(new) -> bool``.
        should_overwrite: Custom overwrite policy, ``(old, new) -> bool``.
    """
    namespace: dict[str, Any] = {
        "name": name,
        "default": default,
        "value_type": value_type,
        "nullable": nullable,
        "equatable": equatable,
        "nil": nil,
    }
    if conversion is not None:
        namespace["conversion"] = conversion
    if should_remove is not None:
        namespace["should_remove"] = classmethod(lambda cls, new: should_remove(new))
    if should_overwrite is not None:
        namespace["should_overwrite"] = classmethod(
            lambda cls, old, new: should_overwrite(old, new)
        )
    return type(name, (Key,), namespace)
