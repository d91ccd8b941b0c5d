"""Value conversions: encode/decode between typed values and raw values."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol, get_origin, runtime_checkable

from pydantic import TypeAdapter

from .errors import DecodeError, EncodeError
from .kv.base import RAW_TYPES

logger = logging.getLogger(__name__)


@runtime_checkable
class Infallible(Protocol):
    """A value type that supplies its own default.

    Conversions for such types substitute ``default_value()`` when a
    stored value cannot be decoded, instead of raising ``DecodeError``.
    """

    @classmethod
    def default_value(cls) -> Any: ...


def is_infallible(value_type: Any) -> bool:
    """Whether ``value_type`` implements the ``Infallible`` protocol."""
    return isinstance(value_type, Infallible) and callable(value_type.default_value)


def describe_type(value_type: Any) -> str:
    if value_type is None:
        return "value"
    return getattr(value_type, "__name__", None) or repr(value_type)


def runtime_type(value_type: Any) -> type | None:
    """The class usable with ``isinstance`` for ``value_type``, if any."""
    origin = get_origin(value_type) or value_type
    return origin if isinstance(origin, type) else None


@dataclass(frozen=True)
class ValueConversion:
    """A pair of pure functions between a typed value and its raw form.

    ``decode`` and ``encode`` may raise ``ValueError`` or ``TypeError``.
    The store never calls them directly; it goes through ``load()`` and
    ``dump()``, which check the raw type and translate failures into
    ``DecodeError`` / ``EncodeError``.

    Attributes:
        encode: value -> raw value.
        decode: raw value -> value.
        raw_types: Raw types accepted by ``decode``.
        value_type: The logical value type (used in messages).
        fallback: Called to produce a value when decoding fails. When
            None, decode failures raise.
    """

    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]
    raw_types: tuple[type, ...] = RAW_TYPES
    value_type: Any = None
    fallback: Callable[[], Any] | None = None

    @property
    def type_name(self) -> str:
        return describe_type(self.value_type)

    def load(self, raw: Any) -> Any:
        """Decode a raw value read from the store."""
        if not isinstance(raw, self.raw_types):
            return self._recover(f"unexpected raw type {type(raw).__name__}")
        try:
            return self.decode(raw)
        except (ValueError, TypeError, KeyError) as exc:
            return self._recover(str(exc), exc)

    def dump(self, value: Any) -> Any:
        """Encode a value for the store. Failure is always an error."""
        try:
            return self.encode(value)
        except EncodeError:
            raise
        except (ValueError, TypeError) as exc:
            raise EncodeError(self.type_name, str(exc)) from exc

    def _recover(self, detail: str, cause: Exception | None = None) -> Any:
        if self.fallback is None:
            raise DecodeError(self.type_name, detail) from cause
        logger.warning(
            "Replacing undecodable %s with its default: %s", self.type_name, detail
        )
        return self.fallback()


def _fallback_for(value_type: Any) -> Callable[[], Any] | None:
    if is_infallible(value_type):
        return value_type.default_value
    return None


def passthrough(value_type: Any = None) -> ValueConversion:
    """Identity conversion for values the store holds natively.

    Args:
        value_type: When given, raw values must be instances of it and
            values of any other type are rejected on encode.
    """
    cls = runtime_type(value_type)
    raw_types = (cls,) if cls is not None else RAW_TYPES

    def encode(value: Any) -> Any:
        if cls is not None and not isinstance(value, cls):
            raise TypeError(
                f"expected {describe_type(value_type)}, got {type(value).__name__}"
            )
        return value

    return ValueConversion(
        encode=encode,
        decode=lambda v: v,
        raw_types=raw_types,
        value_type=value_type,
    )


def codable(value_type: Any) -> ValueConversion:
    """JSON-encoded conversion for any type pydantic can validate.

    Values are stored as UTF-8 JSON bytes.
    """
    adapter = TypeAdapter(value_type)

    def encode(value: Any) -> bytes:
        return adapter.dump_json(value)

    def decode(raw: bytes) -> Any:
        return adapter.validate_json(raw)

    return ValueConversion(
        encode=encode,
        decode=decode,
        raw_types=(bytes,),
        value_type=value_type,
        fallback=_fallback_for(value_type),
    )


def dictionary(value_type: Any) -> ValueConversion:
    """Conversion storing a value as a string-keyed dictionary.

    The value's JSON-compatible form must be an object (models,
    dataclasses, typed dicts and plain mappings all qualify).
    """
    adapter = TypeAdapter(value_type)

    def encode(value: Any) -> dict[str, Any]:
        data = adapter.dump_python(value, mode="json")
        if not isinstance(data, dict):
            raise EncodeError(
                describe_type(value_type),
                f"serialized to {type(data).__name__}, expected a mapping",
            )
        return data

    def decode(raw: dict[str, Any]) -> Any:
        return adapter.validate_python(raw)

    return ValueConversion(
        encode=encode,
        decode=decode,
        raw_types=(dict,),
        value_type=value_type,
        fallback=_fallback_for(value_type),
    )


def raw_enum(enum_type: type[Enum]) -> ValueConversion:
    """Conversion storing an enum member as its raw ``value``."""
    raw_types = tuple({type(member.value) for member in enum_type})

    def encode(member: Enum) -> Any:
        if not isinstance(member, enum_type):
            raise TypeError(f"{member!r} is not a {enum_type.__name__}")
        return member.value

    return ValueConversion(
        encode=encode,
        decode=enum_type,
        raw_types=raw_types or RAW_TYPES,
        value_type=enum_type,
        fallback=_fallback_for(enum_type),
    )
