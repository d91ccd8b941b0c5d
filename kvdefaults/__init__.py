"""kvdefaults: Typed settings over an untyped key-value store."""

from .conversion import (
    Infallible,
    ValueConversion,
    codable,
    dictionary,
    passthrough,
    raw_enum,
)
from .defaults import Defaults
from .errors import DecodeError, DefaultsError, EncodeError
from .key import MISSING, Key, key
from .kv.base import RawStore
from .observable import ObservableDefaults, Publisher, QueueDispatcher, immediate
from .property import Binding, DefaultsProperty, Projection, keypath
from .registry import (
    configure,
    create_defaults,
    reset_shared,
    shared,
    shared_observable,
)

__all__ = [
    "Binding",
    "DecodeError",
    "Defaults",
    "DefaultsError",
    "DefaultsProperty",
    "EncodeError",
    "Infallible",
    "Key",
    "MISSING",
    "ObservableDefaults",
    "Projection",
    "Publisher",
    "QueueDispatcher",
    "RawStore",
    "ValueConversion",
    "codable",
    "configure",
    "create_defaults",
    "dictionary",
    "immediate",
    "key",
    "keypath",
    "passthrough",
    "raw_enum",
    "reset_shared",
    "shared",
    "shared_observable",
]
