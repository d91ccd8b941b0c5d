"""kvdefaults error types."""


class DefaultsError(Exception):
    """Base class for errors raised by kvdefaults."""


class DecodeError(DefaultsError):
    """Raised when a stored raw value cannot be read back as its key's type.

    Only external corruption of the backing store can trigger this for a
    well-formed key, so it is never caught inside the library.

    Attributes:
        expected: Name of the value type the key declares.
        detail: Description of the underlying failure.
        key: Name of the offending key, when known.
    """

    def __init__(self, expected: str, detail: str, key: str | None = None) -> None:
        self.expected = expected
        self.detail = detail
        self.key = key
        if key is None:
            msg = f"Cannot decode {expected}: {detail}"
        else:
            msg = f"Cannot decode {key!r} as {expected}: {detail}"
        super().__init__(msg)


class EncodeError(DefaultsError):
    """Raised when a value cannot be converted to its raw representation.

    This is a programming error in the key's conversion, not a runtime
    condition to recover from.
    """

    def __init__(self, value_type: str, detail: str) -> None:
        self.value_type = value_type
        self.detail = detail
        super().__init__(f"Cannot encode {value_type}: {detail}")
