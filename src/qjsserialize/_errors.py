from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, cast

from qjsserialize._pycompat.typing import ReadableBinary

if TYPE_CHECKING:
    from qjsserialize.constants import SerializationTag


@dataclass(init=False)
class QJSSerializeError(Exception):
    """The base class that all qjsserialize errors are subclasses of."""

    if not TYPE_CHECKING:
        message: str  # needed to have dataclass include message in the repr, etc

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)

    @property
    def message(self) -> str:
        return cast(str, self.args[0])

    def __str__(self) -> str:
        field_values = [
            (f.name, getattr(self, f.name)) for f in fields(self) if f.name != "message"
        ]
        values_fmt = ", ".join(f"{f}={v!r}" for (f, v) in field_values)

        if values_fmt:
            return f"{self.message}: {values_fmt}"
        return self.message


# TODO: str/repr needs customising to abbreviate the data field
@dataclass(init=False)
class DecodeQJSSerializeError(QJSSerializeError, ValueError):
    """Data being decoded is not well-formed QuickJS serialization data."""

    position: int
    data: ReadableBinary

    def __init__(
        self, message: str, *args: object, position: int, data: ReadableBinary
    ) -> None:
        super().__init__(message, *args)
        self.position = position
        self.data = data


@dataclass(init=False)
class VersionMismatchDecodeQJSSerializeError(DecodeQJSSerializeError):
    """The stream header's version byte is not the supported format version."""

    version: int

    def __init__(
        self, message: str, *, version: int, position: int, data: ReadableBinary
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.version = version


@dataclass(init=False)
class UnsupportedTagDecodeQJSSerializeError(DecodeQJSSerializeError):
    """
    The stream contains a tag that cannot be decoded.

    Raised for tags that the wire format defines but which are not supported
    (such as function bytecode or object references), for bytes that are not
    tags at all, and for known tags that no decode step is able to handle.
    """

    if not TYPE_CHECKING:
        tag: SerializationTag | int

    def __init__(
        self,
        message: str,
        *args: object,
        tag: SerializationTag | int,
        position: int,
        data: ReadableBinary,
    ) -> None:
        super().__init__(message, tag, *args, position=position, data=data)

    @property
    def tag(self) -> SerializationTag | int:
        return cast("SerializationTag | int", self.args[1])


@dataclass(init=False)
class AtomOutOfRangeDecodeQJSSerializeError(DecodeQJSSerializeError):
    """An object key references an atom index that is not in the atom table."""

    atom_index: int
    atom_count: int

    def __init__(
        self,
        message: str,
        *,
        atom_index: int,
        atom_count: int,
        position: int,
        data: ReadableBinary,
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.atom_index = atom_index
        self.atom_count = atom_count


@dataclass(init=False)
class OverflowDecodeQJSSerializeError(DecodeQJSSerializeError):
    """A varint holds a value outside the range allowed for it."""

    value: int

    def __init__(
        self, message: str, *, value: int, position: int, data: ReadableBinary
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.value = value


@dataclass(init=False)
class BadTypedArrayTagDecodeQJSSerializeError(DecodeQJSSerializeError):
    """A TypedArray's element kind byte is not a known `TypedArrayTag`."""

    typed_array_tag: int

    def __init__(
        self,
        message: str,
        *,
        typed_array_tag: int,
        position: int,
        data: ReadableBinary,
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.typed_array_tag = typed_array_tag


@dataclass(init=False)
class StructureDecodeQJSSerializeError(DecodeQJSSerializeError):
    """A tag occurs where the format requires a different one."""


@dataclass(init=False)
class SizeMismatchDecodeQJSSerializeError(DecodeQJSSerializeError):
    """Two counts in the stream that are required to agree do not."""

    expected: int
    actual: int

    def __init__(
        self,
        message: str,
        *,
        expected: int,
        actual: int,
        position: int,
        data: ReadableBinary,
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.expected = expected
        self.actual = actual


@dataclass(init=False)
class TruncatedDecodeQJSSerializeError(DecodeQJSSerializeError):
    """The stream ends before a value it declares has been read."""


@dataclass(init=False)
class DepthExceededDecodeQJSSerializeError(DecodeQJSSerializeError):
    """Objects, Arrays and TypedArrays are nested more deeply than allowed."""

    max_depth: int

    def __init__(
        self, message: str, *, max_depth: int, position: int, data: ReadableBinary
    ) -> None:
        super().__init__(message, position=position, data=data)
        self.max_depth = max_depth


@dataclass(init=False)
class EncodeQJSSerializeError(QJSSerializeError, ValueError):
    """A value cannot be written in the QuickJS serialization format."""


@dataclass(init=False)
class UnhandledValueEncodeQJSSerializeError(EncodeQJSSerializeError):
    """
    No [encode step] is able to represent a Python value in the serialization format.

    Raised when attempting to serialize an object that none of the configured
    encode steps know how to represent, or that cannot be represented without
    losing data (for example, an `int` too large for a Float64).

    [encode step]: `qjsserialize.encode.EncodeStep`
    """

    value: object

    def __init__(self, message: str, *args: object, value: object) -> None:
        super().__init__(message, value, *args)

    @property  # type: ignore[no-redef]
    def value(self) -> object:
        return self.args[1]


@dataclass(init=False)
class DepthExceededEncodeQJSSerializeError(EncodeQJSSerializeError):
    """Containers being encoded are nested more deeply than allowed.

    Self-referencing containers always end up raising this, because object
    references are not supported by the format implemented here.
    """

    max_depth: int

    def __init__(self, message: str, *, max_depth: int) -> None:
        super().__init__(message)
        self.max_depth = max_depth


@dataclass(init=False)
class TypeMismatchBindQJSSerializeError(QJSSerializeError, TypeError):
    """A decoded value is not compatible with the type of the field it maps to."""

    field_name: str | None
    field_type: object
    value: object

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None,
        field_type: object,
        value: object,
    ) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.field_type = field_type
        self.value = value
