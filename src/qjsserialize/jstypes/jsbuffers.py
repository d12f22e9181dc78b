from __future__ import annotations

import math
import struct
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar, overload

from qjsserialize._errors import QJSSerializeError
from qjsserialize._pycompat.typing import Buffer, get_buffer
from qjsserialize.constants import TypedArrayTag

if TYPE_CHECKING:
    from typing_extensions import Self


@dataclass(frozen=True, init=False, slots=True)
class JSArrayBuffer:
    """
    Python equivalent of [JavaScript's ArrayBuffer][ArrayBuffer].

    The buffer holds an immutable copy of the data it's created from. It is a
    [Buffer], so `bytes(buffer)` and `memoryview(buffer)` work as expected.

    [ArrayBuffer]: https://developer.mozilla.org/en-US/docs/Web/JavaScript/\
Reference/Global_Objects/ArrayBuffer
    [Buffer]: (`collections.abc.Buffer`)

    Parameters
    ----------
    data
        Binary data to populate the buffer with. Default: no bytes.

    Examples
    --------
    >>> buf = JSArrayBuffer(b'\\x2a')
    >>> buf
    JSArrayBuffer(b'*')
    >>> list(buf.data)
    [42]
    """

    data: bytes
    """The buffer's binary data."""

    def __init__(self, data: Buffer | None = None) -> None:
        if data is None:
            data = b""
        elif isinstance(data, JSArrayBuffer):
            data = data.data
        elif not isinstance(data, bytes):
            with get_buffer(data) as buffer:
                data = buffer.tobytes()
        # Need to borrow object's __setattr__, our frozen type disables ours.
        object.__setattr__(self, "data", data)

    @property
    def byte_length(self) -> int:
        return len(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __buffer__(self, flags: int) -> memoryview:
        return memoryview(self.data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data!r})"


class DataType(Enum):
    """An enum of the element data types used in JavaScript typed arrays."""

    UnsignedInt = int, "BHIQ"
    SignedInt = int, "bhiq"
    Float = float, "fd"

    python_type: type[int | float]
    """The Python type that represents this data type."""
    struct_formats: str
    """The struct module format characters for this `DataType`."""

    def __new__(cls, python_type: type[int | float], struct_formats: str) -> Self:
        obj = object.__new__(cls)
        obj._value_ = (python_type, struct_formats)
        obj.python_type = python_type
        obj.struct_formats = struct_formats
        return obj

    def __repr__(self) -> str:
        return f"{type(self).__name__}.{self._name_}"


@dataclass(frozen=True, slots=True)
class DataFormat:
    """A little-endian [struct format] for a specific data type and precision.

    [struct format]: `struct`
    """

    byte_length: int
    data_type: DataType
    format: str

    @classmethod
    def resolve(cls, *, data_type: DataType, byte_length: int) -> Self:
        """
        Find the struct format with a given size and data type.

        Formats use struct's standard (not native) sizes, as the serialization
        format always stores elements little-endian.

        Raises
        ------
        ValueError
            If no format has the requested parameters.

        Examples
        --------
        >>> DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=4)
        DataFormat(byte_length=4, data_type=DataType.UnsignedInt, format='I')
        """
        for format in data_type.struct_formats:
            if struct.calcsize(f"<{format}") == byte_length:
                return cls(data_type=data_type, format=format, byte_length=byte_length)
        raise ValueError(
            f"DataType {data_type.name} has no struct_format of "
            f"byte_length {byte_length}"
        )

    @property
    def value_range(self) -> range | None:
        """The range of values an integer format can hold, or None for floats."""
        if self.data_type is DataType.Float:
            return None
        bits = self.byte_length * 8
        if self.data_type is DataType.SignedInt:
            return range(-(2 ** (bits - 1)), 2 ** (bits - 1))
        return range(0, 2**bits)

    def unpack(self, data: bytes | memoryview, count: int) -> tuple[int | float, ...]:
        return struct.unpack_from(f"<{count}{self.format}", data)

    def pack(self, elements: Sequence[int | float]) -> bytes:
        return struct.pack(f"<{len(elements)}{self.format}", *elements)


@dataclass(frozen=True, slots=True)
class JSTypedArray(Sequence["int | float"]):
    """
    Python equivalent of [JavaScript's TypedArray].

    A typed array is a read-only sequence of numbers, stored as little-endian
    elements in a `JSArrayBuffer`. As in JavaScript, this is an abstract type.
    Each element kind has a subtype, such as `JSUint8Array`. Use
    `from_elements()` to create one from numbers, or `for_tag()` to get the
    subtype for a `TypedArrayTag`.

    [JavaScript's TypedArray]: https://developer.mozilla.org/en-US/docs/Web/\
JavaScript/Reference/Global_Objects/TypedArray

    Examples
    --------
    >>> arr = JSInt16Array.from_elements([1, -2])
    >>> arr.buffer
    JSArrayBuffer(b'\\x01\\x00\\xfe\\xff')
    >>> arr.tolist()
    [1, -2]
    """

    typed_array_tag: ClassVar[TypedArrayTag]
    data_format: ClassVar[DataFormat]

    buffer: JSArrayBuffer
    """The backing buffer holding the elements' bytes."""

    def __post_init__(self) -> None:
        if type(self) is JSTypedArray:
            raise TypeError("JSTypedArray is abstract, use a subtype such as JSUint8Array")
        itemsize = self.data_format.byte_length
        if len(self.buffer) % itemsize:
            raise ItemSizeJSArrayBufferError(
                f"buffer byte length must be a multiple of the element size "
                f"{itemsize}",
                itemsize=itemsize,
                byte_length=len(self.buffer),
            )

    @classmethod
    def for_tag(cls, tag: TypedArrayTag) -> type[JSTypedArray]:
        """Get the `JSTypedArray` subtype that holds `tag` elements."""
        return TYPED_ARRAY_TYPES[tag]

    @classmethod
    def from_bytes(cls, data: Buffer) -> Self:
        """Create a typed array holding a copy of little-endian element bytes."""
        return cls(JSArrayBuffer(data))

    @classmethod
    def from_elements(cls, elements: Iterable[int | float]) -> Self:
        """
        Create a typed array holding numbers.

        Raises
        ------
        ValueError
            If an integer element is out of range for the element type.
        """
        values = list(elements)
        value_range = cls.data_format.value_range
        if value_range is not None:
            for i, value in enumerate(values):
                if value not in value_range:
                    raise ValueError(
                        f"{cls.__name__} element {i} is out of range: {value!r} "
                        f"is not in {value_range}"
                    )
        return cls(JSArrayBuffer(cls.data_format.pack(values)))

    @property
    def element_type(self) -> type[int | float]:
        """The Python type of this array's individual elements."""
        return self.data_format.data_type.python_type

    @property
    def byte_length(self) -> int:
        return len(self.buffer)

    def tolist(self) -> list[int | float]:
        return list(self.elements)

    @property
    def elements(self) -> tuple[int | float, ...]:
        return self.data_format.unpack(self.buffer.data, len(self))

    def __len__(self) -> int:
        return len(self.buffer) // self.data_format.byte_length

    def __iter__(self) -> Iterator[int | float]:
        return iter(self.elements)

    @overload
    def __getitem__(self, index: int) -> int | float: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[int | float, ...]: ...

    def __getitem__(self, index: int | slice) -> int | float | tuple[int | float, ...]:
        return self.elements[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.tolist()!r})"


@dataclass(frozen=True, slots=True, repr=False)
class JSUint8ClampedArray(JSTypedArray):
    typed_array_tag = TypedArrayTag.kUint8ClampedArray
    data_format = DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=1)

    @classmethod
    def from_elements(cls, elements: Iterable[int | float]) -> Self:
        """
        Create a clamped array, clamping and rounding elements into 0..255.

        As in JavaScript, values are clamped to the range, NaN becomes 0, and
        fractional values round half to even.

        >>> JSUint8ClampedArray.from_elements([-1, 2.5, 3.5, 300]).tolist()
        [0, 2, 4, 255]
        """
        values = [_clamp_uint8(e) for e in elements]
        return cls(JSArrayBuffer(cls.data_format.pack(values)))


def _clamp_uint8(value: int | float) -> int:
    if isinstance(value, float) and math.isnan(value):
        return 0
    return round(min(max(value, 0), 255))


@dataclass(frozen=True, slots=True, repr=False)
class JSInt8Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kInt8Array
    data_format = DataFormat.resolve(data_type=DataType.SignedInt, byte_length=1)


@dataclass(frozen=True, slots=True, repr=False)
class JSUint8Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kUint8Array
    data_format = DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=1)


@dataclass(frozen=True, slots=True, repr=False)
class JSInt16Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kInt16Array
    data_format = DataFormat.resolve(data_type=DataType.SignedInt, byte_length=2)


@dataclass(frozen=True, slots=True, repr=False)
class JSUint16Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kUint16Array
    data_format = DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=2)


@dataclass(frozen=True, slots=True, repr=False)
class JSInt32Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kInt32Array
    data_format = DataFormat.resolve(data_type=DataType.SignedInt, byte_length=4)


@dataclass(frozen=True, slots=True, repr=False)
class JSUint32Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kUint32Array
    data_format = DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=4)


@dataclass(frozen=True, slots=True, repr=False)
class JSBigInt64Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kBigInt64Array
    data_format = DataFormat.resolve(data_type=DataType.SignedInt, byte_length=8)


@dataclass(frozen=True, slots=True, repr=False)
class JSBigUint64Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kBigUint64Array
    data_format = DataFormat.resolve(data_type=DataType.UnsignedInt, byte_length=8)


@dataclass(frozen=True, slots=True, repr=False)
class JSFloat32Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kFloat32Array
    data_format = DataFormat.resolve(data_type=DataType.Float, byte_length=4)


@dataclass(frozen=True, slots=True, repr=False)
class JSFloat64Array(JSTypedArray):
    typed_array_tag = TypedArrayTag.kFloat64Array
    data_format = DataFormat.resolve(data_type=DataType.Float, byte_length=8)


TYPED_ARRAY_TYPES: Mapping[TypedArrayTag, type[JSTypedArray]] = MappingProxyType(
    {
        t.typed_array_tag: t
        for t in [
            JSUint8ClampedArray,
            JSInt8Array,
            JSUint8Array,
            JSInt16Array,
            JSUint16Array,
            JSInt32Array,
            JSUint32Array,
            JSBigInt64Array,
            JSBigUint64Array,
            JSFloat32Array,
            JSFloat64Array,
        ]
    }
)
"""The `JSTypedArray` subtype for each `TypedArrayTag`."""


@dataclass(init=False)
class ItemSizeJSArrayBufferError(QJSSerializeError, ValueError):
    """Raised when a buffer's byte length is not divisible by the element size."""

    itemsize: int
    byte_length: int

    def __init__(self, message: str, *, itemsize: int, byte_length: int) -> None:
        super().__init__(message)
        self.itemsize = itemsize
        self.byte_length = byte_length
