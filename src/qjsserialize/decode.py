"""Deserialize JavaScript values from the QuickJS serialization format into Python values."""

from __future__ import annotations

import codecs
import logging
import operator
import struct
from collections.abc import (
    Generator,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    MutableSequence,
    Sequence,
)
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Final,
    Literal,
    Protocol,
    TypeVar,
    cast,
    overload,
)

from qjsserialize._errors import (
    AtomOutOfRangeDecodeQJSSerializeError,
    BadTypedArrayTagDecodeQJSSerializeError,
    DecodeQJSSerializeError,
    DepthExceededDecodeQJSSerializeError,
    OverflowDecodeQJSSerializeError,
    SizeMismatchDecodeQJSSerializeError,
    StructureDecodeQJSSerializeError,
    TruncatedDecodeQJSSerializeError,
    UnsupportedTagDecodeQJSSerializeError,
    VersionMismatchDecodeQJSSerializeError,
)
from qjsserialize._pycompat.typing import (
    Buffer,
    ReadableBinary,
    get_buffer,
    is_readable_binary,
)
from qjsserialize.binding import bind_object
from qjsserialize.constants import (
    DEFAULT_MAX_DEPTH,
    INT32_RANGE,
    JS_CONSTANT_TAGS,
    UINT32_RANGE,
    UNSUPPORTED_TAGS,
    ConstantTags,
    SerializationTag,
    TagConstraint,
    TypedArrayTag,
    UnsupportedTags,
    kFormatVersion,
)
from qjsserialize.jstypes import JSArray, JSObject, JSUndefined
from qjsserialize.jstypes.jsbuffers import JSArrayBuffer, JSTypedArray

if TYPE_CHECKING:
    from typing_extensions import Never, TypeAlias

    from _typeshed import SupportsRead

    from qjsserialize._errors import QJSSerializeError

T = TypeVar("T")
TagT = TypeVar("TagT", bound=SerializationTag)

if TYPE_CHECKING:
    TagT_con = TypeVar(
        "TagT_con",
        bound=SerializationTag,
        contravariant=True,
        default=SerializationTag,
    )
else:
    TagT_con = TypeVar("TagT_con", bound=SerializationTag, contravariant=True)

logger = logging.getLogger(__name__)

_MAX_VARINT_BYTES: Final = 5


def _decode_zigzag(n: int) -> int:
    """Convert ZigZag encoded unsigned int to signed.

    ZigZag encoding maps signed ints to unsigned: -2 = 3, -1 = 1, 0 = 0, 1 = 2.
    """
    if n % 2:
        return -((n + 1) // 2)
    return n // 2


@dataclass(slots=True)
class ReadableTagStream:
    """
    Read the primitive parts of the QuickJS serialization format from bytes.

    The stream tracks the current read position, the atom table read from the
    header and the current nesting depth of Objects, Arrays and TypedArrays.
    Every error raised while reading is a `DecodeQJSSerializeError` recording
    the position it occurred at.
    """

    data: ReadableBinary
    pos: int = field(default=0)
    atoms: tuple[str, ...] = field(default=())
    depth: int = field(default=0)
    max_depth: int = field(default=DEFAULT_MAX_DEPTH)

    @property
    def eof(self) -> bool:
        return self.pos == len(self.data)

    def ensure_capacity(self, count: int) -> None:
        if self.pos + count > len(self.data):
            available = max(0, len(self.data) - self.pos)
            self.throw(
                f"Data truncated: Expected {count} bytes at position {self.pos} but "
                f"{available} available",
                error=TruncatedDecodeQJSSerializeError,
            )

    def throw(
        self,
        message: str,
        *,
        error: Callable[..., QJSSerializeError] = DecodeQJSSerializeError,
        cause: BaseException | None = None,
        **fields: Any,
    ) -> Never:
        raise error(message, data=self.data, position=self.pos, **fields) from cause

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track the descent into an Object, Array or TypedArray."""
        if self.depth >= self.max_depth:
            self.throw(
                f"Data is nested more than the maximum depth of {self.max_depth}",
                error=DepthExceededDecodeQJSSerializeError,
                max_depth=self.max_depth,
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    @overload
    def read_tag(self, tag: None = None) -> SerializationTag: ...

    @overload
    def read_tag(self, tag: TagT) -> TagT: ...

    def read_tag(self, tag: SerializationTag | None = None) -> SerializationTag:
        """Read the tag at the current position.

        If `tag` is set, the tag must be the one given, otherwise
        `StructureDecodeQJSSerializeError` is raised.
        """
        self.ensure_capacity(1)
        value = self.data[self.pos]
        if tag is None:
            if value not in SerializationTag:
                self.throw(
                    f"unknown tag {value}",
                    error=UnsupportedTagDecodeQJSSerializeError,
                    tag=value,
                )
            self.pos += 1
            return SerializationTag(value)

        if value == tag:
            self.pos += 1
            return tag

        if value in SerializationTag:
            actual = f"{value} ({SerializationTag(value).name})"
        else:
            actual = f"{value} (not a valid tag)"
        self.throw(
            f"Expected tag {tag.name} at position {self.pos} but found {actual}",
            error=StructureDecodeQJSSerializeError,
        )

    def read_byte(self) -> int:
        self.ensure_capacity(1)
        self.pos += 1
        return self.data[self.pos - 1]

    def read_bytes(self, count: int) -> ReadableBinary:
        self.ensure_capacity(count)
        self.pos += count
        return self.data[self.pos - count : self.pos]

    def read_varint(self) -> int:
        """Read an unsigned LEB128 varint holding a uint32 value."""
        data = self.data
        start = self.pos
        end = min(len(data), start + _MAX_VARINT_BYTES)
        varint = 0
        for i, pos in enumerate(range(start, end)):
            encoded = data[pos]
            varint |= (encoded & 0b1111111) << (7 * i)
            # The most-significant bit is set except on the final byte
            if encoded < 0b10000000:
                if varint not in UINT32_RANGE:
                    self.throw(
                        f"Varint is out of {UINT32_RANGE} for uint32: {varint}",
                        error=OverflowDecodeQJSSerializeError,
                        value=varint,
                    )
                self.pos = pos + 1
                return varint

        if len(data) - start >= _MAX_VARINT_BYTES:
            self.throw(
                f"Varint is longer than {_MAX_VARINT_BYTES} bytes",
                error=OverflowDecodeQJSSerializeError,
                value=varint,
            )
        count = len(data) - start
        self.pos = len(data)
        self.throw(
            f"Data truncated: end of stream while reading varint after reading "
            f"{count} bytes",
            error=TruncatedDecodeQJSSerializeError,
        )

    def read_zigzag(self) -> int:
        uint = self.read_varint()
        return _decode_zigzag(uint)

    def read_header(self) -> tuple[str, ...]:
        """Read the stream header, verify its version and load its atom table.

        Returns
        -------
        :
            The strings of the atom table.
        """
        version = self.read_byte()
        if version != kFormatVersion:
            self.pos -= 1
            self.throw(
                f"Unsupported version {version}, only version {kFormatVersion} "
                "can be read",
                error=VersionMismatchDecodeQJSSerializeError,
                version=version,
            )
        atom_count = self.read_varint()
        self.atoms = tuple(self.read_string() for _ in range(atom_count))
        logger.debug(
            "Read header: version=%d, atom_count=%d", version, len(self.atoms)
        )
        return self.atoms

    def read_int32(self, *, tag: bool = False) -> int:
        if tag:
            self.read_tag(SerializationTag.kInt32)
        start = self.pos
        value = self.read_zigzag()
        if value in INT32_RANGE:
            return value
        self.pos = start
        self.throw(
            f"Serialized value is out of {INT32_RANGE} for Int32: {value}",
            error=OverflowDecodeQJSSerializeError,
            value=value,
        )

    def read_double(self, *, tag: bool = False) -> float:
        if tag:
            self.read_tag(SerializationTag.kFloat64)
        self.ensure_capacity(8)
        value = cast(float, struct.unpack_from("<d", self.data, self.pos)[0])
        self.pos += 8
        return value

    def read_string(self, *, tag: bool = False) -> str:
        """Decode a String, which is either UTF-8 text or UTF-16 code units.

        The low bit of the length varint is set for wide (UTF-16) strings, the
        remaining bits are the number of bytes or code units that follow.
        """
        if tag:
            self.read_tag(SerializationTag.kString)
        length = self.read_varint()
        is_wide = length & 1
        count = length >> 1
        if is_wide:
            # Lone surrogates are valid in JavaScript strings, so keep them.
            return codecs.decode(
                self.read_bytes(count * 2), "utf-16-le", "surrogatepass"
            )
        # Bytes that are not valid UTF-8 become U+FFFD replacement characters.
        # We use codecs.decode because not all ReadableBinary types have a
        # decode method.
        return codecs.decode(self.read_bytes(count), "utf-8", "replace")

    def read_atom(self) -> str:
        """Read an Object key, which is an atom table reference or an integer.

        Keys with the low bit set are integers, otherwise the key is a 1-based
        index into the header's atom table.
        """
        start = self.pos
        value = self.read_varint()
        if value & 1:
            return str(value >> 1)
        index = value >> 1
        if 0 < index <= len(self.atoms):
            return self.atoms[index - 1]
        self.pos = start
        self.throw(
            f"Atom index {index} is not in the atom table of {len(self.atoms)} atoms",
            error=AtomOutOfRangeDecodeQJSSerializeError,
            atom_index=index,
            atom_count=len(self.atoms),
        )

    def read_js_object(
        self, ctx: DecodeContext, *, tag: bool = False
    ) -> Generator[tuple[str, object], None, int]:
        """Read an Object's properties, yielding them as (key, value) pairs."""
        if tag:
            self.read_tag(SerializationTag.kObject)
        count = self.read_varint()
        with self.nested():
            for _ in range(count):
                key = self.read_atom()
                yield key, ctx.decode_object()
        return count

    def read_js_array(
        self, ctx: DecodeContext, *, tag: bool = False
    ) -> Generator[object, None, int]:
        """Read an Array's elements, yielding them in order."""
        if tag:
            self.read_tag(SerializationTag.kArray)
        count = self.read_varint()
        with self.nested():
            for _ in range(count):
                yield ctx.decode_object()
        return count

    def read_js_array_buffer(self, *, tag: bool = False) -> JSArrayBuffer:
        if tag:
            self.read_tag(SerializationTag.kArrayBuffer)
        byte_length = self.read_varint()
        return JSArrayBuffer(self.read_bytes(byte_length))

    def read_js_typed_array(self, *, tag: bool = False) -> JSTypedArray:
        """Read a TypedArray and the ArrayBuffer holding its elements.

        The array's offset is not meaningful outside the serializing process,
        so it's read and ignored. The ArrayBuffer that follows holds exactly the
        array's elements.
        """
        if tag:
            self.read_tag(SerializationTag.kTypedArray)
        with self.nested():
            kind = self.read_byte()
            if kind not in TypedArrayTag:
                self.pos -= 1
                self.throw(
                    f"TypedArray has an unknown element kind {kind}",
                    error=BadTypedArrayTagDecodeQJSSerializeError,
                    typed_array_tag=kind,
                )
            typed_array_type = JSTypedArray.for_tag(TypedArrayTag(kind))
            length = self.read_varint()
            self.read_varint()  # offset

            self.read_tag(SerializationTag.kArrayBuffer)
            buffer_start = self.pos
            buffer_length = self.read_varint()
            if buffer_length != length:
                self.pos = buffer_start
                self.throw(
                    f"{typed_array_type.__name__} length does not match the "
                    f"length of the ArrayBuffer that follows it: "
                    f"expected={length}, actual={buffer_length}",
                    error=SizeMismatchDecodeQJSSerializeError,
                    expected=length,
                    actual=buffer_length,
                )
            itemsize = typed_array_type.data_format.byte_length
            return typed_array_type.from_bytes(self.read_bytes(length * itemsize))


class TagReaderFn(Protocol[TagT_con]):
    """
    The type of a function that reads tags on behalf of a `TagReader`.

    Typically this is an unbound method of `TagReader`.
    """

    def __call__(
        self,
        tag_reader: TagReader,
        tag: TagT_con,
        ctx: DecodeContext,
        /,
    ) -> object: ...


@dataclass(init=False, slots=True)
class TagReaderRegistry:
    """
    A registry of `SerializationTag`s and the functions that can read them.

    `TagReader` uses this to dispatch decode calls to an appropriate function.
    """

    index: Mapping[SerializationTag, TagReaderFn[SerializationTag]]
    _index: dict[SerializationTag, TagReaderFn[SerializationTag]]

    def __init__(self, entries: TagReaderRegistry | None = None) -> None:
        self._index = {}
        self.index = MappingProxyType(self._index)
        if entries:
            self.register_all(entries)

    def register(
        self, tag: TagT | TagConstraint[TagT], tag_reader: TagReaderFn[TagT]
    ) -> None:
        """Associate a function with a tag, so that `match()` will return it."""
        if isinstance(tag, TagConstraint):
            for t in sorted(tag.allowed_tags):
                self._index[cast(SerializationTag, t)] = cast(
                    TagReaderFn[SerializationTag], tag_reader
                )
        else:
            self._index[cast(SerializationTag, tag)] = cast(
                TagReaderFn[SerializationTag], tag_reader
            )

    def register_all(self, registry: TagReaderRegistry) -> None:
        """
        Copy the registrations of another registry into this one.

        Existing registrations that also occur in `registry` are overwritten.
        """
        self._index.update(registry.index)

    def match(self, tag: TagT) -> TagReaderFn[TagT] | None:
        """Get the `TagReaderFn` function registered for a tag, or `None`."""
        return self._index.get(tag)


class ReadableTagStreamReadFunction(Protocol):
    """The type of an unbound, argument-less `ReadableTagStream` method."""

    def __call__(self, cls: ReadableTagStream, /) -> object: ...

    @property
    def __name__(self) -> str: ...


def read_stream(rts_fn: ReadableTagStreamReadFunction) -> TagReaderFn:
    """Create a `TagReaderFn` that calls a `read_xxx` function on the stream."""
    read_fn = operator.methodcaller(rts_fn.__name__)

    def read_stream__tag_reader(
        tag_reader: TagReader, tag: SerializationTag, ctx: DecodeContext
    ) -> object:
        return read_fn(ctx.stream)

    read_stream__tag_reader.__name__ = (
        f"{read_stream__tag_reader.__name__}#{rts_fn.__name__}"
    )
    read_stream__tag_reader.__qualname__ = (
        f"{read_stream__tag_reader.__qualname__}#{rts_fn.__name__}"
    )

    return read_stream__tag_reader


class DecodeContext(Protocol):
    if TYPE_CHECKING:

        @property
        def stream(self) -> ReadableTagStream:
            """The `ReadableTagStream` this context reads from."""

    else:
        stream: ReadableTagStream
        """The `ReadableTagStream` this context reads from."""

    def decode_object(self, *, tag: SerializationTag | None = ...) -> object:
        """
        Return a value by reading a tag's data from this context's stream.

        If `tag` is None, the stream is positioned on a tag which must be read
        and advanced over. If `tag` is a `SerializationTag`, it is the tag that
        the stream is now positioned just after.

        Raises
        ------
        UnsupportedTagDecodeQJSSerializeError
            If it's not possible to read the tag.
        """


class DecodeNextFn(Protocol):
    """
    Delegate to the next decode step in the sequence to read a tag from the stream.

    Raises
    ------
    UnsupportedTagDecodeQJSSerializeError
        If none of the following decode steps were able to read the tag.
    """

    def __call__(self, tag: SerializationTag, /) -> object: ...


class DecodeStepFn(Protocol):
    """
    The signature of a function that returns objects to reflect serialized data.

    Decode steps can either read the `ctx.stream` directly, or delegate to the
    next decode step by calling `next()`. Steps can modify the value decoded by
    the next step before returning it.
    """

    def __call__(
        self, tag: SerializationTag, /, ctx: DecodeContext, next: DecodeNextFn
    ) -> object: ...


class DecodeStepObject(Protocol):
    decode: DecodeStepFn
    """The same as `DecodeStepFn`."""


DecodeStep: TypeAlias = "DecodeStepObject | DecodeStepFn"
"""Either a `DecodeStepObject` or `DecodeStepFn`."""


@dataclass(init=False, slots=True)
class DefaultDecodeContext(DecodeContext):
    """The default implementation of `DecodeContext`."""

    decode_steps: Sequence[DecodeStep]
    stream: ReadableTagStream

    def __init__(
        self,
        *,
        data: ReadableBinary | None = None,
        stream: ReadableTagStream | None = None,
        decode_steps: Iterable[DecodeStep] | None = None,
    ) -> None:
        if stream is None:
            if data is None:
                raise ValueError("data or stream must be provided")
            stream = ReadableTagStream(data)
        elif data is not None:
            raise ValueError("data and stream cannot both be provided")

        self.stream = stream
        self.decode_steps = list(
            default_decode_steps if decode_steps is None else decode_steps
        )

    def __decode_tag_with_step(self, tag: SerializationTag, *, i: int) -> object:
        if i < len(self.decode_steps):
            step = self.decode_steps[i]
            next = partial(self.__decode_tag_with_step, i=i + 1)
            if callable(step):
                return step(tag, ctx=self, next=next)
            return step.decode(tag, ctx=self, next=next)
        self._report_unhandled_tag(tag)

    def decode_object(self, *, tag: SerializationTag | None = None) -> object:
        if tag is None:
            tag = self.stream.read_tag()
        return self.__decode_tag_with_step(tag, i=0)

    def _report_unhandled_tag(self, tag: SerializationTag) -> Never:
        self.stream.throw(
            f"No decode step was able to read the tag {tag.name}",
            error=UnsupportedTagDecodeQJSSerializeError,
            tag=tag,
        )


JSObjectType = Callable[[], MutableMapping[str, object]]
JSArrayType = Callable[[], MutableSequence[object]]


@dataclass(init=False, slots=True)
class TagReader(DecodeStepObject):
    """
    Controls how serialized data is converted to Python values when deserializing.

    Customise the way JavaScript values are represented in Python by creating a
    `TagReader` instance with non-default options, and passing it to the
    `decode_steps` option of `qjsserialize.loads()` or `qjsserialize.Decoder()`.

    Parameters
    ----------
    tag_readers
        Override the tag reader functions implied by other arguments.
        Default: no overrides.
    js_object_type
        A function returning an empty `dict` to represent Object.
        Default: `JSObject`.
    js_array_type
        A function returning an empty `list` to represent Array.
        Default: `JSArray`.
    js_constants
        A dict mapping tags from `JS_CONSTANT_TAGS` to the values to represent
        them as. Default: see `JS_CONSTANT_TAGS`.
    """

    tag_readers: TagReaderRegistry
    js_object_type: JSObjectType
    js_array_type: JSArrayType
    js_constants: Mapping[ConstantTags, object]

    def __init__(
        self,
        tag_readers: TagReaderRegistry | None = None,
        js_object_type: JSObjectType | None = None,
        js_array_type: JSArrayType | None = None,
        js_constants: Mapping[ConstantTags, object] | None = None,
    ) -> None:
        self.js_object_type = js_object_type or JSObject
        self.js_array_type = js_array_type or JSArray

        _js_constants = dict(js_constants) if js_constants is not None else {}
        _js_constants.setdefault(SerializationTag.kUndefined, JSUndefined)
        _js_constants.setdefault(SerializationTag.kNull, None)
        _js_constants.setdefault(SerializationTag.kTrue, True)
        _js_constants.setdefault(SerializationTag.kFalse, False)
        self.js_constants = MappingProxyType(_js_constants)

        self.tag_readers = TagReaderRegistry()
        self.register_tag_readers(self.tag_readers)
        if tag_readers:
            self.tag_readers.register_all(tag_readers)

    def register_tag_readers(self, tag_readers: TagReaderRegistry) -> None:
        r = tag_readers.register

        # fmt: off

        # primitives: read straight from the stream
        r(SerializationTag.kInt32, read_stream(ReadableTagStream.read_int32))
        r(SerializationTag.kFloat64, read_stream(ReadableTagStream.read_double))
        r(SerializationTag.kString, read_stream(ReadableTagStream.read_string))
        r(SerializationTag.kArrayBuffer, read_stream(ReadableTagStream.read_js_array_buffer))  # noqa: E501
        r(SerializationTag.kTypedArray, read_stream(ReadableTagStream.read_js_typed_array))  # noqa: E501

        # Tags which require tag-specific behaviour
        r(JS_CONSTANT_TAGS, TagReader.deserialize_constant)
        r(SerializationTag.kObject, TagReader.deserialize_js_object)
        r(SerializationTag.kArray, TagReader.deserialize_js_array)
        r(UNSUPPORTED_TAGS, TagReader.deserialize_unsupported)

        # fmt: on

    def decode(
        self, tag: SerializationTag, /, ctx: DecodeContext, next: DecodeNextFn
    ) -> object:
        read_tag = self.tag_readers.match(tag)
        if not read_tag:
            return next(tag)
        return read_tag(self, tag, ctx)

    def deserialize_constant(self, tag: ConstantTags, ctx: DecodeContext) -> object:
        return self.js_constants[tag]

    def deserialize_js_object(
        self, tag: Literal[SerializationTag.kObject], ctx: DecodeContext
    ) -> MutableMapping[str, object]:
        assert tag == SerializationTag.kObject
        obj = self.js_object_type()
        # Later duplicate keys replace earlier ones, as assignment does in JS.
        obj.update(ctx.stream.read_js_object(ctx))
        return obj

    def deserialize_js_array(
        self, tag: Literal[SerializationTag.kArray], ctx: DecodeContext
    ) -> MutableSequence[object]:
        assert tag == SerializationTag.kArray
        array = self.js_array_type()
        array.extend(ctx.stream.read_js_array(ctx))
        return array

    def deserialize_unsupported(
        self, tag: UnsupportedTags, ctx: DecodeContext
    ) -> Never:
        ctx.stream.throw(
            f"Stream contains a {tag.name} which is not supported",
            error=UnsupportedTagDecodeQJSSerializeError,
            tag=tag,
        )


default_decode_steps: Final[Sequence[DecodeStep]] = (TagReader(),)
"""
The default sequence of decode steps used to map `SerializationTag`s to Python objects.

This is an instance of `TagReader` with no options changed from the defaults.
"""


@dataclass(init=False)
class Decoder:
    """
    A re-usable configuration for deserializing QuickJS serialization format data.

    The `decode_steps` and `max_depth` arguments behave as described for
    `loads()`. The `decode()` and `decodes()` methods behave like `loads()`
    without needing to pass the options for every call.

    Parameters
    ----------
    decode_steps
        A sequence of decode steps, which are responsible for creating Python
        values to represent the JavaScript values found when decoding data.
    max_depth
        The deepest that Objects, Arrays and TypedArrays may be nested.
    """

    decode_steps: Sequence[DecodeStep]
    """The sequence of decode steps that define how to create Python values."""
    max_depth: int
    """The deepest that Objects, Arrays and TypedArrays may be nested."""

    def __init__(
        self,
        decode_steps: Iterable[DecodeStep] | None = default_decode_steps,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0: {max_depth}")
        self.decode_steps = (
            default_decode_steps if decode_steps is None else tuple(decode_steps)
        )
        self.max_depth = max_depth

    def decode(self, fp: SupportsRead[bytes]) -> object:
        """
        Deserialize QuickJS serialization format data from a file.

        Parameters
        ----------
        fp
            The file-like object to read and deserialize.

        Returns
        -------
        :
            The first value in the `fp`.
        """
        return self.decodes(fp.read())

    def decodes(self, data: ReadableBinary | Buffer) -> object:
        """
        Deserialize QuickJS serialization format data from a bytes-like object.

        Parameters
        ----------
        data
            The bytes-like object to deserialize.

        Returns
        -------
        :
            The first value in `data`. Any bytes following it are ignored.
        """
        ctx = DefaultDecodeContext(
            stream=ReadableTagStream(
                data if is_readable_binary(data) else get_buffer(data),
                max_depth=self.max_depth,
            ),
            decode_steps=self.decode_steps,
        )
        ctx.stream.read_header()
        try:
            return ctx.decode_object()
        except RecursionError as e:
            ctx.stream.throw(
                "Data is nested too deeply to decode within the Python "
                f"recursion limit (max_depth={self.max_depth})",
                error=DepthExceededDecodeQJSSerializeError,
                max_depth=self.max_depth,
                cause=e,
            )

    def decode_into(self, fp: SupportsRead[bytes], record: T) -> T:
        """Deserialize an Object from a file and bind its properties to `record`."""
        return self.decodes_into(fp.read(), record)

    def decodes_into(self, data: ReadableBinary | Buffer, record: T) -> T:
        """
        Deserialize an Object from bytes and bind its properties to `record`.

        `record` is a dataclass instance. Its fields are assigned from the
        Object's properties of the same name, see `qjsserialize.binding`.

        Returns
        -------
        :
            `record`, after its fields have been assigned.
        """
        return bind_object(self.decodes(data), record)


def _create_decoder(
    *,
    decode_steps: Iterable[DecodeStep] | None,
    js_object_type: JSObjectType | None,
    js_array_type: JSArrayType | None,
    js_constants: Mapping[ConstantTags, object] | None,
    max_depth: int,
) -> Decoder:
    if decode_steps is not None:
        if not (
            js_object_type is None and js_array_type is None and js_constants is None
        ):
            raise TypeError(
                "'decode_steps' argument cannot be passed to loads() with "
                "arguments for TagReader"
            )
        return Decoder(decode_steps=decode_steps, max_depth=max_depth)

    tag_reader = TagReader(
        js_object_type=js_object_type,
        js_array_type=js_array_type,
        js_constants=js_constants,
    )
    return Decoder(decode_steps=[tag_reader], max_depth=max_depth)


def loads(
    data: ReadableBinary | Buffer,
    *,
    decode_steps: Iterable[DecodeStep] | None = None,
    js_object_type: JSObjectType | None = None,
    js_array_type: JSArrayType | None = None,
    js_constants: Mapping[ConstantTags, object] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> object:
    """Deserialize a JavaScript value encoded in QuickJS serialization format.

    The serialized JavaScript types are mapped to appropriate Python equivalents
    according to the keyword argument options:

    1. If `decode_steps` is set, the steps are used as-is and the `TagReader`
        options cannot also be set.
    2. If `decode_steps` is not set, other options are used to construct
        a `TagReader` to serve as the `decode_steps`.

    Parameters
    ----------
    data
        The bytes to deserialize as a bytes-like object such as `bytes`,
        `bytearray`, `memoryview`.
    decode_steps
        A sequence of decode steps, which are responsible for creating Python
        values to represent the JavaScript values found in the `data`.
    js_object_type
        A function returning an empty `dict` to represent Object.
        Default: `JSObject`.
    js_array_type
        A function returning an empty `list` to represent Array.
        Default: `JSArray`.
    js_constants
        A dict mapping tags from `JS_CONSTANT_TAGS` to the values to represent
        them as. Default: see `JS_CONSTANT_TAGS`.
    max_depth
        The deepest that Objects, Arrays and TypedArrays may be nested.

    Returns
    -------
    :
        The first value in the `data`, as deserialized by the `decode_steps`.

    Raises
    ------
    DecodeQJSSerializeError
        When `data` is not well-formed QuickJS serialization format data.
        Subclasses of this error identify the specific problem.

    Examples
    --------
    >>> loads(bytes([12, 0, 5, 84]))
    42
    >>> loads(bytes([12, 1, 2, 107, 8, 1, 2, 1]))
    JSObject({'k': None})

    JavaScript null and undefined are different in Python by default, but we
    can make them both be None:

    >>> from qjsserialize.constants import SerializationTag
    >>> loads(bytes([12, 0, 2]))
    JSUndefined
    >>> print(loads(bytes([12, 0, 2]),
    ...             js_constants={SerializationTag.kUndefined: None}))
    None
    """
    decoder = _create_decoder(
        decode_steps=decode_steps,
        js_object_type=js_object_type,
        js_array_type=js_array_type,
        js_constants=js_constants,
        max_depth=max_depth,
    )
    return decoder.decodes(data)


def loads_into(
    data: ReadableBinary | Buffer,
    record: T,
    *,
    decode_steps: Iterable[DecodeStep] | None = None,
    js_object_type: JSObjectType | None = None,
    js_array_type: JSArrayType | None = None,
    js_constants: Mapping[ConstantTags, object] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> T:
    """Deserialize a JavaScript Object and assign its properties to `record`.

    Options are the same as `loads()`. `record` is a dataclass instance, see
    `qjsserialize.binding.bind_object` for how properties are assigned.

    Returns
    -------
    :
        `record`, after its fields have been assigned.

    Raises
    ------
    DecodeQJSSerializeError
        When `data` is not well-formed QuickJS serialization format data.
    TypeMismatchBindQJSSerializeError
        When the decoded value is not an Object, or one of its properties is
        not compatible with the type of the field it is assigned to.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Record:
    ...     k: int = -1
    >>> loads_into(bytes([12, 1, 2, 107, 8, 1, 2, 5, 84]), Record())
    Record(k=42)
    """
    decoder = _create_decoder(
        decode_steps=decode_steps,
        js_object_type=js_object_type,
        js_array_type=js_array_type,
        js_constants=js_constants,
        max_depth=max_depth,
    )
    return decoder.decodes_into(data, record)
