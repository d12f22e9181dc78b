"""Map Python values into JavaScript values in the QuickJS serialization format."""

from __future__ import annotations

import logging
import struct
from collections import abc
from collections.abc import Collection, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial, singledispatchmethod
from types import NoneType
from typing import TYPE_CHECKING, Any, Literal, Protocol, cast

from qjsserialize._errors import (
    DepthExceededEncodeQJSSerializeError,
    UnhandledValueEncodeQJSSerializeError,
)
from qjsserialize._pycompat.exceptions import add_note
from qjsserialize._pycompat.typing import get_buffer
from qjsserialize.constants import (
    ATOM_INT_RANGE,
    DEFAULT_MAX_DEPTH,
    FLOAT64_SAFE_INT_RANGE,
    INT32_RANGE,
    JS_CONSTANT_TAGS,
    MAX_STRING_LENGTH,
    UINT32_RANGE,
    ConstantTags,
    SerializationTag,
    kFormatVersion,
)
from qjsserialize.jstypes.jsbuffers import JSArrayBuffer, JSTypedArray
from qjsserialize.jstypes.jsundefined import JSUndefinedEnum, JSUndefinedType

if TYPE_CHECKING:
    from typing_extensions import Never, TypeAlias

    from _typeshed import SupportsWrite

logger = logging.getLogger(__name__)


def _encode_zigzag(number: int) -> int:
    return abs(number * 2) - (number < 0)


def _as_array_index(key: str) -> int | None:
    """Get the int value of a key that is the canonical text of an atom int."""
    if not (key.isascii() and key.isdigit()):
        return None
    if len(key) > 1 and key[0] == "0":
        return None
    index = int(key)
    return index if index in ATOM_INT_RANGE else None


@dataclass(init=False, slots=True)
class AtomTable:
    """
    The strings used as Object keys, in the order they were first written.

    Atoms are referenced by their 1-based position in the table, which is
    written in the stream header before the value that uses them.

    Examples
    --------
    >>> atoms = AtomTable()
    >>> atoms.intern('name'), atoms.intern('id'), atoms.intern('name')
    (1, 2, 1)
    >>> list(atoms)
    ['name', 'id']
    """

    _indexes: dict[str, int]

    def __init__(self, atoms: Iterable[str] = ()) -> None:
        self._indexes = {}
        for atom in atoms:
            self.intern(atom)

    def intern(self, atom: str) -> int:
        """Add an atom if it's not already present, and return its index."""
        return self._indexes.setdefault(atom, len(self._indexes) + 1)

    def __contains__(self, atom: object) -> bool:
        return atom in self._indexes

    def __iter__(self) -> Iterator[str]:
        return iter(self._indexes)

    def __len__(self) -> int:
        return len(self._indexes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._indexes)!r})"


@dataclass(slots=True)
class WritableTagStream:
    """Write individual tagged data items in the QuickJS serialization format.

    This is a low-level interface to incrementally generate a serialized byte
    stream. Object keys written to the stream are collected in `atoms`, which
    must be written with `write_header()` ahead of the stream's `data`.
    """

    data: bytearray = field(default_factory=bytearray)
    atoms: AtomTable = field(default_factory=AtomTable)
    depth: int = field(default=0)
    max_depth: int = field(default=DEFAULT_MAX_DEPTH)

    @property
    def pos(self) -> int:
        return len(self.data)

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track the descent into an Object, Array or TypedArray."""
        if self.depth >= self.max_depth:
            raise DepthExceededEncodeQJSSerializeError(
                f"Value is nested more than the maximum depth of {self.max_depth}",
                max_depth=self.max_depth,
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def write_tag(self, tag: SerializationTag | None) -> None:
        if tag is not None:
            self.data.append(tag)

    def write_varint(self, n: int) -> None:
        if n not in UINT32_RANGE:
            raise ValueError(f"varint must be in {UINT32_RANGE}: {n}")
        while True:
            uint7 = n & 0b1111111
            n >>= 7
            if n == 0:
                self.data.append(uint7)
                return
            self.data.append(uint7 | 0b10000000)

    def write_zigzag(self, n: int) -> None:
        self.write_varint(_encode_zigzag(n))

    def write_constant(self, constant: ConstantTags) -> None:
        if constant not in JS_CONSTANT_TAGS:
            raise ValueError(f"tag must be one of {JS_CONSTANT_TAGS}: {constant}")
        self.write_tag(constant)

    def write_header(self, atoms: Iterable[str]) -> None:
        """Write the stream header: the format version and the atom table."""
        atoms = list(atoms)
        self.data.append(kFormatVersion)
        self.write_varint(len(atoms))
        for atom in atoms:
            self.write_string(atom, tag=None)

    def write_int32(
        self,
        value: int,
        *,
        tag: Literal[SerializationTag.kInt32] | None = SerializationTag.kInt32,
    ) -> None:
        if value not in INT32_RANGE:
            raise ValueError(
                f"Python int is too large to represent as Int32: value must be "
                f"in {INT32_RANGE}"
            )
        self.write_tag(tag)
        self.write_zigzag(value)

    def write_double(
        self,
        value: float | int,
        *,
        tag: Literal[SerializationTag.kFloat64] | None = SerializationTag.kFloat64,
    ) -> None:
        self.write_tag(tag)
        self.data.extend(struct.pack("<d", value))

    def write_string(
        self,
        value: str,
        *,
        tag: Literal[SerializationTag.kString] | None = SerializationTag.kString,
    ) -> None:
        """Encode a String, as ASCII text if possible, otherwise UTF-16 code units.

        The length varint's low bit flags UTF-16 (wide) strings. The other bits
        hold the number of bytes or code units.
        """
        if value.isascii():
            encoded = value.encode("ascii")
            count, wide = len(encoded), 0
        else:
            # Lone surrogates can't be encoded strictly, but they are valid
            # code units in a JavaScript string.
            encoded = value.encode("utf-16-le", "surrogatepass")
            count, wide = len(encoded) // 2, 1
        if count > MAX_STRING_LENGTH:
            raise UnhandledValueEncodeQJSSerializeError(
                f"str is too long to encode: {count} characters is more than "
                f"the maximum of {MAX_STRING_LENGTH}",
                value=value,
            )
        self.write_tag(tag)
        self.write_varint(count << 1 | wide)
        self.data.extend(encoded)

    def write_atom(self, key: object) -> None:
        """Write an Object key, either as an inline integer or an atom reference."""
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise UnhandledValueEncodeQJSSerializeError(
                f"Object keys must be str or int, not {type(key).__name__}",
                value=key,
            )
        index = _as_array_index(key) if isinstance(key, str) else key
        if index is not None and index in ATOM_INT_RANGE:
            self.write_varint(index << 1 | 1)
        else:
            self.write_varint(self.atoms.intern(str(key)) << 1)

    def write_js_object(
        self, items: Collection[tuple[object, object]], *, ctx: EncodeContext
    ) -> None:
        self.write_tag(SerializationTag.kObject)
        self.write_varint(len(items))
        with self.nested():
            for key, value in items:
                self.write_atom(key)
                ctx.encode_object(value)

    def write_js_array(self, items: Collection[object], *, ctx: EncodeContext) -> None:
        self.write_tag(SerializationTag.kArray)
        self.write_varint(len(items))
        with self.nested():
            for value in items:
                ctx.encode_object(value)

    def write_js_array_buffer(
        self,
        buffer: JSArrayBuffer | bytes | bytearray | memoryview,
        *,
        tag: (
            Literal[SerializationTag.kArrayBuffer] | None
        ) = SerializationTag.kArrayBuffer,
    ) -> None:
        if isinstance(buffer, JSArrayBuffer):
            buffer = buffer.data
        with get_buffer(buffer) as data:
            self.write_tag(tag)
            self.write_varint(len(data))
            self.data.extend(data)

    def write_js_typed_array(self, value: JSTypedArray) -> None:
        """Write a TypedArray, followed by the ArrayBuffer holding its elements.

        The ArrayBuffer's length is written as the number of elements, not
        bytes, and the array's offset is always 0.
        """
        with self.nested():
            self.write_tag(SerializationTag.kTypedArray)
            self.data.append(value.typed_array_tag)
            self.write_varint(len(value))
            self.write_varint(0)  # offset
            self.write_tag(SerializationTag.kArrayBuffer)
            self.write_varint(len(value))
            self.data.extend(value.buffer.data)


class EncodeContext(Protocol):
    """Maintains the state needed to write Python objects in QuickJS format."""

    if TYPE_CHECKING:

        @property
        def stream(self) -> WritableTagStream:
            """The `WritableTagStream` this context writes to."""

    else:
        stream: WritableTagStream
        """The `WritableTagStream` this context writes to."""

    def encode_object(self, value: object) -> None:
        """Encode and write a single Python value to the stream."""


class EncodeNextFn(Protocol):
    """
    Delegate to the next encode step in the sequence to write a value.

    Raises
    ------
    UnhandledValueEncodeQJSSerializeError
        If none of the following steps were able to handle a value.
    """

    def __call__(self, value: object, /) -> None: ...


class EncodeStepFn(Protocol):
    """
    The signature of a function that writes serialized data to reflect objects.

    Encode steps can either write the `ctx.stream` directly, or delegate to the
    next encode step by calling `next()`. Steps can modify the representation
    of objects as JavaScript by passing a different `value` to next than the one
    they received.
    """

    def __call__(
        self, value: object, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None: ...


class EncodeStepObject(Protocol):
    encode: EncodeStepFn
    """The same as `EncodeStepFn`."""


EncodeStep: TypeAlias = "EncodeStepObject | EncodeStepFn"
"""Either an `EncodeStepObject` or `EncodeStepFn`."""


@dataclass(init=False, slots=True)
class DefaultEncodeContext(EncodeContext):
    encode_steps: Sequence[EncodeStep]
    stream: WritableTagStream

    def __init__(
        self,
        encode_steps: Iterable[EncodeStep] | None = None,
        *,
        stream: WritableTagStream | None = None,
    ) -> None:
        self.encode_steps = list(
            default_encode_steps if encode_steps is None else encode_steps
        )
        self.stream = WritableTagStream() if stream is None else stream

    def __encode_object_with_step(self, value: object, *, i: int) -> None:
        if i < len(self.encode_steps):
            step = self.encode_steps[i]
            next = partial(self.__encode_object_with_step, i=i + 1)
            if callable(step):
                return step(value, ctx=self, next=next)
            return step.encode(value, ctx=self, next=next)
        self._report_unmapped_value(value)

    def encode_object(self, value: object) -> None:
        """Serialize a single Python value to the stream.

        The encode_steps convert the Python value to JavaScript representation,
        and the stream writes out QuickJS serialization format tagged data.
        """
        return self.__encode_object_with_step(value, i=0)

    def _report_unmapped_value(self, value: object) -> Never:
        raise UnhandledValueEncodeQJSSerializeError(
            "No encode step was able to write the value", value=value
        )


@dataclass(slots=True)
class TagWriter(EncodeStepObject):
    """Defines the conversion of Python types into the QuickJS serialization format.

    TagWriters are responsible for making suitable calls to a WritableTagStream
    to represent Python objects with the encoded representations supported by
    the QuickJS serialization format.

    The stream delegates back to the `EncodeContext` when writing hierarchical
    objects, like arrays, to let the context pass sub-values through a sequence
    of encode steps, typically ending with a `TagWriter` as the final step.
    """

    @singledispatchmethod
    def encode(  # type: ignore[override]
        self, value: object, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        next(value)

    # Must use explicit type in register() as singledispatchmethod does not
    # reliably read the first positional argument's type annotation.

    @encode.register(int)
    def serialize_int(
        self, value: int, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        if value in INT32_RANGE:
            ctx.stream.write_int32(value)
        elif value in FLOAT64_SAFE_INT_RANGE:
            ctx.stream.write_double(value)
        else:
            try:
                next(value)
            except UnhandledValueEncodeQJSSerializeError as e:
                add_note(
                    e,
                    f"{type(self).__name__} does not write ints outside "
                    f"{FLOAT64_SAFE_INT_RANGE} because JavaScript numbers "
                    "cannot represent them exactly.",
                )
                raise e

    @encode.register(JSUndefinedEnum)
    def serialize_undefined(
        self, value: JSUndefinedType, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_constant(SerializationTag.kUndefined)

    @encode.register(bool)
    def serialize_bool(
        self, value: bool, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_constant(
            SerializationTag.kTrue if value else SerializationTag.kFalse
        )

    @encode.register(cast(Any, NoneType))  # None confuses the register() type
    def serialize_none(
        self, value: None, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_constant(SerializationTag.kNull)

    @encode.register(str)
    def serialize_str(
        self, value: str, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_string(value)

    @encode.register(float)
    def serialize_float(
        self, value: float, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_double(value)

    @encode.register(abc.Mapping)
    def serialize_mapping(
        self,
        value: Mapping[object, object],
        /,
        ctx: EncodeContext,
        next: EncodeNextFn,
    ) -> None:
        ctx.stream.write_js_object(value.items(), ctx=ctx)

    @encode.register(abc.Collection)
    def serialize_collection(
        self, value: Collection[object], /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_js_array(value, ctx=ctx)

    @encode.register(JSArrayBuffer)
    @encode.register(bytes)
    @encode.register(bytearray)
    @encode.register(memoryview)
    def serialize_buffer(
        self,
        value: JSArrayBuffer | bytes | bytearray | memoryview,
        /,
        ctx: EncodeContext,
        next: EncodeNextFn,
    ) -> None:
        ctx.stream.write_js_array_buffer(value)

    @encode.register(JSTypedArray)
    def serialize_typed_array(
        self, value: JSTypedArray, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_js_typed_array(value)


default_encode_steps: tuple[EncodeStep, ...] = (TagWriter(),)
"""
The default sequence of encode steps used to map Python objects to JavaScript values.

The defaults represent common Python types as their JavaScript equivalents, and
serialize the `qjsserialize.jstypes.JS*` types as their corresponding
JavaScript type.
"""


@dataclass(init=False)
class Encoder:
    """
    A re-usable configuration for serializing objects into QuickJS serialization format.

    The `encode_steps` and `max_depth` arguments behave as described for
    `dumps()`. The `encode()` method behaves like `dumps()` without needing to
    pass the arguments for every call.

    Parameters
    ----------
    encode_steps
        The sequence of encode steps that control how the `value` is converted
        to JavaScript types.
    max_depth
        The deepest that Objects, Arrays and TypedArrays may be nested.
    """

    encode_steps: Sequence[EncodeStep]
    max_depth: int

    def __init__(
        self,
        *,
        encode_steps: Iterable[EncodeStep] | None = default_encode_steps,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0: {max_depth}")
        self.encode_steps = (
            default_encode_steps if encode_steps is None else tuple(encode_steps)
        )
        self.max_depth = max_depth

    def encode(self, value: object) -> bytearray:
        """
        Serialize a value in the QuickJS serialization format.

        Parameters
        ----------
        value
            The Python object to serialize.

        Returns
        -------
        :
            A `bytearray` containing the encoded bytes.
        """
        ctx = DefaultEncodeContext(
            stream=WritableTagStream(max_depth=self.max_depth),
            encode_steps=self.encode_steps,
        )
        # The header's atom table can only be written once all the Object keys
        # in the value are known.
        try:
            ctx.encode_object(value)
        except RecursionError as e:
            raise DepthExceededEncodeQJSSerializeError(
                "Value is nested too deeply to encode within the Python "
                f"recursion limit (max_depth={self.max_depth})",
                max_depth=self.max_depth,
            ) from e

        output = WritableTagStream()
        output.write_header(ctx.stream.atoms)
        output.data.extend(ctx.stream.data)
        logger.debug(
            "Encoded value: atom_count=%d, payload_size=%d",
            len(ctx.stream.atoms),
            len(ctx.stream.data),
        )
        return output.data

    def dump(self, value: object, fp: SupportsWrite[bytes]) -> None:
        """Serialize a value in the QuickJS serialization format to a file."""
        fp.write(bytes(self.encode(value)))


def dumps(
    value: object,
    *,
    encode_steps: Iterable[EncodeStep] | None = default_encode_steps,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bytes:
    """
    Serialize a Python value into a JavaScript value in the QuickJS serialization format.

    Parameters
    ----------
    value
        The Python value to serialize.
    encode_steps
        The sequence of encode steps that control how the `value` is converted
        to JavaScript types.
    max_depth
        The deepest that Objects, Arrays and TypedArrays may be nested.

    Returns
    -------
    :
        The serialized data.

    Raises
    ------
    UnhandledValueEncodeQJSSerializeError
        When a `value` (or a sub-value within it) is not supported by the
        `encode_steps`, or cannot be represented without losing data.
    DepthExceededEncodeQJSSerializeError
        When `value` is nested more deeply than `max_depth`, which includes
        values that contain themselves.
    EncodeQJSSerializeError
        Is the parent of all data-specific errors thrown when encoding.

    Examples
    --------
    >>> list(dumps(None))
    [12, 0, 1]
    >>> list(dumps({'k': None}))
    [12, 1, 2, 107, 8, 1, 2, 1]

    >>> from qjsserialize import loads
    >>> loads(dumps({'id': 42, 'tags': ['foo', 'bar']}))
    JSObject({'id': 42, 'tags': JSArray(['foo', 'bar'])})
    """
    encoder = Encoder(encode_steps=encode_steps, max_depth=max_depth)
    return bytes(encoder.encode(value))
