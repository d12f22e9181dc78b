"""Constant values related to the QuickJS serialization format."""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Generic, Literal, TypeVar

from qjsserialize._pycompat.dataclasses import FrozenAfterInitDataclass
from qjsserialize._pycompat.enum import IntEnum

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

kFormatVersion: Final = 12
"""The only serialization format version that is read and written."""

DEFAULT_MAX_DEPTH: Final = 100
"""The default limit on how deeply Objects, Arrays and TypedArrays can nest.

Each level of nesting uses several Python stack frames, so limits much larger
than this can reach the interpreter's recursion limit before this one. That is
also reported as a DepthExceeded error.
"""

INT32_RANGE: Final = range(-(2**31), 2**31)
UINT32_RANGE: Final = range(0, 2**32)
FLOAT64_SAFE_INT_RANGE: Final = range(-(2**53 - 1), 2**53)
"""The range of integers which a JavaScript number (64-bit float) can represent
without loss.

Same as [`Number.MIN_SAFE_INTEGER`], [`Number.MAX_SAFE_INTEGER`] JavaScript
constants.

[`Number.MIN_SAFE_INTEGER`]: https://developer.mozilla.org/en-US/docs/Web/\
JavaScript/Reference/Global_Objects/Number/MIN_SAFE_INTEGER
[`Number.MAX_SAFE_INTEGER`]: https://developer.mozilla.org/en-US/docs/Web/\
JavaScript/Reference/Global_Objects/Number/MAX_SAFE_INTEGER
"""

ATOM_INT_RANGE: Final = range(0, 2**31)
"""Integer property keys in this range are written inline as tagged integers.

Other keys (including negative integers) are written as atom table strings.
"""

MAX_STRING_LENGTH: Final = 2**31 - 1
"""The largest character count the string length field can hold.

The length varint is a uint32 with the low bit used as the wide flag.
"""


class SerializationTag(IntEnum):
    """1-byte tags used to identify the type of the next value.

    Notes
    -----
    These tags correspond with the `BCTagEnum` enum in the QuickJS source,
    `quickjs.c`. Those in `UNSUPPORTED_TAGS` are rejected when
    decoding.
    """

    # No data.
    kNull = 1
    kUndefined = 2
    kFalse = 3
    kTrue = 4
    # Number represented as 32-bit integer, ZigZag-encoded varint.
    kInt32 = 5
    # Number represented as a little-endian 64-bit double.
    kFloat64 = 6
    # length:uint32_t (low bit is the wide flag), then latin1/UTF-8 bytes or
    # UTF-16-LE code units.
    kString = 7
    # count:uint32_t, then count * (atom:uint32_t, value)
    kObject = 8
    # count:uint32_t, then count * value
    kArray = 9
    kBigInt = 10
    kTemplateObject = 11
    kFunctionBytecode = 12
    kModule = 13
    # kind:uint8_t, length:uint32_t, offset:uint32_t, then an ArrayBuffer
    kTypedArray = 14
    # byteLength:uint32_t, then raw data
    kArrayBuffer = 15
    kSharedArrayBuffer = 16
    kRegExp = 17
    kDate = 18
    kObjectValue = 19
    kObjectReference = 20


class TypedArrayTag(IntEnum):
    """The element kind byte that follows a `SerializationTag.kTypedArray` tag.

    The values are QuickJS's typed array class IDs, relative to
    `Uint8ClampedArray`.
    """

    kUint8ClampedArray = 0
    kInt8Array = 1
    kUint8Array = 2
    kInt16Array = 3
    kUint16Array = 4
    kInt32Array = 5
    kUint32Array = 6
    kBigInt64Array = 7
    kBigUint64Array = 8
    kFloat32Array = 9
    kFloat64Array = 10


TagT_co = TypeVar("TagT_co", bound=SerializationTag, covariant=True)


@dataclass(unsafe_hash=True, slots=True)
class TagConstraint(FrozenAfterInitDataclass, Generic[TagT_co]):
    """A named set of `SerializationTag`s."""

    name: str
    """A description of the tags allowed by this constraint."""
    allowed_tags: Set[TagT_co]
    """The set of tags allowed by this constraint."""

    def __contains__(self, tag: object) -> TypeGuard[TagT_co]:
        """Return True if `tag` is allowed by the constraint."""
        return tag in self.allowed_tags

    @property
    def allowed_tag_names(self) -> str:
        """A human-readable list of `SerializationTag`s allowed by this constraint."""
        return ", ".join(sorted(t.name for t in self.allowed_tags))

    def __str__(self) -> str:
        return f"{self.name}: {self.allowed_tag_names}"


ConstantTags = Literal[
    SerializationTag.kNull,
    SerializationTag.kUndefined,
    SerializationTag.kFalse,
    SerializationTag.kTrue,
]

JS_CONSTANT_TAGS: Final = TagConstraint[ConstantTags](
    name="JavaScript Constants",
    allowed_tags=frozenset(
        {
            SerializationTag.kNull,
            SerializationTag.kUndefined,
            SerializationTag.kFalse,
            SerializationTag.kTrue,
        }
    ),
)
"""
Tags for JavaScript constant values.

When deserializing, the default Python values representing the JavaScript
constants are:

| SerializationTag | JavaScript  | Python        |
|------------------|-------------|---------------|
| [kNull]          | `null`      | `None`        |
| [kUndefined]     | `undefined` | [JSUndefined] |
| [kFalse]         | `false`     | `False`       |
| [kTrue]          | `true`      | `True`        |

[kNull]: `qjsserialize.constants.SerializationTag.kNull`
[kUndefined]: `qjsserialize.constants.SerializationTag.kUndefined`
[kFalse]: `qjsserialize.constants.SerializationTag.kFalse`
[kTrue]: `qjsserialize.constants.SerializationTag.kTrue`
[JSUndefined]: `qjsserialize.jstypes.JSUndefined`
"""

UnsupportedTags = Literal[
    SerializationTag.kBigInt,
    SerializationTag.kTemplateObject,
    SerializationTag.kFunctionBytecode,
    SerializationTag.kModule,
    SerializationTag.kSharedArrayBuffer,
    SerializationTag.kRegExp,
    SerializationTag.kDate,
    SerializationTag.kObjectValue,
    SerializationTag.kObjectReference,
]

UNSUPPORTED_TAGS: Final = TagConstraint[UnsupportedTags](
    name="Unsupported tags",
    allowed_tags=frozenset(
        {
            SerializationTag.kBigInt,
            SerializationTag.kTemplateObject,
            SerializationTag.kFunctionBytecode,
            SerializationTag.kModule,
            SerializationTag.kSharedArrayBuffer,
            SerializationTag.kRegExp,
            SerializationTag.kDate,
            SerializationTag.kObjectValue,
            SerializationTag.kObjectReference,
        }
    ),
)
"""Tags the format defines, but which are rejected when decoding.

Object references are not supported, so serialized values must be trees, not
graphs with shared or cyclic references.
"""
