from __future__ import annotations

from array import array
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from typing_extensions import Buffer as Buffer
    from typing_extensions import TypeAlias, TypeGuard

else:
    try:
        from collections.abc import Buffer
    except ImportError:  # Python < 3.12
        from abc import ABC, abstractmethod

        class Buffer(ABC):
            """An alias of [`collections.abc.Buffer`](`collections.abc.Buffer`)."""

            @abstractmethod
            def __buffer__(self, flags: int) -> memoryview: ...


ReadableBinary: TypeAlias = Union["bytes | bytearray | memoryview | array[int]"]
"""Binary data such as `bytes`, `bytearray`, `array.array` and `memoryview`."""


def is_readable_binary(buffer: object) -> TypeGuard[ReadableBinary]:
    """Return True if a binary value can be indexed without wrapping it."""
    if isinstance(buffer, memoryview):
        return buffer.format == "B" and buffer.ndim == 1
    if isinstance(buffer, array):
        return buffer.itemsize == 1 and buffer.typecode == "B"
    return isinstance(buffer, (bytes, bytearray))


def get_buffer(buffer: Buffer) -> memoryview:
    """Get a bytes-format memoryview of a value supporting the Buffer protocol.

    Returns
    -------
    :
        A memoryview with itemsize 1, 1 dimension and `B` (uint8) format.
    """
    buf = memoryview(buffer)  # type: ignore[arg-type]
    if not (buf.format == "B" and buf.ndim == 1 and buf.itemsize == 1):
        buf = buf.cast("B")
    return buf
