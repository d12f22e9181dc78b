from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from typing_extensions import TypeAlias


class JSUndefinedEnum(Enum):
    """
    The enum holding the `JSUndefined` singleton.

    JavaScript has two empty values, `null` and `undefined`. Python `None`
    represents `null` (`SerializationTag.kNull`), and `JSUndefined` represents
    `undefined` (`SerializationTag.kUndefined`). Like both of them, it's falsy.
    """

    JSUndefined = "undefined"

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> str:
        return self.name

    __str__ = __repr__


JSUndefinedType: TypeAlias = Literal[JSUndefinedEnum.JSUndefined]
"""The type of `JSUndefined`, for use in type annotations."""

JSUndefined: Final = JSUndefinedEnum.JSUndefined
"""Represents the JavaScript value `undefined`."""
