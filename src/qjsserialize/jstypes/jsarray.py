from __future__ import annotations

from typing import TYPE_CHECKING, Generic

if TYPE_CHECKING:
    # We use TypeVar's default param which isn't in stdlib yet.
    from typing_extensions import TypeVar

    T = TypeVar("T", default=object)
else:
    from typing import TypeVar

    T = TypeVar("T")


class JSArray(list[T], Generic[T]):
    """
    A Python equivalent of a [JavaScript Array].

    The serialization format only holds dense arrays with no extra properties,
    so `JSArray` is simply a `list`. Decoded Arrays are `JSArray` so that they
    are recognisable as JavaScript values; any non-string, non-binary
    `Collection` (other than a `Mapping`) is encoded as a JavaScript Array.

    [JavaScript Array]: https://developer.mozilla.org/en-US/docs/Web/\
JavaScript/Reference/Global_Objects/Array

    Examples
    --------
    >>> a = JSArray(['a', 'b'])
    >>> a
    JSArray(['a', 'b'])
    >>> a == ['a', 'b']
    True
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({super().__repr__()})"
