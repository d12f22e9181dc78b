from __future__ import annotations

from typing import TYPE_CHECKING, Generic

if TYPE_CHECKING:
    # We use TypeVar's default param which isn't in stdlib yet.
    from typing_extensions import TypeVar

    T = TypeVar("T", default=object)
else:
    from typing import TypeVar

    T = TypeVar("T")


class JSObject(dict[str, T], Generic[T]):
    """
    A Python equivalent of [JavaScript plain objects][JavaScript Object].

    `JSObject` is a `dict` with `str` keys. JavaScript Objects treat integer
    keys and integer strings as equivalent, and the serialization format writes
    integer keys in their decimal string form, so decoded keys are always
    strings, even when they were written as integers.

    JavaScript Object values are decoded as `JSObject` rather than `dict`, which
    makes them distinguishable from other `Mapping` types a custom decode step
    may produce. Any `Mapping` is encoded as a JavaScript Object.

    [JavaScript Object]: https://developer.mozilla.org/en-US/docs/Web/\
JavaScript/Reference/Global_Objects/Object

    Examples
    --------
    >>> JSObject(id=1, name='Bob')
    JSObject({'id': 1, 'name': 'Bob'})
    >>> JSObject({'id': 1}) == {'id': 1}
    True
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({super().__repr__()})"
