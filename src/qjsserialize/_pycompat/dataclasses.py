from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass
from dataclasses import fields as dataclass_fields


@dataclass
class FrozenAfterInitDataclass:
    """A mixin for dataclasses whose fields can be set once, then never again.

    Use it instead of `@dataclass(frozen=True)` for generic slots dataclasses.
    Before Python 3.13, subscripting a generic class (`Foo[int](...)`) sets
    `__orig_class__` on the instance after init, which a frozen slots dataclass
    rejects with a TypeError. Only dataclass fields are frozen here.
    """

    def __delattr__(self, name: str) -> None:
        if name in (f.name for f in dataclass_fields(self)):
            raise FrozenInstanceError(f"cannot delete field {name}")
        super(FrozenAfterInitDataclass, self).__delattr__(name)

    def __setattr__(self, name: str, value: object) -> None:
        if name in (f.name for f in dataclass_fields(self)) and hasattr(self, name):
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        super(FrozenAfterInitDataclass, self).__setattr__(name, value)
