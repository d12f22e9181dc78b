from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass
from typing import Generic, TypeVar

import pytest

from qjsserialize._pycompat.dataclasses import FrozenAfterInitDataclass

T = TypeVar("T")


@dataclass(unsafe_hash=True, slots=True)
class Labelled(FrozenAfterInitDataclass, Generic[T]):
    label: str
    value: T


def test_FrozenAfterInitDataclass__subscripted_generic() -> None:
    labelled = Labelled[int](label="n", value=1)
    assert labelled == Labelled(label="n", value=1)
    assert hash(labelled) == hash(Labelled(label="n", value=1))


def test_FrozenAfterInitDataclass__fields_are_frozen() -> None:
    labelled = Labelled(label="n", value=1)

    with pytest.raises(FrozenInstanceError):
        labelled.value = 2

    with pytest.raises(FrozenInstanceError):
        del labelled.label

    assert labelled.value == 1
