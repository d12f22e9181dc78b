from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Protocol, cast

if TYPE_CHECKING:
    from typing_extensions import TypeGuard


class Notes(Protocol):
    __notes__: list[str]


def has_notes(exc: BaseException) -> TypeGuard[Notes]:
    return isinstance(getattr(exc, "__notes__", None), list)


if sys.version_info >= (3, 11):

    def add_note(exc: BaseException, note: str) -> None:
        exc.add_note(note)

else:

    def add_note(exc: BaseException, note: str) -> None:
        """Attach a note to an exception, like `BaseException.add_note()` in 3.11."""
        if not isinstance(note, str):
            raise TypeError("note must be a str")
        if not has_notes(exc):
            exc_with_notes = cast(Notes, exc)
            exc_with_notes.__notes__ = notes = []
        else:
            notes = exc.__notes__
        notes.append(note)
