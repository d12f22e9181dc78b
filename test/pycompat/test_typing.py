from __future__ import annotations

from array import array

import pytest

from qjsserialize._pycompat.typing import (
    Buffer,
    ReadableBinary,
    get_buffer,
    is_readable_binary,
)


@pytest.mark.parametrize(
    "buffer", [b"q", bytearray(b"q"), memoryview(b"q"), array("B", b"q")]
)
def test_is_readable_binary(buffer: Buffer) -> None:
    assert is_readable_binary(buffer)
    assert first_byte(buffer) == ord("q")


@pytest.mark.parametrize(
    "buffer",
    [
        array("H", [1]),
        memoryview(b"qq").cast("H"),
        memoryview(b"qq").cast("B", (1, 2)),
        "q",
    ],
)
def test_is_readable_binary__rejects_wide_or_shaped_data(buffer: object) -> None:
    assert not is_readable_binary(buffer)


@pytest.mark.parametrize(
    "buffer",
    [
        b"q",
        bytearray(b"q"),
        memoryview(b"q").cast("b", (1, 1)),
        array("I", [ord("q")] * 2),
    ],
)
def test_get_buffer(buffer: Buffer) -> None:
    mv = get_buffer(buffer)
    assert (mv.format, mv.ndim, mv.itemsize) == ("B", 1, 1)
    assert mv[0] == ord("q")


def first_byte(data: ReadableBinary) -> int:
    return data[0]
