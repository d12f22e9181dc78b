from __future__ import annotations

import logging
from io import BytesIO

import pytest

from qjsserialize._errors import (
    DepthExceededEncodeQJSSerializeError,
    UnhandledValueEncodeQJSSerializeError,
)
from qjsserialize._pycompat.exceptions import has_notes
from qjsserialize.constants import SerializationTag
from qjsserialize.decode import ReadableTagStream, loads
from qjsserialize.encode import (
    AtomTable,
    EncodeContext,
    EncodeNextFn,
    Encoder,
    TagWriter,
    WritableTagStream,
    dumps,
)
from qjsserialize.jstypes import JSArray, JSObject, JSUndefined
from qjsserialize.jstypes.jsbuffers import (
    JSArrayBuffer,
    JSFloat32Array,
    JSInt16Array,
    JSUint8Array,
)


@pytest.mark.parametrize(
    "py_value,serialized",
    [
        (None, [12, 0, 1]),
        (JSUndefined, [12, 0, 2]),
        (False, [12, 0, 3]),
        (True, [12, 0, 4]),
        (42, [12, 0, 5, 84]),
        (-1, [12, 0, 5, 1]),
        (13.37, [12, 0, 6, 61, 10, 215, 163, 112, 189, 42, 64]),
        (-0.0, [12, 0, 6, 0, 0, 0, 0, 0, 0, 0, 128]),
        ("ok", [12, 0, 7, 4, 111, 107]),
        ("😭", [12, 0, 7, 5, 61, 216, 45, 222]),
        ([], [12, 0, 9, 0]),
        ([None], [12, 0, 9, 1, 1]),
        (b"", [12, 0, 15, 0]),
        (b"\x2a", [12, 0, 15, 1, 42]),
        (JSUint8Array.from_elements([42]), [12, 0, 14, 2, 1, 0, 15, 1, 42]),
        ({"k": None}, [12, 1, 2, 107, 8, 1, 2, 1]),
        ({"42": None}, [12, 0, 8, 1, 85, 1]),
        ({42: None}, [12, 0, 8, 1, 85, 1]),
        ({"-42": None}, [12, 1, 6, 45, 52, 50, 8, 1, 2, 1]),
        ({-42: None}, [12, 1, 6, 45, 52, 50, 8, 1, 2, 1]),
    ],
)
def test_dumps(py_value: object, serialized: list[int]) -> None:
    assert list(dumps(py_value)) == serialized


@pytest.mark.parametrize(
    "py_value,js_value",
    [
        (1, 1),
        (1.5, 1.5),
        (2**31, float(2**31)),
        (-(2**31), -(2**31)),
        (2**53 - 1, float(2**53 - 1)),
        (True, True),
        (False, False),
        (None, None),
        ("Snake 🐍", "Snake 🐍"),
        (b"foo", JSArrayBuffer(b"foo")),
        (bytearray(b"foo"), JSArrayBuffer(b"foo")),
        (memoryview(b"foo"), JSArrayBuffer(b"foo")),
        (JSArrayBuffer(b"foo"), JSArrayBuffer(b"foo")),
        (JSUndefined, JSUndefined),
        # dict values() is a simple Collection, not a list
        (dict(a=1, b=2).values(), JSArray([1, 2])),
        ([1, 2], JSArray([1, 2])),
        ((1, 2), JSArray([1, 2])),
        # Python dicts serialize as Objects
        (dict(a=1, b=2), JSObject(a=1, b=2)),
        (JSObject(a=1, b=2), JSObject(a=1, b=2)),
        (
            JSInt16Array.from_elements([-1, 2]),
            JSInt16Array.from_elements([-1, 2]),
        ),
        (
            JSFloat32Array.from_elements([0.5]),
            JSFloat32Array.from_elements([0.5]),
        ),
    ],
)
def test_dumps__values(py_value: object, js_value: object) -> None:
    result = loads(dumps(py_value))
    assert result == js_value
    assert type(result) is type(js_value)


def test_dumps__ints_outside_int32_are_float64() -> None:
    assert dumps(2**31)[2] == SerializationTag.kFloat64
    assert dumps(-(2**31) - 1)[2] == SerializationTag.kFloat64
    assert dumps(2**31 - 1)[2] == SerializationTag.kInt32


@pytest.mark.parametrize("value", [2**53, -(2**53), 2**100])
def test_dumps__int_too_large_for_float64(value: int) -> None:
    with pytest.raises(
        UnhandledValueEncodeQJSSerializeError,
        match="No encode step was able to write the value",
    ) as exc_info:
        dumps(value)

    assert exc_info.value.value == value
    assert has_notes(exc_info.value)
    assert any("JavaScript numbers" in note for note in exc_info.value.__notes__)


def test_dumps__strings_use_narrow_form_for_ascii() -> None:
    assert dumps("ab") == bytes([12, 0, 7, 4, 97, 98])
    # Latin-1 characters are written as UTF-16, not UTF-8
    assert dumps("é") == bytes([12, 0, 7, 3, 0xE9, 0x00])


def test_dumps__atoms_are_shared_and_ordered() -> None:
    data = dumps([{"b": 1, "a": 2}, {"a": 3, "b": 4}])
    assert data == bytes(
        [12, 2, 2, 98, 2, 97]
        + [9, 2]
        + [8, 2, 2, 5, 2, 4, 5, 4]
        + [8, 2, 4, 5, 6, 2, 5, 8]
    )
    assert loads(data) == [{"b": 1, "a": 2}, {"a": 3, "b": 4}]


@pytest.mark.parametrize(
    "key,atom",
    [
        ("0", None),
        ("7", None),
        (7, None),
        (2**31 - 1, None),
        ("2147483647", None),
        (2**31, "2147483648"),
        ("2147483648", "2147483648"),
        ("007", "007"),
        ("-1", "-1"),
        (-1, "-1"),
        ("1.5", "1.5"),
        ("", ""),
        ("٣", "٣"),
    ],
)
def test_dumps__object_keys(key: str | int, atom: str | None) -> None:
    data = dumps({key: None})
    assert ReadableTagStream(data).read_header() == (() if atom is None else (atom,))
    assert loads(data) == {str(key): None}


@pytest.mark.parametrize("key", [True, 1.5, None, (1,)])
def test_dumps__unsupported_object_keys(key: object) -> None:
    with pytest.raises(
        UnhandledValueEncodeQJSSerializeError, match="Object keys must be str or int"
    ) as exc_info:
        dumps({key: None})
    assert exc_info.value.value == key


def test_dumps__unhandled_value() -> None:
    value = object()
    with pytest.raises(
        UnhandledValueEncodeQJSSerializeError,
        match="No encode step was able to write the value",
    ) as exc_info:
        dumps([value])
    assert exc_info.value.value is value


def test_dumps__self_referencing_list() -> None:
    value: list[object] = []
    value.append(value)

    with pytest.raises(DepthExceededEncodeQJSSerializeError) as exc_info:
        dumps(value)
    assert exc_info.value.max_depth == 100


def test_dumps__max_depth() -> None:
    value: object = None
    for _ in range(3):
        value = [value]

    assert loads(dumps(value, max_depth=3)) == [[[None]]]
    with pytest.raises(DepthExceededEncodeQJSSerializeError):
        dumps(value, max_depth=2)
    with pytest.raises(DepthExceededEncodeQJSSerializeError):
        dumps({"a": JSUint8Array.from_elements([])}, max_depth=1)


def test_dumps__max_depth_beyond_the_recursion_limit() -> None:
    value: object = None
    for _ in range(1001):
        value = [value]

    with pytest.raises(DepthExceededEncodeQJSSerializeError) as exc_info:
        dumps(value, max_depth=1000)
    assert exc_info.value.max_depth == 1000

    self_referencing: list[object] = []
    self_referencing.append(self_referencing)
    with pytest.raises(DepthExceededEncodeQJSSerializeError):
        dumps(self_referencing, max_depth=100_000)


def test_dumps__custom_encode_step() -> None:
    def encode_sets_as_sorted_arrays(
        value: object, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        if isinstance(value, (set, frozenset)):
            return next(sorted(value))
        return next(value)

    data = dumps(
        {"s": {3, 1, 2}}, encode_steps=[encode_sets_as_sorted_arrays, TagWriter()]
    )
    assert loads(data) == {"s": [1, 2, 3]}


def test_dumps__no_encode_steps() -> None:
    with pytest.raises(UnhandledValueEncodeQJSSerializeError):
        dumps(1, encode_steps=[])


def test_Encoder() -> None:
    encoder = Encoder(max_depth=1)
    assert encoder.encode([1]) == bytearray([12, 0, 9, 1, 5, 2])
    with pytest.raises(DepthExceededEncodeQJSSerializeError):
        encoder.encode([[1]])

    fp = BytesIO()
    encoder.dump({"k": None}, fp)
    assert fp.getvalue() == bytes([12, 1, 2, 107, 8, 1, 2, 1])


def test_Encoder__rejects_negative_max_depth() -> None:
    with pytest.raises(ValueError, match="max_depth must be >= 0"):
        Encoder(max_depth=-1)


def test_Encoder__logs_payload_size(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="qjsserialize.encode"):
        Encoder().encode({"k": None})
    assert "atom_count=1, payload_size=4" in caplog.text


def test_WritableTagStream__write_varint() -> None:
    wts = WritableTagStream()
    wts.write_varint(0)
    wts.write_varint(127)
    wts.write_varint(128)
    wts.write_varint(2**32 - 1)
    assert wts.data == bytearray(
        [0, 127, 0x80, 0x01, 0xFF, 0xFF, 0xFF, 0xFF, 0x0F]
    )

    with pytest.raises(ValueError, match="varint must be in"):
        wts.write_varint(2**32)
    with pytest.raises(ValueError, match="varint must be in"):
        wts.write_varint(-1)


def test_WritableTagStream__write_int32_range() -> None:
    wts = WritableTagStream()
    with pytest.raises(ValueError, match="too large to represent as Int32"):
        wts.write_int32(2**31)


def test_WritableTagStream__write_constant() -> None:
    wts = WritableTagStream()
    wts.write_constant(SerializationTag.kTrue)
    assert wts.data == bytearray([SerializationTag.kTrue])
    with pytest.raises(ValueError, match="tag must be one of"):
        wts.write_constant(SerializationTag.kInt32)  # type: ignore[arg-type]


def test_WritableTagStream__write_header() -> None:
    wts = WritableTagStream()
    wts.write_header(["k", "é"])
    assert wts.data == bytearray([12, 2, 2, 107, 3, 0xE9, 0x00])


def test_WritableTagStream__write_typed_array() -> None:
    wts = WritableTagStream()
    wts.write_js_typed_array(JSInt16Array.from_elements([1, -2]))
    assert wts.data == bytearray([14, 3, 2, 0, 15, 2, 1, 0, 0xFE, 0xFF])
    assert wts.depth == 0


def test_AtomTable() -> None:
    atoms = AtomTable(["a", "b", "a"])
    assert list(atoms) == ["a", "b"]
    assert len(atoms) == 2
    assert "a" in atoms
    assert "c" not in atoms
    assert atoms.intern("c") == 3
    assert repr(atoms) == "AtomTable(['a', 'b', 'c'])"
