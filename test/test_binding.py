from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import pytest

from qjsserialize._errors import TypeMismatchBindQJSSerializeError
from qjsserialize.binding import FieldBinder, bind_object, compile_type
from qjsserialize.decode import loads_into
from qjsserialize.encode import dumps
from qjsserialize.jstypes import JSArray, JSObject, JSUndefined
from qjsserialize.jstypes.jsbuffers import JSArrayBuffer, JSUint8Array


@dataclass
class Empty:
    pass


@dataclass
class Primitives:
    flag: bool = True
    count: int = 42
    ratio: float = 1.5
    name: str = "name"
    data: bytes = b"data"


@dataclass
class Inner:
    x: int = 1
    y: int = 2


@dataclass
class Outer:
    inner: Inner = field(default_factory=Inner)
    label: Optional[str] = "label"
    tags: list[str] = field(default_factory=lambda: ["a"])
    scores: dict[str, float] = field(default_factory=dict)
    pair: tuple[int, str] = (1, "one")
    values: tuple[int, ...] = ()


@dataclass
class Unions:
    id: Union[int, str] = 0
    maybe_id: int | str | None = 0
    anything: Any = "anything"


@dataclass
class Buffers:
    buffer: JSArrayBuffer = field(default_factory=lambda: JSArrayBuffer(b"x"))
    array: JSUint8Array = field(
        default_factory=lambda: JSUint8Array.from_elements([1])
    )


@dataclass
class NeedsArgs:
    value: int


@dataclass
class HasNeedsArgs:
    child: Optional[NeedsArgs] = None


@dataclass
class WithPrivate:
    public: int = 0
    _private: int = 0


@dataclass(frozen=True)
class Frozen:
    x: int = 0


@dataclass
class Unbindable:
    fn: Callable[[], None] = print


def test_bind_object__empty_record() -> None:
    assert bind_object(JSObject(), Empty()) == Empty()
    assert bind_object(JSObject(k=None), Empty()) == Empty()


def test_bind_object__primitives() -> None:
    obj = JSObject(flag=False, count=7, ratio=2, name="x", data=JSArrayBuffer(b"y"))
    result = bind_object(obj, Primitives())
    assert result == Primitives(flag=False, count=7, ratio=2.0, name="x", data=b"y")
    assert type(result.ratio) is float
    assert type(result.data) is bytes


def test_bind_object__returns_the_record() -> None:
    record = Primitives()
    assert bind_object(JSObject(count=1), record) is record
    assert record.count == 1


@pytest.mark.parametrize("null", [None, JSUndefined])
def test_bind_object__null_assigns_zero_values(null: object) -> None:
    obj = JSObject(flag=null, count=null, ratio=null, name=null, data=null)
    assert bind_object(obj, Primitives()) == Primitives(
        flag=False, count=0, ratio=0.0, name="", data=b""
    )


def test_bind_object__null_assigns_zero_values_of_containers() -> None:
    obj = JSObject(
        inner=None, label=None, tags=None, scores=None, pair=None, values=None
    )
    result = bind_object(obj, Outer(inner=Inner(5, 6), scores={"a": 1.0}))
    assert result == Outer(
        inner=Inner(), label=None, tags=[], scores={}, pair=(0, ""), values=()
    )


def test_bind_object__null_assigns_zero_values_of_buffers() -> None:
    result = bind_object(JSObject(buffer=None, array=JSUndefined), Buffers())
    assert result.buffer == JSArrayBuffer()
    assert result.array == JSUint8Array.from_elements([])


def test_bind_object__null_integer_field() -> None:
    # A null value assigns the field's zero value rather than leaving it as-is
    data = bytes([12, 1, 10, 99, 111, 117, 110, 116, 8, 1, 2, 1])
    assert loads_into(data, Primitives()).count == 0


def test_bind_object__ignores_unknown_properties() -> None:
    record = Inner()
    assert bind_object(JSObject(z=1, w="w"), record) == Inner()


def test_bind_object__ignores_private_fields() -> None:
    assert bind_object(JSObject(public=1, _private=2), WithPrivate()) == WithPrivate(
        public=1, _private=0
    )


def test_bind_object__int_accepts_integral_floats() -> None:
    result = bind_object(JSObject(count=2.0**40), Primitives())
    assert result.count == 2**40
    assert type(result.count) is int


@pytest.mark.parametrize(
    "name,value",
    [
        ("flag", 1),
        ("count", 1.5),
        ("count", True),
        ("count", "1"),
        ("ratio", "1.5"),
        ("ratio", False),
        ("name", 1),
        ("data", "data"),
        ("data", JSArray([1])),
    ],
)
def test_bind_object__type_mismatch(name: str, value: object) -> None:
    record = Primitives()
    with pytest.raises(TypeMismatchBindQJSSerializeError) as exc_info:
        bind_object(JSObject({name: value}), record)

    assert exc_info.value.field_name == name
    assert exc_info.value.value == value
    assert isinstance(exc_info.value, TypeError)
    assert record == Primitives()


def test_bind_object__nested_records_are_updated_in_place() -> None:
    inner = Inner()
    record = Outer(inner=inner)
    bind_object(JSObject(inner=JSObject(x=10)), record)
    assert record.inner is inner
    assert inner == Inner(x=10, y=2)


def test_bind_object__nested_record_created_when_missing() -> None:
    record = HasNeedsArgs()
    with pytest.raises(TypeMismatchBindQJSSerializeError) as exc_info:
        bind_object(JSObject(child=JSObject(value=1)), record)
    assert exc_info.value.field_name == "child"
    assert record == HasNeedsArgs()

    assert bind_object(JSObject(child=None), record) == HasNeedsArgs(child=None)


def test_bind_object__containers() -> None:
    obj = JSObject(
        tags=JSArray(["x", "y"]),
        scores=JSObject(a=1, b=2.5),
        pair=JSArray([2, "two"]),
        values=JSArray([1, 2, 3]),
    )
    result = bind_object(obj, Outer())
    assert result.tags == ["x", "y"]
    assert type(result.tags) is list
    assert result.scores == {"a": 1.0, "b": 2.5}
    assert type(result.scores) is dict
    assert result.pair == (2, "two")
    assert result.values == (1, 2, 3)


@pytest.mark.parametrize(
    "obj,field_name",
    [
        (JSObject(tags=JSArray(["x", 1])), "tags[1]"),
        (JSObject(tags="x"), "tags"),
        (JSObject(scores=JSObject(a="a")), "scores['a']"),
        (JSObject(pair=JSArray([1])), "pair"),
        (JSObject(pair=JSArray(["1", "one"])), "pair[0]"),
        (JSObject(inner=JSObject(y="2")), "inner.y"),
        (JSObject(inner=JSArray([])), "inner"),
    ],
)
def test_bind_object__container_type_mismatch(obj: JSObject, field_name: str) -> None:
    with pytest.raises(TypeMismatchBindQJSSerializeError) as exc_info:
        bind_object(obj, Outer())
    assert exc_info.value.field_name == field_name


def test_bind_object__is_all_or_nothing() -> None:
    inner = Inner()
    record = Outer(inner=inner)
    obj = JSObject(label="changed", inner=JSObject(x=5), tags=JSArray([1]))

    with pytest.raises(TypeMismatchBindQJSSerializeError):
        bind_object(obj, record)

    assert record == Outer()
    assert inner == Inner()


def test_bind_object__unions() -> None:
    assert bind_object(JSObject(id="a"), Unions()).id == "a"
    assert bind_object(JSObject(id=3), Unions()).id == 3
    assert bind_object(JSObject(maybe_id="b"), Unions()).maybe_id == "b"
    assert bind_object(JSObject(anything=JSArray([1])), Unions()).anything == [1]

    nulls = bind_object(JSObject(id=None, maybe_id=None, anything=None), Unions())
    assert nulls == Unions(id=0, maybe_id=None, anything=None)

    with pytest.raises(TypeMismatchBindQJSSerializeError) as exc_info:
        bind_object(JSObject(maybe_id=1.5), Unions())
    assert exc_info.value.field_name == "maybe_id"


def test_bind_object__buffers() -> None:
    array = JSUint8Array.from_elements([9])
    result = bind_object(JSObject(buffer=JSArrayBuffer(b"z"), array=array), Buffers())
    assert result == Buffers(buffer=JSArrayBuffer(b"z"), array=array)

    with pytest.raises(TypeMismatchBindQJSSerializeError):
        bind_object(JSObject(buffer=b"z"), Buffers())


def test_bind_object__obj_must_be_an_object() -> None:
    with pytest.raises(TypeMismatchBindQJSSerializeError) as exc_info:
        bind_object(JSArray([1]), Inner())
    assert exc_info.value.field_name is None
    assert exc_info.value.field_type is Inner


@pytest.mark.parametrize("record", [Inner, object(), {"x": 1}])
def test_bind_object__record_must_be_a_dataclass_instance(record: object) -> None:
    with pytest.raises(TypeError, match="record must be a dataclass instance"):
        bind_object(JSObject(x=1), record)


def test_bind_object__frozen_dataclass() -> None:
    with pytest.raises(TypeError, match="must not be a frozen dataclass"):
        bind_object(JSObject(x=1), Frozen())


def test_bind_object__unbindable_field_type() -> None:
    with pytest.raises(TypeError, match="Cannot bind values to fields of type"):
        bind_object(JSObject(fn=None), Unbindable())


def test_FieldBinder__is_created_once_per_type() -> None:
    binder = FieldBinder.for_type(Inner)
    assert FieldBinder.for_type(Inner) is binder
    assert binder.record_type is Inner
    assert list(binder.setters) == ["x", "y"]


def test_FieldSetter() -> None:
    setter = FieldBinder.for_type(Inner).setters["x"]
    record = Inner()
    setter(record, 7)
    assert record.x == 7

    with pytest.raises(TypeMismatchBindQJSSerializeError):
        setter(record, "7")
    assert record.x == 7


def test_compile_type__zero_values() -> None:
    assert compile_type(int).zero() == 0
    assert compile_type(Optional[int]).zero() is None
    assert compile_type(list[int]).zero() == []
    assert compile_type(tuple[int, str]).zero() == (0, "")
    assert compile_type(Inner).zero() == Inner()
    assert compile_type(NeedsArgs).zero() is None


def test_loads_into() -> None:
    data = dumps({"inner": {"x": 3}, "label": "hi", "tags": ["t"], "extra": 1})
    result = loads_into(data, Outer())
    assert result == Outer(inner=Inner(x=3), label="hi", tags=["t"])


def test_loads_into__not_an_object() -> None:
    with pytest.raises(TypeMismatchBindQJSSerializeError):
        loads_into(dumps([1]), Inner())
