"""
Assign the properties of decoded JavaScript Objects to dataclass fields.

A `FieldBinder` is created once per dataclass type. It holds a `FieldSetter`
for each public field, which checks that a decoded value suits the field's
type annotation before assigning it. JavaScript `null` and `undefined` assign
the field type's zero value, such as `0` for `int` or `None` for `Optional`
fields.

Examples
--------
>>> from dataclasses import dataclass
>>> from qjsserialize.jstypes import JSObject, JSUndefined
>>> @dataclass
... class Point:
...     x: float = 0.0
...     y: float = 0.0
...     label: str | None = 'origin'
>>> bind_object(JSObject(x=1, y=2.5, label=None, z=3), Point())
Point(x=1.0, y=2.5, label=None)
>>> bind_object(JSObject(x=JSUndefined), Point(x=4.0))
Point(x=0.0, y=0.0, label='origin')
"""

from __future__ import annotations

import dataclasses
import types
from collections import abc
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import (
    TYPE_CHECKING,
    Any,
    Final,
    Generic,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from qjsserialize._errors import TypeMismatchBindQJSSerializeError
from qjsserialize.jstypes.jsbuffers import JSArrayBuffer, JSTypedArray
from qjsserialize.jstypes.jsundefined import JSUndefined

if TYPE_CHECKING:
    from typing_extensions import Never, TypeAlias

T = TypeVar("T")

Assignments: TypeAlias = "list[tuple[object, str, object]]"
"""Field assignments that are made once every value has been checked."""

_SEQUENCE_TYPES: Final = (list, abc.Sequence, abc.MutableSequence)
_MAPPING_TYPES: Final = (dict, abc.Mapping, abc.MutableMapping)


def _describe_type(field_type: object) -> str:
    if isinstance(field_type, type) and not get_args(field_type):
        return field_type.__qualname__
    return repr(field_type)


def _is_null(value: object) -> bool:
    return value is None or value is JSUndefined


def _new_record(record_type: type[T], *, field_name: str, value: object) -> T:
    try:
        return record_type()
    except TypeError as e:
        raise TypeMismatchBindQJSSerializeError(
            f"Field {field_name!r} needs a {record_type.__qualname__} to be "
            "created without arguments",
            field_name=field_name,
            field_type=record_type,
            value=value,
        ) from e


@dataclass(frozen=True, slots=True)
class TypeBinder:
    """Check and convert decoded values for one type annotation."""

    field_type: object

    def zero(self) -> object:
        """The value that JavaScript null and undefined are bound as."""
        return None

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        """Return `value` as this binder's type, or raise TypeMismatch."""
        raise NotImplementedError

    def bind_nullable(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if _is_null(value):
            return self.zero()
        return self.bind(
            value, current, field_name=field_name, assignments=assignments
        )

    def mismatch(self, value: object, *, field_name: str) -> Never:
        raise TypeMismatchBindQJSSerializeError(
            f"Field {field_name!r} of type {_describe_type(self.field_type)} "
            f"cannot hold a value of type {type(value).__name__}",
            field_name=field_name,
            field_type=self.field_type,
            value=value,
        )


@dataclass(frozen=True, slots=True)
class AnyBinder(TypeBinder):
    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        return value


@dataclass(frozen=True, slots=True)
class PrimitiveBinder(TypeBinder):
    accepts: Callable[[object], bool]
    convert: Callable[[Any], object]
    zero_value: object

    def zero(self) -> object:
        return self.zero_value

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not self.accepts(value):
            self.mismatch(value, field_name=field_name)
        return self.convert(value)


@dataclass(frozen=True, slots=True)
class InstanceBinder(TypeBinder):
    """Bind values that are instances of a class, such as a typed array type."""

    zero_factory: Callable[[], object] | None = None

    def zero(self) -> object:
        return None if self.zero_factory is None else self.zero_factory()

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not isinstance(value, _as_type(self.field_type)):
            self.mismatch(value, field_name=field_name)
        return value


@dataclass(frozen=True, slots=True)
class UnionBinder(TypeBinder):
    members: tuple[TypeBinder, ...]
    nullable: bool

    def zero(self) -> object:
        if self.nullable or not self.members:
            return None
        return self.members[0].zero()

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        for member in self.members:
            member_assignments: Assignments = []
            try:
                result = member.bind(
                    value,
                    current,
                    field_name=field_name,
                    assignments=member_assignments,
                )
            except TypeMismatchBindQJSSerializeError:
                continue
            assignments.extend(member_assignments)
            return result
        self.mismatch(value, field_name=field_name)


@dataclass(frozen=True, slots=True)
class SequenceBinder(TypeBinder):
    """Bind Arrays to list or variable-length tuple fields."""

    container: Callable[[Any], Sequence[object]]
    item: TypeBinder

    def zero(self) -> object:
        return self.container(())

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not isinstance(value, abc.MutableSequence):
            self.mismatch(value, field_name=field_name)
        return self.container(
            self.item.bind_nullable(
                v, None, field_name=f"{field_name}[{i}]", assignments=assignments
            )
            for i, v in enumerate(value)
        )


@dataclass(frozen=True, slots=True)
class FixedTupleBinder(TypeBinder):
    """Bind Arrays to fixed-length tuple fields, like `tuple[int, str]`."""

    items: tuple[TypeBinder, ...]

    def zero(self) -> object:
        return tuple(item.zero() for item in self.items)

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not (
            isinstance(value, abc.MutableSequence) and len(value) == len(self.items)
        ):
            self.mismatch(value, field_name=field_name)
        return tuple(
            item.bind_nullable(
                v, None, field_name=f"{field_name}[{i}]", assignments=assignments
            )
            for i, (item, v) in enumerate(zip(self.items, value))
        )


@dataclass(frozen=True, slots=True)
class MappingBinder(TypeBinder):
    """Bind Objects to dict fields."""

    item: TypeBinder

    def zero(self) -> object:
        return {}

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not isinstance(value, abc.Mapping):
            self.mismatch(value, field_name=field_name)
        return {
            k: self.item.bind_nullable(
                v, None, field_name=f"{field_name}[{k!r}]", assignments=assignments
            )
            for k, v in value.items()
        }


@dataclass(frozen=True, slots=True)
class DataclassBinder(TypeBinder):
    """Bind Objects to a nested dataclass field, re-using the field's value."""

    def zero(self) -> object:
        # Records that need constructor arguments have no zero value.
        try:
            return _as_type(self.field_type)()
        except TypeError:
            return None

    def bind(
        self,
        value: object,
        current: object,
        *,
        field_name: str,
        assignments: Assignments,
    ) -> object:
        if not isinstance(value, abc.Mapping):
            self.mismatch(value, field_name=field_name)
        record_type = _as_type(self.field_type)
        record = (
            current
            if isinstance(current, record_type)
            else _new_record(record_type, field_name=field_name, value=value)
        )
        FieldBinder.for_type(record_type).plan(
            value, record, assignments=assignments, prefix=f"{field_name}."
        )
        return record


def _as_type(field_type: object) -> type:
    assert isinstance(field_type, type)
    return field_type


def _is_int(value: object) -> bool:
    if isinstance(value, float):
        # Ints beyond the Int32 range are serialized as Float64
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_bytes(value: object) -> bool:
    return isinstance(value, (bytes, JSArrayBuffer))


def _to_bytes(value: bytes | JSArrayBuffer) -> bytes:
    return value.data if isinstance(value, JSArrayBuffer) else value


_PRIMITIVE_BINDERS: Final[Mapping[object, TypeBinder]] = {
    bool: PrimitiveBinder(bool, lambda v: isinstance(v, bool), bool, False),
    int: PrimitiveBinder(int, _is_int, int, 0),
    float: PrimitiveBinder(float, _is_number, float, 0.0),
    str: PrimitiveBinder(str, lambda v: isinstance(v, str), str, ""),
    bytes: PrimitiveBinder(bytes, _is_bytes, _to_bytes, b""),
}


def compile_type(field_type: object) -> TypeBinder:
    """
    Create the `TypeBinder` for a resolved type annotation.

    Raises
    ------
    TypeError
        If values can't be bound to `field_type`.
    """
    if field_type is Any or field_type is object:
        return AnyBinder(field_type)
    if field_type in _PRIMITIVE_BINDERS:
        return _PRIMITIVE_BINDERS[field_type]

    origin = get_origin(field_type)
    args = get_args(field_type)

    if origin is Union or origin is types.UnionType:
        members = tuple(a for a in args if a is not types.NoneType)
        return UnionBinder(
            field_type,
            members=tuple(compile_type(m) for m in members),
            nullable=len(members) != len(args),
        )
    if field_type is tuple or origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            item = compile_type(args[0]) if args else AnyBinder(object)
            return SequenceBinder(field_type, container=tuple, item=item)
        return FixedTupleBinder(
            field_type, items=tuple(compile_type(a) for a in args)
        )
    if field_type in _SEQUENCE_TYPES or origin in _SEQUENCE_TYPES:
        item = compile_type(args[0]) if args else AnyBinder(object)
        return SequenceBinder(field_type, container=list, item=item)
    if field_type in _MAPPING_TYPES or origin in _MAPPING_TYPES:
        item = compile_type(args[1]) if len(args) == 2 else AnyBinder(object)
        return MappingBinder(field_type, item=item)

    if isinstance(field_type, type):
        # The buffer types are dataclasses, but are bound as values.
        if issubclass(field_type, JSArrayBuffer):
            return InstanceBinder(field_type, zero_factory=JSArrayBuffer)
        if issubclass(field_type, JSTypedArray):
            if field_type is JSTypedArray:
                return InstanceBinder(field_type)
            return InstanceBinder(
                field_type, zero_factory=lambda: field_type.from_elements(())
            )
        if dataclasses.is_dataclass(field_type):
            return DataclassBinder(field_type)
        return InstanceBinder(field_type)
    raise TypeError(f"Cannot bind values to fields of type {field_type!r}")


@dataclass(frozen=True, slots=True)
class FieldSetter:
    """Assigns checked values to one field of a dataclass."""

    name: str
    field_type: object
    binder: TypeBinder

    def plan(
        self,
        record: object,
        value: object,
        *,
        assignments: Assignments,
        prefix: str = "",
    ) -> None:
        """Check `value` and add its assignment to `assignments`."""
        bound = self.binder.bind_nullable(
            value,
            getattr(record, self.name, None),
            field_name=f"{prefix}{self.name}",
            assignments=assignments,
        )
        assignments.append((record, self.name, bound))

    def __call__(self, record: object, value: object) -> None:
        assignments: Assignments = []
        self.plan(record, value, assignments=assignments)
        _apply(assignments)


def _apply(assignments: Assignments) -> None:
    for record, name, value in assignments:
        setattr(record, name, value)


@dataclass(frozen=True, slots=True)
class FieldBinder(Generic[T]):
    """
    The `FieldSetter`s of a dataclass type's public fields.

    Use `FieldBinder.for_type()` to get the binder of a type, which is created
    once and then re-used.
    """

    record_type: type[T]
    setters: Mapping[str, FieldSetter]

    @staticmethod
    def for_type(record_type: type[T]) -> FieldBinder[T]:
        """
        Get the `FieldBinder` for a dataclass type.

        Raises
        ------
        TypeError
            If `record_type` is not a mutable dataclass, or one of its public
            fields has a type annotation that values can't be bound to.
        """
        return _field_binder_for_type(record_type)

    def plan(
        self,
        obj: Mapping[str, object],
        record: T,
        *,
        assignments: Assignments,
        prefix: str = "",
    ) -> None:
        for key, value in obj.items():
            setter = self.setters.get(key)
            if setter is not None:
                setter.plan(record, value, assignments=assignments, prefix=prefix)

    def bind(self, obj: Mapping[str, object], record: T) -> T:
        """
        Assign the properties of `obj` to the fields of `record` with the same names.

        Properties without a matching field are ignored. No fields are
        assigned if any property's value is not compatible with its field.
        """
        assignments: Assignments = []
        self.plan(obj, record, assignments=assignments)
        _apply(assignments)
        return record


@lru_cache(maxsize=None)
def _field_binder_for_type(record_type: type[T]) -> FieldBinder[T]:
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise TypeError(f"record type must be a dataclass: {record_type!r}")
    if record_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise TypeError(
            f"record type must not be a frozen dataclass: {record_type.__qualname__}"
        )
    hints = get_type_hints(record_type)
    setters = {
        f.name: FieldSetter(f.name, hints[f.name], compile_type(hints[f.name]))
        for f in dataclasses.fields(record_type)
        if not f.name.startswith("_")
    }
    return FieldBinder(record_type, types.MappingProxyType(setters))


def bind_object(obj: object, record: T) -> T:
    """
    Assign the properties of a decoded Object to the fields of a dataclass instance.

    Parameters
    ----------
    obj
        A decoded JavaScript Object, such as a `JSObject`.
    record
        The dataclass instance to assign fields of.

    Returns
    -------
    :
        `record`, after its fields have been assigned.

    Raises
    ------
    TypeMismatchBindQJSSerializeError
        If `obj` is not an Object, or one of its properties is not compatible
        with the type of the field it's assigned to. No fields are assigned
        when this is raised.
    TypeError
        If `record` is not an instance of a mutable dataclass.
    """
    if isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise TypeError(f"record must be a dataclass instance: {record!r}")
    if not isinstance(obj, abc.Mapping):
        raise TypeMismatchBindQJSSerializeError(
            f"Value of type {type(obj).__name__} is not an Object that can be "
            f"bound to {type(record).__qualname__}",
            field_name=None,
            field_type=type(record),
            value=obj,
        )
    return FieldBinder.for_type(type(record)).bind(obj, record)
