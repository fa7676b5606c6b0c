"""
Structural object mapper.

Copies values between two otherwise unrelated shapes by matching member
name and declared type. Copying is best effort: members without a
same-named, compatible counterpart are skipped silently, which is what
lets an entity and its DTOs overlap only partially.
"""
from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing
from typing import Any, Iterable, List, MutableSequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from bootstarter.errors import InvalidStateError
from bootstarter.mapping.members import (
    NoneType,
    declared_members,
    is_compatible,
    is_mappable,
    is_union,
    readable_members,
    strip_annotated,
    type_name,
    value_matches,
    writable_members,
    zero_value,
)

T = TypeVar("T")

_MISSING = object()


def _require(value: Any, name: str) -> None:
    if value is None:
        raise ValueError(f"{name} must not be None")


def _read_compatible(source: Any, targets: typing.Mapping) -> dict:
    """Values of ``source`` that fit a same-named member in ``targets``."""
    values = {}
    for name, member in readable_members(source).items():
        destination = targets.get(name)
        if destination is None:
            continue
        # when both sides declare a type the check needs no read, so lazy
        # attributes that would not transfer are never touched
        if member.type is not None and not is_compatible(member.type, destination.type):
            continue
        value = getattr(source, name, _MISSING)
        if value is _MISSING:
            continue
        if member.type is None and not is_compatible(None, destination.type, value):
            continue
        values[name] = value
    return values


def copy(source: Any, target: Any) -> int:
    """Copy every shared, type-compatible member of ``source`` onto ``target``.

    Returns the number of members copied. Raises ``ValueError`` when either
    side is None.
    """
    _require(source, "source")
    _require(target, "target")
    values = _read_compatible(source, writable_members(target))
    for name, value in values.items():
        setattr(target, name, value)
    return len(values)


def _constructor_fields(cls: type) -> frozenset:
    if issubclass(cls, BaseModel):
        return frozenset(cls.model_fields)
    return frozenset(f.name for f in dataclasses.fields(cls))


def _zero_kwargs(cls: type) -> dict:
    if issubclass(cls, BaseModel):
        return {
            name: zero_value(field.annotation)
            for name, field in cls.model_fields.items()
            if field.is_required()
        }
    members = declared_members(cls)
    kwargs = {}
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            kwargs[field.name] = zero_value(members[field.name].type if field.name in members else None)
    return kwargs


def _build(cls: Type[T], values: dict) -> T:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return cls.model_construct(**{**_zero_kwargs(cls), **values})
    if dataclasses.is_dataclass(cls):
        init_names = {f.name for f in dataclasses.fields(cls) if f.init}
        kwargs = {**_zero_kwargs(cls), **{k: v for k, v in values.items() if k in init_names}}
        instance = cls(**kwargs)
        for name, value in values.items():
            if name not in init_names:
                setattr(instance, name, value)
        return instance
    instance = cls()
    for name, value in values.items():
        setattr(instance, name, value)
    return instance


def new_instance(cls: Type[T]) -> T:
    """A zero-valued instance of ``cls``."""
    return _build(cls, {})


def parse(source: Any, target_type: Type[T]) -> T:
    """Build a fresh ``target_type`` from the shared members of ``source``.

    Pydantic models and dataclasses are constructed directly from the
    matched values (so frozen shapes work too); other classes are built with
    their no-argument constructor and then filled through :func:`copy`.
    """
    _require(source, "source")
    _require(target_type, "target_type")
    if isinstance(target_type, type) and (
        issubclass(target_type, BaseModel) or dataclasses.is_dataclass(target_type)
    ):
        fields = _constructor_fields(target_type)
        targets = {n: m for n, m in declared_members(target_type).items() if n in fields}
        return _build(target_type, _read_compatible(source, targets))
    target = new_instance(target_type)
    copy(source, target)
    return target


def copy_list(
    sources: Iterable[Any],
    targets: MutableSequence[T],
    target_type: Type[T],
) -> MutableSequence[T]:
    """Append one parsed ``target_type`` element per source, preserving order.

    ``targets`` must be empty on entry.
    """
    _require(sources, "sources")
    _require(targets, "targets")
    if len(targets) != 0:
        raise InvalidStateError("Target list must be empty!")
    for source in sources:
        targets.append(parse(source, target_type))
    return targets


def parse_list(sources: Iterable[Any], target_type: Type[T]) -> Tuple[T, ...]:
    """Read-only list of ``target_type`` elements built from ``sources``."""
    targets: List[T] = []
    copy_list(sources, targets, target_type)
    return tuple(targets)


def _convert_iterable(value: Any, origin: type, args: tuple) -> Any:
    if isinstance(value, (str, bytes, cabc.Mapping)) or not isinstance(value, cabc.Iterable):
        raise TypeError(f"cannot convert {type(value).__name__} to a collection")
    if issubclass(origin, tuple):
        items = list(value)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(convert(item, args[0]) for item in items)
        if len(items) != len(args):
            raise TypeError(f"expected {len(args)} items, got {len(items)}")
        return tuple(convert(item, arg) for item, arg in zip(items, args))
    items = [convert(item, args[0]) for item in value]
    if origin in (list, set, frozenset):
        return origin(items)
    if issubclass(origin, cabc.Set):
        return set(items)
    return items


def convert(value: Any, target_type: Any) -> Any:
    """Deep-convert ``value`` into ``target_type``.

    Compatible values pass through unchanged, collections are converted
    element by element and structured shapes are rebuilt with :func:`parse`.
    Raises ``TypeError`` when no conversion exists.
    """
    target_type = strip_annotated(target_type)
    if target_type is None or target_type is Any or value is None:
        return value

    if is_union(target_type):
        arms = [arg for arg in typing.get_args(target_type) if arg is not NoneType]
        for arm in arms:
            if not typing.get_args(arm) and value_matches(value, arm):
                return value
        for arm in arms:
            try:
                return convert(value, arm)
            except (TypeError, ValueError):
                continue
        raise TypeError(f"cannot convert {type(value).__name__} to {type_name(target_type)}")

    origin = typing.get_origin(target_type)
    args = typing.get_args(target_type)
    if origin is typing.Literal:
        if value in args:
            return value
        raise TypeError(f"{value!r} is not one of {args!r}")

    if isinstance(origin, type) and args:
        if issubclass(origin, cabc.Mapping):
            if not isinstance(value, cabc.Mapping):
                raise TypeError(f"cannot convert {type(value).__name__} to a mapping")
            key_type, value_type = args if len(args) == 2 else (Any, Any)
            converted = {convert(k, key_type): convert(v, value_type) for k, v in value.items()}
            return converted if origin in (cabc.Mapping, cabc.MutableMapping) else origin(converted)
        if issubclass(origin, cabc.Iterable):
            return _convert_iterable(value, origin, args)

    cls = origin or target_type
    if not isinstance(cls, type):
        return value
    if isinstance(value, cls):
        return value
    if cls is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if is_mappable(cls) and readable_members(value):
        return parse(value, cls)
    raise TypeError(f"cannot convert {type(value).__name__} to {type_name(target_type)}")


__all__ = ["convert", "copy", "copy_list", "new_instance", "parse", "parse_list"]
