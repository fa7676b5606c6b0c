"""
Member introspection for the structural mapper.

Resolves, once per class, which members can be read and written and which
type each member declares. Understands pydantic models, dataclasses,
SQLAlchemy mapped classes and plain annotated classes. Also hosts the type
compatibility rules and the zero/default value rules the mapper relies on.
"""
from __future__ import annotations

import collections.abc as cabc
import dataclasses
import decimal
import types
import typing
import uuid
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Annotated, ClassVar, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

NoneType = type(None)
NIL_UUID = uuid.UUID(int=0)

# Base classes whose own attributes are framework plumbing, not data members.
_FRAMEWORK_MODULE_PREFIXES = ("builtins", "pydantic", "sqlalchemy", "typing", "abc")

_SCALAR_ZEROS: Dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
    decimal.Decimal: decimal.Decimal(0),
    uuid.UUID: NIL_UUID,
}


@dataclasses.dataclass(frozen=True)
class Member:
    """A named member of a mapped shape; ``type`` is None when undeclared."""

    name: str
    type: Any
    writable: bool = True


# ---------------------------------------------------------------------------
# Typing helpers
# ---------------------------------------------------------------------------

def strip_annotated(tp: Any) -> Any:
    while typing.get_origin(tp) is Annotated:
        tp = typing.get_args(tp)[0]
    return tp


def is_union(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    return origin is Union or origin is types.UnionType


def non_none_args(tp: Any) -> tuple:
    return tuple(arg for arg in typing.get_args(tp) if arg is not NoneType)


def accepts_none(tp: Any) -> bool:
    tp = strip_annotated(tp)
    if tp is None or tp is Any or tp is NoneType:
        return True
    if is_union(tp):
        return any(accepts_none(arg) for arg in typing.get_args(tp))
    return False


def type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp).replace("typing.", "")


def _is_subclass(source: type, target: type) -> bool:
    try:
        if issubclass(source, target):
            return True
    except TypeError:
        return False
    # numeric tower: an int is acceptable where a float is declared
    if target is float and issubclass(source, int):
        return True
    if target is complex and issubclass(source, (int, float)):
        return True
    return False


def is_assignable(source_type: Any, target_type: Any) -> bool:
    """Whether a member declared as ``source_type`` may be stored into one declared as ``target_type``.

    Optionality is not part of the match: ``Optional[int]`` and ``int`` are
    compatible both ways, the member's underlying type is what counts.
    """
    source_type = strip_annotated(source_type)
    target_type = strip_annotated(target_type)
    if target_type is None or target_type is Any:
        return True
    if source_type is None or source_type is Any:
        return False
    if source_type == target_type:
        return True

    if is_union(source_type):
        args = non_none_args(source_type)
        if not args:
            return accepts_none(target_type)
        return all(is_assignable(arg, target_type) for arg in args)
    if source_type is NoneType:
        return accepts_none(target_type)
    if is_union(target_type):
        return any(is_assignable(source_type, arg) for arg in non_none_args(target_type))

    if typing.get_origin(target_type) is Literal:
        if typing.get_origin(source_type) is Literal:
            return set(typing.get_args(source_type)) <= set(typing.get_args(target_type))
        return False
    if isinstance(target_type, typing.TypeVar):
        return True

    src_origin = typing.get_origin(source_type) or source_type
    dst_origin = typing.get_origin(target_type) or target_type
    if typing.get_origin(source_type) is Literal:
        return all(isinstance(v, dst_origin) for v in typing.get_args(source_type)) \
            if isinstance(dst_origin, type) else False
    if not (isinstance(src_origin, type) and isinstance(dst_origin, type)):
        return False
    if not _is_subclass(src_origin, dst_origin):
        return False

    dst_args = typing.get_args(target_type)
    if not dst_args:
        return True
    src_args = typing.get_args(source_type)
    if not src_args:
        # bare ``list`` is ``list[Any]``
        return True
    if len(src_args) != len(dst_args):
        return False
    for src_arg, dst_arg in zip(src_args, dst_args):
        if src_arg is Ellipsis and dst_arg is Ellipsis:
            continue
        if src_arg is Ellipsis or dst_arg is Ellipsis:
            return False
        if not is_assignable(src_arg, dst_arg):
            return False
    return True


def value_matches(value: Any, target_type: Any) -> bool:
    """Runtime check of a value against a declared type (used when the source declares none)."""
    target_type = strip_annotated(target_type)
    if target_type is None or target_type is Any or value is None:
        return True
    if is_union(target_type):
        return any(value_matches(value, arg) for arg in non_none_args(target_type))
    origin = typing.get_origin(target_type)
    if origin is Literal:
        return value in typing.get_args(target_type)
    if isinstance(target_type, typing.TypeVar):
        return True
    cls = origin or target_type
    if not isinstance(cls, type):
        return False
    if isinstance(value, cls):
        return True
    return cls is float and isinstance(value, int) and not isinstance(value, bool)


def is_compatible(source_type: Any, target_type: Any, value: Any = None) -> bool:
    if target_type is None or target_type is Any:
        return True
    if source_type is None or source_type is Any:
        return value_matches(value, target_type)
    return is_assignable(source_type, target_type)


# ---------------------------------------------------------------------------
# Zero values
# ---------------------------------------------------------------------------

def zero_value(tp: Any) -> Any:
    """The "zero" a freshly built instance receives for a required member of type ``tp``."""
    tp = strip_annotated(tp)
    if tp is None or tp is Any:
        return None
    if is_union(tp):
        if NoneType in typing.get_args(tp):
            return None
        args = non_none_args(tp)
        return zero_value(args[0]) if args else None
    origin = typing.get_origin(tp) or tp
    if origin in _SCALAR_ZEROS:
        return _SCALAR_ZEROS[origin]
    if not isinstance(origin, type):
        return None
    if origin in (list, set, frozenset, tuple, dict):
        return origin()
    if issubclass(origin, cabc.Mapping):
        return {}
    if issubclass(origin, cabc.Set):
        return set()
    if origin in (cabc.Sequence, cabc.MutableSequence, cabc.Iterable, cabc.Collection):
        return []
    return None


def is_default_value(value: Any) -> bool:
    """True for ``None`` and for the zero value of scalar types (``0``, ``""``, ``False``, nil UUID...)."""
    if value is None:
        return True
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if type(value) not in _SCALAR_ZEROS:
        return False
    return value == _SCALAR_ZEROS[type(value)]


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception:
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for name, hint in getattr(klass, "__annotations__", {}).items():
                hints[name] = None if isinstance(hint, str) else hint
        return hints


def _sqlalchemy_mapper(cls: type) -> Optional[Mapper]:
    try:
        mapper = sa_inspect(cls, raiseerr=False)
    except Exception:
        return None
    return mapper if isinstance(mapper, Mapper) else None


def _column_python_type(prop) -> Any:
    try:
        return Optional[prop.columns[0].type.python_type]
    except (NotImplementedError, AttributeError, IndexError):
        return None


def _is_framework_class(klass: type) -> bool:
    return klass.__module__.split(".", 1)[0] in _FRAMEWORK_MODULE_PREFIXES


def _property_members(cls: type) -> Dict[str, Member]:
    members: Dict[str, Member] = {}
    for klass in reversed(cls.__mro__):
        if _is_framework_class(klass):
            continue
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            try:
                declared = typing.get_type_hints(attr.fget).get("return") if attr.fget else None
            except Exception:
                declared = None
            members[name] = Member(name, declared, attr.fset is not None)
    return members


def _pydantic_members(cls: type) -> Dict[str, Member]:
    frozen = bool(cls.model_config.get("frozen", False))
    members: Dict[str, Member] = {}
    for name, field in cls.model_fields.items():
        writable = not frozen and not bool(getattr(field, "frozen", False))
        members[name] = Member(name, field.annotation, writable)
    for name, computed in getattr(cls, "model_computed_fields", {}).items():
        members.setdefault(name, Member(name, computed.return_type, False))
    return members


def _dataclass_members(cls: type) -> Dict[str, Member]:
    frozen = cls.__dataclass_params__.frozen
    hints = _type_hints(cls)
    members: Dict[str, Member] = {}
    for field in dataclasses.fields(cls):
        declared = hints.get(field.name)
        if declared is None and not isinstance(field.type, str):
            declared = field.type
        members[field.name] = Member(field.name, declared, not frozen)
    return members


def _sqlalchemy_members(mapper: Mapper) -> Dict[str, Member]:
    members: Dict[str, Member] = {}
    for prop in mapper.column_attrs:
        members[prop.key] = Member(prop.key, _column_python_type(prop), True)
    for rel in mapper.relationships:
        related = rel.mapper.class_
        declared = List[related] if rel.uselist else Optional[related]
        members[rel.key] = Member(rel.key, declared, True)
    return members


def _annotated_members(cls: type) -> Dict[str, Member]:
    members: Dict[str, Member] = {}
    for name, hint in _type_hints(cls).items():
        if name.startswith("_") or typing.get_origin(hint) is ClassVar:
            continue
        members[name] = Member(name, hint, True)
    return members


@lru_cache(maxsize=None)
def declared_members(cls: type) -> Mapping[str, Member]:
    """Members a class declares, by name. Cached: class shapes are immutable at runtime."""
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        members = _pydantic_members(cls)
    elif dataclasses.is_dataclass(cls):
        members = _dataclass_members(cls)
    else:
        mapper = _sqlalchemy_mapper(cls)
        members = _sqlalchemy_members(mapper) if mapper is not None else _annotated_members(cls)
    for name, member in _property_members(cls).items():
        members.setdefault(name, member)
    return MappingProxyType(members)


def members_of(obj: Any) -> Dict[str, Member]:
    """Declared members of ``obj``'s class plus its undeclared public instance attributes."""
    cls = type(obj)
    members = dict(declared_members(cls))
    if isinstance(obj, BaseModel) or _sqlalchemy_mapper(cls) is not None:
        return members
    try:
        attrs = vars(obj)
    except TypeError:
        return members
    for name in attrs:
        if not name.startswith("_") and name not in members:
            members[name] = Member(name, None, True)
    return members


def readable_members(obj: Any) -> Dict[str, Member]:
    return members_of(obj)


def writable_members(obj: Any) -> Dict[str, Member]:
    return {name: m for name, m in members_of(obj).items() if m.writable}


def is_mappable(cls: Any) -> bool:
    """Whether ``cls`` is a structured shape the mapper can build and fill."""
    if not isinstance(cls, type) or cls in _SCALAR_ZEROS or _is_framework_class(cls):
        return False
    return bool(declared_members(cls))


__all__ = [
    "Member",
    "NIL_UUID",
    "accepts_none",
    "declared_members",
    "is_assignable",
    "is_compatible",
    "is_default_value",
    "is_mappable",
    "is_union",
    "members_of",
    "readable_members",
    "strip_annotated",
    "type_name",
    "value_matches",
    "writable_members",
    "zero_value",
]
