"""
Identity predicates.

An entity identity is only "set" when it could have been assigned by the
store: positive integers, non-blank strings, non-nil UUIDs. The external
key (``uuid``) follows the UUID rule.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

NIL_UUID = uuid.UUID(int=0)


@dataclass(frozen=True)
class IdentityKind:
    name: str
    python_type: type
    predicate: Callable[[Any], bool]

    def is_set(self, value: Any) -> bool:
        if not isinstance(value, self.python_type):
            return False
        return self.predicate(value)


def _int_is_set(value: int) -> bool:
    return not isinstance(value, bool) and value > 0


def _str_is_set(value: str) -> bool:
    return bool(value.strip())


def _uuid_is_set(value: uuid.UUID) -> bool:
    return value != NIL_UUID


INT_IDENTITY = IdentityKind("int", int, _int_is_set)
STR_IDENTITY = IdentityKind("str", str, _str_is_set)
UUID_IDENTITY = IdentityKind("uuid", uuid.UUID, _uuid_is_set)

_KINDS: Dict[type, IdentityKind] = {
    int: INT_IDENTITY,
    str: STR_IDENTITY,
    uuid.UUID: UUID_IDENTITY,
}


def identity_kind_for(id_type: Any) -> IdentityKind:
    """Return the identity kind for ``id_type`` (an ``IdentityKind`` is returned as is)."""
    if isinstance(id_type, IdentityKind):
        return id_type
    kind = _KINDS.get(id_type)
    if kind is None:
        raise TypeError(f"Unsupported identity type: {id_type!r}")
    return kind


def coerce_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return ``value`` as a UUID, or None if it cannot be read as one."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def is_uuid_set(value: Any) -> bool:
    key = coerce_uuid(value)
    return key is not None and key != NIL_UUID


__all__ = [
    "IdentityKind",
    "INT_IDENTITY",
    "STR_IDENTITY",
    "UUID_IDENTITY",
    "NIL_UUID",
    "coerce_uuid",
    "identity_kind_for",
    "is_uuid_set",
]
