"""Persistence layer: capability contracts, identity rules and the SQLAlchemy adapter."""

from .contracts import AsyncCrudService, CrudService, Entity, raise_if_cancelled
from .identity import (
    INT_IDENTITY,
    NIL_UUID,
    STR_IDENTITY,
    UUID_IDENTITY,
    IdentityKind,
    coerce_uuid,
    identity_kind_for,
    is_uuid_set,
)

__all__ = [
    "AsyncCrudService",
    "CrudService",
    "Entity",
    "raise_if_cancelled",
    "IdentityKind",
    "INT_IDENTITY",
    "STR_IDENTITY",
    "UUID_IDENTITY",
    "NIL_UUID",
    "coerce_uuid",
    "identity_kind_for",
    "is_uuid_set",
]
