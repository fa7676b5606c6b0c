"""Capability contracts a backing persistence service must satisfy.

The orchestrators only ever talk to a store through these protocols, so any
object with the right methods works: the SQLAlchemy services in
``bootstarter.db.repositories``, an HTTP client, an in-memory fake.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional, Protocol, Sequence, TypeVar, runtime_checkable

from bootstarter.errors import OperationCancelledError


@runtime_checkable
class Entity(Protocol):
    """Minimal entity shape: a primary identity and an external key."""

    id: object
    uuid: Optional[uuid.UUID]


E = TypeVar("E", bound=Entity)
ID = TypeVar("ID", contravariant=True)


@runtime_checkable
class CrudService(Protocol[E, ID]):
    """Synchronous capability contract."""

    def exists(self, entity: E) -> bool: ...

    def exists_by_uuid(self, key: uuid.UUID) -> bool: ...

    def get(self, id: ID) -> Optional[E]: ...

    def get_by_uuid(self, key: uuid.UUID) -> Optional[E]: ...

    def list(self) -> Sequence[E]: ...

    def page(self, page: int, limit: int) -> Sequence[E]:
        """Return page ``page`` (zero based); ``limit < 0`` selects the service default."""
        ...

    def insert(self, entity: E) -> E: ...

    def update(self, entity: E) -> None: ...

    def delete_by_uuid(self, key: uuid.UUID) -> bool: ...


@runtime_checkable
class AsyncCrudService(Protocol[E, ID]):
    """Asynchronous capability contract.

    ``list`` and ``page`` accept a cancel event; a service that honours it
    raises :class:`OperationCancelledError` (see :func:`raise_if_cancelled`).
    """

    async def exists(self, entity: E) -> bool: ...

    async def exists_by_uuid(self, key: uuid.UUID) -> bool: ...

    async def get(self, id: ID) -> Optional[E]: ...

    async def get_by_uuid(self, key: uuid.UUID) -> Optional[E]: ...

    async def list(self, cancel_event: Optional[asyncio.Event] = None) -> Sequence[E]: ...

    async def page(
        self, page: int, limit: int, cancel_event: Optional[asyncio.Event] = None
    ) -> Sequence[E]: ...

    async def insert(self, entity: E) -> E: ...

    async def update(self, entity: E) -> None: ...

    async def delete_by_uuid(self, key: uuid.UUID) -> bool: ...


def raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError("Operation cancelled")


__all__ = ["Entity", "CrudService", "AsyncCrudService", "raise_if_cancelled"]
