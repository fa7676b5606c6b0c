"""
Asynchronous CRUD orchestrator.

Same control flow as :class:`~bootstarter.crud.orchestrator.CrudOrchestrator`,
awaiting exactly the service calls. ``list`` and ``page`` forward a cancel
event to the service; a service that honours it raises
``OperationCancelledError``, which is reported as ``CANCELLED`` rather than
``FAILED``. Task cancellation (``asyncio.CancelledError``) is not caught.
"""
from __future__ import annotations

import asyncio
from typing import Any, Optional, TypeVar

from bootstarter.crud.orchestrator import BaseCrudOrchestrator
from bootstarter.crud.outcome import Operation, Outcome
from bootstarter.db.contracts import AsyncCrudService
from bootstarter.errors import InvalidInputError

E = TypeVar("E")
ID = TypeVar("ID")


class AsyncCrudOrchestrator(BaseCrudOrchestrator[E, ID]):
    service: AsyncCrudService

    @property
    def is_async(self) -> bool:
        return True

    async def create(self, payload: Any) -> Outcome:
        op = Operation.CREATE
        try:
            entity = self._to_entity(payload)
            if await self.service.exists(entity):
                return self._conflict(op)
            created = await self.service.insert(entity)
            return Outcome.succeeded(op, self._to_output(created))
        except Exception as exc:
            return self._failure(op, exc)

    async def get(self, id: ID) -> Outcome:
        op = Operation.GET
        try:
            id = self._require_id(id)
            found = await self.service.get(id)
            if found is None:
                return self._not_found(op, id)
            return Outcome.succeeded(op, self._to_output(found))
        except Exception as exc:
            return self._failure(op, exc)

    async def get_by_uuid(self, key: Any) -> Outcome:
        op = Operation.GET_BY_UUID
        try:
            key = self._require_uuid(key)
            found = await self.service.get_by_uuid(key)
            if found is None:
                return self._not_found(op, key)
            return Outcome.succeeded(op, self._to_output(found))
        except Exception as exc:
            return self._failure(op, exc)

    async def list(self, cancel_event: Optional[asyncio.Event] = None) -> Outcome:
        op = Operation.LIST
        try:
            items = await self.service.list(cancel_event=cancel_event)
            if not items:
                return self._empty(op)
            return Outcome.succeeded(op, self._to_output_list(items))
        except Exception as exc:
            return self._failure(op, exc)

    async def page(
        self, page: int, limit: int = -1, cancel_event: Optional[asyncio.Event] = None
    ) -> Outcome:
        op = Operation.PAGE
        try:
            page = self._require_page(page)
            items = await self.service.page(
                page, -1 if limit is None else limit, cancel_event=cancel_event
            )
            return Outcome.succeeded(op, self._to_output_list(items))
        except Exception as exc:
            return self._failure(op, exc)

    async def update(self, payload: Any) -> Outcome:
        op = Operation.UPDATE
        try:
            entity = self._to_entity(payload)
            if not await self.service.exists(entity):
                return self._not_found(op, "to update")
            await self.service.update(entity)
            return Outcome.succeeded_empty(op)
        except Exception as exc:
            return self._failure(op, exc)

    async def patch(self, key: Any, payload: Any) -> Outcome:
        op = Operation.PATCH
        try:
            key = self._require_uuid(key)
            if payload is None:
                raise InvalidInputError("Payload is required")
            entity = await self.service.get_by_uuid(key)
            if entity is None:
                return self._not_found(op, key)
            self._apply_patch(payload, entity)
            await self.service.update(entity)
            return Outcome.succeeded(op, self._to_output(entity))
        except Exception as exc:
            return self._failure(op, exc)

    async def delete(self, key: Any) -> Outcome:
        op = Operation.DELETE
        try:
            key = self._require_uuid(key)
            if not await self.service.exists_by_uuid(key):
                return self._not_found(op, key)
            if not await self.service.delete_by_uuid(key):
                return Outcome.failed(op, f"Could not remove {self.resource_name} {key}")
            return Outcome.succeeded_empty(op)
        except Exception as exc:
            return self._failure(op, exc)


__all__ = ["AsyncCrudOrchestrator"]
