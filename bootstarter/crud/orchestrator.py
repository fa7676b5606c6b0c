"""
CRUD orchestration over a capability service.

An orchestrator sequences the existence checks, persistence calls and
projections of each operation and classifies the result into an
:class:`~bootstarter.crud.outcome.Outcome`. It never raises: validation
problems become ``VALIDATION_FAILED``, anything else the service or the
mapper throws becomes ``FAILED`` and is logged with the resource and
operation name.

Two flavours share one class:

* direct mode (no ``input_type``/``output_type``): payloads are entities
  and entities are returned as is;
* DTO mode: payloads are parsed into ``entity_type`` on the way in and
  results are parsed into ``output_type`` on the way out.
"""
from __future__ import annotations

import logging
from typing import Any, Generic, Optional, Sequence, Tuple, Type, TypeVar

from bootstarter.db.contracts import CrudService, Entity
from bootstarter.db.identity import NIL_UUID, coerce_uuid, identity_kind_for
from bootstarter.errors import InvalidInputError, OperationCancelledError
from bootstarter.crud.outcome import Operation, Outcome
from bootstarter.mapping import DocumentPatcher, apply_non_null_to, parse, parse_list

logger = logging.getLogger(__name__)

E = TypeVar("E")
ID = TypeVar("ID")


class BaseCrudOrchestrator(Generic[E, ID]):
    """Validation, projection and outcome helpers shared by both execution modes."""

    def __init__(
        self,
        service: Any,
        entity_type: Type[E],
        *,
        id_type: Any = int,
        input_type: Optional[type] = None,
        output_type: Optional[type] = None,
        patch_type: Optional[type] = None,
        resource_name: Optional[str] = None,
        strict_patching: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if service is None:
            raise ValueError("service is required")
        if entity_type is None:
            raise ValueError("entity_type is required")
        self.service = service
        self.entity_type = entity_type
        self.id_kind = identity_kind_for(id_type)
        self.input_type = input_type
        self.output_type = output_type
        self.patch_type = patch_type
        self.resource_name = resource_name or entity_type.__name__
        self.strict_patching = strict_patching
        self.logger = logger or logging.getLogger(__name__)

    @property
    def is_async(self) -> bool:
        return False

    # -- projection ---------------------------------------------------------

    def _to_entity(self, payload: Any) -> E:
        if payload is None:
            raise InvalidInputError("Payload is required")
        if self.input_type is None or isinstance(payload, self.entity_type):
            return payload
        return parse(payload, self.entity_type)

    def _to_output(self, entity: E) -> Any:
        if self.output_type is None:
            return entity
        return parse(entity, self.output_type)

    def _to_output_list(self, entities: Optional[Sequence[E]]) -> Tuple[Any, ...]:
        entities = entities or ()
        if self.output_type is None:
            return tuple(entities)
        return parse_list(entities, self.output_type)

    def _apply_patch(self, payload: Any, entity: E) -> int:
        # the row keeps the identity it was loaded under
        pinned = (entity.id, entity.uuid) if isinstance(entity, Entity) else None
        if isinstance(payload, DocumentPatcher):
            applied = payload.apply_to(entity, strict=self.strict_patching)
        else:
            applied = apply_non_null_to(payload, entity, strict=self.strict_patching)
        if pinned is not None:
            entity.id, entity.uuid = pinned
        return applied

    # -- validation ---------------------------------------------------------

    def _require_id(self, id: Any) -> ID:
        if not self.id_kind.is_set(id):
            raise InvalidInputError("Invalid id!")
        return id

    def _require_uuid(self, key: Any):
        value = coerce_uuid(key)
        if value is None or value == NIL_UUID:
            raise InvalidInputError("Invalid uuid!")
        return value

    def _require_page(self, page: Any) -> int:
        if isinstance(page, bool) or not isinstance(page, int) or page < 0:
            raise InvalidInputError("Invalid page!")
        return page

    # -- outcomes -----------------------------------------------------------

    def _not_found(self, operation: Operation, what: Any) -> Outcome:
        message = f"{self.resource_name} {what} not found"
        self.logger.debug("%s.%s: %s", self.resource_name, operation.value, message)
        return Outcome.not_found(operation, message)

    def _conflict(self, operation: Operation) -> Outcome:
        return Outcome.conflict(operation, f"{self.resource_name} already exists")

    def _empty(self, operation: Operation) -> Outcome:
        self.logger.debug("%s.%s: no content", self.resource_name, operation.value)
        return Outcome.succeeded_empty(operation, "No content")

    def _failure(self, operation: Operation, exc: Exception) -> Outcome:
        """Classify an exception caught at the operation boundary."""
        if isinstance(exc, InvalidInputError):
            self.logger.debug("%s.%s rejected: %s", self.resource_name, operation.value, exc)
            return Outcome.validation_failed(operation, str(exc))
        if isinstance(exc, OperationCancelledError):
            self.logger.info("%s.%s cancelled", self.resource_name, operation.value)
            return Outcome.cancelled(operation, str(exc) or "Operation cancelled")
        self.logger.exception("%s.%s failed: %s", self.resource_name, operation.value, exc)
        return Outcome.failed(operation, str(exc) or type(exc).__name__)


class CrudOrchestrator(BaseCrudOrchestrator[E, ID]):
    """Synchronous orchestrator over a :class:`~bootstarter.db.contracts.CrudService`."""

    service: CrudService

    def create(self, payload: Any) -> Outcome:
        op = Operation.CREATE
        try:
            entity = self._to_entity(payload)
            if self.service.exists(entity):
                return self._conflict(op)
            created = self.service.insert(entity)
            return Outcome.succeeded(op, self._to_output(created))
        except Exception as exc:
            return self._failure(op, exc)

    def get(self, id: ID) -> Outcome:
        op = Operation.GET
        try:
            id = self._require_id(id)
            found = self.service.get(id)
            if found is None:
                return self._not_found(op, id)
            return Outcome.succeeded(op, self._to_output(found))
        except Exception as exc:
            return self._failure(op, exc)

    def get_by_uuid(self, key: Any) -> Outcome:
        op = Operation.GET_BY_UUID
        try:
            key = self._require_uuid(key)
            found = self.service.get_by_uuid(key)
            if found is None:
                return self._not_found(op, key)
            return Outcome.succeeded(op, self._to_output(found))
        except Exception as exc:
            return self._failure(op, exc)

    def list(self) -> Outcome:
        op = Operation.LIST
        try:
            items = self.service.list()
            if not items:
                return self._empty(op)
            return Outcome.succeeded(op, self._to_output_list(items))
        except Exception as exc:
            return self._failure(op, exc)

    def page(self, page: int, limit: int = -1) -> Outcome:
        op = Operation.PAGE
        try:
            page = self._require_page(page)
            items = self.service.page(page, -1 if limit is None else limit)
            return Outcome.succeeded(op, self._to_output_list(items))
        except Exception as exc:
            return self._failure(op, exc)

    def update(self, payload: Any) -> Outcome:
        op = Operation.UPDATE
        try:
            entity = self._to_entity(payload)
            if not self.service.exists(entity):
                return self._not_found(op, "to update")
            self.service.update(entity)
            return Outcome.succeeded_empty(op)
        except Exception as exc:
            return self._failure(op, exc)

    def patch(self, key: Any, payload: Any) -> Outcome:
        op = Operation.PATCH
        try:
            key = self._require_uuid(key)
            if payload is None:
                raise InvalidInputError("Payload is required")
            entity = self.service.get_by_uuid(key)
            if entity is None:
                return self._not_found(op, key)
            self._apply_patch(payload, entity)
            self.service.update(entity)
            return Outcome.succeeded(op, self._to_output(entity))
        except Exception as exc:
            return self._failure(op, exc)

    def delete(self, key: Any) -> Outcome:
        op = Operation.DELETE
        try:
            key = self._require_uuid(key)
            if not self.service.exists_by_uuid(key):
                return self._not_found(op, key)
            if not self.service.delete_by_uuid(key):
                return Outcome.failed(op, f"Could not remove {self.resource_name} {key}")
            return Outcome.succeeded_empty(op)
        except Exception as exc:
            return self._failure(op, exc)


__all__ = ["BaseCrudOrchestrator", "CrudOrchestrator"]
