"""
HTTP surface for an orchestrator.

``build_crud_router`` turns a sync or async orchestrator into a FastAPI
``APIRouter`` with the conventional CRUD routes and translates outcomes into
status codes. Annotations here are evaluated eagerly on purpose: endpoint
signatures are built from the orchestrator's runtime types.
"""
import asyncio
import contextlib
import dataclasses
import logging
from typing import Any, Collection, Dict, List, Optional, Sequence

from fastapi import APIRouter, HTTPException, Request, Response, status
from pydantic import BaseModel

from bootstarter.crud.orchestrator import BaseCrudOrchestrator
from bootstarter.crud.outcome import Operation, Outcome, OutcomeKind

logger = logging.getLogger(__name__)

# Client closed the request before the response was produced.
HTTP_499_CLIENT_CLOSED_REQUEST = 499

_ERROR_STATUS = {
    OutcomeKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OutcomeKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    OutcomeKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    OutcomeKind.FAILED: status.HTTP_400_BAD_REQUEST,
    OutcomeKind.CANCELLED: HTTP_499_CLIENT_CLOSED_REQUEST,
}

_DISCONNECT_POLL_SECONDS = 0.1

ALL_OPERATIONS = frozenset(Operation)
READ_OPERATIONS = frozenset(
    {Operation.GET, Operation.GET_BY_UUID, Operation.LIST, Operation.PAGE}
)


def outcome_to_response(outcome: Outcome) -> Any:
    """Return the endpoint result for ``outcome`` or raise ``HTTPException``."""
    if outcome.kind is OutcomeKind.SUCCEEDED:
        if isinstance(outcome.value, tuple):
            return list(outcome.value)
        return outcome.value
    if outcome.kind is OutcomeKind.SUCCEEDED_EMPTY:
        if outcome.operation is Operation.LIST:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return Response(status_code=status.HTTP_200_OK)
    raise HTTPException(status_code=_ERROR_STATUS[outcome.kind], detail=outcome.message)


def _pydantic_model(tp: Any) -> Optional[type]:
    if isinstance(tp, type) and issubclass(tp, BaseModel):
        return tp
    return None


def _is_body_type(tp: Any) -> bool:
    return _pydantic_model(tp) is not None or (
        isinstance(tp, type) and dataclasses.is_dataclass(tp)
    )


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        await asyncio.sleep(_DISCONNECT_POLL_SECONDS)
        if await request.is_disconnected():
            logger.debug("client disconnected: %s", request.url.path)
            cancel_event.set()


async def _cancellable(request: Request, call) -> Outcome:
    """Await ``call(cancel_event)``; the event is set if the client disconnects."""
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        return await call(cancel_event)
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


def _sync_endpoints(orchestrator, input_type, patch_type, id_type) -> Dict[str, Any]:
    def create(payload: input_type):
        return outcome_to_response(orchestrator.create(payload))

    def list_all():
        return outcome_to_response(orchestrator.list())

    def update(payload: input_type):
        return outcome_to_response(orchestrator.update(payload))

    def get(id: id_type):
        return outcome_to_response(orchestrator.get(id))

    def get_by_uuid(uuid: str):
        return outcome_to_response(orchestrator.get_by_uuid(uuid))

    def patch(uuid: str, payload: patch_type):
        return outcome_to_response(orchestrator.patch(uuid, payload))

    def delete(uuid: str):
        return outcome_to_response(orchestrator.delete(uuid))

    def page(page: int):
        return outcome_to_response(orchestrator.page(page))

    def page_with_limit(page: int, limit: int):
        return outcome_to_response(orchestrator.page(page, limit))

    return locals()


def _async_endpoints(orchestrator, input_type, patch_type, id_type) -> Dict[str, Any]:
    async def create(payload: input_type):
        return outcome_to_response(await orchestrator.create(payload))

    async def list_all(request: Request):
        outcome = await _cancellable(
            request, lambda event: orchestrator.list(cancel_event=event)
        )
        return outcome_to_response(outcome)

    async def update(payload: input_type):
        return outcome_to_response(await orchestrator.update(payload))

    async def get(id: id_type):
        return outcome_to_response(await orchestrator.get(id))

    async def get_by_uuid(uuid: str):
        return outcome_to_response(await orchestrator.get_by_uuid(uuid))

    async def patch(uuid: str, payload: patch_type):
        return outcome_to_response(await orchestrator.patch(uuid, payload))

    async def delete(uuid: str):
        return outcome_to_response(await orchestrator.delete(uuid))

    async def page(page: int, request: Request):
        outcome = await _cancellable(
            request, lambda event: orchestrator.page(page, cancel_event=event)
        )
        return outcome_to_response(outcome)

    async def page_with_limit(page: int, limit: int, request: Request):
        outcome = await _cancellable(
            request, lambda event: orchestrator.page(page, limit, cancel_event=event)
        )
        return outcome_to_response(outcome)

    return locals()


def build_crud_router(
    orchestrator: BaseCrudOrchestrator,
    *,
    prefix: str,
    tags: Optional[Sequence[str]] = None,
    operations: Optional[Collection[Operation]] = None,
) -> APIRouter:
    """Build the CRUD routes for ``orchestrator`` under ``prefix``.

    ``operations`` restricts the mounted routes, e.g. ``READ_OPERATIONS`` for
    a read-only resource; by default every operation is exposed. Request
    bodies use the orchestrator's ``input_type`` (the entity type in direct
    mode) and must be pydantic models or dataclasses. Responses are declared
    with the ``output_type`` (the entity type in direct mode) when it is a
    pydantic model. The PATCH route exists only when the orchestrator has a
    ``patch_type``.

    Routes::

        POST   {prefix}                      create
        GET    {prefix}                      list
        PUT    {prefix}                      update
        GET    {prefix}/page/{page}          page (service default limit)
        GET    {prefix}/page/{page}/{limit}  page
        GET    {prefix}/key/{uuid}           get_by_uuid
        PATCH  {prefix}/key/{uuid}           patch
        DELETE {prefix}/key/{uuid}           delete
        GET    {prefix}/{id}                 get
    """
    if orchestrator is None:
        raise ValueError("orchestrator is required")
    prefix = "/" + prefix.strip("/")
    if operations is None:
        exposed = ALL_OPERATIONS
    else:
        exposed = frozenset(Operation(op) for op in operations)
    if orchestrator.patch_type is None:
        exposed -= {Operation.PATCH}

    name = orchestrator.resource_name
    input_type = orchestrator.input_type or orchestrator.entity_type
    if exposed & {Operation.CREATE, Operation.UPDATE} and not _is_body_type(input_type):
        raise ValueError(
            f"{name}: request bodies need a pydantic model or dataclass input_type, "
            f"got {getattr(input_type, '__name__', input_type)!r}; "
            "pass input_type= or leave CREATE and UPDATE out of operations"
        )
    if Operation.PATCH in exposed and not _is_body_type(orchestrator.patch_type):
        raise ValueError(
            f"{name}: patch_type must be a pydantic model or dataclass, "
            f"got {getattr(orchestrator.patch_type, '__name__', orchestrator.patch_type)!r}"
        )

    router = APIRouter(prefix=prefix, tags=list(tags) if tags else [name])
    output_model = _pydantic_model(orchestrator.output_type or orchestrator.entity_type)
    list_model = List[output_model] if output_model is not None else None
    build = _async_endpoints if orchestrator.is_async else _sync_endpoints
    endpoints = build(
        orchestrator, input_type, orchestrator.patch_type, orchestrator.id_kind.python_type
    )

    routes = [
        ("", "POST", Operation.CREATE, "create", output_model),
        ("", "GET", Operation.LIST, "list_all", list_model),
        ("", "PUT", Operation.UPDATE, "update", None),
        ("/page/{page}", "GET", Operation.PAGE, "page", list_model),
        ("/page/{page}/{limit}", "GET", Operation.PAGE, "page_with_limit", list_model),
        ("/key/{uuid}", "GET", Operation.GET_BY_UUID, "get_by_uuid", output_model),
        ("/key/{uuid}", "PATCH", Operation.PATCH, "patch", output_model),
        ("/key/{uuid}", "DELETE", Operation.DELETE, "delete", None),
        # last, so the fixed segments above win
        ("/{id}", "GET", Operation.GET, "get", output_model),
    ]
    for path, method, operation, endpoint_name, response_model in routes:
        if operation not in exposed:
            continue
        router.add_api_route(
            path,
            endpoints[endpoint_name],
            methods=[method],
            response_model=response_model,
            name=f"{name}.{endpoint_name}",
        )

    logger.info(
        "crud_router: resource=%s prefix=%s async=%s operations=%s",
        name,
        prefix,
        orchestrator.is_async,
        ",".join(sorted(op.value for op in exposed)),
    )
    return router


__all__ = [
    "build_crud_router",
    "outcome_to_response",
    "ALL_OPERATIONS",
    "READ_OPERATIONS",
    "HTTP_499_CLIENT_CLOSED_REQUEST",
]
