"""
SQLAlchemy reference services against in-memory SQLite.
"""
import asyncio
from uuid import UUID, uuid4

import pytest

from bootstarter.crud import AsyncCrudOrchestrator, CrudOrchestrator, OutcomeKind
from bootstarter.db.contracts import AsyncCrudService, CrudService
from bootstarter.db.repositories import AsyncSqlAlchemyCrudService, SqlAlchemyCrudService
from bootstarter.errors import OperationCancelledError
from bootstarter.utils.settings import refresh_settings_cache
from tests.fixtures.catalog import Product, ProductIn, ProductOut, ProductPatch, ProductPatchWithKeys


@pytest.fixture
def service(session_factory):
    return SqlAlchemyCrudService(session_factory, Product)


def _bulk_insert(session_factory, count):
    with session_factory() as db:
        db.add_all(
            Product(uuid=uuid4(), name=f"product-{i}", price=float(i), stock=i)
            for i in range(count)
        )
        db.commit()


def test_satisfies_capability_contracts(service, session_factory):
    assert isinstance(service, CrudService)
    assert isinstance(AsyncSqlAlchemyCrudService(session_factory, Product), AsyncCrudService)


def test_rejects_unmapped_class(session_factory):
    with pytest.raises(ValueError):
        SqlAlchemyCrudService(session_factory, object)


def test_insert_fills_identity_and_defaults(service):
    stored = service.insert(Product(name="desk", price=120.0))

    assert stored.id == 1
    assert isinstance(stored.uuid, UUID)
    assert stored.uuid.int != 0
    assert stored.stock == 0
    assert stored.created_at is not None


def test_exists_by_id_then_by_uuid(service):
    stored = service.insert(Product(name="desk", price=1.0))

    assert service.exists(Product(id=stored.id))
    assert service.exists(Product(uuid=stored.uuid))
    assert not service.exists(Product(uuid=uuid4()))
    assert not service.exists(Product(name="unsaved"))
    assert service.exists_by_uuid(stored.uuid)
    assert service.exists_by_uuid(str(stored.uuid))
    assert not service.exists_by_uuid(uuid4())


def test_get_and_get_by_uuid(service):
    stored = service.insert(Product(name="lamp", price=3.0))

    assert service.get(stored.id).name == "lamp"
    assert service.get_by_uuid(stored.uuid).id == stored.id
    assert service.get(999) is None
    assert service.get_by_uuid(uuid4()) is None


def test_page_with_negative_limit_uses_default_limit(service, session_factory):
    _bulk_insert(session_factory, 305)

    first = service.page(0, -1)
    second = service.page(1, -1)

    assert len(first) == 300
    assert len(second) == 5
    assert [p.id for p in first[:3]] == [1, 2, 3]


def test_page_default_limit_from_environment(service, session_factory, monkeypatch):
    _bulk_insert(session_factory, 5)
    monkeypatch.setenv("BOOTSTARTER_DEFAULT_PAGE_LIMIT", "2")
    refresh_settings_cache()

    assert [p.name for p in service.page(1, -1)] == ["product-2", "product-3"]


def test_page_explicit_limit_and_offset(service, session_factory):
    _bulk_insert(session_factory, 10)

    rows = service.page(2, 3)

    assert [p.id for p in rows] == [7, 8, 9]


def test_page_rejects_negative_index(service):
    with pytest.raises(ValueError):
        service.page(-1, 10)


def test_update_copies_mutable_columns(service):
    stored = service.insert(Product(name="old", price=1.0, stock=1))
    original_uuid = stored.uuid
    stored.name = "new"
    stored.price = 2.5

    service.update(stored)

    reloaded = service.get(stored.id)
    assert reloaded.name == "new"
    assert reloaded.price == 2.5
    assert reloaded.uuid == original_uuid


def test_update_unknown_row_raises(service):
    with pytest.raises(LookupError):
        service.update(Product(uuid=uuid4(), name="ghost", price=0.0))


def test_delete_by_uuid(service):
    stored = service.insert(Product(name="gone", price=1.0))

    assert service.delete_by_uuid(stored.uuid) is True
    assert service.delete_by_uuid(stored.uuid) is False
    assert service.get(stored.id) is None


def test_orchestrator_end_to_end(session_factory):
    orchestrator = CrudOrchestrator(
        SqlAlchemyCrudService(session_factory, Product),
        Product,
        input_type=ProductIn,
        output_type=ProductOut,
        patch_type=ProductPatch,
        resource_name="products",
    )

    created = orchestrator.create(ProductIn(name="desk", price=80.0, stock=2))
    assert created.kind is OutcomeKind.SUCCEEDED
    key = created.value.uuid

    patched = orchestrator.patch(key, ProductPatch(price=75.0))
    assert patched.kind is OutcomeKind.SUCCEEDED
    assert patched.value.price == 75.0
    assert patched.value.stock == 2

    assert orchestrator.get(created.value.id).value.price == 75.0
    assert orchestrator.create(ProductIn(uuid=key, name="dup")).kind is OutcomeKind.CONFLICT
    assert orchestrator.delete(key).kind is OutcomeKind.SUCCEEDED_EMPTY
    assert orchestrator.list().kind is OutcomeKind.SUCCEEDED_EMPTY


def test_patch_with_foreign_id_leaves_other_rows_alone(session_factory, service):
    orchestrator = CrudOrchestrator(
        service, Product, output_type=ProductOut, patch_type=ProductPatchWithKeys
    )
    first = service.insert(Product(name="chair", price=1.0, stock=1))
    second = service.insert(Product(name="table", price=2.0, stock=2))

    outcome = orchestrator.patch(first.uuid, ProductPatchWithKeys(id=second.id, name="patched"))

    assert outcome.kind is OutcomeKind.SUCCEEDED
    assert (outcome.value.id, outcome.value.uuid) == (first.id, first.uuid)
    untouched = service.get(second.id)
    assert (untouched.name, untouched.price, untouched.stock) == ("table", 2.0, 2)
    assert untouched.uuid == second.uuid
    assert service.get(first.id).name == "patched"


@pytest.mark.asyncio
async def test_async_patch_ignores_identity_members(session_factory):
    service = AsyncSqlAlchemyCrudService(session_factory, Product)
    orchestrator = AsyncCrudOrchestrator(
        service, Product, output_type=ProductOut, patch_type=ProductPatchWithKeys
    )
    first = await service.insert(Product(name="chair", price=1.0))
    second = await service.insert(Product(name="table", price=2.0))

    outcome = await orchestrator.patch(
        first.uuid, ProductPatchWithKeys(id=second.id, uuid=uuid4(), price=5.0)
    )

    assert (outcome.value.id, outcome.value.uuid) == (first.id, first.uuid)
    assert (await service.get(first.id)).price == 5.0
    assert (await service.get(second.id)).price == 2.0
    assert await service.get_by_uuid(first.uuid) is not None


@pytest.mark.asyncio
async def test_async_service_runs_in_executor(session_factory):
    service = AsyncSqlAlchemyCrudService(session_factory, Product, default_page_limit=1)

    stored = await service.insert(Product(name="chair", price=40.0))
    await service.insert(Product(name="table", price=90.0))

    assert await service.exists_by_uuid(stored.uuid)
    assert [p.name for p in await service.list()] == ["chair", "table"]
    assert [p.name for p in await service.page(1, -1)] == ["table"]


@pytest.mark.asyncio
async def test_async_service_honours_cancel_event(session_factory):
    service = AsyncSqlAlchemyCrudService(session_factory, Product)
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(OperationCancelledError):
        await service.list(cancel_event=cancel_event)


@pytest.mark.asyncio
async def test_async_orchestrator_reports_cancellation(session_factory):
    orchestrator = AsyncCrudOrchestrator(
        AsyncSqlAlchemyCrudService(session_factory, Product),
        Product,
        input_type=ProductIn,
        output_type=ProductOut,
    )
    await orchestrator.create(ProductIn(name="desk", price=1.0))
    cancel_event = asyncio.Event()
    cancel_event.set()

    outcome = await orchestrator.page(0, cancel_event=cancel_event)

    assert outcome.kind is OutcomeKind.CANCELLED
