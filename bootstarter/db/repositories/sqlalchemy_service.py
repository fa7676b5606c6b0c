"""
SQLAlchemy-backed CRUD services.

Reference implementation of the capability contract for a mapped model with
a single-column primary key and a ``uuid`` external key column (see
``EntityMixin``). Every call opens and closes its own session, so one
service instance can be shared by concurrent requests.
"""
from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.orm import Session, sessionmaker

from bootstarter.db.contracts import raise_if_cancelled
from bootstarter.db.identity import coerce_uuid, is_uuid_set
from bootstarter.mapping.members import is_default_value
from bootstarter.utils.settings import get_settings

logger = logging.getLogger(__name__)

E = TypeVar("E")

# Columns an update never rewrites; the primary key is always excluded too.
_IMMUTABLE_COLUMNS = frozenset({"uuid", "created_at", "updated_at"})


class SqlAlchemyCrudService(Generic[E]):
    """Synchronous capability service over ``model``."""

    def __init__(
        self,
        session_factory: sessionmaker,
        model: Type[E],
        *,
        default_page_limit: Optional[int] = None,
    ):
        if session_factory is None:
            raise ValueError("session_factory is required")
        mapper = sa_inspect(model, raiseerr=False)
        if mapper is None:
            raise ValueError(f"{model!r} is not a mapped class")
        if len(mapper.primary_key) != 1:
            raise ValueError(f"{model.__name__} must have a single-column primary key")
        if "uuid" not in mapper.column_attrs:
            raise ValueError(f"{model.__name__} has no 'uuid' column")

        self.session_factory = session_factory
        self.model = model
        self._mapper = mapper
        self._pk_column = mapper.primary_key[0]
        self._pk_attr = mapper.get_property_by_column(self._pk_column).key
        self._default_page_limit = default_page_limit

    @property
    def default_page_limit(self) -> int:
        if self._default_page_limit and self._default_page_limit > 0:
            return self._default_page_limit
        return get_settings().default_page_limit

    def _session(self) -> Session:
        return self.session_factory()

    def _by_uuid(self, db: Session, key: uuid.UUID) -> Optional[E]:
        stmt = select(self.model).where(self.model.uuid == key)
        return db.execute(stmt).scalars().first()

    def _find(self, db: Session, entity: E) -> Optional[E]:
        """Locate the stored row for ``entity``: by primary key when set, else by uuid."""
        ident = getattr(entity, self._pk_attr, None)
        if not is_default_value(ident):
            return db.get(self.model, ident)
        key = getattr(entity, "uuid", None)
        if is_uuid_set(key):
            return self._by_uuid(db, coerce_uuid(key))
        return None

    def _fill_defaults(self, entity: E) -> None:
        """Resolve column defaults for unset members before insert.

        Values copied from a DTO arrive as explicit ``None``, which would
        otherwise suppress the column default.
        """
        for prop in self._mapper.column_attrs:
            column = prop.columns[0]
            current = getattr(entity, prop.key, None)
            if prop.key == "uuid":
                unset = not is_uuid_set(current)
            elif column.primary_key:
                unset = is_default_value(current)
            else:
                unset = current is None
            if not unset:
                continue
            default = column.default
            value: Any = None
            if default is not None and default.is_callable:
                value = default.arg(None)
            elif default is not None and default.is_scalar:
                value = default.arg
            if value is not None or column.primary_key:
                setattr(entity, prop.key, value)

    def exists(self, entity: E) -> bool:
        with self._session() as db:
            return self._find(db, entity) is not None

    def exists_by_uuid(self, key: uuid.UUID) -> bool:
        key = coerce_uuid(key)
        if key is None:
            return False
        with self._session() as db:
            stmt = select(func.count()).select_from(self.model).where(self.model.uuid == key)
            return db.execute(stmt).scalar_one() > 0

    def get(self, id) -> Optional[E]:
        with self._session() as db:
            return db.get(self.model, id)

    def get_by_uuid(self, key: uuid.UUID) -> Optional[E]:
        key = coerce_uuid(key)
        if key is None:
            return None
        with self._session() as db:
            return self._by_uuid(db, key)

    def list(self) -> List[E]:
        with self._session() as db:
            stmt = select(self.model).order_by(self._pk_column)
            return list(db.execute(stmt).scalars().all())

    def page(self, page: int, limit: int) -> List[E]:
        if page < 0:
            raise ValueError("page must be zero or greater")
        if limit is None or limit < 0:
            limit = self.default_page_limit
        with self._session() as db:
            stmt = (
                select(self.model)
                .order_by(self._pk_column)
                .offset(page * limit)
                .limit(limit)
            )
            return list(db.execute(stmt).scalars().all())

    def insert(self, entity: E) -> E:
        self._fill_defaults(entity)
        with self._session() as db:
            db.add(entity)
            db.commit()
            db.refresh(entity)
            logger.debug("%s inserted: id=%s", self.model.__name__, getattr(entity, self._pk_attr, None))
            return entity

    def update(self, entity: E) -> None:
        with self._session() as db:
            stored = self._find(db, entity)
            if stored is None:
                raise LookupError(f"{self.model.__name__} not found")
            for prop in self._mapper.column_attrs:
                if prop.columns[0].primary_key or prop.key in _IMMUTABLE_COLUMNS:
                    continue
                setattr(stored, prop.key, getattr(entity, prop.key, None))
            db.commit()

    def delete_by_uuid(self, key: uuid.UUID) -> bool:
        key = coerce_uuid(key)
        if key is None:
            return False
        with self._session() as db:
            stored = self._by_uuid(db, key)
            if stored is None:
                return False
            db.delete(stored)
            db.commit()
            return True


class AsyncSqlAlchemyCrudService(Generic[E]):
    """Asynchronous capability service running the sync one in the default executor.

    ``list`` and ``page`` check the cancel event before and after the
    blocking call.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        model: Type[E],
        *,
        default_page_limit: Optional[int] = None,
    ):
        self.sync = SqlAlchemyCrudService(
            session_factory, model, default_page_limit=default_page_limit
        )
        self.model = model

    async def _run(self, fn, *args, cancel_event: Optional[asyncio.Event] = None):
        raise_if_cancelled(cancel_event)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, functools.partial(fn, *args))
        raise_if_cancelled(cancel_event)
        return result

    async def exists(self, entity: E) -> bool:
        return await self._run(self.sync.exists, entity)

    async def exists_by_uuid(self, key: uuid.UUID) -> bool:
        return await self._run(self.sync.exists_by_uuid, key)

    async def get(self, id) -> Optional[E]:
        return await self._run(self.sync.get, id)

    async def get_by_uuid(self, key: uuid.UUID) -> Optional[E]:
        return await self._run(self.sync.get_by_uuid, key)

    async def list(self, cancel_event: Optional[asyncio.Event] = None) -> List[E]:
        return await self._run(self.sync.list, cancel_event=cancel_event)

    async def page(
        self, page: int, limit: int, cancel_event: Optional[asyncio.Event] = None
    ) -> List[E]:
        return await self._run(self.sync.page, page, limit, cancel_event=cancel_event)

    async def insert(self, entity: E) -> E:
        return await self._run(self.sync.insert, entity)

    async def update(self, entity: E) -> None:
        await self._run(self.sync.update, entity)

    async def delete_by_uuid(self, key: uuid.UUID) -> bool:
        return await self._run(self.sync.delete_by_uuid, key)


__all__ = ["SqlAlchemyCrudService", "AsyncSqlAlchemyCrudService"]
