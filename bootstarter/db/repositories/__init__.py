from .sqlalchemy_service import AsyncSqlAlchemyCrudService, SqlAlchemyCrudService

__all__ = ["SqlAlchemyCrudService", "AsyncSqlAlchemyCrudService"]
