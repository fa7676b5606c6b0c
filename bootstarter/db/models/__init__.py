"""
SQLAlchemy declarative base and the entity mixin shared by CRUD models.
"""

from .base import Base, EntityMixin, now_utc  # re-export

__all__ = [
    "Base",
    "EntityMixin",
    "now_utc",
]
