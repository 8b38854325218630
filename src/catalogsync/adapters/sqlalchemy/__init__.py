"""SQLAlchemy adapter package for the catalog store."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyBusinessRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyOwnerAccountRepository,
    SqlAlchemyPriceBookRepository,
    SqlAlchemyProductPartRepository,
    SqlAlchemyProductRepository,
    SqlAlchemySyncRunRepository,
    SqlAlchemyWarehouseRepository,
)

__all__ = [
    "SqlAlchemyBusinessRepository",
    "SqlAlchemyCategoryRepository",
    "SqlAlchemyOwnerAccountRepository",
    "SqlAlchemyPriceBookRepository",
    "SqlAlchemyProductPartRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemySyncRunRepository",
    "SqlAlchemyWarehouseRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
