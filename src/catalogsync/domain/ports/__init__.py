"""Domain ports."""

from __future__ import annotations

from .fetching import RemoteCatalogSource, RemoteItemMapper
from .persistence import (
    BusinessRepository,
    CategoryRepository,
    DuplicateEntityError,
    OwnerAccountRepository,
    PriceBookRepository,
    ProductPartRepository,
    ProductRepository,
    RemoteBoundRepository,
    Repository,
    SyncRunRepository,
    WarehouseRepository,
)
from .unit_of_work import CatalogRepositories, CatalogUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "BusinessRepository",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "CategoryRepository",
    "DuplicateEntityError",
    "OwnerAccountRepository",
    "PriceBookRepository",
    "ProductPartRepository",
    "ProductRepository",
    "RemoteBoundRepository",
    "RemoteCatalogSource",
    "RemoteItemMapper",
    "Repository",
    "RepositoryCollection",
    "SyncRunRepository",
    "UnitOfWork",
    "WarehouseRepository",
]
