"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from types import TracebackType

    from catalogsync.domain.model import (
        ProductAttribute,
        ProductBatchExpire,
        ProductFormula,
        ProductImage,
        ProductInventory,
        ProductOrderTemplate,
        ProductPriceBook,
        ProductSerial,
        ProductShelf,
        ProductUnit,
        ProductVariant,
        ProductWarranty,
    )
    from catalogsync.domain.ports.persistence import (
        BusinessRepository,
        CategoryRepository,
        OwnerAccountRepository,
        PriceBookRepository,
        ProductPartRepository,
        ProductRepository,
        SyncRunRepository,
        WarehouseRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def savepoint(self) -> AbstractContextManager[object]:
        """Nested transaction; leaving it with an exception undoes only its own writes."""
        ...


@dataclass(slots=True)
class CatalogRepositories(RepositoryCollection):
    """Repositories the reconciliation engine reads and writes."""

    categories: CategoryRepository
    owner_accounts: OwnerAccountRepository
    businesses: BusinessRepository
    warehouses: WarehouseRepository
    products: ProductRepository
    images: ProductPartRepository[ProductImage]
    inventories: ProductPartRepository[ProductInventory]
    attributes: ProductPartRepository[ProductAttribute]
    units: ProductPartRepository[ProductUnit]
    price_books: PriceBookRepository
    product_price_books: ProductPartRepository[ProductPriceBook]
    formulas: ProductPartRepository[ProductFormula]
    serials: ProductPartRepository[ProductSerial]
    batch_expires: ProductPartRepository[ProductBatchExpire]
    warranties: ProductPartRepository[ProductWarranty]
    shelves: ProductPartRepository[ProductShelf]
    variants: ProductPartRepository[ProductVariant]
    order_templates: ProductPartRepository[ProductOrderTemplate]
    sync_runs: SyncRunRepository


type CatalogUnitOfWork = UnitOfWork[CatalogRepositories]
