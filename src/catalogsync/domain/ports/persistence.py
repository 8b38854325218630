"""Ports for the catalog store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from catalogsync.domain.model import (
    Business,
    Category,
    OwnerAccount,
    PriceBook,
    Product,
    ProductPart,
    SyncRun,
    Warehouse,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from catalogsync.domain.model import SyncDirection, SyncEntityType


class DuplicateEntityError(RuntimeError):
    """Raised when a write violates a uniqueness constraint of the catalog store."""


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent store."""

    def add(self, entity: TEntity) -> None:
        """Persist ``entity``; raise ``DuplicateEntityError`` on a uniqueness violation."""
        ...


@runtime_checkable
class RemoteBoundRepository[TEntity](Repository[TEntity], Protocol):
    """Lookups shared by entities carrying a remote id and a display name."""

    def get_by_remote_id(self, remote_id: int) -> TEntity | None: ...

    def find_by_name(self, name: str) -> TEntity | None: ...


@runtime_checkable
class CategoryRepository(RemoteBoundRepository[Category], Protocol):
    """Repository contract for categories."""


@runtime_checkable
class WarehouseRepository(RemoteBoundRepository[Warehouse], Protocol):
    """Repository contract for warehouses."""


@runtime_checkable
class BusinessRepository(RemoteBoundRepository[Business], Protocol):
    def find_by_owner_and_name(self, owner_id: UUID, name: str) -> Business | None: ...


@runtime_checkable
class OwnerAccountRepository(Repository[OwnerAccount], Protocol):
    def get_by_email(self, email: str) -> OwnerAccount | None: ...

    def find_by_full_name(self, full_name: str) -> OwnerAccount | None: ...


@runtime_checkable
class ProductRepository(Repository[Product], Protocol):
    def get(self, product_id: UUID) -> Product | None: ...

    def get_by_remote_id(self, remote_id: int) -> Product | None: ...

    def list_all(self) -> Sequence[Product]: ...


@runtime_checkable
class ProductPartRepository[TPart: ProductPart](Repository[TPart], Protocol):
    """Sub-resources are always addressed through their owning product."""

    def list_for_product(self, product_id: UUID) -> Sequence[TPart]: ...

    def find_one(self, product_id: UUID, **criteria: object) -> TPart | None: ...

    def remove(self, entity: TPart) -> None: ...


@runtime_checkable
class PriceBookRepository(Repository[PriceBook], Protocol):
    def get_by_remote_id(self, remote_id: int) -> PriceBook | None: ...


@runtime_checkable
class SyncRunRepository(Repository[SyncRun], Protocol):
    def get(self, run_id: UUID) -> SyncRun | None: ...

    def query(
        self,
        *,
        entity_type: SyncEntityType | None = None,
        direction: SyncDirection | None = None,
        limit: int = 50,
    ) -> Sequence[SyncRun]: ...
