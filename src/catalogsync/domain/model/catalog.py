"""Catalog store records the reconciliation engine reads and writes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from catalogsync.domain.model.base import Entity, RemoteBoundEntity
from catalogsync.domain.model.enums import EntityKind, ProductOrigin, ProductType, TaxType

if TYPE_CHECKING:
    from uuid import UUID


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Category(RemoteBoundEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.CATEGORY

    name: str
    slug: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class OwnerAccount(Entity):
    """Account that owns a business; synthetic accounts are created for remote trademarks."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.OWNER_ACCOUNT

    code: str
    full_name: str
    email: str
    phone: str | None = None
    is_synthetic: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Business(RemoteBoundEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.BUSINESS

    name: str
    code: str
    slug: str
    owner_id: UUID
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Warehouse(RemoteBoundEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.WAREHOUSE

    name: str
    code: str
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Product(RemoteBoundEntity):
    """Persisted product.

    ``remote_id`` binds the row to one remote catalog item; at most one product
    carries a given remote id and a bound product is never rebound.
    """

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT

    name: str
    code: str
    slug: str
    category_id: UUID | None = None
    business_id: UUID | None = None
    full_name: str | None = None
    description: str | None = None
    bar_code: str | None = None
    thumbnail: str | None = None
    product_type: ProductType = ProductType.PRODUCT

    price: float = 0.0
    base_price: float = 0.0
    min_quantity: float = 1.0
    max_quantity: float | None = None
    weight: float | None = None
    unit: str | None = None
    conversion_value: float = 1.0
    master_unit_id: UUID | None = None

    tax_type: TaxType = TaxType.OTHER
    tax_name: str | None = None
    tax_rate: str | None = None
    tax_rate_direct: float | None = None

    is_active: bool = True
    allows_sale: bool = True
    has_variants: bool = False
    is_lot_serial_control: bool = False
    is_batch_expire_control: bool = False
    is_reward_point: bool = False
    specifications: dict[str, object] | None = None

    origin: ProductOrigin = ProductOrigin.LOCAL
    remote_modified_at: datetime | None = None
    deleted_at: datetime | None = None
    sync_note: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    @property
    def is_remote(self) -> bool:
        return self.origin == ProductOrigin.REMOTE and self.remote_id is not None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, *, note: str, now: datetime | None = None) -> None:
        """Mark the product inactive while keeping the row for historical references."""

        moment = now or utcnow()
        self.is_active = False
        self.deleted_at = moment
        self.updated_at = moment
        self.sync_note = note
