"""Sub-resources written alongside a product."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from catalogsync.domain.model.base import Entity, RemoteBoundEntity
from catalogsync.domain.model.enums import EntityKind, WarrantyTimeType, WarrantyType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class ProductPart(Entity):
    """Record owned by exactly one product."""

    product_id: UUID


@dataclass(eq=False, kw_only=True)
class ProductImage(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_IMAGE

    url: str
    position: int = 0
    is_main: bool = False


@dataclass(eq=False, kw_only=True)
class ProductInventory(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_INVENTORY

    warehouse_id: UUID
    on_hand: float = 0.0
    cost: float = 0.0
    on_order: float = 0.0
    reserved: float = 0.0
    min_quantity: float | None = None
    max_quantity: float | None = None


@dataclass(eq=False, kw_only=True)
class ProductAttribute(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_ATTRIBUTE

    name: str
    value: str | None = None


@dataclass(eq=False, kw_only=True)
class ProductUnit(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_UNIT

    remote_id: int | None = None
    code: str
    name: str
    full_name: str | None = None
    unit: str | None = None
    conversion_value: float = 1.0
    base_price: float = 0.0
    is_master: bool = False


@dataclass(eq=False, kw_only=True)
class PriceBook(RemoteBoundEntity):
    """Price book shared by many products."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRICE_BOOK

    name: str
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass(eq=False, kw_only=True)
class ProductPriceBook(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_PRICE_BOOK

    price_book_id: UUID
    price: float = 0.0
    is_active: bool = True


@dataclass(eq=False, kw_only=True)
class ProductFormula(ProductPart):
    """One bill-of-materials line."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_FORMULA

    material_remote_id: int
    material_code: str | None = None
    material_name: str | None = None
    quantity: float = 0.0
    base_price: float = 0.0


@dataclass(eq=False, kw_only=True)
class ProductSerial(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_SERIAL

    serial_number: str
    status: int | None = None
    warehouse_id: UUID | None = None
    quantity: float = 1.0


@dataclass(eq=False, kw_only=True)
class ProductBatchExpire(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_BATCH_EXPIRE

    remote_id: int
    warehouse_id: UUID
    batch_name: str
    full_name: str | None = None
    on_hand: float = 0.0
    expire_date: datetime | None = None


@dataclass(eq=False, kw_only=True)
class ProductWarranty(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_WARRANTY

    remote_id: int
    description: str
    number_time: int = 0
    time_type: WarrantyTimeType = WarrantyTimeType.MONTH
    warranty_type: WarrantyType = WarrantyType.NONE


@dataclass(eq=False, kw_only=True)
class ProductShelf(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_SHELF

    warehouse_id: UUID
    shelves: str = ""


@dataclass(eq=False, kw_only=True)
class ProductVariant(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_VARIANT

    name: str
    value: str
    additional_price: float = 0.0
    stock: float = 0.0
    sku: str | None = None


@dataclass(eq=False, kw_only=True)
class ProductOrderTemplate(ProductPart):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PRODUCT_ORDER_TEMPLATE

    name: str
    description: str
    is_active: bool = True
