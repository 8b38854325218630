"""Run-scoped canonical representation of remote catalog items.

Canonical records are immutable; the mapper builds them once per remote item
and every later phase (dependency resolution, classification, upsert) reads
them without mutation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.domain.model.enums import (
    ProductType,
    TaxType,
    WarrantyTimeType,
    WarrantyType,
)

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalImage:
    url: str
    position: int
    is_main: bool = False


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalInventory:
    branch_id: int
    branch_name: str | None = None
    on_hand: float = 0.0
    cost: float = 0.0
    on_order: float = 0.0
    reserved: float = 0.0
    min_quantity: float | None = None
    max_quantity: float | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalAttribute:
    name: str
    value: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalUnit:
    remote_id: int
    code: str
    name: str
    full_name: str | None = None
    unit: str | None = None
    conversion_value: float = 1.0
    base_price: float = 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalPriceBook:
    remote_id: int
    name: str
    price: float = 0.0
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalFormula:
    material_remote_id: int
    material_code: str | None = None
    material_name: str | None = None
    quantity: float = 0.0
    base_price: float = 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalSerial:
    serial_number: str
    status: int | None = None
    branch_id: int | None = None
    quantity: float = 1.0


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalBatchExpire:
    remote_id: int
    branch_id: int
    batch_name: str
    full_name: str | None = None
    on_hand: float = 0.0
    expire_date: datetime | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalWarranty:
    remote_id: int
    description: str
    number_time: int = 0
    time_type: WarrantyTimeType = WarrantyTimeType.MONTH
    warranty_type: WarrantyType = WarrantyType.NONE


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalShelf:
    branch_id: int
    branch_name: str | None = None
    shelves: str = ""


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalVariant:
    name: str
    value: str
    additional_price: float = 0.0
    stock: float = 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class TaxClass:
    """Tax bucket with its display name and the raw remote values it was derived from."""

    type: TaxType
    name: str
    rate: str | None = None
    rate_direct: float | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalProduct:
    # identity
    remote_id: int
    code: str
    # descriptive
    name: str
    slug: str
    full_name: str | None = None
    description: str | None = None
    bar_code: str | None = None
    thumbnail: str | None = None
    product_type: ProductType = ProductType.PRODUCT
    # commercial
    price: float = 0.0
    base_price: float = 0.0
    min_quantity: float = 1.0
    max_quantity: float | None = None
    weight: float | None = None
    unit: str = "piece"
    conversion_value: float = 1.0
    master_unit_remote_id: int | None = None
    # classification
    category_remote_id: int | None = None
    category_name: str | None = None
    business_remote_id: int | None = None
    business_name: str | None = None
    # tax
    tax_type: TaxType = TaxType.OTHER
    tax_name: str | None = None
    tax_rate: str | None = None
    tax_rate_direct: float | None = None
    # flags
    is_active: bool = True
    allows_sale: bool = True
    has_variants: bool = False
    is_lot_serial_control: bool = False
    is_batch_expire_control: bool = False
    is_reward_point: bool = False
    order_template: str | None = None
    modified_at: datetime | None = None
    specifications: Mapping[str, object] = field(default_factory=dict[str, object])
    # sub-resources
    images: tuple[CanonicalImage, ...] = ()
    inventories: tuple[CanonicalInventory, ...] = ()
    attributes: tuple[CanonicalAttribute, ...] = ()
    units: tuple[CanonicalUnit, ...] = ()
    price_books: tuple[CanonicalPriceBook, ...] = ()
    formulas: tuple[CanonicalFormula, ...] = ()
    serials: tuple[CanonicalSerial, ...] = ()
    batch_expires: tuple[CanonicalBatchExpire, ...] = ()
    warranties: tuple[CanonicalWarranty, ...] = ()
    shelves: tuple[CanonicalShelf, ...] = ()
    variants: tuple[CanonicalVariant, ...] = ()

    @property
    def label(self) -> str:
        return f"{self.name or '<unnamed>'} ({self.code or self.remote_id})"
