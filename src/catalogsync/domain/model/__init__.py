"""Public domain model surface."""

from __future__ import annotations

from catalogsync.domain.model.base import Entity, RemoteBoundEntity, new_id
from catalogsync.domain.model.catalog import (
    Business,
    Category,
    OwnerAccount,
    Product,
    Warehouse,
    utcnow,
)
from catalogsync.domain.model.enums import (
    EntityKind,
    ProductOrigin,
    ProductType,
    SyncDirection,
    SyncEntityType,
    SyncStatus,
    TaxType,
    WarrantyTimeType,
    WarrantyType,
)
from catalogsync.domain.model.product_parts import (
    PriceBook,
    ProductAttribute,
    ProductBatchExpire,
    ProductFormula,
    ProductImage,
    ProductInventory,
    ProductOrderTemplate,
    ProductPart,
    ProductPriceBook,
    ProductSerial,
    ProductShelf,
    ProductUnit,
    ProductVariant,
    ProductWarranty,
)
from catalogsync.domain.model.sync_run import SyncRun, SyncRunStateError

__all__ = [
    "Business",
    "Category",
    "Entity",
    "EntityKind",
    "OwnerAccount",
    "PriceBook",
    "Product",
    "ProductAttribute",
    "ProductBatchExpire",
    "ProductFormula",
    "ProductImage",
    "ProductInventory",
    "ProductOrderTemplate",
    "ProductOrigin",
    "ProductPart",
    "ProductPriceBook",
    "ProductSerial",
    "ProductShelf",
    "ProductType",
    "ProductUnit",
    "ProductVariant",
    "ProductWarranty",
    "RemoteBoundEntity",
    "SyncDirection",
    "SyncEntityType",
    "SyncRun",
    "SyncRunStateError",
    "SyncStatus",
    "TaxType",
    "Warehouse",
    "WarrantyTimeType",
    "WarrantyType",
    "new_id",
]
