"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ProductOrigin(StrEnum):
    """Where a local product was authored."""

    REMOTE = "remote"
    LOCAL = "local"


class ProductType(StrEnum):
    PRODUCT = "product"
    SERVICE = "service"
    COMBO = "combo"


class TaxType(StrEnum):
    ZERO = "zero"
    FIVE = "five"
    EIGHT = "eight"
    TEN = "ten"
    KCT = "kct"
    KKKNT = "kkknt"
    OTHER = "other"


class WarrantyType(StrEnum):
    NONE = "none"
    ELECTRONIC = "electronic"
    MANUAL_TICKET = "manual_ticket"
    EXCHANGE_ONLY = "exchange_only"
    RETURN_ONLY = "return_only"
    EXCHANGE_AND_RETURN = "exchange_and_return"
    MANUFACTURER_WARRANTY = "manufacturer_warranty"
    STORE_WARRANTY = "store_warranty"
    LIFETIME = "lifetime"
    SERVICE_INCLUDED = "service_included"


class WarrantyTimeType(StrEnum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class SyncDirection(StrEnum):
    REMOTE_TO_LOCAL = "remote_to_local"


class SyncEntityType(StrEnum):
    PRODUCT = "product"


class SyncStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {SyncStatus.SUCCESS, SyncStatus.PARTIAL, SyncStatus.FAILED}


class EntityKind(StrEnum):
    """Kinds of records a reconciliation run counts statistics for."""

    CATEGORY = "category"
    BUSINESS = "business"
    WAREHOUSE = "warehouse"
    OWNER_ACCOUNT = "owner_account"
    PRODUCT = "product"
    PRODUCT_IMAGE = "product_image"
    PRODUCT_INVENTORY = "product_inventory"
    PRODUCT_ATTRIBUTE = "product_attribute"
    PRODUCT_UNIT = "product_unit"
    PRODUCT_PRICE_BOOK = "product_price_book"
    PRODUCT_FORMULA = "product_formula"
    PRODUCT_SERIAL = "product_serial"
    PRODUCT_BATCH_EXPIRE = "product_batch_expire"
    PRODUCT_WARRANTY = "product_warranty"
    PRODUCT_SHELF = "product_shelf"
    PRODUCT_VARIANT = "product_variant"
    PRODUCT_ORDER_TEMPLATE = "product_order_template"
    PRICE_BOOK = "price_book"
    SYNC_RUN = "sync_run"
