"""SQLAlchemy mapping metadata for the catalog domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from catalogsync.domain.model import (
    Business,
    Category,
    OwnerAccount,
    PriceBook,
    Product,
    ProductAttribute,
    ProductBatchExpire,
    ProductFormula,
    ProductImage,
    ProductInventory,
    ProductOrderTemplate,
    ProductOrigin,
    ProductPriceBook,
    ProductSerial,
    ProductShelf,
    ProductType,
    ProductUnit,
    ProductVariant,
    ProductWarranty,
    SyncDirection,
    SyncEntityType,
    SyncRun,
    SyncStatus,
    TaxType,
    Warehouse,
    WarrantyTimeType,
    WarrantyType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_column_type(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Dependencies ---------------------------------------------------------------

category_table = Table(
    "category",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("remote_id", Integer, nullable=True, unique=True),
    Column("name", String, nullable=False, index=True),
    Column("slug", String, nullable=False, unique=True),
    Column("description", Text, nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

owner_account_table = Table(
    "owner_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False, unique=True),
    Column("full_name", String, nullable=False, index=True),
    Column("email", String, nullable=False, unique=True),
    Column("phone", String, nullable=True),
    Column("is_synthetic", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

business_table = Table(
    "business",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("remote_id", Integer, nullable=True, unique=True),
    Column("name", String, nullable=False, index=True),
    Column("code", String, nullable=False, unique=True),
    Column("slug", String, nullable=False),
    Column("owner_id", UUIDColumnType, ForeignKey("owner_account.id"), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

warehouse_table = Table(
    "warehouse",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("remote_id", Integer, nullable=True, unique=True),
    Column("name", String, nullable=False, index=True),
    Column("code", String, nullable=False, unique=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

# Products -------------------------------------------------------------------

product_table = Table(
    "product",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("remote_id", Integer, nullable=True, unique=True),
    Column("name", String, nullable=False),
    Column("code", String, nullable=False, index=True),
    Column("slug", String, nullable=False, unique=True),
    Column("category_id", UUIDColumnType, ForeignKey("category.id"), nullable=True),
    Column("business_id", UUIDColumnType, ForeignKey("business.id"), nullable=True),
    Column("full_name", String, nullable=True),
    Column("description", Text, nullable=True),
    Column("bar_code", String, nullable=True),
    Column("thumbnail", String, nullable=True),
    Column("product_type", _enum_column_type(ProductType), nullable=False),
    Column("price", Float, nullable=False, default=0.0),
    Column("base_price", Float, nullable=False, default=0.0),
    Column("min_quantity", Float, nullable=False, default=1.0),
    Column("max_quantity", Float, nullable=True),
    Column("weight", Float, nullable=True),
    Column("unit", String, nullable=True),
    Column("conversion_value", Float, nullable=False, default=1.0),
    # product_unit references product; no FK back to keep the schema acyclic
    Column("master_unit_id", UUIDColumnType, nullable=True),
    Column("tax_type", _enum_column_type(TaxType), nullable=False),
    Column("tax_name", String, nullable=True),
    Column("tax_rate", String, nullable=True),
    Column("tax_rate_direct", Float, nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("allows_sale", Boolean, nullable=False, default=True),
    Column("has_variants", Boolean, nullable=False, default=False),
    Column("is_lot_serial_control", Boolean, nullable=False, default=False),
    Column("is_batch_expire_control", Boolean, nullable=False, default=False),
    Column("is_reward_point", Boolean, nullable=False, default=False),
    Column("specifications", JSON, nullable=True),
    Column("origin", _enum_column_type(ProductOrigin), nullable=False),
    Column("remote_modified_at", UTCDateTime(), nullable=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
    Column("sync_note", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)


def _product_id_column() -> Column[uuid.UUID]:
    return Column(
        "product_id",
        UUIDColumnType,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


product_image_table = Table(
    "product_image",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("url", String, nullable=False),
    Column("position", Integer, nullable=False, default=0),
    Column("is_main", Boolean, nullable=False, default=False),
)

product_inventory_table = Table(
    "product_inventory",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("warehouse_id", UUIDColumnType, ForeignKey("warehouse.id"), nullable=False),
    Column("on_hand", Float, nullable=False, default=0.0),
    Column("cost", Float, nullable=False, default=0.0),
    Column("on_order", Float, nullable=False, default=0.0),
    Column("reserved", Float, nullable=False, default=0.0),
    Column("min_quantity", Float, nullable=True),
    Column("max_quantity", Float, nullable=True),
    UniqueConstraint("product_id", "warehouse_id"),
)

product_attribute_table = Table(
    "product_attribute",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("name", String, nullable=False),
    Column("value", String, nullable=True),
)

product_unit_table = Table(
    "product_unit",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("remote_id", Integer, nullable=True),
    Column("code", String, nullable=False),
    Column("name", String, nullable=False),
    Column("full_name", String, nullable=True),
    Column("unit", String, nullable=True),
    Column("conversion_value", Float, nullable=False, default=1.0),
    Column("base_price", Float, nullable=False, default=0.0),
    Column("is_master", Boolean, nullable=False, default=False),
)

price_book_table = Table(
    "price_book",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("remote_id", Integer, nullable=True, unique=True),
    Column("name", String, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("start_date", UTCDateTime(), nullable=True),
    Column("end_date", UTCDateTime(), nullable=True),
)

product_price_book_table = Table(
    "product_price_book",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("price_book_id", UUIDColumnType, ForeignKey("price_book.id"), nullable=False),
    Column("price", Float, nullable=False, default=0.0),
    Column("is_active", Boolean, nullable=False, default=True),
    UniqueConstraint("product_id", "price_book_id"),
)

product_formula_table = Table(
    "product_formula",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("material_remote_id", Integer, nullable=False),
    Column("material_code", String, nullable=True),
    Column("material_name", String, nullable=True),
    Column("quantity", Float, nullable=False, default=0.0),
    Column("base_price", Float, nullable=False, default=0.0),
)

product_serial_table = Table(
    "product_serial",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("serial_number", String, nullable=False),
    Column("status", Integer, nullable=True),
    Column("warehouse_id", UUIDColumnType, ForeignKey("warehouse.id"), nullable=True),
    Column("quantity", Float, nullable=False, default=1.0),
)

product_batch_expire_table = Table(
    "product_batch_expire",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("remote_id", Integer, nullable=False),
    Column("warehouse_id", UUIDColumnType, ForeignKey("warehouse.id"), nullable=False),
    Column("batch_name", String, nullable=False),
    Column("full_name", String, nullable=True),
    Column("on_hand", Float, nullable=False, default=0.0),
    Column("expire_date", UTCDateTime(), nullable=True),
)

product_warranty_table = Table(
    "product_warranty",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("remote_id", Integer, nullable=False),
    Column("description", Text, nullable=False),
    Column("number_time", Integer, nullable=False, default=0),
    Column("time_type", _enum_column_type(WarrantyTimeType), nullable=False),
    Column("warranty_type", _enum_column_type(WarrantyType), nullable=False),
)

product_shelf_table = Table(
    "product_shelf",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("warehouse_id", UUIDColumnType, ForeignKey("warehouse.id"), nullable=False),
    Column("shelves", String, nullable=False, default=""),
)

product_variant_table = Table(
    "product_variant",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("name", String, nullable=False),
    Column("value", String, nullable=False),
    Column("additional_price", Float, nullable=False, default=0.0),
    Column("stock", Float, nullable=False, default=0.0),
    Column("sku", String, nullable=True),
)

product_order_template_table = Table(
    "product_order_template",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _product_id_column(),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

# Audit ----------------------------------------------------------------------

sync_run_table = Table(
    "sync_run",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("direction", _enum_column_type(SyncDirection), nullable=False),
    Column("entity_type", _enum_column_type(SyncEntityType), nullable=False),
    Column("status", _enum_column_type(SyncStatus), nullable=False),
    Column("total_records", Integer, nullable=False, default=0),
    Column("success_count", Integer, nullable=False, default=0),
    Column("failed_count", Integer, nullable=False, default=0),
    Column("stats", JSON, nullable=False),
    Column("error_details", JSON, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False, index=True),
    Column("started_at", UTCDateTime(), nullable=True),
    Column("finished_at", UTCDateTime(), nullable=True),
)

TABLE_BY_CLASS: dict[type[object], Table] = {
    Category: category_table,
    OwnerAccount: owner_account_table,
    Business: business_table,
    Warehouse: warehouse_table,
    Product: product_table,
    ProductImage: product_image_table,
    ProductInventory: product_inventory_table,
    ProductAttribute: product_attribute_table,
    ProductUnit: product_unit_table,
    PriceBook: price_book_table,
    ProductPriceBook: product_price_book_table,
    ProductFormula: product_formula_table,
    ProductSerial: product_serial_table,
    ProductBatchExpire: product_batch_expire_table,
    ProductWarranty: product_warranty_table,
    ProductShelf: product_shelf_table,
    ProductVariant: product_variant_table,
    ProductOrderTemplate: product_order_template_table,
    SyncRun: sync_run_table,
}


@cache
def start_mappers() -> orm.registry:
    """Map every domain dataclass onto its table; safe to call repeatedly."""

    log.info("Starting SQLAlchemy mappers")
    for entity_cls, table in TABLE_BY_CLASS.items():
        mapper_registry.map_imperatively(entity_cls, table)
    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
