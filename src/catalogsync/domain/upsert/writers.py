"""Sub-resource writers fanned out after the product row is written.

Each writer handles one collection of the canonical record and returns the
counters for its entity kind. The orchestrator runs every writer in its own
savepoint so that one failing collection leaves the others intact.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model import (
    EntityKind,
    PriceBook,
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
from catalogsync.domain.stats import EMPTY_STATS, SyncStats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.canonical import CanonicalProduct, CanonicalUnit
    from catalogsync.domain.dependencies import EntityMaps
    from catalogsync.domain.model import Product
    from catalogsync.domain.ports.unit_of_work import CatalogRepositories

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class WriteContext:
    product: Product
    canonical: CanonicalProduct
    maps: EntityMaps
    repositories: CatalogRepositories


@dataclass(slots=True, frozen=True)
class SubResourceStep:
    name: str
    kind: EntityKind
    write: Callable[[WriteContext], SyncStats]


def write_images(context: WriteContext) -> SyncStats:
    """Replace-all: drop the stored images and insert the canonical ones in order."""

    repository = context.repositories.images
    existing = repository.list_for_product(context.product.id)
    for image in existing:
        repository.remove(image)

    images = context.canonical.images
    explicit_main = any(image.is_main for image in images)
    for position, image in enumerate(images):
        repository.add(
            ProductImage(
                product_id=context.product.id,
                url=image.url,
                position=position,
                is_main=image.is_main if explicit_main else position == 0,
            )
        )
    return SyncStats(adds=len(images), deletes=len(existing))


def write_inventories(context: WriteContext) -> SyncStats:
    repository = context.repositories.inventories
    adds = updates = skips = 0
    for inventory in context.canonical.inventories:
        warehouse_id = context.maps.warehouses.get(inventory.branch_id)
        if warehouse_id is None:
            log.warning(
                "No warehouse mapped for branch %s; skipping inventory of %s",
                inventory.branch_id,
                context.canonical.label,
            )
            skips += 1
            continue
        row = repository.find_one(context.product.id, warehouse_id=warehouse_id)
        if row is None:
            row = ProductInventory(product_id=context.product.id, warehouse_id=warehouse_id)
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.on_hand = inventory.on_hand
        row.cost = inventory.cost
        row.on_order = inventory.on_order
        row.reserved = inventory.reserved
        row.min_quantity = inventory.min_quantity
        row.max_quantity = inventory.max_quantity
    return SyncStats(adds=adds, updates=updates, skips=skips)


def write_attributes(context: WriteContext) -> SyncStats:
    repository = context.repositories.attributes
    adds = updates = skips = 0
    for attribute in context.canonical.attributes:
        row = repository.find_one(context.product.id, name=attribute.name)
        if row is None:
            repository.add(
                ProductAttribute(
                    product_id=context.product.id,
                    name=attribute.name,
                    value=attribute.value,
                )
            )
            adds += 1
        elif row.value != attribute.value:
            row.value = attribute.value
            updates += 1
        else:
            skips += 1
    return SyncStats(adds=adds, updates=updates, skips=skips)


def write_units(context: WriteContext) -> SyncStats:
    repository = context.repositories.units
    adds = updates = 0
    for unit in context.canonical.units:
        row = repository.find_one(context.product.id, remote_id=unit.remote_id)
        if row is None:
            repository.add(_unit_row(context, unit))
            adds += 1
            continue
        row.code = unit.code
        row.name = unit.name
        row.full_name = unit.full_name
        row.unit = unit.unit
        row.conversion_value = unit.conversion_value
        row.base_price = unit.base_price
        updates += 1
    return SyncStats(adds=adds, updates=updates)


def assign_master_unit(context: WriteContext) -> SyncStats:
    """Bind the product to a master unit, synthesising a default one when none resolves."""

    product = context.product
    canonical = context.canonical
    repository = context.repositories.units
    units = repository.list_for_product(product.id)
    if product.master_unit_id is not None and any(
        unit.id == product.master_unit_id for unit in units
    ):
        return EMPTY_STATS

    chosen = _pick_master_unit(units, canonical)
    adds = 0
    if chosen is None:
        chosen = ProductUnit(
            product_id=product.id,
            remote_id=canonical.master_unit_remote_id,
            code=canonical.code or f"UNIT-{product.id.hex[:8]}",
            name=canonical.unit,
            full_name=canonical.full_name or canonical.name,
            unit=canonical.unit,
            conversion_value=canonical.conversion_value,
            base_price=canonical.base_price,
        )
        repository.add(chosen)
        adds = 1
    for unit in units:
        unit.is_master = unit is chosen
    chosen.is_master = True
    product.master_unit_id = chosen.id
    return SyncStats(adds=adds, updates=0 if adds else 1)


def write_price_books(context: WriteContext) -> SyncStats:
    books = context.repositories.price_books
    links = context.repositories.product_price_books
    adds = updates = 0
    for entry in context.canonical.price_books:
        book = books.get_by_remote_id(entry.remote_id)
        if book is None:
            book = PriceBook(
                remote_id=entry.remote_id,
                name=entry.name,
                is_active=entry.is_active,
                start_date=entry.start_date,
                end_date=entry.end_date,
            )
            books.add(book)
        link = links.find_one(context.product.id, price_book_id=book.id)
        if link is None:
            links.add(
                ProductPriceBook(
                    product_id=context.product.id,
                    price_book_id=book.id,
                    price=entry.price,
                    is_active=entry.is_active,
                )
            )
            adds += 1
        else:
            link.price = entry.price
            link.is_active = entry.is_active
            updates += 1
    return SyncStats(adds=adds, updates=updates)


def write_formulas(context: WriteContext) -> SyncStats:
    repository = context.repositories.formulas
    adds = updates = 0
    for formula in context.canonical.formulas:
        row = repository.find_one(
            context.product.id, material_remote_id=formula.material_remote_id
        )
        if row is None:
            row = ProductFormula(
                product_id=context.product.id,
                material_remote_id=formula.material_remote_id,
            )
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.material_code = formula.material_code
        row.material_name = formula.material_name
        row.quantity = formula.quantity
        row.base_price = formula.base_price
    return SyncStats(adds=adds, updates=updates)


def write_serials(context: WriteContext) -> SyncStats:
    if not context.canonical.is_lot_serial_control:
        return EMPTY_STATS
    repository = context.repositories.serials
    adds = updates = 0
    for serial in context.canonical.serials:
        row = repository.find_one(context.product.id, serial_number=serial.serial_number)
        if row is None:
            row = ProductSerial(product_id=context.product.id, serial_number=serial.serial_number)
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.status = serial.status
        row.quantity = serial.quantity
        row.warehouse_id = context.maps.warehouses.get(serial.branch_id)
    return SyncStats(adds=adds, updates=updates)


def write_batch_expires(context: WriteContext) -> SyncStats:
    if not context.canonical.is_batch_expire_control:
        return EMPTY_STATS
    repository = context.repositories.batch_expires
    adds = updates = skips = 0
    for batch in context.canonical.batch_expires:
        warehouse_id = context.maps.warehouses.get(batch.branch_id)
        if warehouse_id is None:
            log.warning(
                "No warehouse mapped for branch %s; skipping batch %s",
                batch.branch_id,
                batch.batch_name,
            )
            skips += 1
            continue
        row = repository.find_one(context.product.id, remote_id=batch.remote_id)
        if row is None:
            row = ProductBatchExpire(
                product_id=context.product.id,
                remote_id=batch.remote_id,
                warehouse_id=warehouse_id,
                batch_name=batch.batch_name,
            )
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.warehouse_id = warehouse_id
        row.batch_name = batch.batch_name
        row.full_name = batch.full_name
        row.on_hand = batch.on_hand
        row.expire_date = batch.expire_date
    return SyncStats(adds=adds, updates=updates, skips=skips)


def write_warranties(context: WriteContext) -> SyncStats:
    repository = context.repositories.warranties
    adds = updates = 0
    for warranty in context.canonical.warranties:
        row = repository.find_one(context.product.id, remote_id=warranty.remote_id)
        if row is None:
            row = ProductWarranty(
                product_id=context.product.id,
                remote_id=warranty.remote_id,
                description=warranty.description,
            )
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.description = warranty.description
        row.number_time = warranty.number_time
        row.time_type = warranty.time_type
        row.warranty_type = warranty.warranty_type
    return SyncStats(adds=adds, updates=updates)


def write_shelves(context: WriteContext) -> SyncStats:
    repository = context.repositories.shelves
    adds = updates = skips = 0
    for shelf in context.canonical.shelves:
        warehouse_id = context.maps.warehouses.get(shelf.branch_id)
        if warehouse_id is None:
            skips += 1
            continue
        row = repository.find_one(context.product.id, warehouse_id=warehouse_id)
        if row is None:
            repository.add(
                ProductShelf(
                    product_id=context.product.id,
                    warehouse_id=warehouse_id,
                    shelves=shelf.shelves,
                )
            )
            adds += 1
        else:
            row.shelves = shelf.shelves
            updates += 1
    return SyncStats(adds=adds, updates=updates, skips=skips)


def write_variants(context: WriteContext) -> SyncStats:
    if not context.canonical.has_variants:
        return EMPTY_STATS
    repository = context.repositories.variants
    adds = updates = 0
    for position, variant in enumerate(context.canonical.variants, start=1):
        row = repository.find_one(context.product.id, name=variant.name, value=variant.value)
        if row is None:
            row = ProductVariant(
                product_id=context.product.id,
                name=variant.name,
                value=variant.value,
                sku=f"{context.canonical.code}-V{position}",
            )
            repository.add(row)
            adds += 1
        else:
            updates += 1
        row.additional_price = variant.additional_price
        row.stock = variant.stock
    return SyncStats(adds=adds, updates=updates)


def write_order_template(context: WriteContext) -> SyncStats:
    note = (context.canonical.order_template or "").strip()
    if not note:
        return EMPTY_STATS
    repository = context.repositories.order_templates
    row = repository.find_one(context.product.id)
    if row is None:
        repository.add(
            ProductOrderTemplate(
                product_id=context.product.id,
                name=f"Order template for {context.canonical.code}",
                description=note,
            )
        )
        return SyncStats(adds=1)
    if row.description == note:
        return SyncStats(skips=1)
    row.description = note
    return SyncStats(updates=1)


DEFAULT_STEPS: tuple[SubResourceStep, ...] = (
    SubResourceStep("images", EntityKind.PRODUCT_IMAGE, write_images),
    SubResourceStep("inventories", EntityKind.PRODUCT_INVENTORY, write_inventories),
    SubResourceStep("attributes", EntityKind.PRODUCT_ATTRIBUTE, write_attributes),
    SubResourceStep("units", EntityKind.PRODUCT_UNIT, write_units),
    SubResourceStep("master unit", EntityKind.PRODUCT_UNIT, assign_master_unit),
    SubResourceStep("price books", EntityKind.PRODUCT_PRICE_BOOK, write_price_books),
    SubResourceStep("formulas", EntityKind.PRODUCT_FORMULA, write_formulas),
    SubResourceStep("serials", EntityKind.PRODUCT_SERIAL, write_serials),
    SubResourceStep("batch expiry lots", EntityKind.PRODUCT_BATCH_EXPIRE, write_batch_expires),
    SubResourceStep("warranties", EntityKind.PRODUCT_WARRANTY, write_warranties),
    SubResourceStep("shelves", EntityKind.PRODUCT_SHELF, write_shelves),
    SubResourceStep("variants", EntityKind.PRODUCT_VARIANT, write_variants),
    SubResourceStep("order template", EntityKind.PRODUCT_ORDER_TEMPLATE, write_order_template),
)


def _unit_row(context: WriteContext, unit: CanonicalUnit) -> ProductUnit:
    return ProductUnit(
        product_id=context.product.id,
        remote_id=unit.remote_id,
        code=unit.code,
        name=unit.name,
        full_name=unit.full_name,
        unit=unit.unit,
        conversion_value=unit.conversion_value,
        base_price=unit.base_price,
    )


def _pick_master_unit(
    units: Sequence[ProductUnit], canonical: CanonicalProduct
) -> ProductUnit | None:
    if not units:
        return None
    by_remote_id = {unit.remote_id: unit for unit in units if unit.remote_id is not None}
    if canonical.master_unit_remote_id is not None:
        matched = by_remote_id.get(canonical.master_unit_remote_id)
        if matched is not None:
            return matched
    for unit in canonical.units:
        if unit.remote_id in by_remote_id:
            return by_remote_id[unit.remote_id]
    return min(units, key=lambda unit: unit.code)
