"""Translate remote catalog payloads into canonical products.

The translation is pure: the only non-deterministic input is the slug suffix,
which callers may replace through ``suffix_factory``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from catalogsync.domain.canonical import (
    CanonicalAttribute,
    CanonicalBatchExpire,
    CanonicalFormula,
    CanonicalImage,
    CanonicalInventory,
    CanonicalPriceBook,
    CanonicalProduct,
    CanonicalSerial,
    CanonicalShelf,
    CanonicalUnit,
    CanonicalVariant,
    CanonicalWarranty,
    TaxClass,
)
from catalogsync.domain.model import ProductType, TaxType, WarrantyTimeType, WarrantyType
from catalogsync.domain.slugs import join_slug, random_suffix

from .schema import RemoteItem

if TYPE_CHECKING:
    from .schema import RemoteWarranty

PLACEHOLDER_THUMBNAIL: Final[str] = "https://via.placeholder.com/300x300?text=No+Image"
DEFAULT_UNIT: Final[str] = "piece"
DEFAULT_MIN_QUANTITY: Final[float] = 1.0
DEFAULT_CONVERSION_VALUE: Final[float] = 1.0

PRODUCT_TYPES: Final[Mapping[int, ProductType]] = MappingProxyType(
    {1: ProductType.COMBO, 2: ProductType.PRODUCT, 3: ProductType.SERVICE}
)

TAX_DISPLAY_NAMES: Final[Mapping[TaxType, str]] = MappingProxyType(
    {
        TaxType.ZERO: "VAT 0%",
        TaxType.FIVE: "VAT 5%",
        TaxType.EIGHT: "VAT 8%",
        TaxType.TEN: "VAT 10%",
        TaxType.KCT: "Not subject to VAT (KCT)",
        TaxType.KKKNT: "Not declared, not paid (KKKNT)",
        TaxType.OTHER: "Other tax rate",
    }
)

_DIRECT_TAX_CODES: Final[Mapping[str, TaxType]] = MappingProxyType(
    {
        "0%": TaxType.ZERO,
        "zero": TaxType.ZERO,
        "5%": TaxType.FIVE,
        "five": TaxType.FIVE,
        "8%": TaxType.EIGHT,
        "eight": TaxType.EIGHT,
        "10%": TaxType.TEN,
        "ten": TaxType.TEN,
        "kct": TaxType.KCT,
        "kkknt": TaxType.KKKNT,
        "khau_tru": TaxType.OTHER,
        "other": TaxType.OTHER,
    }
)

_RATE_BUCKETS: Final[Mapping[float, TaxType]] = MappingProxyType(
    {0.0: TaxType.ZERO, 5.0: TaxType.FIVE, 8.0: TaxType.EIGHT, 10.0: TaxType.TEN}
)

WARRANTY_TYPES: Final[Mapping[int, WarrantyType]] = MappingProxyType(
    {
        0: WarrantyType.NONE,
        1: WarrantyType.ELECTRONIC,
        2: WarrantyType.MANUAL_TICKET,
        3: WarrantyType.EXCHANGE_ONLY,
        4: WarrantyType.RETURN_ONLY,
        5: WarrantyType.EXCHANGE_AND_RETURN,
        6: WarrantyType.MANUFACTURER_WARRANTY,
        7: WarrantyType.STORE_WARRANTY,
        8: WarrantyType.LIFETIME,
        9: WarrantyType.SERVICE_INCLUDED,
    }
)

WARRANTY_TIME_TYPES: Final[Mapping[int, WarrantyTimeType]] = MappingProxyType(
    {0: WarrantyTimeType.DAY, 1: WarrantyTimeType.MONTH, 2: WarrantyTimeType.YEAR}
)


def product_type_for(code: int | None) -> ProductType:
    if code is None:
        return ProductType.PRODUCT
    return PRODUCT_TYPES.get(code, ProductType.PRODUCT)


def classify_tax(
    tax_type: str | None,
    tax_rate: str | None,
    *,
    tax_name: str | None = None,
    tax_rate_direct: float | None = None,
) -> TaxClass:
    """Direct code first, then the numeric percentage, then the catch-all bucket."""

    bucket = _DIRECT_TAX_CODES.get((tax_type or "").strip().lower())
    if bucket is None:
        bucket = _bucket_from_rate(tax_rate)
    name = tax_name.strip() if tax_name and tax_name.strip() else TAX_DISPLAY_NAMES[bucket]
    return TaxClass(type=bucket, name=name, rate=tax_rate, rate_direct=tax_rate_direct)


def _bucket_from_rate(rate: str | None) -> TaxType:
    if rate is None:
        return TaxType.OTHER
    try:
        value = float(rate.strip().rstrip("%").strip())
    except ValueError:
        return TaxType.OTHER
    return _RATE_BUCKETS.get(value, TaxType.OTHER)


def resolve_thumbnail(item: RemoteItem) -> str:
    if item.thumbnail:
        return item.thumbnail
    for image in item.images:
        if image and image.strip():
            return image.strip()
    return PLACEHOLDER_THUMBNAIL


def build_specifications(item: RemoteItem, tax: TaxClass) -> dict[str, object]:
    """Aggregate the storage-only attributes into one blob."""

    return {
        "weight": item.weight,
        "unit": item.unit or DEFAULT_UNIT,
        "conversionValue": item.conversion_value or DEFAULT_CONVERSION_VALUE,
        "masterUnitId": item.master_unit_id,
        "isLotSerialControl": bool(item.is_lot_serial_control),
        "isBatchExpireControl": bool(item.is_batch_expire_control),
        "isRewardPoint": bool(item.is_reward_point),
        "taxType": str(tax.type),
        "taxRate": tax.rate,
        "orderTemplate": item.order_template,
    }


def build_slug(name: str, code: str | None, suffix: str) -> str:
    return join_slug(name, code, suffix) or join_slug("product", suffix)


def map_remote_item(
    item: RemoteItem | Mapping[str, object],
    *,
    suffix_factory: Callable[[], str] = random_suffix,
) -> CanonicalProduct:
    """Build the canonical record for one remote item."""

    payload = item if isinstance(item, RemoteItem) else RemoteItem.model_validate(item)
    name = payload.name.strip()
    code = (payload.code or "").strip()
    tax = classify_tax(
        payload.tax_type,
        payload.tax_rate,
        tax_name=payload.taxname,
        tax_rate_direct=payload.tax_rate_direct,
    )
    base_price = payload.base_price or 0.0

    return CanonicalProduct(
        remote_id=payload.id,
        code=code,
        name=name,
        slug=build_slug(name, code, suffix_factory()),
        full_name=payload.full_name,
        description=payload.description,
        bar_code=payload.bar_code,
        thumbnail=resolve_thumbnail(payload),
        product_type=product_type_for(payload.type),
        price=base_price,
        base_price=base_price,
        min_quantity=(
            payload.min_quantity if payload.min_quantity is not None else DEFAULT_MIN_QUANTITY
        ),
        max_quantity=payload.max_quantity,
        weight=payload.weight,
        unit=(payload.unit or "").strip() or DEFAULT_UNIT,
        conversion_value=payload.conversion_value or DEFAULT_CONVERSION_VALUE,
        master_unit_remote_id=payload.master_unit_id,
        category_remote_id=payload.category_id,
        category_name=payload.category_name,
        business_remote_id=payload.trade_mark_id,
        business_name=payload.trade_mark_name,
        tax_type=tax.type,
        tax_name=tax.name,
        tax_rate=tax.rate,
        tax_rate_direct=tax.rate_direct,
        is_active=payload.is_active if payload.is_active is not None else True,
        allows_sale=payload.allows_sale if payload.allows_sale is not None else True,
        has_variants=bool(payload.has_variants),
        is_lot_serial_control=bool(payload.is_lot_serial_control),
        is_batch_expire_control=bool(payload.is_batch_expire_control),
        is_reward_point=bool(payload.is_reward_point),
        order_template=payload.order_template,
        modified_at=_as_utc(payload.modified_date),
        specifications=build_specifications(payload, tax),
        images=_images(payload),
        inventories=tuple(
            CanonicalInventory(
                branch_id=entry.branch_id,
                branch_name=entry.branch_name,
                on_hand=entry.on_hand or 0.0,
                cost=entry.cost or 0.0,
                on_order=entry.on_order or 0.0,
                reserved=entry.reserved or 0.0,
                min_quantity=entry.min_quantity,
                max_quantity=entry.max_quantity,
            )
            for entry in payload.inventories
        ),
        attributes=tuple(
            CanonicalAttribute(name=entry.attribute_name.strip(), value=entry.attribute_value)
            for entry in payload.attributes
            if entry.attribute_name.strip()
        ),
        units=tuple(
            CanonicalUnit(
                remote_id=entry.id,
                code=entry.code,
                name=entry.name or entry.unit or entry.code,
                full_name=entry.full_name,
                unit=entry.unit,
                conversion_value=entry.conversion_value,
                base_price=entry.base_price,
            )
            for entry in payload.units
        ),
        price_books=tuple(
            CanonicalPriceBook(
                remote_id=entry.price_book_id,
                name=entry.price_book_name or f"Price book {entry.price_book_id}",
                price=entry.price,
                is_active=entry.is_active,
                start_date=_as_utc(entry.start_date),
                end_date=_as_utc(entry.end_date),
            )
            for entry in payload.price_books
        ),
        formulas=tuple(
            CanonicalFormula(
                material_remote_id=entry.material_id,
                material_code=entry.material_code,
                material_name=entry.material_name or entry.material_full_name,
                quantity=entry.quantity,
                base_price=entry.base_price,
            )
            for entry in payload.product_formulas
        ),
        serials=tuple(
            CanonicalSerial(
                serial_number=entry.serial_number,
                status=entry.status,
                branch_id=entry.branch_id,
                quantity=entry.quantity if entry.quantity is not None else 1.0,
            )
            for entry in payload.serials
        ),
        batch_expires=tuple(
            CanonicalBatchExpire(
                remote_id=entry.id,
                branch_id=entry.branch_id,
                batch_name=entry.batch_name,
                full_name=entry.full_name_virgule,
                on_hand=entry.on_hand,
                expire_date=_as_utc(entry.expire_date),
            )
            for entry in payload.product_batch_expires
        ),
        warranties=tuple(_warranty(entry) for entry in payload.product_warranties),
        shelves=tuple(
            CanonicalShelf(
                branch_id=entry.branch_id,
                branch_name=entry.branch_name,
                shelves=(entry.product_shelves or "").strip(),
            )
            for entry in payload.product_shelves
        ),
        variants=tuple(
            CanonicalVariant(
                name=entry.name,
                value=entry.value,
                additional_price=entry.additional_price,
                stock=entry.stock,
            )
            for entry in payload.variants
        ),
    )


def _images(item: RemoteItem) -> tuple[CanonicalImage, ...]:
    urls = [url.strip() for url in item.images if url and url.strip()]
    return tuple(
        CanonicalImage(url=url, position=position, is_main=position == 0)
        for position, url in enumerate(urls)
    )


def _warranty(entry: RemoteWarranty) -> CanonicalWarranty:
    return CanonicalWarranty(
        remote_id=entry.id,
        description=entry.description,
        number_time=entry.number_time,
        time_type=WARRANTY_TIME_TYPES.get(
            entry.time_type if entry.time_type is not None else 1, WarrantyTimeType.MONTH
        ),
        warranty_type=WARRANTY_TYPES.get(
            entry.warranty_type if entry.warranty_type is not None else 0, WarrantyType.NONE
        ),
    )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
