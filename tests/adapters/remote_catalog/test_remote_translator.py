from __future__ import annotations

from datetime import UTC, datetime

import pytest

from catalogsync.adapters.remote_catalog import (
    PLACEHOLDER_THUMBNAIL,
    RemoteItem,
    classify_tax,
    map_remote_item,
    product_type_for,
    resolve_thumbnail,
)
from catalogsync.domain.model import ProductType, TaxType, WarrantyTimeType, WarrantyType
from tests.support.remote_payloads import remote_item


def _fixed_suffix() -> str:
    return "abc123"


def test_map_remote_item_builds_canonical_product() -> None:
    product = map_remote_item(remote_item(7, name="Nước Cam Ép"), suffix_factory=_fixed_suffix)

    assert product.remote_id == 7
    assert product.code == "SP0007"
    assert product.slug == "nuoc-cam-ep-sp0007-abc123"
    assert product.price == 100.0
    assert product.base_price == 100.0
    assert product.unit == "bottle"
    assert product.category_remote_id == 10
    assert product.business_remote_id == 20
    assert product.business_name == "Acme"
    assert product.modified_at == datetime(2024, 5, 1, 8, 30, 0, 123456, tzinfo=UTC)
    assert [image.is_main for image in product.images] == [True, False]
    assert product.inventories[0].branch_id == 30
    assert product.units[0].remote_id == 70


def test_map_remote_item_applies_documented_defaults() -> None:
    product = map_remote_item({"id": 9, "name": "Bare"}, suffix_factory=_fixed_suffix)

    assert product.min_quantity == 1
    assert product.conversion_value == 1
    assert product.unit == "piece"
    assert product.price == 0
    assert product.is_active is True
    assert product.allows_sale is True
    assert product.thumbnail == PLACEHOLDER_THUMBNAIL
    assert product.tax_type is TaxType.OTHER
    assert product.tax_name == "Other tax rate"


def test_map_remote_item_collects_specifications() -> None:
    payload = remote_item(
        4,
        weight=1.5,
        masterUnitId=40,
        isLotSerialControl=True,
        orderTemplate="Deliver chilled",
    )

    product = map_remote_item(payload, suffix_factory=_fixed_suffix)

    assert product.specifications == {
        "weight": 1.5,
        "unit": "bottle",
        "conversionValue": 1,
        "masterUnitId": 40,
        "isLotSerialControl": True,
        "isBatchExpireControl": False,
        "isRewardPoint": False,
        "taxType": "ten",
        "taxRate": "10",
        "orderTemplate": "Deliver chilled",
    }


def test_map_remote_item_random_suffix_keeps_slugs_distinct() -> None:
    first = map_remote_item(remote_item(1, name="Same", code="X"))
    second = map_remote_item(remote_item(2, name="Same", code="X"))

    assert first.slug.startswith("same-x-")
    assert first.slug != second.slug


def test_map_remote_item_translates_warranties() -> None:
    payload = remote_item(
        5,
        productWarranties=[
            {"id": 1, "description": "Shop", "numberTime": 12, "timeType": 1, "warrantyType": 7},
            {"id": 2, "description": "Odd", "numberTime": 3, "timeType": 9, "warrantyType": 42},
        ],
    )

    warranties = map_remote_item(payload, suffix_factory=_fixed_suffix).warranties

    assert warranties[0].warranty_type is WarrantyType.STORE_WARRANTY
    assert warranties[0].time_type is WarrantyTimeType.MONTH
    assert warranties[1].warranty_type is WarrantyType.NONE
    assert warranties[1].time_type is WarrantyTimeType.MONTH


@pytest.mark.parametrize(
    ("tax_type", "tax_rate", "expected"),
    [
        ("5%", None, TaxType.FIVE),
        ("EIGHT", None, TaxType.EIGHT),
        ("kct", "10", TaxType.KCT),
        ("khau_tru", None, TaxType.OTHER),
        (None, "10%", TaxType.TEN),
        (None, "0", TaxType.ZERO),
        (None, "7", TaxType.OTHER),
        ("unknown", "abc", TaxType.OTHER),
        (None, None, TaxType.OTHER),
    ],
)
def test_classify_tax_buckets(
    tax_type: str | None, tax_rate: str | None, expected: TaxType
) -> None:
    assert classify_tax(tax_type, tax_rate).type is expected


def test_classify_tax_prefers_remote_display_name() -> None:
    assert classify_tax("10%", None).name == "VAT 10%"
    assert classify_tax("10%", None, tax_name="VAT ten").name == "VAT ten"


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (1, ProductType.COMBO),
        (2, ProductType.PRODUCT),
        (3, ProductType.SERVICE),
        (8, ProductType.PRODUCT),
        (None, ProductType.PRODUCT),
    ],
)
def test_product_type_for(code: int | None, expected: ProductType) -> None:
    assert product_type_for(code) is expected


def test_resolve_thumbnail_order() -> None:
    explicit = RemoteItem.model_validate({"id": 1, "thumbnail": "t.jpg", "images": ["a.jpg"]})
    from_images = RemoteItem.model_validate({"id": 1, "images": ["", "a.jpg"]})
    placeholder = RemoteItem.model_validate({"id": 1})

    assert resolve_thumbnail(explicit) == "t.jpg"
    assert resolve_thumbnail(from_images) == "a.jpg"
    assert resolve_thumbnail(placeholder) == PLACEHOLDER_THUMBNAIL
