"""Builders and fakes for canonical products, local products and sources."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from catalogsync.domain.canonical import CanonicalInventory, CanonicalProduct, CanonicalUnit
from catalogsync.domain.model import Product, ProductOrigin, TaxType


def make_canonical(remote_id: int, **overrides: Any) -> CanonicalProduct:
    values: dict[str, Any] = {
        "remote_id": remote_id,
        "code": f"SP{remote_id:04d}",
        "name": f"Product {remote_id}",
        "slug": f"product-{remote_id}",
        "price": 100.0,
        "base_price": 100.0,
        "unit": "bottle",
        "tax_type": TaxType.TEN,
        "tax_rate": "10",
        "category_remote_id": 10,
        "category_name": "Drinks",
        "business_remote_id": 20,
        "business_name": "Acme",
        "inventories": (CanonicalInventory(branch_id=30, branch_name="Main store", on_hand=5),),
        "units": (
            CanonicalUnit(remote_id=remote_id * 10, code=f"SP{remote_id:04d}", name="Bottle"),
        ),
    }
    values.update(overrides)
    return CanonicalProduct(**values)


def make_local_product(
    *,
    code: str,
    remote_id: int | None = None,
    origin: ProductOrigin = ProductOrigin.REMOTE,
    **overrides: Any,
) -> Product:
    values: dict[str, Any] = {
        "remote_id": remote_id,
        "code": code,
        "name": f"Product {remote_id}" if remote_id is not None else code,
        "slug": f"local-{code.lower()}",
        "price": 100.0,
        "base_price": 100.0,
        "unit": "bottle",
        "tax_type": TaxType.TEN,
        "tax_rate": "10",
        "origin": origin,
    }
    values.update(overrides)
    return Product(**values)


def identity_mapper(item: CanonicalProduct) -> CanonicalProduct:
    return item


@dataclass
class StaticSource:
    """In-memory remote catalog yielding prepared items."""

    items: Sequence[Any]
    tombstones: set[int] = field(default_factory=set[int])
    error: Exception | None = None
    fetches: int = 0

    def fetch_all(self) -> list[Any]:
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return list(self.items)

    def fetch_tombstones(self) -> set[int]:
        return set(self.tombstones)
