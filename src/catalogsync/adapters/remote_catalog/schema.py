"""Pydantic models describing the remote catalog API payloads."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# the remote API emits up to seven fractional digits
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")

# one raw product as listed on a page; validated item by item by the translator
RemotePayload = dict[str, Any]


def _trim_fraction(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        return _EXCESS_FRACTION.sub(r"\1", stripped)
    return value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RemoteBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class RemoteAttribute(RemoteBaseModel):
    attribute_name: str
    attribute_value: str | None = None


class RemoteUnit(RemoteBaseModel):
    id: int
    code: str
    name: str = ""
    full_name: str | None = None
    unit: str | None = None
    conversion_value: float = 1.0
    base_price: float = 0.0


class RemoteInventory(RemoteBaseModel):
    branch_id: int
    branch_name: str | None = None
    on_hand: float | None = None
    cost: float | None = None
    on_order: float | None = None
    reserved: float | None = None
    min_quantity: float | None = None
    max_quantity: float | None = None


class RemotePriceBook(RemoteBaseModel):
    price_book_id: int
    price_book_name: str = ""
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None
    price: float = 0.0

    _trim_dates = field_validator("start_date", "end_date", mode="before")(_trim_fraction)


class RemoteFormula(RemoteBaseModel):
    material_id: int
    material_code: str | None = None
    material_name: str | None = None
    material_full_name: str | None = None
    quantity: float = 0.0
    base_price: float = 0.0


class RemoteSerial(RemoteBaseModel):
    serial_number: str
    status: int | None = None
    branch_id: int | None = None
    quantity: float | None = None


class RemoteBatchExpire(RemoteBaseModel):
    id: int
    branch_id: int
    batch_name: str
    full_name_virgule: str | None = None
    on_hand: float = 0.0
    expire_date: datetime | None = None

    _trim_dates = field_validator("expire_date", mode="before")(_trim_fraction)


class RemoteWarranty(RemoteBaseModel):
    id: int
    description: str = ""
    number_time: int = 0
    time_type: int | None = None
    warranty_type: int | None = None


class RemoteShelf(RemoteBaseModel):
    branch_id: int
    branch_name: str | None = None
    product_shelves: str | None = Field(
        default=None, validation_alias=AliasChoices("ProductShelves", "productShelves")
    )


class RemoteVariant(RemoteBaseModel):
    name: str
    value: str
    additional_price: float = 0.0
    stock: float = 0.0


class RemoteItem(RemoteBaseModel):
    """One product as returned by ``GET /products``."""

    id: int
    code: str | None = None
    name: str = ""
    full_name: str | None = None
    bar_code: str | None = None
    description: str | None = None
    type: int | None = None
    allows_sale: bool | None = None
    is_active: bool | None = None
    has_variants: bool | None = None
    category_id: int | None = None
    category_name: str | None = None
    trade_mark_id: int | None = None
    trade_mark_name: str | None = None
    base_price: float | None = None
    weight: float | None = None
    unit: str | None = None
    master_unit_id: int | None = None
    conversion_value: float | None = None
    min_quantity: float | None = None
    max_quantity: float | None = None
    order_template: str | None = None
    tax_type: str | None = None
    tax_rate: str | None = None
    tax_rate_direct: float | None = None
    taxname: str | None = Field(default=None, validation_alias=AliasChoices("taxname", "taxName"))
    is_lot_serial_control: bool | None = None
    is_batch_expire_control: bool | None = None
    is_reward_point: bool | None = None
    thumbnail: str | None = None
    modified_date: datetime | None = None
    created_date: datetime | None = None

    images: list[str] = Field(default_factory=list)
    attributes: list[RemoteAttribute] = Field(default_factory=list)
    units: list[RemoteUnit] = Field(default_factory=list)
    inventories: list[RemoteInventory] = Field(default_factory=list)
    price_books: list[RemotePriceBook] = Field(default_factory=list)
    product_formulas: list[RemoteFormula] = Field(default_factory=list)
    serials: list[RemoteSerial] = Field(default_factory=list)
    product_batch_expires: list[RemoteBatchExpire] = Field(default_factory=list)
    product_warranties: list[RemoteWarranty] = Field(default_factory=list)
    product_shelves: list[RemoteShelf] = Field(default_factory=list)
    variants: list[RemoteVariant] = Field(default_factory=list)

    _trim_dates = field_validator("modified_date", "created_date", mode="before")(_trim_fraction)
    _normalize_blank = field_validator(
        "code", "bar_code", "tax_type", "tax_rate", "taxname", "thumbnail", mode="before"
    )(_blank_to_none)

    @field_validator(
        "images",
        "attributes",
        "units",
        "inventories",
        "price_books",
        "product_formulas",
        "serials",
        "product_batch_expires",
        "product_warranties",
        "product_shelves",
        "variants",
        mode="before",
    )
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _stringify_rate(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, value: object) -> object:
        return "" if value is None else value

    @classmethod
    def empty(cls, remote_id: int) -> RemoteItem:
        return cls(id=remote_id)


class RemoteProductPage(RemoteBaseModel):
    total: int = 0
    page_size: int = 0
    data: list[RemotePayload] = Field(default_factory=list)
    remove_ids: list[int] = Field(default_factory=list)

    @field_validator("data", "remove_ids", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int | None = None
    token_type: str = "Bearer"
