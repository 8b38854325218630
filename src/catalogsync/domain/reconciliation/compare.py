"""Per-field comparison policy keyed by declared field kind."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class FieldKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldSpec:
    """How one product field is compared between the canonical record and the store."""

    name: str
    kind: FieldKind
    critical: bool = False
    allow_null: bool = False
    tolerance: float = 0.0


MONEY_TOLERANCE: Final[float] = 0.01
WEIGHT_TOLERANCE: Final[float] = 0.001

PRODUCT_FIELDS: Final[tuple[FieldSpec, ...]] = (
    FieldSpec(name="name", kind=FieldKind.STRING, critical=True),
    FieldSpec(name="code", kind=FieldKind.STRING, critical=True),
    FieldSpec(name="description", kind=FieldKind.STRING, allow_null=True),
    FieldSpec(name="bar_code", kind=FieldKind.STRING, allow_null=True),
    FieldSpec(name="price", kind=FieldKind.DECIMAL, tolerance=MONEY_TOLERANCE),
    FieldSpec(name="base_price", kind=FieldKind.DECIMAL, tolerance=MONEY_TOLERANCE),
    FieldSpec(name="min_quantity", kind=FieldKind.NUMBER),
    FieldSpec(name="max_quantity", kind=FieldKind.NUMBER, allow_null=True),
    FieldSpec(name="is_active", kind=FieldKind.BOOLEAN),
    FieldSpec(name="allows_sale", kind=FieldKind.BOOLEAN),
    FieldSpec(name="weight", kind=FieldKind.NUMBER, allow_null=True, tolerance=WEIGHT_TOLERANCE),
    FieldSpec(name="unit", kind=FieldKind.STRING),
    FieldSpec(name="conversion_value", kind=FieldKind.DECIMAL, tolerance=MONEY_TOLERANCE),
    FieldSpec(name="tax_type", kind=FieldKind.STRING),
    FieldSpec(name="tax_rate", kind=FieldKind.STRING, allow_null=True),
    FieldSpec(
        name="tax_rate_direct",
        kind=FieldKind.NUMBER,
        allow_null=True,
        tolerance=MONEY_TOLERANCE,
    ),
    FieldSpec(name="is_lot_serial_control", kind=FieldKind.BOOLEAN),
    FieldSpec(name="is_batch_expire_control", kind=FieldKind.BOOLEAN),
    FieldSpec(name="is_reward_point", kind=FieldKind.BOOLEAN),
)


def is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _normalize_string(value: object, *, allow_null: bool) -> str | None:
    if value is None:
        return None if allow_null else ""
    return str(value).strip()


def string_changed(source: object, target: object, *, allow_null: bool = False) -> bool:
    return _normalize_string(source, allow_null=allow_null) != _normalize_string(
        target, allow_null=allow_null
    )


def numeric_changed(
    source: object,
    target: object,
    *,
    tolerance: float = 0.0,
    allow_null: bool = False,
) -> bool:
    """Different only when ``|source - target| > tolerance``.

    Both-null is equal; one-null is different unless nulls are allowed.
    Values that cannot be read as numbers always count as different.
    """

    if source is None and target is None:
        return False
    if source is None or target is None:
        return not allow_null
    try:
        source_number = float(source)  # type: ignore[arg-type]
        target_number = float(target)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return True
    if math.isnan(source_number) or math.isnan(target_number):
        return True
    return abs(source_number - target_number) > tolerance


def coerce_bool(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, int | float):
        return value != 0
    return bool(value)


def boolean_changed(source: object, target: object) -> bool:
    return coerce_bool(source) != coerce_bool(target)


def field_changed(spec: FieldSpec, source: object, target: object) -> bool:
    match spec.kind:
        case FieldKind.STRING:
            return string_changed(source, target, allow_null=spec.allow_null)
        case FieldKind.NUMBER | FieldKind.DECIMAL:
            return numeric_changed(
                source,
                target,
                tolerance=spec.tolerance,
                allow_null=spec.allow_null,
            )
        case FieldKind.BOOLEAN:
            return boolean_changed(source, target)
