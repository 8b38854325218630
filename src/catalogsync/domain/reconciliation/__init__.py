"""Diff/reconciliation engine: field comparison, classification and deletion sweep."""

from __future__ import annotations

from .classify import classify, classify_deletions, preview_stats
from .compare import (
    PRODUCT_FIELDS,
    FieldKind,
    FieldSpec,
    boolean_changed,
    coerce_bool,
    field_changed,
    numeric_changed,
    string_changed,
)
from .contracts import Classification, ClassifiedRecord, FieldChange, LocalIndex, MatchKind

__all__ = [
    "PRODUCT_FIELDS",
    "Classification",
    "ClassifiedRecord",
    "FieldChange",
    "FieldKind",
    "FieldSpec",
    "LocalIndex",
    "MatchKind",
    "boolean_changed",
    "classify",
    "classify_deletions",
    "coerce_bool",
    "field_changed",
    "numeric_changed",
    "preview_stats",
    "string_changed",
]
