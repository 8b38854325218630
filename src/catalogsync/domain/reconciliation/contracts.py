"""Classification contracts shared by the diff engine and the upsert orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from catalogsync.domain.canonical import CanonicalProduct
    from catalogsync.domain.model import Product


class Classification(StrEnum):
    """Mutually exclusive decision for one record."""

    ADD = "add"
    UPDATE = "update"
    SKIP = "skip"
    CONFLICT = "conflict"
    DELETE = "delete"


class MatchKind(StrEnum):
    """How a canonical product found its local counterpart."""

    REMOTE_ID = "remote_id"
    CODE = "code"


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldChange:
    field: str
    before: object
    after: object

    def __str__(self) -> str:
        return f"{self.field}: {self.before!r} -> {self.after!r}"


@dataclass(slots=True, frozen=True, kw_only=True)
class ClassifiedRecord:
    """Classification plus the evidence it was derived from."""

    classification: Classification
    canonical: CanonicalProduct | None = None
    target: Product | None = None
    match_kind: MatchKind | None = None
    changes: tuple[FieldChange, ...] = ()
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.classification is Classification.DELETE:
            if self.target is None:
                raise ValueError("Delete classification requires a local target")
        elif self.canonical is None:
            raise ValueError(f"{self.classification} classification requires a canonical record")
        if self.classification in {Classification.UPDATE, Classification.SKIP} and (
            self.target is None
        ):
            raise ValueError(f"{self.classification} classification requires a local target")

    @property
    def changed_fields(self) -> tuple[str, ...]:
        return tuple(change.field for change in self.changes)

    @property
    def label(self) -> str:
        if self.canonical is not None:
            return self.canonical.label
        if self.target is not None:
            return f"{self.target.name} ({self.target.code})"
        return str(self.classification)


@dataclass(slots=True, frozen=True)
class LocalIndex:
    """Read-only lookup of local products by remote id and by business code."""

    products: tuple[Product, ...]
    by_remote_id: Mapping[int, Product] = field(default_factory=lambda: MappingProxyType({}))
    by_code: Mapping[str, Product] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, products: Iterable[Product]) -> LocalIndex:
        collected = tuple(products)
        by_remote_id: dict[int, Product] = {}
        by_code: dict[str, Product] = {}
        for product in collected:
            if product.remote_id is not None:
                by_remote_id.setdefault(product.remote_id, product)
            code = (product.code or "").strip()
            if code:
                by_code.setdefault(code, product)
        return cls(
            collected,
            MappingProxyType(by_remote_id),
            MappingProxyType(by_code),
        )

    def match(self, *, remote_id: int | None, code: str | None) -> tuple[Product, MatchKind] | None:
        """Remote id first, then code; the first hit wins."""

        if remote_id is not None:
            product = self.by_remote_id.get(remote_id)
            if product is not None:
                return product, MatchKind.REMOTE_ID
        normalized = (code or "").strip()
        if normalized:
            product = self.by_code.get(normalized)
            if product is not None:
                return product, MatchKind.CODE
        return None

    def __len__(self) -> int:
        return len(self.products)
