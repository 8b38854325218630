"""Immutable statistics deltas produced by every phase of a run.

Phases never mutate a shared counter object; each returns a ``RunStats`` value
and the caller merges them with ``+``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import TYPE_CHECKING, Self

from catalogsync.domain.model.enums import EntityKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

STAT_KINDS: tuple[EntityKind, ...] = (
    EntityKind.CATEGORY,
    EntityKind.BUSINESS,
    EntityKind.WAREHOUSE,
    EntityKind.OWNER_ACCOUNT,
    EntityKind.PRODUCT,
    EntityKind.PRODUCT_IMAGE,
    EntityKind.PRODUCT_INVENTORY,
    EntityKind.PRODUCT_ATTRIBUTE,
    EntityKind.PRODUCT_UNIT,
    EntityKind.PRODUCT_PRICE_BOOK,
    EntityKind.PRODUCT_FORMULA,
    EntityKind.PRODUCT_SERIAL,
    EntityKind.PRODUCT_BATCH_EXPIRE,
    EntityKind.PRODUCT_WARRANTY,
    EntityKind.PRODUCT_SHELF,
    EntityKind.PRODUCT_VARIANT,
    EntityKind.PRODUCT_ORDER_TEMPLATE,
)


@dataclass(slots=True, frozen=True, kw_only=True)
class SyncStats:
    """Counter set for one entity kind."""

    adds: int = 0
    updates: int = 0
    skips: int = 0
    conflicts: int = 0
    deletes: int = 0
    errors: int = 0

    def __add__(self, other: SyncStats) -> SyncStats:
        return SyncStats(
            adds=self.adds + other.adds,
            updates=self.updates + other.updates,
            skips=self.skips + other.skips,
            conflicts=self.conflicts + other.conflicts,
            deletes=self.deletes + other.deletes,
            errors=self.errors + other.errors,
        )

    @property
    def attempts(self) -> int:
        return self.adds + self.updates + self.skips + self.conflicts + self.errors

    @property
    def failure_rate(self) -> float:
        """(errors + conflicts) over attempted records; 0.0 when nothing was attempted."""

        if self.attempts == 0:
            return 0.0
        return (self.errors + self.conflicts) / self.attempts

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, item.name) for item in fields(self))

    def as_dict(self) -> dict[str, int]:
        return {item.name: getattr(self, item.name) for item in fields(self)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> SyncStats:
        values: dict[str, int] = {}
        for item in fields(cls):
            raw = payload.get(item.name, 0)
            values[item.name] = int(raw) if isinstance(raw, int | float | str) else 0
        return cls(**values)


EMPTY_STATS = SyncStats()


@dataclass(slots=True, frozen=True)
class RunStats:
    """Per-kind counters; merging two deltas yields a new value."""

    _by_kind: Mapping[EntityKind, SyncStats] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def empty(cls) -> Self:
        return cls()

    @classmethod
    def of(cls, kind: EntityKind, **counts: int) -> Self:
        return cls(MappingProxyType({kind: SyncStats(**counts)}))

    @classmethod
    def from_stats(cls, kind: EntityKind, stats: SyncStats) -> Self:
        if stats.is_empty:
            return cls()
        return cls(MappingProxyType({kind: stats}))

    def __add__(self, other: RunStats) -> RunStats:
        merged: dict[EntityKind, SyncStats] = dict(self._by_kind)
        for kind, stats in other._by_kind.items():
            merged[kind] = merged.get(kind, EMPTY_STATS) + stats
        return RunStats(MappingProxyType(merged))

    def __iter__(self) -> Iterator[tuple[EntityKind, SyncStats]]:
        return iter(self._by_kind.items())

    def for_kind(self, kind: EntityKind) -> SyncStats:
        return self._by_kind.get(kind, EMPTY_STATS)

    @property
    def product(self) -> SyncStats:
        return self.for_kind(EntityKind.PRODUCT)

    @property
    def is_empty(self) -> bool:
        return all(stats.is_empty for stats in self._by_kind.values())

    @property
    def has_failures(self) -> bool:
        return any(stats.errors or stats.conflicts for stats in self._by_kind.values())

    def total(self) -> SyncStats:
        result = EMPTY_STATS
        for stats in self._by_kind.values():
            result = result + stats
        return result

    def as_dict(self) -> dict[str, dict[str, int]]:
        return {
            str(kind): stats.as_dict()
            for kind, stats in self._by_kind.items()
            if not stats.is_empty
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Mapping[str, object]]) -> RunStats:
        by_kind = {
            EntityKind(kind): SyncStats.from_dict(counts) for kind, counts in payload.items()
        }
        return cls(MappingProxyType(by_kind))


def merge_all(deltas: Iterable[RunStats]) -> RunStats:
    result = RunStats.empty()
    for delta in deltas:
        result = result + delta
    return result


def format_summary(stats: RunStats) -> str:
    """Render one line per entity kind for the end-of-run log block."""

    lines: list[str] = []
    for kind in STAT_KINDS:
        counts = stats.for_kind(kind)
        lines.append(
            f"{kind:<24} adds={counts.adds} updates={counts.updates} skips={counts.skips} "
            f"conflicts={counts.conflicts} deletes={counts.deletes} errors={counts.errors}"
        )
    return "\n".join(lines)
