"""Outcome values returned by the upsert orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogsync.domain.stats import EMPTY_STATS, RunStats, SyncStats

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import EntityKind
    from catalogsync.domain.reconciliation import ClassifiedRecord


@dataclass(slots=True, frozen=True, kw_only=True)
class SubResourceOutcome:
    """Result of writing one sub-resource collection: ok with counters, or an error."""

    kind: EntityKind
    stats: SyncStats = EMPTY_STATS
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, kind: EntityKind, stats: SyncStats) -> SubResourceOutcome:
        return cls(kind=kind, stats=stats)

    @classmethod
    def failure(cls, kind: EntityKind, error: str) -> SubResourceOutcome:
        return cls(kind=kind, stats=SyncStats(errors=1), error=error)

    def as_run_stats(self) -> RunStats:
        return RunStats.from_stats(self.kind, self.stats)


@dataclass(slots=True, frozen=True, kw_only=True)
class UpsertOutcome:
    record: ClassifiedRecord
    stats: RunStats
    product_id: UUID | None = None
    sub_resources: tuple[SubResourceOutcome, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        """The product row itself was written (or needed no write)."""

        return self.error is None

    @property
    def errors(self) -> tuple[str, ...]:
        messages = [self.error] if self.error else []
        messages.extend(outcome.error for outcome in self.sub_resources if outcome.error)
        return tuple(messages)
