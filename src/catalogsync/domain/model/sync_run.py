"""Audit record of one reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from catalogsync.domain.model.base import Entity
from catalogsync.domain.model.catalog import utcnow
from catalogsync.domain.model.enums import EntityKind, SyncDirection, SyncEntityType, SyncStatus

if TYPE_CHECKING:
    from datetime import datetime


class SyncRunStateError(RuntimeError):
    """Raised when a sync run is moved through an illegal status transition."""


_ALLOWED_TRANSITIONS: dict[SyncStatus, frozenset[SyncStatus]] = {
    SyncStatus.PENDING: frozenset({SyncStatus.RUNNING}),
    SyncStatus.RUNNING: frozenset({SyncStatus.SUCCESS, SyncStatus.PARTIAL, SyncStatus.FAILED}),
}


@dataclass(eq=False, kw_only=True)
class SyncRun(Entity):
    """Pending -> Running -> {Success, Partial, Failed}; terminal runs are immutable."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.SYNC_RUN

    direction: SyncDirection
    entity_type: SyncEntityType
    status: SyncStatus = SyncStatus.PENDING
    total_records: int = 0
    success_count: int = 0
    failed_count: int = 0
    stats: dict[str, dict[str, int]] = field(default_factory=dict[str, dict[str, int]])
    error_details: list[str] = field(default_factory=list[str])
    created_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return SyncStatus(self.status).is_terminal

    def _transition(self, target: SyncStatus) -> None:
        current = SyncStatus(self.status)
        if target not in _ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise SyncRunStateError(f"Sync run {self.id} cannot move from {current} to {target}")
        self.status = target

    def mark_running(self, *, now: datetime | None = None) -> None:
        self._transition(SyncStatus.RUNNING)
        self.started_at = now or utcnow()

    def finish(
        self,
        status: SyncStatus,
        *,
        stats: dict[str, dict[str, int]],
        success_count: int,
        failed_count: int,
        error_details: list[str],
        now: datetime | None = None,
    ) -> None:
        if not status.is_terminal:
            raise SyncRunStateError(f"{status} is not a terminal sync run status")
        self._transition(status)
        self.stats = stats
        self.success_count = success_count
        self.failed_count = failed_count
        self.error_details = error_details
        self.finished_at = now or utcnow()
