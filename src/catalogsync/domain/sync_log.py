"""Sync log and statistics recorder.

A run row is created when a reconciliation starts and written again exactly
once when it finishes; the per-kind counters are accumulated in memory by the
caller and persisted as one JSON document.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model import SyncRun, SyncRunStateError, utcnow
from catalogsync.domain.stats import format_summary

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model import SyncDirection, SyncEntityType, SyncStatus
    from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork
    from catalogsync.domain.stats import RunStats

log = getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class SyncRunNotFoundError(LookupError):
    """Raised when finishing a run id that has no stored record."""


@dataclass(slots=True)
class SyncLogRecorder:
    unit_of_work_factory: Callable[[], CatalogUnitOfWork]
    clock: Callable[[], datetime] = utcnow

    def start(
        self,
        direction: SyncDirection,
        entity_type: SyncEntityType,
        total_expected: int,
    ) -> UUID:
        """Persist a new run in the Running state and return its id."""

        run = SyncRun(
            direction=direction,
            entity_type=entity_type,
            total_records=total_expected,
            created_at=self.clock(),
        )
        run.mark_running(now=self.clock())
        with self.unit_of_work_factory() as uow:
            uow.repositories.sync_runs.add(run)
            uow.commit()
        log.info(
            "Started %s sync run %s (%s, %s records expected)",
            entity_type,
            run.id,
            direction,
            total_expected,
        )
        return run.id

    def finish(
        self,
        run_id: UUID,
        status: SyncStatus,
        stats: RunStats,
        *,
        success_count: int = 0,
        failed_count: int = 0,
        errors: Sequence[str] = (),
    ) -> SyncRun:
        """Move the run into its terminal ``status``; a finished run cannot be finished again."""

        with self.unit_of_work_factory() as uow:
            run = uow.repositories.sync_runs.get(run_id)
            if run is None:
                raise SyncRunNotFoundError(f"No sync run with id {run_id}")
            if run.is_finished:
                raise SyncRunStateError(f"Sync run {run_id} already finished as {run.status}")
            run.finish(
                status,
                stats=stats.as_dict(),
                success_count=success_count,
                failed_count=failed_count,
                error_details=list(errors),
                now=self.clock(),
            )
            uow.commit()

        log.info(
            "Sync run %s finished with status %s (%s succeeded, %s failed)\n%s",
            run_id,
            status,
            success_count,
            failed_count,
            format_summary(stats),
        )
        return run

    def history(
        self,
        *,
        entity_type: SyncEntityType | None = None,
        direction: SyncDirection | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[SyncRun]:
        """Most recent runs first."""

        with self.unit_of_work_factory() as uow:
            return list(
                uow.repositories.sync_runs.query(
                    entity_type=entity_type, direction=direction, limit=limit
                )
            )

    def latest(
        self,
        *,
        entity_type: SyncEntityType | None = None,
        direction: SyncDirection | None = None,
    ) -> SyncRun | None:
        runs = self.history(entity_type=entity_type, direction=direction, limit=1)
        return runs[0] if runs else None


__all__ = ["DEFAULT_HISTORY_LIMIT", "SyncLogRecorder", "SyncRunNotFoundError"]
