"""Reconciliation run: fetch, map, resolve, classify, apply and record."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.config.sync import SyncConfig
from catalogsync.domain.deadline import TransactionTimeoutError
from catalogsync.domain.dependencies import DependencyResolver, MissingDependencyError
from catalogsync.domain.model import EntityKind, SyncDirection, SyncEntityType, SyncStatus
from catalogsync.domain.reconciliation import (
    LocalIndex,
    classify,
    classify_deletions,
    preview_stats,
)
from catalogsync.domain.stats import RunStats
from catalogsync.domain.sync_log import SyncLogRecorder
from catalogsync.domain.upsert import ProductUpsertOrchestrator

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from catalogsync.domain.canonical import CanonicalProduct
    from catalogsync.domain.ports.fetching import RemoteCatalogSource, RemoteItemMapper
    from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork
    from catalogsync.domain.reconciliation import ClassifiedRecord
    from catalogsync.domain.stats import SyncStats

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class SyncResult:
    """Outcome of one reconciliation run."""

    success: bool
    status: SyncStatus
    stats: RunStats = field(default_factory=RunStats.empty)
    errors: tuple[str, ...] = ()
    run_id: UUID | None = None
    dry_run: bool = False

    @property
    def product(self) -> SyncStats:
        return self.stats.product


def decide_status(stats: RunStats, failure_threshold: float) -> SyncStatus:
    """Post-hoc circuit breaker over the product counters.

    Writes that already committed stay committed; only the recorded status changes.
    """

    if stats.product.failure_rate > failure_threshold:
        return SyncStatus.FAILED
    if stats.has_failures:
        return SyncStatus.PARTIAL
    return SyncStatus.SUCCESS


def run_catalog_sync[TItem](
    *,
    source: RemoteCatalogSource[TItem],
    mapper: RemoteItemMapper[TItem],
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    config: SyncConfig | None = None,
    dry_run: bool = False,
) -> SyncResult:
    """Bring the local catalog into agreement with the remote one.

    Only fatal preconditions (a failed fetch or an unresolvable dependency
    kind) stop the run early; they are recorded as a Failed run with zero
    counters. Everything else is counted and surfaced in the result.
    """

    settings = config or SyncConfig()
    recorder = SyncLogRecorder(unit_of_work_factory)

    try:
        items = source.fetch_all()
        tombstones = source.fetch_tombstones()
    except Exception as exc:
        log.exception("Fetching the remote catalog failed; aborting before any write")
        return _abort(recorder, 0, f"Fetch failed: {exc}", dry_run=dry_run)
    log.info("Fetched %s remote items and %s tombstones", len(items), len(tombstones))

    canonical, mapping_errors = _map_items(items, mapper)

    if dry_run:
        return _preview(canonical, tombstones, unit_of_work_factory, settings, mapping_errors)

    run_id = recorder.start(SyncDirection.REMOTE_TO_LOCAL, SyncEntityType.PRODUCT, len(canonical))

    resolver = DependencyResolver(
        unit_of_work_factory, timeout_seconds=settings.dependency_timeout_seconds
    )
    try:
        resolution = resolver.resolve(canonical)
    except (MissingDependencyError, TransactionTimeoutError) as exc:
        log.exception("Dependency resolution failed; no product was written")
        recorder.finish(run_id, SyncStatus.FAILED, RunStats.empty(), errors=[str(exc)])
        return SyncResult(
            success=False, status=SyncStatus.FAILED, errors=(str(exc),), run_id=run_id
        )
    except Exception as exc:
        log.exception("Dependency resolution stopped unexpectedly; no product was written")
        message = f"Run aborted: {exc}"
        recorder.finish(run_id, SyncStatus.FAILED, RunStats.empty(), errors=[message])
        return SyncResult(
            success=False, status=SyncStatus.FAILED, errors=(message,), run_id=run_id
        )

    stats = resolution.stats + mapping_errors.stats
    errors = list(mapping_errors.messages)
    try:
        index = _load_index(unit_of_work_factory)
        orchestrator = ProductUpsertOrchestrator(
            unit_of_work_factory, timeout_seconds=settings.product_timeout_seconds
        )
        for item in canonical:
            record = classify(item, index, entity_maps=resolution.maps)
            outcome = orchestrator.apply(record, resolution.maps)
            stats = stats + outcome.stats
            errors.extend(outcome.errors)
            if record.reasons and outcome.ok:
                errors.extend(f"{record.label}: {reason}" for reason in record.reasons)

        seen = {item.remote_id for item in canonical}
        for record in classify_deletions(index, tombstones, seen):
            outcome = orchestrator.apply(record, resolution.maps)
            stats = stats + outcome.stats
            errors.extend(outcome.errors)
    except Exception as exc:
        log.exception("Reconciliation run %s stopped unexpectedly", run_id)
        errors.append(f"Run aborted: {exc}")
        _finish(recorder, run_id, SyncStatus.FAILED, stats, errors)
        return SyncResult(
            success=False,
            status=SyncStatus.FAILED,
            stats=stats,
            errors=tuple(errors),
            run_id=run_id,
        )

    status = decide_status(stats, settings.failure_threshold)
    _finish(recorder, run_id, status, stats, errors)
    return SyncResult(
        success=status is not SyncStatus.FAILED,
        status=status,
        stats=stats,
        errors=tuple(errors),
        run_id=run_id,
    )


def _finish(
    recorder: SyncLogRecorder,
    run_id: UUID,
    status: SyncStatus,
    stats: RunStats,
    errors: Sequence[str],
) -> None:
    product = stats.product
    recorder.finish(
        run_id,
        status,
        stats,
        success_count=product.adds + product.updates + product.skips + product.deletes,
        failed_count=product.errors + product.conflicts,
        errors=errors,
    )


@dataclass(slots=True, frozen=True)
class _MappingErrors:
    stats: RunStats
    messages: tuple[str, ...]


def _map_items[TItem](
    items: Sequence[TItem], mapper: RemoteItemMapper[TItem]
) -> tuple[list[CanonicalProduct], _MappingErrors]:
    canonical: list[CanonicalProduct] = []
    seen: set[int] = set()
    messages: list[str] = []
    for item in items:
        try:
            product = mapper(item)
        except Exception as exc:
            log.exception("Could not map remote item %r", item)
            messages.append(f"Mapping failed: {exc}")
            continue
        if product.remote_id in seen:
            log.warning(
                "Remote id %s returned more than once; keeping the first", product.remote_id
            )
            continue
        seen.add(product.remote_id)
        canonical.append(product)
    stats = RunStats.of(EntityKind.PRODUCT, errors=len(messages)) if messages else RunStats.empty()
    return canonical, _MappingErrors(stats, tuple(messages))


def _load_index(unit_of_work_factory: Callable[[], CatalogUnitOfWork]) -> LocalIndex:
    with unit_of_work_factory() as uow:
        return LocalIndex.build(uow.repositories.products.list_all())


def _preview(
    canonical: Sequence[CanonicalProduct],
    tombstones: set[int],
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    settings: SyncConfig,
    mapping_errors: _MappingErrors,
) -> SyncResult:
    index = _load_index(unit_of_work_factory)
    records: list[ClassifiedRecord] = [classify(item, index) for item in canonical]
    records.extend(classify_deletions(index, tombstones, {item.remote_id for item in canonical}))
    stats = preview_stats(records) + mapping_errors.stats
    status = decide_status(stats, settings.failure_threshold)
    log.info("Dry run classified %s records; nothing was written", len(records))
    return SyncResult(
        success=status is not SyncStatus.FAILED,
        status=status,
        stats=stats,
        errors=mapping_errors.messages,
        dry_run=True,
    )


def _abort(recorder: SyncLogRecorder, total: int, message: str, *, dry_run: bool) -> SyncResult:
    run_id = None
    if not dry_run:
        run_id = recorder.start(SyncDirection.REMOTE_TO_LOCAL, SyncEntityType.PRODUCT, total)
        recorder.finish(run_id, SyncStatus.FAILED, RunStats.empty(), errors=[message])
    return SyncResult(
        success=False,
        status=SyncStatus.FAILED,
        errors=(message,),
        run_id=run_id,
        dry_run=dry_run,
    )


__all__ = ["SyncResult", "decide_status", "run_catalog_sync"]
