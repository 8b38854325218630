"""Application entry points for catalog reconciliation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.remote_catalog import build_remote_catalog_fetcher, map_remote_item
from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from catalogsync.config.remote_catalog import get_remote_catalog_config
from catalogsync.config.sync import get_sync_config
from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork
from catalogsync.domain.sync_log import DEFAULT_HISTORY_LIMIT, SyncLogRecorder
from catalogsync.domain.synchronization import SyncResult, run_catalog_sync

if TYPE_CHECKING:
    from catalogsync.adapters.remote_catalog import RemotePayload
    from catalogsync.config.sync import SyncConfig
    from catalogsync.domain.model import SyncDirection, SyncEntityType, SyncRun
    from catalogsync.domain.ports.fetching import RemoteCatalogSource, RemoteItemMapper

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]

log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def trigger_sync(
    *,
    source: RemoteCatalogSource[RemotePayload] | None = None,
    mapper: RemoteItemMapper[RemotePayload] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    failure_threshold: float | None = None,
    page_size: int | None = None,
    dry_run: bool = False,
    cache_responses: bool | None = None,
) -> SyncResult:
    """Run one reconciliation of the remote catalog against the local store."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    settings = config or get_sync_config()
    if failure_threshold is not None:
        settings = replace(settings, failure_threshold=failure_threshold)

    if source is None:
        remote_config = get_remote_catalog_config(cache_responses=cache_responses)
        if page_size is not None:
            remote_config = replace(remote_config, page_size=page_size)
        source = build_remote_catalog_fetcher(config=remote_config)

    log.info(
        "Starting catalog sync: failure_threshold=%s, dry_run=%s",
        settings.failure_threshold,
        dry_run,
    )
    result = run_catalog_sync(
        source=source,
        mapper=mapper or map_remote_item,
        unit_of_work_factory=effective_uow,
        config=settings,
        dry_run=dry_run,
    )
    product = result.product
    log.info(
        "Finished catalog sync: status=%s, adds=%s, updates=%s, skips=%s, conflicts=%s, "
        "deletes=%s, errors=%s",
        result.status,
        product.adds,
        product.updates,
        product.skips,
        product.conflicts,
        product.deletes,
        product.errors,
    )
    return result


def get_sync_history(
    *,
    entity_type: SyncEntityType | None = None,
    direction: SyncDirection | None = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[SyncRun]:
    """Recorded runs, newest first."""

    if unit_of_work_factory is None:
        _ensure_started()
    recorder = SyncLogRecorder(unit_of_work_factory or SqlAlchemyCatalogUnitOfWork)
    return recorder.history(entity_type=entity_type, direction=direction, limit=limit)
