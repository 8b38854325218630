from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from catalogsync.app import get_sync_history, trigger_sync
from catalogsync.config.sync import SyncConfig
from catalogsync.domain import synchronization
from catalogsync.domain.model import EntityKind, ProductOrigin, SyncStatus
from catalogsync.domain.stats import SyncStats
from tests.support.catalog import StaticSource, identity_mapper, make_canonical, make_local_product
from tests.support.remote_payloads import remote_item

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from catalogsync.domain.synchronization import SyncResult

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]


def _sync(factory: UowFactory, source: StaticSource, **kwargs: object) -> SyncResult:
    return trigger_sync(
        source=source,
        unit_of_work_factory=factory,
        config=SyncConfig(),
        **kwargs,  # type: ignore[arg-type]
    )


def test_sync_adds_updates_skips_and_deletes(sqlite_unit_of_work: UowFactory) -> None:
    seed = StaticSource([remote_item(1), remote_item(2), remote_item(3)])
    seeded = _sync(sqlite_unit_of_work, seed)
    assert seeded.product == SyncStats(adds=3)

    source = StaticSource(
        [remote_item(1), remote_item(2, base_price=150.0), remote_item(4)],
        tombstones={3},
    )
    result = _sync(sqlite_unit_of_work, source)

    assert result.success
    assert result.status is SyncStatus.SUCCESS
    assert result.product == SyncStats(adds=1, updates=1, skips=1, deletes=1)
    assert result.errors == ()

    with sqlite_unit_of_work() as uow:
        products = {product.remote_id: product for product in uow.repositories.products.list_all()}
    assert products[2].price == 150.0
    assert products[3].is_deleted
    assert products[3].sync_note == "Removed from remote catalog (remote id 3)"
    assert not products[4].is_deleted


def test_repeating_a_sync_changes_nothing(sqlite_unit_of_work: UowFactory) -> None:
    items = [remote_item(1), remote_item(2)]
    _sync(sqlite_unit_of_work, StaticSource(items, tombstones={9}))

    again = _sync(sqlite_unit_of_work, StaticSource(items, tombstones={9}))

    assert again.product == SyncStats(skips=2)
    assert again.stats.for_kind(EntityKind.CATEGORY) == SyncStats(skips=1)
    assert again.stats.total().adds == 0


def test_deleted_product_is_not_deleted_twice(sqlite_unit_of_work: UowFactory) -> None:
    _sync(sqlite_unit_of_work, StaticSource([remote_item(1), remote_item(2)]))
    _sync(sqlite_unit_of_work, StaticSource([remote_item(1)], tombstones={2}))

    again = _sync(sqlite_unit_of_work, StaticSource([remote_item(1)], tombstones={2}))

    assert again.product == SyncStats(skips=1)


def test_local_products_survive_tombstones(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.products.add(
            make_local_product(code="LOCAL-1", remote_id=5, origin=ProductOrigin.LOCAL)
        )
        uow.commit()

    result = _sync(sqlite_unit_of_work, StaticSource([remote_item(1)], tombstones={5}))

    assert result.product.deletes == 0


def test_unresolvable_dependency_aborts_before_any_product(sqlite_unit_of_work: UowFactory) -> None:
    result = _sync(sqlite_unit_of_work, StaticSource([remote_item(1, category_name=None)]))

    assert not result.success
    assert result.status is SyncStatus.FAILED
    assert result.stats.is_empty
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.products.list_all() == []
    (run,) = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)
    assert run.status is SyncStatus.FAILED
    assert run.stats == {}
    assert run.error_details


def test_fetch_failure_is_recorded_as_failed_run(sqlite_unit_of_work: UowFactory) -> None:
    source = StaticSource([], error=RuntimeError("remote catalog unreachable"))

    result = _sync(sqlite_unit_of_work, source)

    assert not result.success
    assert result.errors == ("Fetch failed: remote catalog unreachable",)
    (run,) = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)
    assert run.id == result.run_id
    assert run.status is SyncStatus.FAILED
    assert run.stats == {}


def test_conflicts_make_the_run_partial(sqlite_unit_of_work: UowFactory) -> None:
    _sync(sqlite_unit_of_work, StaticSource([remote_item(99, code="SP0001")]))

    result = _sync(sqlite_unit_of_work, StaticSource([remote_item(1), remote_item(5)]))

    assert result.success
    assert result.status is SyncStatus.PARTIAL
    assert result.product == SyncStats(adds=1, conflicts=1)
    assert any("bound to remote id 99" in message for message in result.errors)


def test_failure_rate_above_threshold_fails_without_undoing_writes(
    sqlite_unit_of_work: UowFactory,
) -> None:
    _sync(sqlite_unit_of_work, StaticSource([remote_item(99, code="SP0001")]))

    result = _sync(
        sqlite_unit_of_work,
        StaticSource([remote_item(1), remote_item(5)]),
        failure_threshold=0.4,
    )

    assert not result.success
    assert result.status is SyncStatus.FAILED
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.products.get_by_remote_id(5) is not None


def test_unmappable_item_is_counted_as_error(sqlite_unit_of_work: UowFactory) -> None:
    result = _sync(sqlite_unit_of_work, StaticSource([remote_item(1), {"name": "no id"}]))

    assert result.status is SyncStatus.PARTIAL
    assert result.product == SyncStats(adds=1, errors=1)


def test_dry_run_classifies_without_writing(sqlite_unit_of_work: UowFactory) -> None:
    source = StaticSource([remote_item(1), remote_item(2)])

    result = _sync(sqlite_unit_of_work, source, dry_run=True)

    assert result.dry_run
    assert result.run_id is None
    assert result.product == SyncStats(adds=2)
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.products.list_all() == []
    assert get_sync_history(unit_of_work_factory=sqlite_unit_of_work) == []


def test_history_lists_runs_newest_first(sqlite_unit_of_work: UowFactory) -> None:
    first = _sync(sqlite_unit_of_work, StaticSource([remote_item(1)]))
    second = _sync(sqlite_unit_of_work, StaticSource([remote_item(1)]))

    runs = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)

    assert [run.id for run in runs] == [second.run_id, first.run_id]
    assert runs[0].status is SyncStatus.SUCCESS
    assert runs[0].stats["product"]["skips"] == 1
    latest = get_sync_history(unit_of_work_factory=sqlite_unit_of_work, limit=1)
    assert [run.id for run in latest] == [second.run_id]


def test_product_without_category_is_counted_as_error(sqlite_unit_of_work: UowFactory) -> None:
    source = StaticSource(
        [remote_item(1), remote_item(2, category_id=None, category_name=None)]
    )

    result = _sync(sqlite_unit_of_work, source)

    assert result.status is SyncStatus.PARTIAL
    assert result.product == SyncStats(adds=1, errors=1)
    assert any("has no category" in message for message in result.errors)
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.products.get_by_remote_id(2) is None


def test_remote_items_sharing_a_code_never_overwrite_one_product(
    sqlite_unit_of_work: UowFactory,
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.products.add(make_local_product(code="SHARED"))
        uow.commit()
    source = StaticSource(
        [
            remote_item(1, code="SHARED", name="Alpha"),
            remote_item(2, code="SHARED", name="Beta"),
        ]
    )

    result = _sync(sqlite_unit_of_work, source)

    assert result.product == SyncStats(updates=1, conflicts=1)
    assert result.status is SyncStatus.PARTIAL
    assert any("bound to remote id 1" in message for message in result.errors)
    with sqlite_unit_of_work() as uow:
        (product,) = uow.repositories.products.list_all()
    assert (product.remote_id, product.name, product.code) == (1, "Alpha", "SHARED")


def test_failing_product_row_leaves_neighbours_committed(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.products.add(
            make_local_product(code="LOCAL", slug="taken", origin=ProductOrigin.LOCAL)
        )
        uow.commit()
    source = StaticSource([make_canonical(1), make_canonical(2, slug="taken"), make_canonical(3)])

    result = _sync(sqlite_unit_of_work, source, mapper=identity_mapper)

    assert result.product == SyncStats(adds=2, errors=1)
    assert result.stats.total().errors == 1
    assert any("product.slug" in message for message in result.errors)
    with sqlite_unit_of_work() as uow:
        products = uow.repositories.products
        assert products.get_by_remote_id(1) is not None
        assert products.get_by_remote_id(2) is None
        assert products.get_by_remote_id(3) is not None


def test_unexpected_failure_after_start_still_finishes_the_run(
    sqlite_unit_of_work: UowFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    def unavailable_store(_factory: object) -> object:
        raise RuntimeError("store went away")

    monkeypatch.setattr(synchronization, "_load_index", unavailable_store)

    result = _sync(sqlite_unit_of_work, StaticSource([remote_item(1)]))

    assert not result.success
    assert result.status is SyncStatus.FAILED
    assert result.errors[-1] == "Run aborted: store went away"
    (run,) = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)
    assert run.id == result.run_id
    assert run.status is SyncStatus.FAILED
    assert run.finished_at is not None
