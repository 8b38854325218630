from __future__ import annotations

from catalogsync.domain.model import EntityKind
from catalogsync.domain.stats import RunStats, SyncStats, format_summary, merge_all


def test_run_stats_merge_without_mutating_operands() -> None:
    first = RunStats.of(EntityKind.PRODUCT, adds=1)
    second = RunStats.of(EntityKind.PRODUCT, adds=2, errors=1) + RunStats.of(
        EntityKind.CATEGORY, skips=3
    )

    merged = first + second

    assert merged.product == SyncStats(adds=3, errors=1)
    assert merged.for_kind(EntityKind.CATEGORY).skips == 3
    assert first.product == SyncStats(adds=1)


def test_failure_rate_ignores_deletes() -> None:
    stats = SyncStats(adds=1, updates=1, conflicts=1, errors=1, deletes=10)

    assert stats.failure_rate == 0.5
    assert SyncStats(deletes=3).failure_rate == 0.0


def test_as_dict_round_trip_drops_empty_kinds() -> None:
    stats = merge_all(
        [
            RunStats.of(EntityKind.PRODUCT, adds=1, deletes=1),
            RunStats.from_stats(EntityKind.PRODUCT_IMAGE, SyncStats()),
        ]
    )

    payload = stats.as_dict()

    assert payload == {
        "product": {"adds": 1, "updates": 0, "skips": 0, "conflicts": 0, "deletes": 1, "errors": 0}
    }
    assert RunStats.from_dict(payload) == stats


def test_has_failures_looks_at_every_kind() -> None:
    assert not RunStats.of(EntityKind.PRODUCT, adds=1).has_failures
    assert RunStats.of(EntityKind.PRODUCT_IMAGE, errors=1).has_failures


def test_format_summary_lists_every_kind() -> None:
    summary = format_summary(RunStats.of(EntityKind.PRODUCT, updates=2))

    lines = summary.splitlines()
    assert any(line.startswith("product ") and "updates=2" in line for line in lines)
    assert any(line.startswith("product_order_template") for line in lines)
