from __future__ import annotations

from datetime import UTC, datetime

import pytest

from catalogsync.domain.model import (
    SyncDirection,
    SyncEntityType,
    SyncRun,
    SyncRunStateError,
    SyncStatus,
)


def _run() -> SyncRun:
    return SyncRun(direction=SyncDirection.REMOTE_TO_LOCAL, entity_type=SyncEntityType.PRODUCT)


def test_run_moves_from_pending_through_running_to_terminal() -> None:
    run = _run()
    started = datetime(2024, 1, 1, tzinfo=UTC)
    finished = datetime(2024, 1, 1, 0, 5, tzinfo=UTC)

    run.mark_running(now=started)
    run.finish(
        SyncStatus.PARTIAL,
        stats={"product": {"adds": 1}},
        success_count=1,
        failed_count=1,
        error_details=["SP01: boom"],
        now=finished,
    )

    assert run.status is SyncStatus.PARTIAL
    assert run.is_finished
    assert run.started_at == started
    assert run.finished_at == finished
    assert run.error_details == ["SP01: boom"]


def test_pending_run_cannot_finish() -> None:
    with pytest.raises(SyncRunStateError):
        _run().finish(
            SyncStatus.SUCCESS, stats={}, success_count=0, failed_count=0, error_details=[]
        )


def test_finish_rejects_non_terminal_status() -> None:
    run = _run()
    run.mark_running()

    with pytest.raises(SyncRunStateError):
        run.finish(SyncStatus.RUNNING, stats={}, success_count=0, failed_count=0, error_details=[])


def test_terminal_run_is_immutable() -> None:
    run = _run()
    run.mark_running()
    run.finish(SyncStatus.FAILED, stats={}, success_count=0, failed_count=0, error_details=[])

    with pytest.raises(SyncRunStateError):
        run.mark_running()
    with pytest.raises(SyncRunStateError):
        run.finish(SyncStatus.SUCCESS, stats={}, success_count=0, failed_count=0, error_details=[])
