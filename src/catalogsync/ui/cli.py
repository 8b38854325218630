from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from catalogsync.app import get_sync_history, trigger_sync
from catalogsync.config import configure_logging
from catalogsync.domain.model import SyncDirection, SyncEntityType, SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catalogsync.domain.model import SyncRun

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile the local catalog with the remote one")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run one catalog reconciliation")
    sync.add_argument(
        "--failure-threshold",
        type=float,
        default=None,
        help="Product failure rate above which the run is marked failed (defaults to config)",
    )
    sync.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Number of items to request per API call (defaults to config)",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify remote items against the store without writing anything",
    )
    sync.add_argument(
        "--cache-responses",
        action="store_true",
        default=None,
        help="Cache remote catalog responses on disk (defaults to CATALOG_CACHE_RESPONSES)",
    )
    sync.add_argument("-v", "--verbose", action="store_true", help="Log per-record decisions")

    history = subparsers.add_parser("history", help="List recorded reconciliation runs")
    history.add_argument(
        "--entity-type",
        type=SyncEntityType,
        choices=list(SyncEntityType),
        default=None,
    )
    history.add_argument(
        "--direction",
        type=SyncDirection,
        choices=list(SyncDirection),
        default=None,
    )
    history.add_argument("--limit", type=int, default=20)

    return parser.parse_args(list(argv))


def _format_run(run: SyncRun) -> str:
    finished = run.finished_at.isoformat(timespec="seconds") if run.finished_at else "-"
    return (
        f"{run.id} {run.entity_type} {run.direction} {run.status} "
        f"records={run.total_records} ok={run.success_count} failed={run.failed_count} "
        f"finished={finished}"
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    verbose = getattr(parsed_args, "verbose", False)
    configure_logging(level=logging.DEBUG if verbose else logging.INFO)

    try:
        if parsed_args.command == "sync":
            if parsed_args.page_size is not None and parsed_args.page_size <= 0:
                raise ValueError("Page size must be positive")  # noqa: TRY301
            result = trigger_sync(
                failure_threshold=parsed_args.failure_threshold,
                page_size=parsed_args.page_size,
                dry_run=parsed_args.dry_run,
                cache_responses=parsed_args.cache_responses,
            )
            for message in result.errors:
                log.warning("%s", message)
            if result.status is SyncStatus.FAILED:
                sys.exit(1)
        elif parsed_args.command == "history":
            runs = get_sync_history(
                entity_type=parsed_args.entity_type,
                direction=parsed_args.direction,
                limit=parsed_args.limit,
            )
            if not runs:
                log.info("No sync runs recorded yet")
            for run in runs:
                log.info("%s", _format_run(run))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
