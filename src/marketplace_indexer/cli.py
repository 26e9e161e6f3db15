# -*- coding: utf-8 -*-
"""Operator command line: run the poller, backfill a block range, report health.

Usage:
    marketplace-indexer run
    marketplace-indexer backfill --from 1000 --to 2000 [--dry-run] [--json]
    marketplace-indexer health

Reports go to stdout; logs go to stderr.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Sequence, TextIO

import structlog

from marketplace_indexer.DI import Container
from marketplace_indexer.config import get_settings
from marketplace_indexer.exceptions import IndexerError
from marketplace_indexer.logging.config import configure_logging
from marketplace_indexer.main import require_contract_address
from marketplace_indexer.main import run as run_indexer
from marketplace_indexer.services.backfill import BackfillReport
from marketplace_indexer.services.health import ListenerHealth


def _block_number(value: str) -> int:
    """Decimal, or hex with a 0x prefix; "0100" is one hundred."""
    text = value.strip()
    try:
        block = int(text, 16) if text[:2].lower() == "0x" else int(text, 10)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a block number: {value!r}") from e
    if block < 0:
        raise argparse.ArgumentTypeError(f"block number must be >= 0: {value!r}")
    return block


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-indexer",
        description="Index PurchaseCompleted events from the marketplace contract.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Poll for new purchases until interrupted (SIGINT).")

    backfill = sub.add_parser("backfill", help="Re-scan a block range and index missing purchases.")
    backfill.add_argument("--from", dest="from_block", type=_block_number, required=True)
    backfill.add_argument("--to", dest="to_block", type=_block_number, required=True)
    backfill.add_argument(
        "--dry-run",
        action="store_true",
        help="Read chain and ledger only; report what would be indexed.",
    )
    backfill.add_argument("--json", action="store_true", help="Print the report as JSON.")

    sub.add_parser("health", help="Print listener health as JSON (exit 1 when stale).")
    return parser


def format_backfill_summary(report: BackfillReport) -> str:
    """Human-readable summary printed at the end of a backfill."""
    mode = "DRY-RUN" if report.dry_run else "LIVE"
    lines = [
        "--- Backfill Summary ---",
        f"  Mode:            {mode}",
        f"  Block range:     {report.from_block} -> {report.to_block}",
        f"  Blocks scanned:  {report.blocks_scanned}",
        f"  Events found:    {report.events_found}",
        f"  Created/indexed: {report.events_created}",
        f"  Skipped (dedup): {report.events_skipped}",
        f"  Failed:          {report.events_failed}",
        f"  Malformed:       {report.events_malformed}",
    ]
    failed = report.failed_events
    if failed:
        lines.append("")
        lines.append("  Failed events:")
        lines.extend(f"    tx={e.tx_hash} logIndex={e.log_index}: {e.error}" for e in failed)
    return "\n".join(lines)


def format_health(health: ListenerHealth) -> str:
    return json.dumps(health.to_dict(), indent=2)


async def _backfill(args: argparse.Namespace, out: TextIO) -> int:
    logger = structlog.get_logger("cli")
    settings = get_settings()
    require_contract_address(settings, logger)
    container = Container()
    store = container.index_store()
    http_client = container.http_client()
    notification_service = container.notification_service()
    # A dry run reads the existing ledger as is: no DDL, no sale notifications.
    if not args.dry_run:
        await store.initialize()
        await notification_service.initialize()
    try:
        runner = container.backfill_runner()
        report = await runner.backfill(args.from_block, args.to_block, dry_run=args.dry_run)
    finally:
        if not args.dry_run:
            await notification_service.shutdown()
        await http_client.aclose()
        await store.aclose()
    if args.json:
        print(json.dumps(report.to_dict(), indent=2), file=out)
    else:
        print(format_backfill_summary(report), file=out)
    return 0


async def _health(out: TextIO) -> int:
    container = Container()
    store = container.index_store()
    await store.initialize()
    try:
        health = await container.health_monitor().health()
    finally:
        await store.aclose()
    print(format_health(health), file=out)
    return 1 if health.stale else 0


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    args = build_parser().parse_args(argv)
    stream = out or sys.stdout
    if args.command != "run":  # run() configures logging itself
        configure_logging()
    logger = structlog.get_logger("cli")
    try:
        if args.command == "run":
            asyncio.run(run_indexer())
            return 0
        if args.command == "backfill":
            return asyncio.run(_backfill(args, stream))
        return asyncio.run(_health(stream))
    except IndexerError as e:
        logger.error(
            "cli_command_failed",
            command=args.command,
            error_type=type(e).__name__,
            error_message=str(e),
        )
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
