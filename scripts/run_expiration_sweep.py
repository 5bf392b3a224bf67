#!/usr/bin/env python3
"""Run the sanction expiration sweep once.

Transitions every active, non-permanent sanction whose end date has
passed to inactive and publishes a sanction.expired event for each.
Safe to run repeatedly: a second run finds nothing to expire.

Usage:
    python scripts/run_expiration_sweep.py [--environment ENV] [--dry-run] [-v]

Options:
    --environment  'production' for JSON logs, anything else for console
    --dry-run      Count records the sweep would expire without writing
    -v             Debug logging

Environment Variables:
    DATABASE_URL   PostgreSQL connection string for the sanction ledger

Exit Codes:
    0 - Sweep completed
    1 - Sweep failed (check logs)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from dotenv import load_dotenv
from structlog import get_logger

from penalty_engine.bootstrap import build_penalty_engine
from penalty_engine.bootstrap.database import close_database_engine
from penalty_engine.bootstrap.logging import configure_structlog
from penalty_engine.infrastructure.observability import correlation_scope

load_dotenv()

logger = get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Deactivate sanctions whose end date has passed",
    )
    parser.add_argument(
        "--environment",
        default="development",
        help="Logging environment ('production' emits JSON)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many sanctions would expire without writing",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


async def run_sweep(dry_run: bool) -> int:
    """Run the sweep and return the number of affected records."""
    container = build_penalty_engine(use_postgres_ledger=True)
    try:
        if dry_run:
            pending = await container.ledger.count_pending_expiration()
            logger.info("expiration_sweep_dry_run", pending_count=pending)
            return pending
        expired = await container.ledger.bulk_deactivate_expired_penalties()
        return len(expired)
    finally:
        await close_database_engine()


async def main(argv: list[str] | None = None) -> int:
    """Run the sweep and return exit code."""
    args = parse_args(argv)
    configure_structlog(args.environment, "DEBUG" if args.verbose else None)

    with correlation_scope():
        logger.info("expiration_sweep_started", dry_run=args.dry_run)
        try:
            count = await run_sweep(dry_run=args.dry_run)
        except Exception as e:
            logger.error("expiration_sweep_failed", error=str(e))
            print(f"[ERROR] Expiration sweep failed: {e}")
            return 1

    label = "would expire" if args.dry_run else "expired"
    print(f"{count} sanction(s) {label}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
