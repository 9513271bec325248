"""
Copy clients, recommendations and team members from one Supabase project
to another.

Usage:
    python migrate_data.py --source-url https://old.supabase.co --source-key <key>

The target defaults to SUPABASE_URL / SUPABASE_ANON_KEY from the
application settings; the source to SOURCE_SUPABASE_URL /
SOURCE_SUPABASE_KEY from the environment.  Run once.
"""
import argparse
import asyncio
import logging
import os
import sys

from recos_manager.config import settings
from recos_manager.database import close_data_client, create_data_client
from recos_manager.services.migration import migrate_tables
from recos_manager.services.store import DataServiceError, RecommendationStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("migrate_data")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--source-url", default=os.environ.get("SOURCE_SUPABASE_URL", ""))
    parser.add_argument("--source-key", default=os.environ.get("SOURCE_SUPABASE_KEY", ""))
    parser.add_argument("--target-url", default=settings.SUPABASE_URL)
    parser.add_argument("--target-key", default=settings.SUPABASE_ANON_KEY)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    logger.info("=" * 60)
    logger.info("  Migrating %s -> %s", args.source_url, args.target_url)
    logger.info("=" * 60)

    clients = []
    try:
        for url, key in ((args.source_url, args.source_key), (args.target_url, args.target_key)):
            clients.append(await create_data_client(url, key))

        source, target = (RecommendationStore(c) for c in clients)
        reports = await migrate_tables(source, target)
    except DataServiceError as exc:
        logger.error("✗ Could not connect: %s", exc)
        return 2
    finally:
        for client in clients:
            await close_data_client(client)

    for report in reports:
        if report.ok:
            logger.info("✓ %-16s %d / %d rows", report.table, report.inserted, report.selected)
        else:
            logger.error("✗ %-16s %s", report.table, report.error)

    return 0 if all(r.ok for r in reports) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(run(parse_args())))
