"""
One-shot copy of every table from a source data-service instance to a
target instance.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from recos_manager.models.database_models import ALL_TABLES
from recos_manager.services.store import DataServiceError, RecommendationStore

logger = logging.getLogger(__name__)


@dataclass
class TableReport:
    table: str
    selected: int = 0
    inserted: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def migrate_table(
    source: RecommendationStore, target: RecommendationStore, table: str
) -> TableReport:
    report = TableReport(table=table)
    try:
        rows = await source.select_all(table)
        report.selected = len(rows)
        logger.info("  %s: %d rows read from source", table, report.selected)
        if rows:
            inserted = await target.insert_rows(table, rows)
            report.inserted = len(inserted)
            logger.info("  %s: %d rows inserted into target", table, report.inserted)
    except DataServiceError as exc:
        report.error = str(exc)
        logger.error("  %s: migration failed: %s", table, exc)
    return report


async def migrate_tables(
    source: RecommendationStore,
    target: RecommendationStore,
    tables: Sequence[str] = ALL_TABLES,
) -> List[TableReport]:
    """
    Copy *tables* in order, parents first.

    A failing table is reported and the run moves on to the next one.
    """
    logger.info("Migrating %d tables: %s", len(tables), ", ".join(tables))
    reports = [await migrate_table(source, target, table) for table in tables]
    failed = [r.table for r in reports if not r.ok]
    if failed:
        logger.warning("Migration finished with failures: %s", ", ".join(failed))
    else:
        logger.info("Migration finished: %d rows copied",
                    sum(r.inserted for r in reports))
    return reports
