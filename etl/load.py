"""
Data Loading into PostgreSQL

Batched, idempotent inserts of validated records.

Each batch is one multi-row INSERT ... ON CONFLICT DO NOTHING executed in its
own transaction. Rows whose primary key already exists are left untouched, so
re-running against the same source inserts nothing. Any other failure rolls
back the batch and stops the load.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterator, List, Sequence

from psycopg2.extras import execute_values

from db.connection import DatabaseConnection
from db.schema import CAREGIVERS, CARELOGS, TableDefinition

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@dataclass
class LoadResult:
    """Counts for one dataset load."""
    total: int = 0
    inserted: int = 0
    batches: int = 0

    @property
    def skipped(self) -> int:
        """Records whose primary key was already present."""
        return self.total - self.inserted


def iter_batches(records: Sequence[Any], batch_size: int) -> Iterator[Sequence[Any]]:
    """Yield contiguous slices of at most batch_size records, in order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got: {batch_size}")
    for start in range(0, len(records), batch_size):
        yield records[start : start + batch_size]


def build_insert_query(table: TableDefinition) -> str:
    """Multi-row insert for execute_values; the VALUES list is expanded from %s."""
    return (
        f"INSERT INTO {table.name} ({', '.join(table.columns)}) "
        f"VALUES %s "
        f"ON CONFLICT ({table.conflict_target}) DO NOTHING"
    )


class BatchLoader:
    """
    Loads records into one table with idempotent behavior.

    Uses ON CONFLICT DO NOTHING for idempotent inserts.
    Batches run one after another, each in its own transaction.
    """

    def __init__(
        self,
        db: DatabaseConnection,
        table: TableDefinition,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got: {batch_size}")
        self.db = db
        self.table = table
        self.batch_size = batch_size
        self.query = build_insert_query(table)

    def load(self, records: Sequence[Any]) -> LoadResult:
        """
        Load validated records into the table.

        Args:
            records: Typed records exposing to_row(columns)

        Returns:
            LoadResult with inserted and already-present counts

        Raises:
            psycopg2.Error: If a batch fails for any reason other than a
                primary-key conflict; earlier batches stay committed
        """
        result = LoadResult(total=len(records))

        if not records:
            logger.info(f"No {self.table.name} records to load")
            return result

        batch_count = math.ceil(len(records) / self.batch_size)
        logger.info(
            f"Loading {len(records)} {self.table.name} records in {batch_count} batches of up to {self.batch_size}"
        )

        for number, batch in enumerate(iter_batches(records, self.batch_size), 1):
            try:
                inserted = self._load_batch(batch)
            except Exception as e:
                logger.error(
                    f"Error inserting {self.table.name} batch {number}/{batch_count} "
                    f"({len(batch)} records), batch rolled back: {e}"
                )
                raise
            result.inserted += inserted
            result.batches += 1
            logger.debug(
                f"Batch {number}/{batch_count} loaded: {inserted} inserted, {len(batch) - inserted} skipped"
            )

        logger.info(
            f"Successfully loaded {self.table.name}: "
            f"{result.inserted} inserted, {result.skipped} skipped (already present)"
        )
        return result

    def _load_batch(self, batch: Sequence[Any]) -> int:
        """
        Insert one batch as a single statement in one transaction.

        Args:
            batch: Records for this batch

        Returns:
            Number of rows actually inserted
        """
        rows: List[tuple] = [record.to_row(self.table.columns) for record in batch]

        with self.db.get_cursor() as cursor:
            # page_size covers the whole batch so it is sent as one statement
            execute_values(cursor, self.query, rows, page_size=len(rows))
            return cursor.rowcount


def load_caregivers(db: DatabaseConnection, records: Sequence[Any], batch_size: int = DEFAULT_BATCH_SIZE) -> LoadResult:
    """
    Convenience function to load caregivers.

    Args:
        db: Initialized database connection
        records: Validated Caregiver records
        batch_size: Records per transaction

    Returns:
        LoadResult for the caregivers table
    """
    return BatchLoader(db, CAREGIVERS, batch_size).load(records)


def load_carelogs(db: DatabaseConnection, records: Sequence[Any], batch_size: int = DEFAULT_BATCH_SIZE) -> LoadResult:
    """
    Convenience function to load carelogs. Caregivers must be loaded first.

    Args:
        db: Initialized database connection
        records: Validated Carelog records
        batch_size: Records per transaction

    Returns:
        LoadResult for the carelogs table
    """
    return BatchLoader(db, CARELOGS, batch_size).load(records)
