"""
Transactional loading of sales records into the target store.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from ..database.operations import DatabaseOperations
from ..exceptions import CommitError, LoadError
from ..records import SalesRecord

logger = logging.getLogger(__name__)


class LoadResult:
    """
    Outcome of one pipeline run.

    rows_processed counts every row handed to the insert statement in this
    run, rows skipped by the conflict policy included. rows_inserted is what
    the store reported as actually inserted.
    """

    def __init__(self, rows_processed: int = 0, rows_inserted: int = 0,
                 rows_skipped: int = 0, target_rows: Optional[int] = None,
                 duration_seconds: float = 0.0):
        self.rows_processed = rows_processed
        self.rows_inserted = rows_inserted
        self.rows_skipped = rows_skipped
        self.target_rows = target_rows
        self.duration_seconds = duration_seconds

    @property
    def rows_conflicted(self) -> int:
        return self.rows_processed - self.rows_inserted

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        return {
            'rows_processed': self.rows_processed,
            'rows_inserted': self.rows_inserted,
            'rows_conflicted': self.rows_conflicted,
            'rows_skipped': self.rows_skipped,
            'target_rows': self.target_rows,
            'duration_seconds': self.duration_seconds
        }

    def __repr__(self) -> str:
        return (f"LoadResult(rows_processed={self.rows_processed}, "
                f"rows_inserted={self.rows_inserted}, rows_skipped={self.rows_skipped})")


class TransactionalLoader:
    """Loads a record stream into the target table as one all-or-nothing unit."""

    def __init__(self, db_operations: DatabaseOperations):
        """
        Initialize transactional loader.

        Args:
            db_operations: Target database operations instance
        """
        self.db_operations = db_operations

    def load(self, records: Iterable[SalesRecord]) -> LoadResult:
        """
        Insert every record inside a single transaction and commit at the end.

        Existing fsno values are skipped by the ON CONFLICT DO NOTHING clause,
        so loading the same source twice never raises a duplicate-key error.
        Errors raised by the record stream itself propagate unchanged after
        the transaction is rolled back.

        Args:
            records: Record stream, consumed in order

        Returns:
            LoadResult with processed and inserted counts

        Raises:
            LoadError: If an insert fails; nothing from this run is committed
            CommitError: If the final commit fails
        """
        table = self.db_operations.target_table
        result = LoadResult()

        with self.db_operations.transaction() as transaction:
            with self.db_operations.prepared_insert() as statement:
                logger.info("Starting data transfer...")

                for record in records:
                    try:
                        result.rows_inserted += statement.execute(record.to_params())
                    except Exception as e:
                        logger.error(f"Failed to insert row with fsno {record.identity}: {e}")
                        raise LoadError(
                            f"error executing insert statement for fsno {record.identity!r} "
                            f"after {result.rows_processed} rows: {e}",
                            record.identity,
                            result.rows_processed
                        ) from e
                    result.rows_processed += 1

                    if result.rows_processed % 10000 == 0:
                        logger.info(f"Transferred {result.rows_processed:,} rows into {table}")

            try:
                transaction.commit()
            except Exception as e:
                logger.error(f"Failed to commit transaction on {table}: {e}")
                raise CommitError(
                    f"failed to commit transaction: {e}",
                    result.rows_processed
                ) from e

        logger.info(
            f"Committed {result.rows_processed} rows into {table} "
            f"({result.rows_inserted} inserted, {result.rows_conflicted} already present)"
        )
        return result
