"""
Database operations for the sales ETL target store.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from ..exceptions import LoadError, SchemaError
from .schema import SchemaManager

logger = logging.getLogger(__name__)


class Transaction:
    """An open transaction on the target connection."""

    def __init__(self, connection: Any):
        self.connection = connection
        self.committed = False

    def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            Exception: Driver error if the commit fails
        """
        self.connection.commit()
        self.committed = True

    def rollback(self) -> None:
        self.connection.rollback()


class PreparedInsert:
    """One insert statement compiled once and executed through one cursor."""

    def __init__(self, cursor: Any, sql: str):
        self.cursor = cursor
        self.sql = sql

    def execute(self, params: Sequence[Any]) -> int:
        """
        Execute the statement with one row of positional parameters.

        Returns:
            Number of rows the store reports as inserted (0 on a skipped conflict)
        """
        self.cursor.execute(self.sql, params)
        rowcount = self.cursor.rowcount
        return rowcount if rowcount and rowcount > 0 else 0


class DatabaseOperations:
    """Handles target database operations for the ETL pipeline."""

    def __init__(self, connection: Any, target_table: str, paramstyle: str = 'format'):
        """
        Initialize database operations.

        Args:
            connection: Open DB-API connection to the target store
            target_table: Target table name
            paramstyle: DB-API paramstyle of the target driver
        """
        self.connection = connection
        self.target_table = target_table
        self.paramstyle = paramstyle
        self.schema_manager = SchemaManager()

    def ensure_target_table(self) -> None:
        """
        Create the target table if it does not exist yet.

        Safe to call on every run; an existing table is left untouched.

        Raises:
            SchemaError: If the DDL cannot be applied
        """
        ddl = self.schema_manager.create_table_ddl(self.target_table)
        cursor = None
        try:
            cursor = self.connection.cursor()
            cursor.execute(ddl)
            self.connection.commit()
        except Exception as e:
            logger.error(f"Failed to create target table {self.target_table}: {e}")
            try:
                self.connection.rollback()
            except Exception as rollback_error:
                logger.warning(f"Rollback after failed DDL also failed: {rollback_error}")
            raise SchemaError(
                f"failed to create target table {self.target_table}: {e}",
                {'table': self.target_table}
            ) from e
        finally:
            if cursor is not None:
                cursor.close()

        logger.info(f"Target table '{self.target_table}' is ready (fsno is PRIMARY KEY).")

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Scope one target transaction.

        The transaction is rolled back on every exit path unless
        Transaction.commit() succeeded inside the block.
        """
        # DB-API connections begin a transaction implicitly on the first statement
        transaction = Transaction(self.connection)
        logger.debug(f"Started target transaction on {self.target_table}")
        try:
            yield transaction
        finally:
            if not transaction.committed:
                try:
                    transaction.rollback()
                    logger.info(f"Rolled back target transaction on {self.target_table}")
                except Exception as e:
                    logger.error(f"Rollback failed on {self.target_table}: {e}")

    @contextmanager
    def prepared_insert(self) -> Iterator[PreparedInsert]:
        """
        Compile the conflict-tolerant insert once and hold its cursor open.

        The cursor is closed on every exit path.
        """
        insert_sql = self.schema_manager.insert_statement(self.target_table, self.paramstyle)
        logger.debug(f"Insert SQL: {insert_sql}")
        try:
            cursor = self.connection.cursor()
        except Exception as e:
            logger.error(f"Failed to prepare insert statement on {self.target_table}: {e}")
            raise LoadError(f"failed to prepare insert statement: {e}", None, 0) from e
        try:
            yield PreparedInsert(cursor, insert_sql)
        finally:
            try:
                cursor.close()
            except Exception as e:
                logger.warning(f"Error closing insert cursor: {e}")

    def count_rows(self) -> int:
        """
        Count rows currently in the target table.

        Returns:
            Row count
        """
        cursor = self.connection.cursor()
        try:
            cursor.execute(self.schema_manager.count_query(self.target_table))
            count = cursor.fetchone()[0]
        finally:
            cursor.close()
        # release the read snapshot
        self.connection.rollback()
        return int(count)
