"""
SQL generation for the source query and the target table.
"""

import logging
from typing import List

from ..records import SALES_COLUMNS, IDENTITY_COLUMN

logger = logging.getLogger(__name__)


class SchemaManager:
    """Builds the DDL, extraction query and insert statement for the sales table."""

    @staticmethod
    def placeholders(paramstyle: str, count: int) -> List[str]:
        """
        Generate positional placeholders for a DB-API paramstyle.

        Args:
            paramstyle: DB-API paramstyle of the target driver
            count: Number of parameters

        Returns:
            List of placeholder strings
        """
        if paramstyle in ('format', 'pyformat'):
            return ["%s"] * count
        if paramstyle == 'qmark':
            return ["?"] * count
        if paramstyle == 'numeric':
            return [f":{i + 1}" for i in range(count)]
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")

    @staticmethod
    def create_table_ddl(table_name: str) -> str:
        """
        Generate the idempotent CREATE TABLE statement for the target.

        Args:
            table_name: Target table name

        Returns:
            DDL statement string
        """
        column_definitions = [
            f"    {column.target} {column.ddl_type}" for column in SALES_COLUMNS
        ]
        ddl_statement = "\n".join([
            f"CREATE TABLE IF NOT EXISTS {table_name} (",
            ",\n".join(column_definitions),
            ")",
        ])
        logger.debug(f"Generated DDL for table {table_name}:")
        logger.debug(ddl_statement)
        return ddl_statement

    @staticmethod
    def select_query(table_name: str) -> str:
        """
        Generate the ordered extraction query for the source table.

        Args:
            table_name: Source table name

        Returns:
            SELECT statement string
        """
        columns_str = ", ".join(column.source for column in SALES_COLUMNS)
        return f"SELECT {columns_str} FROM {table_name} ORDER BY {IDENTITY_COLUMN.source}"

    @classmethod
    def insert_statement(cls, table_name: str, paramstyle: str = 'format') -> str:
        """
        Generate the conflict-tolerant insert for the target table.

        Rows whose primary key already exists are skipped, never updated.

        Args:
            table_name: Target table name
            paramstyle: DB-API paramstyle of the target driver

        Returns:
            INSERT statement string
        """
        columns_str = ", ".join(column.target for column in SALES_COLUMNS)
        placeholders = ", ".join(cls.placeholders(paramstyle, len(SALES_COLUMNS)))
        return (
            f"INSERT INTO {table_name} ({columns_str}) VALUES ({placeholders}) "
            f"ON CONFLICT ({IDENTITY_COLUMN.target}) DO NOTHING"
        )

    @staticmethod
    def count_query(table_name: str) -> str:
        return f"SELECT COUNT(*) FROM {table_name}"
