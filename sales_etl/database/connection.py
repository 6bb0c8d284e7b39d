"""
Source (SQL Server) and target (PostgreSQL) connection management.
"""

import os
import logging
from typing import Any, Optional

import psycopg2
import pyodbc
from dotenv import load_dotenv

from ..exceptions import DatabaseConnectionError
from ..utils.helpers import ConnectionStringHelpers

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages one DB-API connection built from a connection string."""

    label = 'database'
    env_var = ''

    def __init__(self, conn_str: str):
        """
        Initialize connection manager.

        Args:
            conn_str: Connection string for the store
        """
        self.conn_str = conn_str
        self.connection: Optional[Any] = None
        self._is_connected = False

    @classmethod
    def from_env_file(cls, env_file: str = '.env') -> 'DatabaseConnection':
        """
        Create a connection manager from an environment file.

        Variables already set in the process environment take precedence.

        Args:
            env_file: Path to .env file (default: '.env')

        Returns:
            Connection manager with the connection string from the environment

        Raises:
            ValueError: If the connection string variable is missing
        """
        load_dotenv(env_file)

        conn_str = os.getenv(cls.env_var)
        if not conn_str:
            raise ValueError(
                f"{cls.env_var} must be set in environment variables. Check your .env file."
            )

        logger.info(f"Loaded {cls.label} connection string from {cls.env_var}")
        return cls(conn_str)

    def _open(self) -> Any:
        raise NotImplementedError

    def connect(self) -> None:
        """
        Establish and ping the connection.

        Raises:
            DatabaseConnectionError: If the store cannot be reached
        """
        if self._is_connected and self.connection:
            logger.debug(f"Already connected to {self.label}")
            return

        try:
            self.connection = self._open()
            self._is_connected = True
        except Exception as e:
            logger.error(f"Failed to connect to {self.label}: {e}")
            self._is_connected = False
            raise DatabaseConnectionError(
                f"Error connecting to {self.label}: {e}",
                {'store': self.label, 'dsn': ConnectionStringHelpers.redact(self.conn_str)}
            ) from e

        if not self.test_connection():
            self.disconnect()
            raise DatabaseConnectionError(
                f"Error pinging {self.label}",
                {'store': self.label, 'dsn': ConnectionStringHelpers.redact(self.conn_str)}
            )
        logger.info(f"Successfully connected to {self.label}.")

    def disconnect(self) -> None:
        """Close the connection."""
        if self.connection and self._is_connected:
            try:
                self.connection.close()
                logger.info(f"Disconnected from {self.label}")
            except Exception as e:
                logger.warning(f"Error during disconnect: {e}")
            finally:
                self.connection = None
                self._is_connected = False

    def get_connection(self) -> Any:
        """
        Get the active DB-API connection.

        Raises:
            RuntimeError: If not connected
        """
        if not self._is_connected or not self.connection:
            raise RuntimeError(f"Not connected to {self.label}. Call connect() first.")
        return self.connection

    def is_connected(self) -> bool:
        return self._is_connected and self.connection is not None

    def test_connection(self) -> bool:
        """
        Ping the store with SELECT 1.

        Returns:
            True if the ping succeeded, False otherwise
        """
        try:
            cursor = self.connection.cursor()
            try:
                cursor.execute("SELECT 1")
                result = cursor.fetchone()
            finally:
                cursor.close()
            # leave no transaction open behind the ping
            self.connection.rollback()
            return result is not None
        except Exception as e:
            logger.error(f"Connection test failed for {self.label}: {e}")
            return False

    def __enter__(self) -> 'DatabaseConnection':
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


class SourceConnection(DatabaseConnection):
    """SQL Server source store, read through pyodbc."""

    label = 'MSSQL Source'
    env_var = 'MSSQL_CONN'

    def __init__(self, conn_str: str, odbc_driver: Optional[str] = None):
        super().__init__(conn_str)
        self.odbc_driver = odbc_driver or os.getenv('MSSQL_ODBC_DRIVER')

    def _open(self) -> Any:
        odbc_str = ConnectionStringHelpers.mssql_to_odbc(self.conn_str, self.odbc_driver)
        connection = pyodbc.connect(odbc_str, timeout=30)
        # the source is only ever read
        connection.autocommit = True
        return connection


class TargetConnection(DatabaseConnection):
    """PostgreSQL target store, written through psycopg2."""

    label = 'PostgreSQL Target'
    env_var = 'POSTGRES_CONN'

    paramstyle = psycopg2.paramstyle

    def _open(self) -> Any:
        connection = psycopg2.connect(self.conn_str)
        connection.autocommit = False
        return connection
