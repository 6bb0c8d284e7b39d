"""
Main ETL pipeline orchestration.
"""

import logging
import time
from typing import Any, List, Optional

from ..config.pipeline_config import PipelineConfig
from ..database.operations import DatabaseOperations
from .extractors import SalesExtractor
from .loaders import LoadResult, TransactionalLoader

logger = logging.getLogger(__name__)


class SalesETL:
    """
    Replicates the source sales table into the target store.

    Works on two already-open DB-API connections and never terminates the
    process; every failure is raised as an ETLError subclass.
    """

    def __init__(self, source_connection: Any, target_connection: Any,
                 config: Optional[PipelineConfig] = None):
        """
        Initialize the sales ETL pipeline.

        Args:
            source_connection: Open DB-API connection to the source store
            target_connection: Open DB-API connection to the target store
            config: Pipeline configuration (default: PipelineConfig())
        """
        self.config = config or PipelineConfig()
        self.source_connection = source_connection
        self.target_connection = target_connection
        self.db_operations = DatabaseOperations(
            target_connection,
            self.config.target_table,
            self.config.target_paramstyle
        )
        self.extractor = SalesExtractor(
            source_connection,
            self.config.source_table,
            self.config.fetch_size
        )
        self.loader = TransactionalLoader(self.db_operations)
        self._managers: List[Any] = []

    @classmethod
    def from_env_file(cls, env_file: str = '.env',
                      config: Optional[PipelineConfig] = None) -> 'SalesETL':
        """
        Connect to both stores using MSSQL_CONN and POSTGRES_CONN.

        Args:
            env_file: Path to .env file (default: '.env')
            config: Pipeline configuration

        Returns:
            SalesETL bound to the opened connections; call close() when done

        Raises:
            ValueError: If a connection string is missing
            DatabaseConnectionError: If a store cannot be reached
        """
        # imported here so the core does not require the drivers
        from ..database.connection import SourceConnection, TargetConnection

        source = SourceConnection.from_env_file(env_file)
        target = TargetConnection.from_env_file(env_file)

        source.connect()
        try:
            target.connect()
        except Exception:
            source.disconnect()
            raise

        config = config or PipelineConfig({'target_paramstyle': TargetConnection.paramstyle})
        etl = cls(source.get_connection(), target.get_connection(), config)
        etl._managers = [source, target]
        return etl

    def ensure_schema(self) -> None:
        """
        Make sure the target table exists.

        Raises:
            SchemaError: If the DDL cannot be applied
        """
        self.db_operations.ensure_target_table()

    def run(self) -> LoadResult:
        """
        Run the full pipeline: ensure schema, extract, load.

        Returns:
            LoadResult for this run

        Raises:
            SchemaError, ExtractionError, LoadError, CommitError
        """
        self.ensure_schema()

        logger.info(f"Starting ETL from {self.config.source_table} to {self.config.target_table}...")
        start_time = time.monotonic()

        with self.extractor.extract() as records:
            result = self.loader.load(records)

        result.rows_skipped = self.extractor.rows_skipped
        result.duration_seconds = time.monotonic() - start_time
        try:
            result.target_rows = self.db_operations.count_rows()
        except Exception as count_error:
            # the load is already committed, the count is informational only
            logger.warning(f"Could not count rows in {self.config.target_table}: {count_error}")

        if result.rows_skipped:
            logger.warning(f"Skipped {result.rows_skipped} source rows that could not be decoded")
        logger.info(
            f"ETL Process successful! Migrated {result.rows_processed} rows "
            f"in {result.duration_seconds:.2f}s."
        )
        return result

    def get_pipeline_summary(self, result: LoadResult) -> str:
        """
        Generate a human-readable summary of a pipeline run.

        Args:
            result: Result returned by run()

        Returns:
            Formatted summary string
        """
        lines = [
            "ETL Pipeline Summary:",
            f"  Source table: {self.config.source_table}",
            f"  Target table: {self.config.target_table}",
            f"  Rows processed: {result.rows_processed:,}",
            f"  Rows inserted: {result.rows_inserted:,}",
            f"  Rows already present: {result.rows_conflicted:,}",
            f"  Rows skipped (decode errors): {result.rows_skipped:,}",
        ]
        if result.target_rows is not None:
            lines.append(f"  Target table rows: {result.target_rows:,}")
        lines.append(f"  Duration: {result.duration_seconds:.2f}s")
        return "\n".join(lines)

    def close(self) -> None:
        """Disconnect connections opened by from_env_file()."""
        for manager in reversed(self._managers):
            manager.disconnect()
        self._managers = []

    def __enter__(self) -> 'SalesETL':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
