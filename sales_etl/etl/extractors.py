"""
Streaming extraction of sales rows from the source store.
"""

import logging
from typing import Any, Iterator, Optional

from ..database.schema import SchemaManager
from ..exceptions import ExtractionError, RowDecodeError
from ..records import SalesRecord
from .transformers import RecordDecoder

logger = logging.getLogger(__name__)


def _close_cursor(cursor: Any) -> None:
    try:
        cursor.close()
    except Exception as e:
        logger.warning(f"Error closing source cursor: {e}")


class RecordStream:
    """
    Single-use iterator over decoded source records.

    Owns the source cursor: close() releases it whether or not iteration
    ever started. Exhausting the stream or an error while reading closes it
    as well.
    """

    def __init__(self, cursor: Any, records: Iterator[SalesRecord]):
        self.cursor = cursor
        self._records = records
        self.closed = False

    def __iter__(self) -> 'RecordStream':
        return self

    def __next__(self) -> SalesRecord:
        if self.closed:
            raise StopIteration
        try:
            return next(self._records)
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._records.close()
        _close_cursor(self.cursor)
        logger.debug("Closed source cursor")

    def __enter__(self) -> 'RecordStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SalesExtractor:
    """Reads the source sales table as a lazy, ordered stream of records."""

    def __init__(self, connection: Any, source_table: str, fetch_size: int = 1000,
                 decoder: Optional[RecordDecoder] = None):
        """
        Initialize sales extractor.

        Args:
            connection: Open DB-API connection to the source store
            source_table: Source table name
            fetch_size: Rows pulled from the cursor per round trip
            decoder: Record decoder (default: RecordDecoder())
        """
        self.connection = connection
        self.source_table = source_table
        self.fetch_size = fetch_size
        self.decoder = decoder or RecordDecoder()
        self.rows_read = 0
        self.rows_skipped = 0

    def extract(self) -> RecordStream:
        """
        Issue the ordered source query and stream decoded records.

        The query runs before this method returns, so a source that cannot be
        queried fails here rather than on the first iteration. The returned
        stream is single-use and holds the source cursor until it is
        exhausted or closed; call extract() again for a fresh query.

        Returns:
            RecordStream of SalesRecord in ascending fsno order

        Raises:
            ExtractionError: If the query cannot be issued
        """
        query = SchemaManager.select_query(self.source_table)
        logger.debug(f"Source query: {query}")

        self.rows_read = 0
        self.rows_skipped = 0

        cursor = None
        try:
            cursor = self.connection.cursor()
            cursor.arraysize = self.fetch_size
            cursor.execute(query)
        except Exception as e:
            logger.error(f"Failed to query source table {self.source_table}: {e}")
            if cursor is not None:
                _close_cursor(cursor)
            raise ExtractionError(
                f"failed to query source data: {e}",
                {'table': self.source_table}
            ) from e

        logger.info(f"Opened source cursor on {self.source_table} (fetch size {self.fetch_size})")
        return RecordStream(cursor, self._stream(cursor))

    def _stream(self, cursor: Any) -> Iterator[SalesRecord]:
        while True:
            try:
                batch = cursor.fetchmany(self.fetch_size)
            except Exception as e:
                logger.error(f"Error iterating over source rows after {self.rows_read} rows: {e}")
                raise ExtractionError(
                    f"error iterating over source rows: {e}",
                    {'table': self.source_table, 'rows_read': self.rows_read}
                ) from e

            if not batch:
                break

            for row in batch:
                self.rows_read += 1
                try:
                    record = self.decoder.decode(row, self.rows_read)
                except RowDecodeError as e:
                    self.rows_skipped += 1
                    logger.warning(f"Error scanning source row (count {self.rows_read}): {e}. Skipping row.")
                    continue
                yield record
        logger.debug(f"Read {self.rows_read} source rows")
