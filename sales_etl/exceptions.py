"""
Error taxonomy for the sales ETL pipeline.

Only RowDecodeError is handled inside the pipeline (the row is skipped);
every other error aborts the run and is surfaced to the caller.
"""

from typing import Any, Dict, Optional


class ETLError(Exception):
    """
    Base class for every error raised by the pipeline.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the error.

        Args:
            message: Human readable description
            details: Extra context useful for diagnosing the failure
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DatabaseConnectionError(ETLError, ConnectionError):
    """Cannot reach or authenticate to the source or target store."""


class SchemaError(ETLError):
    """The target table DDL could not be applied."""


class ExtractionError(ETLError):
    """The source query could not be issued or the source cursor failed."""


class RowDecodeError(ETLError):
    """A single source row could not be decoded into a SalesRecord."""

    def __init__(self, message: str, position: int, fsno: Any = None):
        self.position = position
        self.fsno = fsno
        super().__init__(message, {'position': position, 'fsno': fsno})


class LoadError(ETLError):
    """An insert failed hard; the load transaction was rolled back."""

    def __init__(self, message: str, fsno: Any, rows_processed: int):
        self.fsno = fsno
        self.rows_processed = rows_processed
        super().__init__(message, {'fsno': fsno, 'rows_processed': rows_processed})


class CommitError(ETLError):
    """The load transaction could not be committed."""

    def __init__(self, message: str, rows_processed: int):
        self.rows_processed = rows_processed
        super().__init__(message, {'rows_processed': rows_processed})
