"""Database operations and management."""

from .schema import SchemaManager
from .operations import DatabaseOperations

# SourceConnection and TargetConnection live in .connection and pull in the
# pyodbc and psycopg2 drivers, so they are imported from there explicitly.
__all__ = ["SchemaManager", "DatabaseOperations"]
