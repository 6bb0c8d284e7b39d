"""
Sales Replica ETL Package

Replicates the SQL Server sales table into a PostgreSQL analytics replica.
"""

__version__ = "0.1.0"

from .config.pipeline_config import PipelineConfig
from .etl.pipeline import SalesETL

__all__ = ["PipelineConfig", "SalesETL"]
