"""ETL pipeline components."""

from .extractors import SalesExtractor
from .transformers import RecordDecoder
from .loaders import LoadResult, TransactionalLoader
from .pipeline import SalesETL

__all__ = ["SalesExtractor", "RecordDecoder", "LoadResult", "TransactionalLoader", "SalesETL"]
