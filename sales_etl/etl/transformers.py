"""
Null-safe type mapping between source rows and SalesRecord.
"""

import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Sequence

from ..exceptions import RowDecodeError
from ..records import SALES_COLUMNS, Nullable, SalesRecord

logger = logging.getLogger(__name__)

DATE_PATTERNS = [
    '%Y-%m-%d',              # 2006-11-06
    '%Y-%m-%d %H:%M:%S',     # 2006-11-06 12:30:45
    '%Y-%m-%d %H:%M:%S.%f',  # 2006-11-06 12:30:45.123456
    '%Y-%m-%dT%H:%M:%S',     # 2006-11-06T12:30:45
    '%Y-%m-%dT%H:%M:%S.%f',  # 2006-11-06T12:30:45.123456
]


class RecordDecoder:
    """Decodes raw driver rows into SalesRecord objects."""

    def __init__(self, encoding: str = 'utf-8'):
        """
        Initialize record decoder.

        Args:
            encoding: Encoding used for string columns returned as bytes
        """
        self.encoding = encoding
        self._converters: Dict[str, Callable[[Any], Any]] = {
            'string': self.convert_string,
            'date': self.convert_date,
            'decimal': self.convert_decimal,
        }

    def decode(self, row: Sequence[Any], position: int) -> SalesRecord:
        """
        Decode one source row.

        SQL NULL (None) in any column becomes Nullable.absent(); it is never
        replaced by a default value.

        Args:
            row: Raw row in SALES_COLUMNS order
            position: 1-based position of the row in the extraction stream

        Returns:
            Decoded SalesRecord

        Raises:
            RowDecodeError: If the row has the wrong width or a value cannot
                            be converted to its column type
        """
        if row is None or len(row) != len(SALES_COLUMNS):
            width = 0 if row is None else len(row)
            raise RowDecodeError(
                f"Row {position} has {width} columns, expected {len(SALES_COLUMNS)}",
                position,
            )

        fsno = self._readable_identity(row[0])
        values = []
        for column, raw in zip(SALES_COLUMNS, row):
            if raw is None:
                values.append(Nullable.absent())
                continue
            try:
                values.append(Nullable.of(self._converters[column.kind](raw)))
            except (TypeError, ValueError, ArithmeticError, UnicodeDecodeError) as e:
                raise RowDecodeError(
                    f"Row {position} (fsno={fsno!r}): cannot decode column "
                    f"'{column.source}' value {raw!r}: {e}",
                    position,
                    fsno,
                ) from e

        return SalesRecord.from_values(values)

    def convert_string(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode(self.encoding)
        if isinstance(value, bool):
            raise TypeError(f"unsupported type for string column: {type(value).__name__}")
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        raise TypeError(f"unsupported type for string column: {type(value).__name__}")

    def convert_date(self, value: Any) -> datetime.date:
        # datetime is a subclass of date, both are kept as-is
        if isinstance(value, datetime.date):
            return value
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode(self.encoding)
        if isinstance(value, str):
            text = value.strip()
            for pattern in DATE_PATTERNS:
                try:
                    parsed = datetime.datetime.strptime(text, pattern)
                except ValueError:
                    continue
                if pattern == DATE_PATTERNS[0]:
                    return parsed.date()
                return parsed
            raise ValueError(f"unparseable date string {value!r}")
        raise TypeError(f"unsupported type for date column: {type(value).__name__}")

    def convert_decimal(self, value: Any) -> Decimal:
        if isinstance(value, bool):
            raise TypeError("unsupported type for decimal column: bool")
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            # via str() so 100.5 stays 100.5 instead of its binary expansion
            result = Decimal(str(value))
        elif isinstance(value, str):
            try:
                result = Decimal(value.strip())
            except InvalidOperation:
                raise ValueError(f"not a decimal number: {value!r}")
        else:
            raise TypeError(f"unsupported type for decimal column: {type(value).__name__}")

        if not result.is_finite():
            raise ValueError(f"not a finite number: {value!r}")
        return result

    @staticmethod
    def _readable_identity(raw: Any) -> Optional[Any]:
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw).decode('utf-8', errors='replace')
        return raw
