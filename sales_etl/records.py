"""
Shared row model for the sales ETL pipeline.

A SalesRecord is the unit of transfer between the extractor and the loader.
Every field is wrapped in a Nullable so that SQL NULL travels through the
pipeline as an explicit absent value instead of being coerced to a zero value.
"""

from collections import namedtuple
from typing import Any, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar('T')

# kind is one of 'string', 'date', 'decimal'
SalesColumn = namedtuple('SalesColumn', ['attr', 'source', 'target', 'ddl_type', 'kind'])

# Positional contract shared by the extraction query, the DDL and the insert.
SALES_COLUMNS: Tuple[SalesColumn, ...] = (
    SalesColumn('fsno', 'fsno', 'fsno', 'VARCHAR(50) PRIMARY KEY', 'string'),
    SalesColumn('sale_type', 'salestype', 'salestype', 'VARCHAR(50)', 'string'),
    SalesColumn('attachment_no', 'attachmentno', 'attachmentno', 'VARCHAR(50)', 'string'),
    SalesColumn('customer', 'customer', 'customer', 'VARCHAR(100)', 'string'),
    SalesColumn('region', 'region', 'region', 'VARCHAR(50)', 'string'),
    SalesColumn('date', 'date', 'sale_date', 'DATE', 'date'),
    SalesColumn('code', 'code', 'code', 'VARCHAR(50)', 'string'),
    SalesColumn('name', 'name', 'item_name', 'VARCHAR(100)', 'string'),
    SalesColumn('measurement_unit', 'measurementunit', 'measurement_unit', 'VARCHAR(50)', 'string'),
    SalesColumn('unit_price', 'unitprice', 'unit_price', 'NUMERIC(12, 2)', 'decimal'),
    SalesColumn('sold_quantity', 'soldquantity', 'sold_quantity', 'NUMERIC(12, 2)', 'decimal'),
    SalesColumn('net_pay', 'netpay', 'net_pay', 'NUMERIC(12, 2)', 'decimal'),
)

IDENTITY_COLUMN = SALES_COLUMNS[0]


class Nullable(Generic[T]):
    """
    A value that is either present or explicitly absent (SQL NULL).

    Build instances with Nullable.of() or Nullable.absent(); the constructor
    takes the presence flag explicitly.
    """

    __slots__ = ('_value', '_valid')

    def __init__(self, value: Optional[T], *, valid: bool):
        if valid and value is None:
            raise ValueError("A present Nullable cannot wrap None; use Nullable.absent()")
        self._value = value if valid else None
        self._valid = valid

    @classmethod
    def of(cls, value: Optional[T]) -> 'Nullable[T]':
        """Wrap a raw driver value; None becomes absent."""
        if value is None:
            return cls.absent()
        return cls(value, valid=True)

    @classmethod
    def absent(cls) -> 'Nullable[T]':
        return cls(None, valid=False)

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def value(self) -> T:
        """
        Return the wrapped value.

        Raises:
            ValueError: If the value is absent
        """
        if not self._valid:
            raise ValueError("Nullable value is absent")
        return self._value

    def get(self, default: Optional[T] = None) -> Optional[T]:
        return self._value if self._valid else default

    def to_db(self) -> Optional[T]:
        """Value to bind as a statement parameter (None means SQL NULL)."""
        return self._value if self._valid else None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Nullable):
            return NotImplemented
        return self._valid == other._valid and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._valid, self._value))

    def __repr__(self) -> str:
        if not self._valid:
            return "Nullable(absent)"
        return f"Nullable({self._value!r})"


class SalesRecord:
    """One sales row, fields in SALES_COLUMNS order."""

    __slots__ = tuple(column.attr for column in SALES_COLUMNS)

    def __init__(self, **fields: Nullable):
        unknown = set(fields) - set(self.__slots__)
        if unknown:
            raise TypeError(f"Unknown SalesRecord fields: {sorted(unknown)}")
        for attr in self.__slots__:
            value = fields.get(attr, Nullable.absent())
            if not isinstance(value, Nullable):
                value = Nullable.of(value)
            setattr(self, attr, value)

    @classmethod
    def from_values(cls, values: List[Nullable]) -> 'SalesRecord':
        """Build a record from positional Nullable values."""
        if len(values) != len(SALES_COLUMNS):
            raise ValueError(
                f"Expected {len(SALES_COLUMNS)} values, got {len(values)}"
            )
        return cls(**{column.attr: value for column, value in zip(SALES_COLUMNS, values)})

    def fields(self) -> Iterator[Nullable]:
        for attr in self.__slots__:
            yield getattr(self, attr)

    def to_params(self) -> Tuple[Any, ...]:
        """Positional statement parameters for the insert."""
        return tuple(field.to_db() for field in self.fields())

    @property
    def identity(self) -> Optional[Any]:
        return self.fsno.get()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SalesRecord):
            return NotImplemented
        return list(self.fields()) == list(other.fields())

    def __repr__(self) -> str:
        return f"SalesRecord(fsno={self.fsno.get()!r})"
