"""Row mapper capability set consumed by :class:`~tabledao.accessor.TableAccessor`."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Generic, Iterable, Mapping, Protocol, TypeVar

T = TypeVar("T")


class RowMapper(Protocol[T]):
    """Binds one record type to one table."""

    def table_name(self) -> str:
        """Return the table the records live in; constant per mapper."""

    def to_columns(self, record: T) -> Mapping[str, Any]:
        """Return the column values written by insert, update and replace."""

    def from_row(self, row: Mapping[str, Any]) -> T:
        """Build a record from one result row."""


class DataclassRowMapper(Generic[T]):
    """Map dataclass records to columns named after their fields.

    ``exclude`` lists fields that are never written, typically an
    autoincrement key such as ``_id``. Rows are converted back using every
    field the row provides, so projections only need to select the columns
    the dataclass can default.
    """

    def __init__(self, table: str, record_type: type[T], *, exclude: Iterable[str] = ()) -> None:
        if not is_dataclass(record_type):
            raise TypeError(f"{record_type!r} is not a dataclass")
        self._table = table
        self._record_type = record_type
        self._fields = tuple(field.name for field in fields(record_type))
        self._exclude = frozenset(exclude)
        unknown = self._exclude.difference(self._fields)
        if unknown:
            raise ValueError(f"unknown excluded fields: {sorted(unknown)}")

    def table_name(self) -> str:
        return self._table

    def to_columns(self, record: T) -> dict[str, Any]:
        return {
            name: getattr(record, name)
            for name in self._fields
            if name not in self._exclude
        }

    def from_row(self, row: Mapping[str, Any]) -> T:
        values = {name: row[name] for name in self._fields if name in row}
        return self._record_type(**values)
