"""Person records, schema and mappers shared by accessor tests."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Engine

from tabledao import DataclassRowMapper

metadata = sa.MetaData()

people = sa.Table(
    "people",
    metadata,
    sa.Column("_id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("name", sa.String(64), nullable=False, unique=True),
    sa.Column("age", sa.Integer, nullable=True),
)


@dataclass
class Person:
    name: str
    age: int | None = None
    _id: int | None = None


def person_mapper() -> DataclassRowMapper[Person]:
    return DataclassRowMapper("people", Person, exclude=("_id",))


def name_only_mapper() -> DataclassRowMapper[Person]:
    return DataclassRowMapper("people", Person, exclude=("_id", "age"))


class SlowPersonMapper(DataclassRowMapper[Person]):
    """Widen the transaction window so overlapping callers would collide."""

    def __init__(self, delay: float = 0.001) -> None:
        super().__init__("people", Person, exclude=("_id",))
        self._delay = delay

    def to_columns(self, record: Person) -> dict[str, Any]:
        time.sleep(self._delay)
        return super().to_columns(record)

    def from_row(self, row: Mapping[str, Any]) -> Person:
        time.sleep(self._delay)
        return super().from_row(row)


class ExplodingMapper(DataclassRowMapper[Person]):
    """Raise from the mapping step of every write and read."""

    def __init__(self) -> None:
        super().__init__("people", Person, exclude=("_id",))

    def to_columns(self, record: Person) -> dict[str, Any]:
        raise RuntimeError(f"cannot map {record.name}")

    def from_row(self, row: Mapping[str, Any]) -> Person:
        raise RuntimeError("cannot map row")


class CallbackMapper(DataclassRowMapper[Person]):
    """Invoke ``on_row`` for every row converted, from inside the transaction."""

    def __init__(self, on_row: Callable[[], None]) -> None:
        super().__init__("people", Person, exclude=("_id",))
        self._on_row = on_row

    def from_row(self, row: Mapping[str, Any]) -> Person:
        self._on_row()
        return super().from_row(row)


class TransactionTracker:
    """Record overlapping transactions through engine events."""

    def __init__(self, engine: Engine) -> None:
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self.overlaps: list[str] = []
        event.listen(engine, "begin", self._on_begin)
        event.listen(engine, "commit", self._on_commit)
        event.listen(engine, "rollback", self._on_rollback)

    def _on_begin(self, conn: sa.Connection) -> None:
        with self._lock:
            if self.active:
                self.overlaps.append(threading.current_thread().name)
            self.active += 1
            self.begins += 1
            self.max_active = max(self.max_active, self.active)

    def _on_commit(self, conn: sa.Connection) -> None:
        with self._lock:
            self.active -= 1
            self.commits += 1

    def _on_rollback(self, conn: sa.Connection) -> None:
        with self._lock:
            self.active -= 1
            self.rollbacks += 1
