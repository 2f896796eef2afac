"""Generic transactional accessor over one table.

Every operation runs under the accessor's gate inside its own transaction on
the single writable connection the accessor holds for its lifetime. Failures
raised while the transaction is open are logged and turned into a
type-appropriate zero value; :meth:`TableAccessor.run` exposes the same
protocol with an explicit :class:`~tabledao.results.OperationResult`.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

from sqlalchemy.engine import Connection, CursorResult, RootTransaction

from . import statements
from .connection import ConnectionProvider
from .exceptions import (
    AccessorClosedError,
    ReentrantTransactionError,
    classify_failure,
)
from .mapping import RowMapper
from .results import FailureKind, OperationResult

T = TypeVar("T")
V = TypeVar("V")

ID_COLUMN = "_id"


class GateState(str, Enum):
    """Lifecycle of the accessor's single connection."""

    IDLE = "idle"
    TRANSACTION_ACTIVE = "transaction_active"
    CLOSED = "closed"


class OperationScope:
    """Connection access handed to an action running inside the transaction.

    Results produced through :meth:`execute` are closed by the accessor once
    the transaction has ended.
    """

    def __init__(self, connection: Connection, table: str) -> None:
        self.connection = connection
        self.table = table
        self._results: list[CursorResult[Any]] = []

    @property
    def quote(self) -> Callable[[str], str]:
        return self.connection.dialect.identifier_preparer.quote

    @property
    def marker(self) -> str:
        return "?" if self.connection.dialect.paramstyle == "qmark" else "%s"

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> CursorResult[Any]:
        result = self.connection.exec_driver_sql(sql, tuple(params or ()))
        self._results.append(result)
        return result

    def close_results(self, logger: logging.Logger) -> None:
        results, self._results = self._results, []
        for result in results:
            try:
                result.close()
            except Exception:  # noqa: BLE001 - remaining results still need closing
                logger.warning("Table %s: closing result failed", self.table, exc_info=True)


class TableAccessor(Generic[T]):
    """CRUD access to the table bound by ``mapper``.

    The writable connection is opened once from ``provider`` and kept until
    :meth:`close`. A failure to open it propagates to the caller.
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        mapper: RowMapper[T],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._provider = provider
        self._mapper = mapper
        self._table = mapper.table_name()
        self._logger = logger or logging.getLogger(__name__)
        self._gate = threading.RLock()
        self._state = GateState.IDLE
        self._connection = provider.open_writable()

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is GateState.CLOSED

    def open_reader(self) -> Connection:
        """Return a readable connection from the provider; the caller owns it."""

        return self._provider.open_readable()

    # Transaction protocol ------------------------------------------------

    def run(
        self,
        action: Callable[[OperationScope], V],
        *,
        operation: str = "run",
    ) -> OperationResult[V]:
        """Execute ``action`` as one serialized transaction.

        The transaction commits only when ``action`` returns normally. The
        transaction is ended, results are closed and the gate is released on
        every exit path.
        """

        with self._gate:
            try:
                self._check_idle()
            except (AccessorClosedError, ReentrantTransactionError) as exc:
                return self._failed(operation, exc)

            self._state = GateState.TRANSACTION_ACTIVE
            scope = OperationScope(self._connection, self._table)
            transaction: RootTransaction | None = None
            successful = False
            try:
                transaction = self._connection.begin()
                value = action(scope)
                successful = True
                outcome: OperationResult[V] = OperationResult.success(value)
            except Exception as exc:  # noqa: BLE001
                outcome = self._failed(operation, exc)
            finally:
                committed = self._end_transaction(transaction, successful, operation)
                scope.close_results(self._logger)
                self._state = GateState.IDLE

            if successful and not committed:
                return OperationResult.failed(
                    FailureKind.DATABASE, f"{self._table}.{operation}: commit failed"
                )
            return outcome

    def _check_idle(self) -> None:
        if self._state is GateState.CLOSED:
            raise AccessorClosedError(f"accessor for {self._table!r} is closed")
        if self._state is GateState.TRANSACTION_ACTIVE:
            raise ReentrantTransactionError(
                f"operation on {self._table!r} issued while its transaction is active"
            )

    def _end_transaction(
        self, transaction: RootTransaction | None, successful: bool, operation: str
    ) -> bool:
        if transaction is None:
            return False
        if successful:
            try:
                transaction.commit()
                return True
            except Exception:  # noqa: BLE001 - fall through to rollback
                self._logger.exception("Table %s: commit of %s failed", self._table, operation)
        try:
            transaction.rollback()
        except Exception:  # noqa: BLE001
            self._logger.warning(
                "Table %s: rollback of %s failed", self._table, operation, exc_info=True
            )
        return False

    def _failed(self, operation: str, exc: BaseException) -> OperationResult[Any]:
        kind = classify_failure(exc)
        self._logger.error(
            "Table %s: %s failed [%s]",
            self._table,
            operation,
            kind.value,
            exc_info=exc,
        )
        return OperationResult.failed(kind, f"{self._table}.{operation}: {exc}", error=exc)

    # Operations ----------------------------------------------------------

    def count(self) -> int:
        """Count rows through the ``_id`` column."""

        return self.count_column(ID_COLUMN)

    def count_column(self, column: str) -> int:
        def action(scope: OperationScope) -> int:
            value = scope.execute(
                statements.count_sql(self._table, column, quote=scope.quote)
            ).scalar()
            return int(value or 0)

        return self.run(action, operation="count_column").value_or(0)

    def insert(self, record: T) -> int:
        """Insert ``record`` and return the new row identifier."""

        def action(scope: OperationScope) -> int:
            return self._write_row(scope, record, statements.insert_sql)

        return self.run(action, operation="insert").value_or(0)

    def delete_all(self) -> int:
        return self.delete(None, None)

    def delete(
        self, where_clause: str | None = None, where_args: Sequence[Any] | None = None
    ) -> int:
        """Delete rows matching ``where_clause``; every row when it is absent."""

        def action(scope: OperationScope) -> int:
            sql = statements.delete_sql(self._table, where_clause, quote=scope.quote)
            return scope.execute(sql, where_args).rowcount

        return self.run(action, operation="delete").value_or(0)

    def update(
        self,
        record: T,
        where_clause: str | None = None,
        where_args: Sequence[Any] | None = None,
    ) -> int:
        def action(scope: OperationScope) -> int:
            values = dict(self._mapper.to_columns(record))
            sql = statements.update_sql(
                self._table,
                list(values),
                where_clause,
                quote=scope.quote,
                marker=scope.marker,
            )
            params = [*values.values(), *(where_args or ())]
            return scope.execute(sql, params).rowcount

        return self.run(action, operation="update").value_or(0)

    def replace(self, record: T) -> int:
        """Insert ``record``, replacing any row it conflicts with.

        Rows are matched only through the primary key and unique constraints,
        never through a predicate. The conflicting row is deleted first, so
        columns missing from the mapped values end up NULL or at their default
        rather than keeping their previous value.
        """

        def action(scope: OperationScope) -> int:
            return self._write_row(scope, record, statements.replace_sql)

        return self.run(action, operation="replace").value_or(0)

    def query_all(self) -> list[T]:
        return self.query(None, None)

    def query(
        self,
        selection: str | None = None,
        selection_args: Sequence[Any] | None = None,
        *,
        columns: Iterable[str] | None = None,
        group_by: str | None = None,
        having: str | None = None,
        order_by: str | None = None,
        limit: str | int | None = None,
    ) -> list[T]:
        return self.query_columns(
            columns, selection, selection_args, group_by, having, order_by, limit
        )

    def query_columns(
        self,
        columns: Iterable[str] | None,
        selection: str | None,
        selection_args: Sequence[Any] | None,
        group_by: str | None = None,
        having: str | None = None,
        order_by: str | None = None,
        limit: str | int | None = None,
    ) -> list[T]:
        """Run a general select and map every row.

        The result set is read completely before mapping starts, so no cursor
        outlives the transaction.
        """

        projection = list(columns) if columns is not None else None

        def action(scope: OperationScope) -> list[T]:
            sql = statements.select_sql(
                self._table,
                quote=scope.quote,
                columns=projection,
                selection=selection,
                group_by=group_by,
                having=having,
                order_by=order_by,
                limit=limit,
            )
            rows = scope.execute(sql, selection_args).mappings().all()
            return [self._mapper.from_row(row) for row in rows]

        return self.run(action, operation="query").value_or([])

    def _write_row(
        self,
        scope: OperationScope,
        record: T,
        build: Callable[..., str],
    ) -> int:
        values = dict(self._mapper.to_columns(record))
        sql = build(self._table, list(values), quote=scope.quote, marker=scope.marker)
        row_id = scope.execute(sql, list(values.values())).lastrowid
        return int(row_id or 0)

    # Teardown ------------------------------------------------------------

    def close(self) -> None:
        """Release the writable connection; later operations degrade."""

        with self._gate:
            if self._state is GateState.CLOSED:
                return
            if self._state is GateState.TRANSACTION_ACTIVE:
                raise ReentrantTransactionError(
                    f"cannot close accessor for {self._table!r} inside its own transaction"
                )
            try:
                self._connection.close()
            finally:
                self._state = GateState.CLOSED
                self._logger.debug("Table %s: accessor closed", self._table)

    def __enter__(self) -> TableAccessor[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object,
    ) -> None:
        self.close()
