"""Error taxonomy and translation helpers for the table accessor layer."""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy import exc as sa_exc

from .results import FailureKind, OperationResult

__all__ = [
    "TableDaoError",
    "RepositoryError",
    "ConnectionAcquisitionError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "AccessorClosedError",
    "ReentrantTransactionError",
    "classify_failure",
    "raise_for_failure",
]

V = TypeVar("V")


class TableDaoError(Exception):
    """Base class for tabledao specific errors."""


class RepositoryError(TableDaoError):
    """Base class for persistence layer failures."""


class ConnectionAcquisitionError(RepositoryError):
    """Raised when the provider cannot hand out a connection."""


class IntegrityConstraintViolation(RepositoryError):
    """Raised when a database constraint is violated."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected database errors."""


class AccessorClosedError(RepositoryError):
    """Raised when an operation reaches an accessor after teardown."""


class ReentrantTransactionError(RepositoryError):
    """Raised when an operation is issued from inside another one on the same accessor."""


_ERRORS_BY_KIND: dict[FailureKind, type[RepositoryError]] = {
    FailureKind.INTEGRITY: IntegrityConstraintViolation,
    FailureKind.DATABASE: DatabaseOperationError,
    FailureKind.CLOSED: AccessorClosedError,
    FailureKind.REENTRANT: ReentrantTransactionError,
}


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception raised inside a transaction to a :class:`FailureKind`."""

    if isinstance(exc, AccessorClosedError):
        return FailureKind.CLOSED
    if isinstance(exc, ReentrantTransactionError):
        return FailureKind.REENTRANT
    if isinstance(exc, (IntegrityConstraintViolation, sa_exc.IntegrityError)):
        return FailureKind.INTEGRITY
    if isinstance(exc, sa_exc.ResourceClosedError):
        return FailureKind.CLOSED
    if isinstance(exc, (DatabaseOperationError, sa_exc.SQLAlchemyError)):
        return FailureKind.DATABASE
    if isinstance(exc, ValueError):
        return FailureKind.INVALID_ARGUMENT
    if isinstance(exc, (KeyError, TypeError, AttributeError)):
        return FailureKind.MAPPING
    return FailureKind.UNKNOWN


def raise_for_failure(result: OperationResult[V]) -> V | None:
    """Return the value of a successful ``result`` or raise its domain error.

    The original exception, when there is one, is chained as ``__cause__``.
    """

    failure = result.failure
    if failure is None:
        return result.value
    error_type = _ERRORS_BY_KIND.get(failure.kind, RepositoryError)
    raise error_type(failure.detail) from failure.error
