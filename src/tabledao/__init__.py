"""Transactional single-table data access built on SQLAlchemy connections."""

from .accessor import GateState, OperationScope, TableAccessor
from .config import DaoSettings, load_settings
from .connection import ConnectionProvider, SqlAlchemyConnectionProvider, create_engine
from .exceptions import (
    AccessorClosedError,
    ConnectionAcquisitionError,
    DatabaseOperationError,
    IntegrityConstraintViolation,
    ReentrantTransactionError,
    RepositoryError,
    TableDaoError,
    raise_for_failure,
)
from .logging import configure_logging
from .mapping import DataclassRowMapper, RowMapper
from .results import FailureKind, OperationFailure, OperationResult

__all__ = [
    "AccessorClosedError",
    "ConnectionAcquisitionError",
    "ConnectionProvider",
    "DaoSettings",
    "DataclassRowMapper",
    "DatabaseOperationError",
    "FailureKind",
    "GateState",
    "IntegrityConstraintViolation",
    "OperationFailure",
    "OperationResult",
    "OperationScope",
    "ReentrantTransactionError",
    "RepositoryError",
    "RowMapper",
    "SqlAlchemyConnectionProvider",
    "TableAccessor",
    "TableDaoError",
    "configure_logging",
    "create_engine",
    "load_settings",
    "raise_for_failure",
]
