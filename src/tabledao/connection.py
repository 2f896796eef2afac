"""Connection providers handing SQLAlchemy connections to table accessors."""

from __future__ import annotations

from typing import Any, Protocol

import sqlalchemy as sa
import structlog
from sqlalchemy import event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.pool import StaticPool

from .config import DaoSettings
from .exceptions import ConnectionAcquisitionError

logger = structlog.get_logger(__name__)


class ConnectionProvider(Protocol):
    """Supplies handles to the storage engine."""

    def open_readable(self) -> Connection:
        """Return a connection suitable for reads."""

    def open_writable(self) -> Connection:
        """Return a connection suitable for writes."""


class SqlAlchemyConnectionProvider:
    """Hand out connections checked out from a SQLAlchemy :class:`Engine`.

    Every call returns a new connection; ownership passes to the caller, which
    is responsible for closing it.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @classmethod
    def from_settings(cls, settings: DaoSettings | None = None) -> SqlAlchemyConnectionProvider:
        settings = settings or DaoSettings.build_default()
        engine = create_engine(settings)
        logger.info(
            "connection_provider_created",
            dialect=engine.dialect.name,
            database=engine.url.database,
        )
        return cls(engine)

    def open_readable(self) -> Connection:
        return self._connect("readable")

    def open_writable(self) -> Connection:
        return self._connect("writable")

    def dispose(self) -> None:
        """Close pooled connections that are not checked out."""

        self._engine.dispose()

    def _connect(self, mode: str) -> Connection:
        try:
            return self._engine.connect()
        except sa_exc.SQLAlchemyError as exc:
            logger.error("connection_open_failed", mode=mode, error=str(exc))
            raise ConnectionAcquisitionError(
                f"failed to open {mode} connection to {self._engine.url.render_as_string()}"
            ) from exc


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_engine(settings: DaoSettings) -> Engine:
    """Build an engine for ``settings.database_url``.

    SQLite connections may be used from any thread since the accessor
    serializes access itself. In-memory SQLite shares one DBAPI connection so
    that every handle sees the same database.
    """

    url = make_url(settings.database_url)
    kwargs: dict[str, Any] = {"echo": settings.echo_sql, "future": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
    engine = sa.create_engine(url, **kwargs)

    if url.get_backend_name() == "sqlite" and settings.sqlite_foreign_keys:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()
