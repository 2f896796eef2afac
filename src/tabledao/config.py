"""Settings for building connection providers and configuring logging.

Values are read from ``TABLEDAO_*`` environment variables. The defaults target
a local SQLite file, which is the engine the accessor's ``replace`` semantics
are written against.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DaoSettings(BaseSettings):
    """Pydantic settings container for the data-access layer."""

    model_config = SettingsConfigDict(env_prefix="TABLEDAO_")

    database_url: str = Field(
        default="sqlite:///tabledao.db",
        min_length=1,
        description="SQLAlchemy URL of the database holding the accessor tables.",
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo every statement through the sqlalchemy.engine logger.",
    )
    sqlite_foreign_keys: bool = Field(
        default=True,
        description="Issue PRAGMA foreign_keys=ON on every new SQLite connection.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level applied by configure_logging.",
    )
    log_json: bool = Field(
        default=True,
        description="Render structlog events as JSON instead of console output.",
    )

    @classmethod
    def build_default(cls) -> "DaoSettings":
        """Construct settings from the environment and defaults."""

        return cls()


def load_settings(**overrides: object) -> DaoSettings:
    """Return settings from the environment with explicit ``overrides`` applied."""

    return DaoSettings(**overrides)


__all__ = ["DaoSettings", "load_settings"]
