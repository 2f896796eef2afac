from __future__ import annotations

import pytest
from pydantic import ValidationError

from tabledao import DaoSettings, load_settings


@pytest.mark.unit
def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATABASE_URL", "ECHO_SQL", "SQLITE_FOREIGN_KEYS", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"TABLEDAO_{name}", raising=False)

    settings = DaoSettings.build_default()

    assert settings.database_url == "sqlite:///tabledao.db"
    assert settings.echo_sql is False
    assert settings.sqlite_foreign_keys is True
    assert settings.log_level == "INFO"
    assert settings.log_json is True


@pytest.mark.unit
def test_reads_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABLEDAO_DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("TABLEDAO_ECHO_SQL", "true")

    settings = DaoSettings()

    assert settings.database_url == "sqlite:///:memory:"
    assert settings.echo_sql is True


@pytest.mark.unit
def test_load_settings_overrides_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABLEDAO_LOG_LEVEL", "DEBUG")

    settings = load_settings(log_level="WARNING")

    assert settings.log_level == "WARNING"


@pytest.mark.unit
def test_rejects_empty_database_url() -> None:
    with pytest.raises(ValidationError):
        DaoSettings(database_url="")
