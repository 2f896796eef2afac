from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from tabledao import DaoSettings, SqlAlchemyConnectionProvider, TableAccessor
from tests.helpers.people import Person, metadata, person_mapper


@pytest.fixture()
def settings(tmp_path: Path) -> DaoSettings:
    return DaoSettings(
        database_url=f"sqlite:///{tmp_path / 'tabledao_test.db'}",
        log_json=False,
    )


@pytest.fixture()
def provider(settings: DaoSettings) -> Iterator[SqlAlchemyConnectionProvider]:
    provider = SqlAlchemyConnectionProvider.from_settings(settings)
    metadata.create_all(provider.engine)
    yield provider
    provider.dispose()


@pytest.fixture()
def accessor(provider: SqlAlchemyConnectionProvider) -> Iterator[TableAccessor[Person]]:
    accessor = TableAccessor(provider, person_mapper())
    yield accessor
    accessor.close()
