"""Fixtures for end-to-end provisioning tests.

A SQL Server container is started once per session with testcontainers; the
tests are skipped unless ``TEST_ENABLE_MSSQL_TESTS`` is enabled.
"""

from __future__ import annotations

from test.settings import test_settings
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from dwh_bootstrap.core.config import SqlServerConfig
from dwh_bootstrap.core.database import build_url, create_engine
from dwh_bootstrap.server.mssql import SqlServerDatabaseServer


def pytest_collection_modifyitems(config, items):
    if test_settings.enable_mssql_tests:
        return
    skip = pytest.mark.skip(reason="set TEST_ENABLE_MSSQL_TESTS=true to run SQL Server end-to-end tests")
    for item in items:
        if "e2e_test" in str(item.fspath):
            item.add_marker(skip)


@pytest.fixture(scope="session")
def mssql_container() -> Generator:
    """Start a SQL Server container for the whole session."""
    from testcontainers.mssql import SqlServerContainer

    container = SqlServerContainer(test_settings.mssql_image, password=test_settings.mssql_password)
    container.start()
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def sqlserver_config(mssql_container) -> SqlServerConfig:
    return SqlServerConfig(
        host=mssql_container.get_container_host_ip(),
        port=int(mssql_container.get_exposed_port(1433)),
        user="sa",
        password=test_settings.mssql_password,
        driver=test_settings.mssql_driver,
    )


@pytest_asyncio.fixture
async def mssql_engine(sqlserver_config: SqlServerConfig) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(build_url(sqlserver_config))
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def mssql_server(mssql_engine: AsyncEngine) -> SqlServerDatabaseServer:
    return SqlServerDatabaseServer(mssql_engine)
