"""
Database engine utilities.

Functions:
- build_url: Assembles a SQL Server URL from ``SqlServerConfig``
- create_engine: Creates an async SQLAlchemy engine with URL normalization
- admin_connection: Opens an AUTOCOMMIT connection for administrative commands
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from dwh_bootstrap.core.config import Settings, SqlServerConfig

ASYNC_DRIVER = "mssql+aioodbc"

# Server-level commands run against master, never against the database being rebuilt.
ADMIN_DATABASE = "master"


def build_url(config: SqlServerConfig) -> URL:
    """Build the server URL for an ODBC connection to ``master``."""
    query = {"driver": config.driver}
    if config.trust_server_certificate:
        query["TrustServerCertificate"] = "yes"
    return URL.create(
        ASYNC_DRIVER,
        username=config.user,
        password=config.password,
        host=config.host,
        port=config.port,
        database=ADMIN_DATABASE,
        query=query,
    )


def normalize_url(db_url: str) -> str:
    """Rewrite ``mssql://`` and other driver variants to ``mssql+aioodbc://``."""
    return re.sub(r"^mssql(?:\+[a-z0-9_]+)?://", f"{ASYNC_DRIVER}://", db_url, count=1)


def create_engine(db_url: "str | URL") -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    String URLs are normalized so the async ODBC driver is always used.

    Args:
        db_url: Database connection URL

    Returns:
        Configured AsyncEngine instance
    """
    if isinstance(db_url, str):
        db_url = normalize_url(db_url)
    return create_async_engine(db_url, pool_pre_ping=True)


def create_engine_from_settings(settings: Settings, db_url: Optional[str] = None) -> AsyncEngine:
    """Create the engine for ``db_url``, ``DATABASE_URL`` or the ``MSSQL_*`` settings, in that order."""
    url = db_url or settings.database_url
    if url:
        return create_engine(url)
    return create_engine(build_url(settings.sqlserver))


@asynccontextmanager
async def admin_connection(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Open a connection whose statements commit individually.

    CREATE/ALTER/DROP DATABASE cannot run inside a user transaction, so the
    isolation level is set per connection instead of through session state.
    """
    async with engine.connect() as conn:
        conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
        yield conn
