"""SQL Server binding of the ``DatabaseServer`` interface.

Every command runs on its own AUTOCOMMIT connection taken from the engine pool
(see ``dwh_bootstrap.core.database.admin_connection``). Values travel as bound
parameters; identifiers are quoted with the dialect's identifier preparer and the
few string literals DDL cannot bind are escaped by ``_nliteral``.

Administrative commands run inside ``BEGIN TRY ... END CATCH``. The CATCH block
re-raises with the engine's number, severity, state, procedure and line packed into
a ``[dwh|...]`` marker at the head of the message, since the ODBC driver only
passes the message text and SQLSTATE through. Driver errors
(``sqlalchemy.exc.DBAPIError``) are translated into ``EngineError`` by reading
that marker back, falling back to the native number trailing the ODBC message.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Row
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from dwh_bootstrap.core.database import admin_connection
from dwh_bootstrap.core.models import DatabaseOption, DatabaseProperties, FileAllocation, StoragePaths
from dwh_bootstrap.errors import EngineError

logger = logging.getLogger(__name__)

_OPTION_TOKEN = re.compile(r"^[A-Z0-9_]+$")
_ODBC_PREFIX = re.compile(r"^(?:\[[^\]]*\]\s*)+")
_NATIVE_NUMBER = re.compile(r"\((\d+)\)\s*(?:\(SQL\w+\))?\s*$")
_ERROR_MARKER = re.compile(
    r"\[dwh\|(?P<number>\d+)\|(?P<severity>\d+)\|(?P<state>\d+)\|(?P<procedure>[^|\]]*)\|(?P<line>\d+)\]\s*"
)

# The guarded statement stays on the first line of the batch so ERROR_LINE() points at it.
_GUARD_TEMPLATE = (
    "BEGIN TRY {statement}\n"
    "END TRY\n"
    "BEGIN CATCH\n"
    "    DECLARE @dwh_error NVARCHAR(2048) = CONCAT(N'[dwh|', ERROR_NUMBER(), N'|', ERROR_SEVERITY(), N'|',\n"
    "        ERROR_STATE(), N'|', ISNULL(ERROR_PROCEDURE(), N''), N'|', ERROR_LINE(), N'] ', ERROR_MESSAGE());\n"
    "    THROW 50000, @dwh_error, 1;\n"
    "END CATCH"
)


def _nliteral(value: str) -> str:
    """Render ``value`` as an N'' string literal."""
    return "N'" + value.replace("'", "''") + "'"


def _engine_error(exc: DBAPIError) -> EngineError:
    """Build an ``EngineError`` from a driver exception.

    pyodbc reports ``(sqlstate, "[sqlstate] [vendor][driver][SQL Server]message (number) (SQLExecDirectW)")``.
    Errors re-raised by ``_guarded`` start their message with
    ``[dwh|number|severity|state|procedure|line]``; without that marker only the
    trailing native number is known.
    """
    orig = exc.orig if exc.orig is not None else exc
    args = getattr(orig, "args", ())
    raw = str(args[-1]) if args else str(orig)
    number: Optional[int] = None
    match = _NATIVE_NUMBER.search(raw)
    if match:
        number = int(match.group(1))
        raw = raw[: match.start()]
    marker = _ERROR_MARKER.search(raw)
    if marker is None:
        return EngineError(_ODBC_PREFIX.sub("", raw).strip() or str(orig), number=number)
    return EngineError(
        raw[marker.end() :].strip() or str(orig),
        number=int(marker.group("number")),
        severity=int(marker.group("severity")),
        state=int(marker.group("state")),
        procedure=marker.group("procedure") or None,
        line=int(marker.group("line")),
    )


def _guarded(statement: str) -> str:
    """Wrap ``statement`` so a failure re-raises with its full engine detail in the message."""
    return _GUARD_TEMPLATE.format(statement=statement)


def _size(mb: int) -> str:
    return f"{mb}MB"


class SqlServerDatabaseServer:
    """``DatabaseServer`` implementation for Microsoft SQL Server."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    def quote(self, identifier: str) -> str:
        """Quote an identifier, escaping any closing bracket."""
        return self.engine.dialect.identifier_preparer.quote_identifier(identifier)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with admin_connection(self.engine) as conn:
                yield conn
        except DBAPIError as exc:
            raise _engine_error(exc) from exc

    async def _execute(self, *statements: str, params: Optional[Mapping[str, Any]] = None) -> None:
        """Run each administrative statement, guarded, in order on one connection."""
        async with self._connection() as conn:
            for statement in statements:
                logger.debug("Executing: %s", statement)
                await conn.execute(text(_guarded(statement)), dict(params or {}))

    async def _fetch(self, statement: Any, params: Optional[Mapping[str, Any]] = None) -> list[Row]:
        async with self._connection() as conn:
            result = await conn.execute(statement, dict(params or {}))
            return list(result.all())

    async def get_default_paths(self) -> Optional[StoragePaths]:
        rows = await self._fetch(
            text(
                "SELECT CAST(SERVERPROPERTY('InstanceDefaultDataPath') AS NVARCHAR(260)) AS data_path, "
                "CAST(SERVERPROPERTY('InstanceDefaultLogPath') AS NVARCHAR(260)) AS log_path"
            )
        )
        row = rows[0]
        if row.data_path is None or row.log_path is None:
            return None
        return StoragePaths(data_path=row.data_path, log_path=row.log_path)

    async def database_exists(self, name: str) -> bool:
        rows = await self._fetch(text("SELECT DB_ID(:name) AS database_id"), {"name": name})
        return rows[0].database_id is not None

    async def drop_database(self, name: str) -> None:
        quoted = self.quote(name)
        await self._execute(
            f"ALTER DATABASE {quoted} SET SINGLE_USER WITH ROLLBACK IMMEDIATE",
            f"DROP DATABASE {quoted}",
        )

    def _file_spec(self, allocation: FileAllocation) -> str:
        max_size = "UNLIMITED" if allocation.max_size_mb is None else _size(allocation.max_size_mb)
        return (
            f"(NAME = {_nliteral(allocation.logical_name)}, "
            f"FILENAME = {_nliteral(allocation.filename)}, "
            f"SIZE = {_size(allocation.size_mb)}, "
            f"FILEGROWTH = {_size(allocation.growth_mb)}, "
            f"MAXSIZE = {max_size})"
        )

    async def create_database(self, name: str, data_file: FileAllocation, log_file: FileAllocation) -> None:
        await self._execute(
            f"CREATE DATABASE {self.quote(name)} CONTAINMENT = NONE "
            f"ON PRIMARY {self._file_spec(data_file)} "
            f"LOG ON {self._file_spec(log_file)}"
        )

    async def set_database_option(self, name: str, option: DatabaseOption) -> None:
        for token in (option.name, str(option.value)):
            if not _OPTION_TOKEN.match(token):
                raise ValueError(f"Invalid database option token: {token!r}")
        await self._execute(f"ALTER DATABASE {self.quote(name)} SET {option.clause()}")

    async def schema_exists(self, database: str, schema: str) -> bool:
        rows = await self._fetch(
            text(f"SELECT 1 FROM {self.quote(database)}.sys.schemas WHERE name = :schema"),
            {"schema": schema},
        )
        return bool(rows)

    async def create_schema(self, database: str, schema: str) -> None:
        # CREATE SCHEMA must be the only statement of its batch and run inside the target database.
        await self._execute(
            f"EXEC {self.quote(database)}.sys.sp_executesql :statement",
            params={"statement": f"CREATE SCHEMA {self.quote(schema)}"},
        )

    async def list_schemas(self, database: str, candidates: Iterable[str]) -> list[str]:
        names = list(candidates)
        if not names:
            return []
        statement = text(
            f"SELECT name FROM {self.quote(database)}.sys.schemas WHERE name IN :names ORDER BY schema_id"
        ).bindparams(bindparam("names", expanding=True))
        rows = await self._fetch(statement, {"names": names})
        return [row.name for row in rows]

    async def get_database_properties(self, name: str) -> Optional[DatabaseProperties]:
        rows = await self._fetch(
            text(
                "SELECT name, recovery_model_desc, page_verify_option_desc, compatibility_level, create_date "
                "FROM sys.databases WHERE name = :name"
            ),
            {"name": name},
        )
        if not rows:
            return None
        row = rows[0]
        return DatabaseProperties(
            name=row.name,
            recovery_model=row.recovery_model_desc,
            page_verify_option=row.page_verify_option_desc,
            compatibility_level=row.compatibility_level,
            create_date=row.create_date,
        )
