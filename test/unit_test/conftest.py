"""Test configuration for provisioner unit tests.

This module provides an in-memory ``DatabaseServer`` with failure injection so
the pipeline can be exercised without a SQL Server instance.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import pytest

from dwh_bootstrap.core.models import (
    DatabaseOption,
    DatabaseProperties,
    FileAllocation,
    StoragePaths,
)
from dwh_bootstrap.errors import EngineError

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


@dataclass
class FakeDatabase:
    name: str
    data_file: FileAllocation
    log_file: FileAllocation
    generation: int
    options: dict[str, object] = field(default_factory=dict)
    schemas: list[str] = field(default_factory=lambda: ["dbo", "guest", "sys", "INFORMATION_SCHEMA"])
    single_user: bool = False

    @property
    def create_date(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.generation)


class FakeDatabaseServer:
    """In-memory stand-in for a SQL Server instance.

    ``fail_on(method, error)`` makes every matching call raise ``error``;
    ``predicate`` narrows the match on the call arguments.
    """

    def __init__(self, paths: Optional[StoragePaths] = None) -> None:
        self.paths = paths if paths is not None else StoragePaths(
            data_path="/var/opt/mssql/data/", log_path="/var/opt/mssql/log/"
        )
        self.databases: dict[str, FakeDatabase] = {}
        self.calls: list[tuple] = []
        self._failures: list[tuple[str, EngineError, Callable[..., bool]]] = []
        self._generations = itertools.count(1)
        # Schemas that silently fail to appear after CREATE SCHEMA.
        self.vanishing_schemas: set[str] = set()

    def fail_on(self, method: str, error: EngineError, predicate: Callable[..., bool] = lambda *args: True) -> None:
        self._failures.append((method, error, predicate))

    def clear_failures(self) -> None:
        self._failures.clear()

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        for entry in self._failures:
            name, error, predicate = entry
            if name == method and predicate(*args):
                raise error

    def called(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]

    def seed_database(self, name: str, schemas: Iterable[str] = ()) -> FakeDatabase:
        allocation = FileAllocation(logical_name=f"{name}_Data", filename=f"/old/{name}.mdf", size_mb=8, growth_mb=8)
        database = FakeDatabase(
            name=name,
            data_file=allocation,
            log_file=allocation,
            generation=next(self._generations),
        )
        database.schemas.extend(schemas)
        self.databases[name] = database
        return database

    async def get_default_paths(self) -> Optional[StoragePaths]:
        self._record("get_default_paths")
        return self.paths

    async def database_exists(self, name: str) -> bool:
        self._record("database_exists", name)
        return name in self.databases

    async def drop_database(self, name: str) -> None:
        self._record("drop_database", name)
        if name not in self.databases:
            raise EngineError(f"Cannot drop the database '{name}', because it does not exist", number=3701)
        self.databases[name].single_user = True
        del self.databases[name]

    async def create_database(self, name: str, data_file: FileAllocation, log_file: FileAllocation) -> None:
        self._record("create_database", name, data_file, log_file)
        if name in self.databases:
            raise EngineError(f"Database '{name}' already exists. Choose a different database name.", number=1801)
        self.databases[name] = FakeDatabase(
            name=name,
            data_file=data_file,
            log_file=log_file,
            generation=next(self._generations),
        )

    async def set_database_option(self, name: str, option: DatabaseOption) -> None:
        self._record("set_database_option", name, option)
        self.databases[name].options[option.name] = option.value

    async def schema_exists(self, database: str, schema: str) -> bool:
        self._record("schema_exists", database, schema)
        return schema in self.databases[database].schemas

    async def create_schema(self, database: str, schema: str) -> None:
        self._record("create_schema", database, schema)
        if schema in self.databases[database].schemas:
            raise EngineError(f"There is already an object named '{schema}' in the database.", number=2714)
        if schema not in self.vanishing_schemas:
            self.databases[database].schemas.append(schema)

    async def list_schemas(self, database: str, candidates: Iterable[str]) -> list[str]:
        names = set(candidates)
        self._record("list_schemas", database, names)
        return [schema for schema in self.databases[database].schemas if schema in names]

    async def get_database_properties(self, name: str) -> Optional[DatabaseProperties]:
        self._record("get_database_properties", name)
        database = self.databases.get(name)
        if database is None:
            return None
        return DatabaseProperties(
            name=database.name,
            recovery_model=str(database.options.get("RECOVERY", "FULL")),
            page_verify_option=str(database.options.get("PAGE_VERIFY", "CHECKSUM")),
            compatibility_level=int(database.options.get("COMPATIBILITY_LEVEL", 160)),
            create_date=database.create_date,
        )


@pytest.fixture
def fake_server() -> FakeDatabaseServer:
    """Empty server with Linux default data/log directories."""
    return FakeDatabaseServer()


@pytest.fixture
def progress_lines() -> list[str]:
    return []
