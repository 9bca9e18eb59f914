from __future__ import annotations

"""Database server interface contract.

The provisioner depends on this Protocol instead of a concrete engine binding.

Contract guidelines
-------------------

- All methods are async and run one administrative command each.
- Engine failures are raised as ``dwh_bootstrap.errors.EngineError`` carrying the
  structured detail the engine reported; implementations never retry.
- Identifiers are passed as plain names; quoting is the implementation's job.
"""

from typing import Iterable, Optional, Protocol

from dwh_bootstrap.core.models import DatabaseOption, DatabaseProperties, FileAllocation, StoragePaths


class DatabaseServer(Protocol):
    """Administrative operations of a database server."""

    async def get_default_paths(self) -> Optional[StoragePaths]:
        """
        Read the server's default data and log directories.

        Returns:
            The configured directories, or ``None`` if the server does not expose them.
        """
        ...

    async def database_exists(self, name: str) -> bool:
        """Check the server catalog for a database called ``name``."""
        ...

    async def drop_database(self, name: str) -> None:
        """
        Force a database into single-user mode and drop it.

        Other sessions are disconnected immediately and their open transactions rolled back.
        """
        ...

    async def create_database(self, name: str, data_file: FileAllocation, log_file: FileAllocation) -> None:
        """Create a database with one primary data file and one log file."""
        ...

    async def set_database_option(self, name: str, option: DatabaseOption) -> None:
        """Apply a single ``ALTER DATABASE ... SET`` property."""
        ...

    async def schema_exists(self, database: str, schema: str) -> bool:
        """Check the catalog of ``database`` for ``schema``."""
        ...

    async def create_schema(self, database: str, schema: str) -> None:
        """Create ``schema`` inside ``database``."""
        ...

    async def list_schemas(self, database: str, candidates: Iterable[str]) -> list[str]:
        """Return those of ``candidates`` that exist in ``database``, in catalog order."""
        ...

    async def get_database_properties(self, name: str) -> Optional[DatabaseProperties]:
        """Read recovery model, page verify mode, compatibility level and create date of ``name``."""
        ...
