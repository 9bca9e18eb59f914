"""Database server bindings used by the provisioner."""

from __future__ import annotations

from .base import DatabaseServer
from .mssql import SqlServerDatabaseServer

__all__ = [
    "DatabaseServer",
    "SqlServerDatabaseServer",
]
