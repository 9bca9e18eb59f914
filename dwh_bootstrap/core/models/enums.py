"""Enums describing database options, warehouse schemas and pipeline stages."""

from __future__ import annotations

from enum import Enum


class RecoveryModel(str, Enum):
    """
    Transaction log retention policy of the database.

    ``BULK_LOGGED`` is worth considering for heavy ETL loads.
    """

    simple = "SIMPLE"
    full = "FULL"
    bulk_logged = "BULK_LOGGED"


class PageVerifyOption(str, Enum):
    """Storage-level corruption detection mode."""

    checksum = "CHECKSUM"
    torn_page_detection = "TORN_PAGE_DETECTION"
    none = "NONE"


# Levels accepted by ALTER DATABASE ... SET COMPATIBILITY_LEVEL (SQL Server 2008 .. 2022).
SUPPORTED_COMPATIBILITY_LEVELS: tuple[int, ...] = (100, 110, 120, 130, 140, 150, 160)

# SQL Server 2019
DEFAULT_COMPATIBILITY_LEVEL = 150


class WarehouseSchema(str, Enum):
    """
    Namespaces created inside the warehouse, one per pipeline layer.

    The schemas are independent of each other, so creation order carries no meaning.
    """

    bronze = "bronze"  # Raw / landing zone.
    silver = "silver"  # Cleaned and conformed data.
    gold = "gold"  # Business-level aggregates.
    etl = "etl"  # Utility procedures and functions for ETL.
    audit = "audit"  # Logging and monitoring.


class ProvisionStage(str, Enum):
    """Stages of the linear provisioning pipeline."""

    start = "start"
    path_resolved = "path_resolved"
    dropped = "dropped"
    no_existing_database = "no_existing_database"
    created = "created"
    configured = "configured"
    schemas_ensured = "schemas_ensured"
    done = "done"
    failed = "failed"
