"""Provisioning value models and enums."""

from __future__ import annotations

from .base import BaseSchema
from .domain import (
    DATA_FILE_SIZING,
    LOG_FILE_SIZING,
    DatabaseOption,
    DatabaseProperties,
    ErrorContext,
    FileAllocation,
    FileSizing,
    ProvisionRequest,
    ProvisionResult,
    StoragePaths,
)
from .enums import (
    DEFAULT_COMPATIBILITY_LEVEL,
    SUPPORTED_COMPATIBILITY_LEVELS,
    PageVerifyOption,
    ProvisionStage,
    RecoveryModel,
    WarehouseSchema,
)

__all__ = [
    "BaseSchema",
    "DATA_FILE_SIZING",
    "LOG_FILE_SIZING",
    "DatabaseOption",
    "DatabaseProperties",
    "ErrorContext",
    "FileAllocation",
    "FileSizing",
    "ProvisionRequest",
    "ProvisionResult",
    "StoragePaths",
    "DEFAULT_COMPATIBILITY_LEVEL",
    "SUPPORTED_COMPATIBILITY_LEVELS",
    "PageVerifyOption",
    "ProvisionStage",
    "RecoveryModel",
    "WarehouseSchema",
]
