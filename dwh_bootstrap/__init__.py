"""Provision a layered data warehouse database (bronze, silver, gold, etl, audit) on SQL Server."""

from .core.models import (
    PageVerifyOption,
    ProvisionRequest,
    ProvisionResult,
    ProvisionStage,
    RecoveryModel,
    WarehouseSchema,
)
from .errors import (
    ConfigurationApplyFailure,
    ConfigurationUnavailable,
    CreationFailure,
    EngineError,
    ProvisioningError,
    SchemaCreationFailure,
    TeardownFailure,
)
from .provisioner import Provisioner

__all__ = [
    "ConfigurationApplyFailure",
    "ConfigurationUnavailable",
    "CreationFailure",
    "EngineError",
    "PageVerifyOption",
    "ProvisionRequest",
    "ProvisionResult",
    "ProvisionStage",
    "Provisioner",
    "ProvisioningError",
    "RecoveryModel",
    "SchemaCreationFailure",
    "TeardownFailure",
    "WarehouseSchema",
]
