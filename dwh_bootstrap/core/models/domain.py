"""Value models for the provisioning pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import Field, field_validator

from .base import BaseSchema
from .enums import (
    DEFAULT_COMPATIBILITY_LEVEL,
    SUPPORTED_COMPATIBILITY_LEVELS,
    PageVerifyOption,
    ProvisionStage,
    RecoveryModel,
    WarehouseSchema,
)


def _utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class StoragePaths(BaseSchema):
    """Default data and log directories reported by the server."""

    data_path: str
    log_path: str


class FileAllocation(BaseSchema):
    """
    Physical file of a database together with its growth policy.

    ``max_size_mb`` of ``None`` means the file may grow without bound.
    """

    logical_name: str
    filename: str
    size_mb: int = Field(gt=0)
    growth_mb: int = Field(gt=0)
    max_size_mb: Optional[int] = Field(default=None, gt=0)


class FileSizing(BaseSchema):
    """Initial size, growth increment and cap for one kind of database file."""

    size_mb: int = Field(gt=0)
    growth_mb: int = Field(gt=0)
    max_size_mb: Optional[int] = Field(default=None, gt=0)

    def allocate(self, logical_name: str, filename: str) -> FileAllocation:
        return FileAllocation(
            logical_name=logical_name,
            filename=filename,
            size_mb=self.size_mb,
            growth_mb=self.growth_mb,
            max_size_mb=self.max_size_mb,
        )


DATA_FILE_SIZING = FileSizing(size_mb=512, growth_mb=256, max_size_mb=None)
LOG_FILE_SIZING = FileSizing(size_mb=256, growth_mb=128, max_size_mb=2048)


class DatabaseOption(BaseSchema):
    """
    A single ``ALTER DATABASE ... SET`` property.

    ``assignment`` distinguishes ``SET NAME = VALUE`` from ``SET NAME VALUE``.
    """

    name: str
    value: Union[str, int]
    assignment: bool = False

    def clause(self) -> str:
        if self.assignment:
            return f"{self.name} = {self.value}"
        return f"{self.name} {self.value}"


class ProvisionRequest(BaseSchema):
    """Inputs of a provisioning run."""

    database_name: str = Field(default="DataWarehouse", min_length=1, max_length=128)
    recovery_model: RecoveryModel = RecoveryModel.simple
    page_verify_option: PageVerifyOption = PageVerifyOption.checksum
    compatibility_level: int = DEFAULT_COMPATIBILITY_LEVEL
    schemas: tuple[WarehouseSchema, ...] = tuple(WarehouseSchema)
    data_file: FileSizing = DATA_FILE_SIZING
    log_file: FileSizing = LOG_FILE_SIZING

    @field_validator("database_name")
    @classmethod
    def _reject_bracket(cls, value: str) -> str:
        if "]" in value or "\x00" in value:
            raise ValueError(f"Invalid database name: {value!r}")
        return value

    @field_validator("compatibility_level")
    @classmethod
    def _check_level(cls, value: int) -> int:
        if value not in SUPPORTED_COMPATIBILITY_LEVELS:
            raise ValueError(
                f"Unsupported compatibility level {value}; expected one of {SUPPORTED_COMPATIBILITY_LEVELS}"
            )
        return value

    def database_options(self) -> list[DatabaseOption]:
        """Properties applied after creation, in the order they are applied."""
        return [
            DatabaseOption(name="RECOVERY", value=self.recovery_model.value),
            DatabaseOption(name="PAGE_VERIFY", value=self.page_verify_option.value),
            DatabaseOption(name="COMPATIBILITY_LEVEL", value=self.compatibility_level, assignment=True),
            DatabaseOption(name="AUTO_CREATE_STATISTICS", value="ON"),
            DatabaseOption(name="AUTO_UPDATE_STATISTICS", value="ON"),
            DatabaseOption(name="AUTO_UPDATE_STATISTICS_ASYNC", value="ON"),
            # Query Store for performance monitoring
            DatabaseOption(name="QUERY_STORE", value="ON", assignment=True),
        ]


class DatabaseProperties(BaseSchema):
    """Catalog view of an existing database, used to verify a run."""

    name: str
    recovery_model: str
    page_verify_option: str
    compatibility_level: int
    create_date: Optional[datetime] = None


class ErrorContext(BaseSchema):
    """
    Structured description of a failed provisioning step.

    Mirrors what the engine reports (message, severity, state, number, procedure, line)
    plus the pipeline step that was running, the last stage reached and the stage
    history of the run, which ends in ``ProvisionStage.failed``.
    """

    message: str
    step: str
    stage: ProvisionStage
    severity: Optional[int] = None
    state: Optional[int] = None
    number: Optional[int] = None
    procedure: Optional[str] = None
    line: Optional[int] = None
    timestamp: datetime = Field(default_factory=_utc_now)
    stages: tuple[ProvisionStage, ...] = ()


class ProvisionResult(BaseSchema):
    """Summary of a successful provisioning run."""

    database_name: str
    recovery_model: RecoveryModel
    page_verify_option: PageVerifyOption
    compatibility_level: int
    schemas: tuple[str, ...]
    dropped_existing: bool
    data_file: FileAllocation
    log_file: FileAllocation
    started_at: datetime
    duration_ms: int
    stages: tuple[ProvisionStage, ...]
