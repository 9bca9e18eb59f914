"""
Configuration Settings.

This module defines the provisioning configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dwh_bootstrap.core.models import (
    DEFAULT_COMPATIBILITY_LEVEL,
    SUPPORTED_COMPATIBILITY_LEVELS,
    PageVerifyOption,
    ProvisionRequest,
    RecoveryModel,
)

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class SqlServerConfig(BaseModel):
    """SQL Server connection configuration."""

    host: str = Field(default="localhost", alias="MSSQL_HOST", description="SQL Server host address")
    port: int = Field(default=1433, alias="MSSQL_PORT", description="SQL Server port number")
    user: str = Field(default="sa", alias="MSSQL_USER", description="Login with CREATE/ALTER/DROP DATABASE rights")
    password: Optional[str] = Field(default=None, alias="MSSQL_PASSWORD", description="Login password")
    driver: str = Field(
        default="ODBC Driver 18 for SQL Server", alias="MSSQL_DRIVER", description="Installed ODBC driver name"
    )
    trust_server_certificate: bool = Field(
        default=True,
        alias="MSSQL_TRUST_SERVER_CERTIFICATE",
        description="Accept self-signed server certificates",
    )

    model_config = {"populate_by_name": True}


class ProvisioningConfig(BaseModel):
    """Target database and the options applied to it."""

    database_name: str = Field(
        default="DataWarehouse", alias="DWH_DATABASE_NAME", description="Name of the database to (re)create"
    )
    recovery_model: RecoveryModel = Field(
        default=RecoveryModel.simple, alias="DWH_RECOVERY_MODEL", description="SIMPLE, FULL or BULK_LOGGED"
    )
    page_verify_option: PageVerifyOption = Field(
        default=PageVerifyOption.checksum,
        alias="DWH_PAGE_VERIFY_OPTION",
        description="CHECKSUM, TORN_PAGE_DETECTION or NONE",
    )
    compatibility_level: int = Field(
        default=DEFAULT_COMPATIBILITY_LEVEL,
        alias="DWH_COMPATIBILITY_LEVEL",
        description="Engine compatibility level (150 = SQL Server 2019)",
    )

    model_config = {"populate_by_name": True}

    def to_request(self) -> ProvisionRequest:
        return ProvisionRequest(
            database_name=self.database_name,
            recovery_model=self.recovery_model,
            page_verify_option=self.page_verify_option,
            compatibility_level=self.compatibility_level,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", alias="DWH_LOG_LEVEL", description="DEBUG, INFO, WARNING, ERROR, CRITICAL")
    format: str = Field(default="detailed", alias="DWH_LOG_FORMAT", description="simple, detailed or json")
    file_dir: str = Field(default="logs", alias="DWH_LOG_FILE_DIR", description="Directory for the log file")
    enable_file: bool = Field(default=False, alias="DWH_ENABLE_FILE_LOGGING", description="Also log to a file")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Provisioner settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(default="INFO", alias="DWH_LOG_LEVEL")
    log_format: str = Field(default="detailed", alias="DWH_LOG_FORMAT")
    log_file_dir: str = Field(default="logs", alias="DWH_LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=False, alias="DWH_ENABLE_FILE_LOGGING")

    # =====================================================================
    # Server Connection Configuration
    # =====================================================================
    database_url: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy URL of the server; overrides the MSSQL_* settings when set",
    )
    mssql_host: str = Field(default="localhost", alias="MSSQL_HOST")
    mssql_port: int = Field(default=1433, alias="MSSQL_PORT")
    mssql_user: str = Field(default="sa", alias="MSSQL_USER")
    mssql_password: Optional[str] = Field(default=None, alias="MSSQL_PASSWORD")
    mssql_driver: str = Field(default="ODBC Driver 18 for SQL Server", alias="MSSQL_DRIVER")
    mssql_trust_server_certificate: bool = Field(default=True, alias="MSSQL_TRUST_SERVER_CERTIFICATE")

    # =====================================================================
    # Provisioning Configuration
    # =====================================================================
    database_name: str = Field(default="DataWarehouse", alias="DWH_DATABASE_NAME")
    recovery_model: RecoveryModel = Field(default=RecoveryModel.simple, alias="DWH_RECOVERY_MODEL")
    page_verify_option: PageVerifyOption = Field(default=PageVerifyOption.checksum, alias="DWH_PAGE_VERIFY_OPTION")
    compatibility_level: int = Field(default=DEFAULT_COMPATIBILITY_LEVEL, alias="DWH_COMPATIBILITY_LEVEL")

    @field_validator("compatibility_level")
    @classmethod
    def _check_compatibility_level(cls, value: int) -> int:
        if value not in SUPPORTED_COMPATIBILITY_LEVELS:
            raise ValueError(
                f"Unsupported compatibility level {value}; expected one of {SUPPORTED_COMPATIBILITY_LEVELS}"
            )
        return value

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def sqlserver(self) -> SqlServerConfig:
        """Get SQL Server connection configuration from environment variables."""
        return SqlServerConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def provisioning(self) -> ProvisioningConfig:
        """Get provisioning options from environment variables."""
        return ProvisioningConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration from environment variables."""
        return LoggingConfig.model_validate(self.model_dump(by_alias=True))


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the settings instance, loading it from the environment on first use.

    Settings are not built at import time, so an invalid environment variable only
    surfaces where configuration is actually needed.
    """
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
