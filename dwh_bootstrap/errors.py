"""Error types for the provisioning package.

Purpose:
- ``EngineError`` wraps a failure reported by the database engine and exposes the
  structured detail the engine returns (number, severity, state, procedure, line).
- ``ProvisioningError`` and its subclasses name the pipeline step that failed.
  They carry an ``ErrorContext`` and are raised ``from`` the underlying engine error.

Usage:
- Catch ``ProvisioningError`` to handle any failed run and inspect ``context``.
- Catch a specific subclass (e.g. ``TeardownFailure``) to react to one step only.
"""

from __future__ import annotations

from typing import Optional

from dwh_bootstrap.core.models import ErrorContext


class EngineError(Exception):
    """Failure reported by the database engine.

    Args:
        message: Engine error message.
        number: Native error number, when the driver exposes one.
        severity: Engine severity / error class.
        state: Engine error state.
        procedure: Originating procedure, if the error was raised inside one.
        line: Line within the batch or procedure where the error occurred.
    """

    def __init__(
        self,
        message: str,
        *,
        number: Optional[int] = None,
        severity: Optional[int] = None,
        state: Optional[int] = None,
        procedure: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.number = number
        self.severity = severity
        self.state = state
        self.procedure = procedure
        self.line = line


class ProvisioningError(Exception):
    """Base error for a failed provisioning run."""

    def __init__(self, message: str, *, context: ErrorContext) -> None:
        super().__init__(message)
        self.context = context


class ConfigurationUnavailable(ProvisioningError):
    """Raised when the server does not report its default data/log paths."""


class TeardownFailure(ProvisioningError):
    """Raised when an existing database cannot be forced offline and dropped."""


class CreationFailure(ProvisioningError):
    """Raised when the create-database command fails."""


class ConfigurationApplyFailure(ProvisioningError):
    """Raised when a post-creation database property cannot be applied."""


class SchemaCreationFailure(ProvisioningError):
    """Raised when a warehouse schema cannot be created."""
