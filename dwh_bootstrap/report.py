"""Human-readable rendering of provisioning results and failures."""

from __future__ import annotations

from datetime import datetime

from pydantic import ValidationError

from dwh_bootstrap.core.models import ErrorContext, ProvisionResult

BANNER = "=" * 40
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def render_summary(result: ProvisionResult) -> str:
    """Render the closing summary block of a successful run."""
    lines = [
        BANNER,
        "DATA WAREHOUSE SETUP COMPLETE",
        BANNER,
        f"Database: {result.database_name}",
        f"Recovery Model: {result.recovery_model.value}",
        f"Compatibility Level: {result.compatibility_level}",
        f"Schemas Created: {', '.join(result.schemas)}",
        BANNER,
    ]
    return "\n".join(lines)


def render_failure(context: ErrorContext) -> str:
    """Render the single error report emitted when a run fails."""
    line = context.line if context.line is not None else context.step
    parts = [
        f"Database creation failed with error: {context.message}",
        f"Procedure: {context.procedure or 'N/A'}",
        f"Line: {line}",
        f"Time: {format_timestamp(context.timestamp)}",
    ]
    if context.number is not None:
        parts.append(f"Error: {context.number}")
    if context.severity is not None:
        parts.append(f"Severity: {context.severity}")
    if context.state is not None:
        parts.append(f"State: {context.state}")
    return " ".join(parts)


def render_validation_error(exc: ValidationError) -> str:
    """Render invalid configuration as one line naming each rejected setting."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}" for error in exc.errors()
    )
    return f"Database creation aborted, invalid configuration: {problems}"
