"""
Command line entry point.

Usage:
    python -m dwh_bootstrap

    Or overriding the configured options:
    python -m dwh_bootstrap --database-name Staging --recovery-model BULK_LOGGED
"""

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from dwh_bootstrap.core.config import Settings
from dwh_bootstrap.core.database import create_engine_from_settings
from dwh_bootstrap.core.logging_config import setup_logging
from dwh_bootstrap.core.models import SUPPORTED_COMPATIBILITY_LEVELS, PageVerifyOption, ProvisionRequest, RecoveryModel
from dwh_bootstrap.errors import ProvisioningError
from dwh_bootstrap.provisioner import Provisioner
from dwh_bootstrap.report import render_failure, render_summary, render_validation_error
from dwh_bootstrap.server.mssql import SqlServerDatabaseServer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dwh-bootstrap",
        description="Drop and recreate the data warehouse database with its layer schemas.",
    )
    parser.add_argument("--database-name", help="Database to (re)create (default: DWH_DATABASE_NAME or DataWarehouse)")
    parser.add_argument(
        "--recovery-model",
        type=str.upper,
        choices=[model.value for model in RecoveryModel],
        help="Recovery model (default: SIMPLE)",
    )
    parser.add_argument(
        "--page-verify",
        type=str.upper,
        choices=[option.value for option in PageVerifyOption],
        help="Page verification mode (default: CHECKSUM)",
    )
    parser.add_argument(
        "--compatibility-level",
        type=int,
        choices=SUPPORTED_COMPATIBILITY_LEVELS,
        help="Compatibility level (default: 150, SQL Server 2019)",
    )
    parser.add_argument("--database-url", help="SQLAlchemy URL of the server; overrides DATABASE_URL and MSSQL_*")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return parser


def build_request(args: argparse.Namespace, settings: Settings) -> ProvisionRequest:
    """Merge command line overrides into the configured provisioning options."""
    overrides = {
        "database_name": args.database_name,
        "recovery_model": args.recovery_model,
        "page_verify_option": args.page_verify,
        "compatibility_level": args.compatibility_level,
    }
    options = settings.provisioning.model_copy(
        update={field: value for field, value in overrides.items() if value is not None}
    )
    return options.to_request()


async def _provision(request: ProvisionRequest, settings: Settings, db_url: Optional[str]):
    engine = create_engine_from_settings(settings, db_url)
    try:
        provisioner = Provisioner(SqlServerDatabaseServer(engine))
        return await provisioner.run(request)
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    """Provision the warehouse; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        settings = settings or Settings()
        request = build_request(args, settings)
    except ValidationError as exc:
        setup_logging(log_level=args.log_level)
        logger.error(render_validation_error(exc))
        return 1

    log_config = settings.logging
    setup_logging(
        log_level=args.log_level or log_config.level,
        log_format=log_config.format,
        enable_file=log_config.enable_file,
        log_dir=log_config.file_dir,
    )

    try:
        result = asyncio.run(_provision(request, settings, args.database_url))
    except ProvisioningError as exc:
        logger.error(render_failure(exc.context))
        return 1

    for line in render_summary(result).splitlines():
        logger.info(line)
    return 0
