from __future__ import annotations

"""Data warehouse provisioning pipeline.

``Provisioner`` rebuilds the warehouse database from scratch on every run:

Workflow
--------

1. Resolve the server's default data/log directories.
2. Drop an existing database of the same name, disconnecting other sessions.
3. Create the database with fixed data/log file sizing.
4. Apply recovery model, page verification, compatibility level, statistics
   flags and Query Store, one command each.
5. Create each warehouse schema that is not present yet, then verify all are.

Every step either succeeds or aborts the whole run with a
``ProvisioningError`` subclass raised from the underlying ``EngineError``.
Nothing is retried or rolled back; the next run's drop step cleans up.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional, Sequence, Type

from .core.models import (
    DEFAULT_COMPATIBILITY_LEVEL,
    ErrorContext,
    FileAllocation,
    PageVerifyOption,
    ProvisionRequest,
    ProvisionResult,
    ProvisionStage,
    RecoveryModel,
    StoragePaths,
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
from .report import format_timestamp
from .server.base import DatabaseServer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def _join_path(directory: str, filename: str) -> str:
    """Append ``filename`` to a server directory, adding a separator only if it is missing."""
    if directory.endswith(("\\", "/")):
        return directory + filename
    separator = "/" if "/" in directory and "\\" not in directory else "\\"
    return directory + separator + filename


@dataclass
class _RunState:
    """Mutable bookkeeping of one run."""

    request: ProvisionRequest
    started_at: datetime
    started: float
    stages: list[ProvisionStage] = field(default_factory=lambda: [ProvisionStage.start])

    @property
    def stage(self) -> ProvisionStage:
        return self.stages[-1]

    def advance(self, stage: ProvisionStage) -> None:
        logger.debug(f"Provisioning {self.request.database_name}: {self.stage.value} -> {stage.value}")
        self.stages.append(stage)


class Provisioner:
    """Rebuild a warehouse database and its layer schemas on a ``DatabaseServer``."""

    def __init__(self, server: DatabaseServer, *, progress: Optional[ProgressCallback] = None) -> None:
        self._server = server
        self._progress = progress

    def _emit(self, message: str) -> None:
        logger.info(message)
        if self._progress is not None:
            self._progress(message)

    @contextmanager
    def _step(self, step: str, error_cls: Type[ProvisioningError], state: _RunState) -> Iterator[None]:
        """Translate an ``EngineError`` raised inside the block into ``error_cls``."""
        try:
            yield
        except EngineError as exc:
            reached = state.stage
            state.advance(ProvisionStage.failed)
            context = ErrorContext(
                message=exc.message,
                step=step,
                stage=reached,
                severity=exc.severity,
                state=exc.state,
                number=exc.number,
                procedure=exc.procedure,
                line=exc.line,
                stages=tuple(state.stages),
            )
            logger.debug(f"Step '{step}' failed after stage '{reached.value}': {exc.message}")
            raise error_cls(exc.message, context=context) from exc

    def _fail(self, error_cls: Type[ProvisioningError], message: str, step: str, state: _RunState) -> ProvisioningError:
        reached = state.stage
        state.advance(ProvisionStage.failed)
        context = ErrorContext(message=message, step=step, stage=reached, stages=tuple(state.stages))
        return error_cls(message, context=context)

    async def provision(
        self,
        database_name: str = "DataWarehouse",
        recovery_model: RecoveryModel = RecoveryModel.simple,
        page_verify_option: PageVerifyOption = PageVerifyOption.checksum,
        compatibility_level: int = DEFAULT_COMPATIBILITY_LEVEL,
    ) -> ProvisionResult:
        """Drop and recreate ``database_name`` with the given options and the warehouse schemas."""
        request = ProvisionRequest(
            database_name=database_name,
            recovery_model=recovery_model,
            page_verify_option=page_verify_option,
            compatibility_level=compatibility_level,
        )
        return await self.run(request)

    async def run(self, request: ProvisionRequest) -> ProvisionResult:
        """Execute the full pipeline for ``request``.

        Raises
        ------
        ProvisioningError
            One of its subclasses, naming the step that failed.
        """
        state = _RunState(
            request=request,
            started_at=datetime.now(timezone.utc),
            started=time.perf_counter(),
        )
        name = request.database_name
        self._emit(f"Starting database creation for: {name} at: {format_timestamp(state.started_at)}")

        paths = await self.resolve_paths(state)
        dropped = await self.teardown_existing(state)
        data_file, log_file = self.allocate_files(request, paths)
        await self.create_database(state, data_file, log_file)
        await self.apply_configuration(state)
        self._emit(f"Database created: {name}")

        self._emit("Creating data warehouse schemas...")
        schemas = await self.ensure_schemas(name, request.schemas, state=state)

        duration_ms = int((time.perf_counter() - state.started) * 1000)
        state.advance(ProvisionStage.done)
        self._emit(f"Database creation completed successfully. Duration: {duration_ms} ms")
        return ProvisionResult(
            database_name=name,
            recovery_model=request.recovery_model,
            page_verify_option=request.page_verify_option,
            compatibility_level=request.compatibility_level,
            schemas=tuple(schemas),
            dropped_existing=dropped,
            data_file=data_file,
            log_file=log_file,
            started_at=state.started_at,
            duration_ms=duration_ms,
            stages=tuple(state.stages),
        )

    async def resolve_paths(self, state: _RunState) -> StoragePaths:
        with self._step("resolve_paths", ConfigurationUnavailable, state):
            paths = await self._server.get_default_paths()
        if paths is None:
            raise self._fail(
                ConfigurationUnavailable,
                "Server did not report default data/log paths",
                "resolve_paths",
                state,
            )
        state.advance(ProvisionStage.path_resolved)
        return paths

    async def teardown_existing(self, state: _RunState) -> bool:
        """Drop the target database if it exists. Returns whether a drop happened."""
        name = state.request.database_name
        with self._step("teardown", TeardownFailure, state):
            if not await self._server.database_exists(name):
                state.advance(ProvisionStage.no_existing_database)
                return False
            self._emit(f"Dropping existing database: {name}")
            await self._server.drop_database(name)
        self._emit(f"Database dropped: {name}")
        state.advance(ProvisionStage.dropped)
        return True

    @staticmethod
    def allocate_files(request: ProvisionRequest, paths: StoragePaths) -> tuple[FileAllocation, FileAllocation]:
        """Primary data file and log file placed in the server's default directories."""
        name = request.database_name
        data_file = request.data_file.allocate(f"{name}_Data", _join_path(paths.data_path, f"{name}.mdf"))
        log_file = request.log_file.allocate(f"{name}_Log", _join_path(paths.log_path, f"{name}_Log.ldf"))
        return data_file, log_file

    async def create_database(self, state: _RunState, data_file: FileAllocation, log_file: FileAllocation) -> None:
        name = state.request.database_name
        self._emit(f"Creating database: {name}")
        with self._step("create", CreationFailure, state):
            await self._server.create_database(name, data_file, log_file)
        state.advance(ProvisionStage.created)

    async def apply_configuration(self, state: _RunState) -> None:
        name = state.request.database_name
        for option in state.request.database_options():
            with self._step(f"configure:{option.name}", ConfigurationApplyFailure, state):
                await self._server.set_database_option(name, option)
            logger.debug(f"Applied {option.clause()} to {name}")
        state.advance(ProvisionStage.configured)

    async def ensure_schemas(
        self,
        database_name: str,
        schemas: Sequence[WarehouseSchema] = tuple(WarehouseSchema),
        *,
        state: Optional[_RunState] = None,
    ) -> list[str]:
        """Create each schema missing from ``database_name`` and return the names present afterwards.

        Safe to call repeatedly: existing schemas are left alone.
        """
        if state is None:
            state = _RunState(
                request=ProvisionRequest(database_name=database_name, schemas=tuple(schemas)),
                started_at=datetime.now(timezone.utc),
                started=time.perf_counter(),
            )
        names = [WarehouseSchema(schema).value for schema in schemas]
        for schema in names:
            with self._step(f"schema:{schema}", SchemaCreationFailure, state):
                if await self._server.schema_exists(database_name, schema):
                    logger.debug(f"Schema already present: {schema}")
                    continue
                await self._server.create_schema(database_name, schema)
            self._emit(f"Schema created: {schema}")

        with self._step("verify_schemas", SchemaCreationFailure, state):
            present = await self._server.list_schemas(database_name, names)
        missing = sorted(set(names) - set(present))
        if missing:
            raise self._fail(
                SchemaCreationFailure,
                f"Schemas missing after creation: {', '.join(missing)}",
                "verify_schemas",
                state,
            )
        state.advance(ProvisionStage.schemas_ensured)
        return [schema for schema in names if schema in present]
