"""Command layer exposing migration operations to callers."""
import logging
from typing import List, Optional, Sequence

from pgshift.core.cancellation import CancellationToken
from pgshift.core.dependencies import sort_tables_by_dependency
from pgshift.core.diff import ERROR, compare_table_schemas
from pgshift.core.errors import (
    CatalogError,
    ConnectionNotFoundError,
    NoActiveMigrationError,
    TableNotFoundError,
)
from pgshift.core.orchestrator import migrate_tables
from pgshift.core.progress import ProgressChannel
from pgshift.database import catalog
from pgshift.database.base import DatabaseHandle
from pgshift.database.connection import ConnectionManager
from pgshift.models.migration import MigrationOptions, MigrationResult, TableComparison
from pgshift.models.schema import TableInfo, TableRef, TableSchema

logger = logging.getLogger(__name__)


class MigrationService:
    """Entry point for starting, cancelling and planning migrations.

    Owns the cancellation token of the job in flight. Connections are looked
    up in the injected ConnectionManager; progress goes out on `progress`
    under the `migration-progress` event name.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        progress: Optional[ProgressChannel] = None
    ):
        self.connections = connections
        self.progress = progress or ProgressChannel()
        self._active_token: Optional[CancellationToken] = None

    async def _require(self, connection_id: str, label: str = "Connection") -> DatabaseHandle:
        handle = await self.connections.get_pool(connection_id)
        if handle is None:
            raise ConnectionNotFoundError(f"{label} not found")
        return handle

    @property
    def is_running(self) -> bool:
        return self._active_token is not None

    async def start_migration(  # pylint: disable=too-many-arguments
        self,
        source_id: str,
        target_id: str,
        tables: Sequence[TableRef],
        options: Optional[MigrationOptions] = None,
        target_schema_override: Optional[str] = None
    ) -> MigrationResult:
        """Run a migration job to completion or cancellation.

        Raises:
            ConnectionNotFoundError: If either connection id is unknown; the
                job does not start.
        """
        source = await self._require(source_id, "Source connection")
        target = await self._require(target_id, "Target connection")

        token = CancellationToken()
        self._active_token = token
        logger.info("Starting migration of %d tables", len(tables))
        try:
            return await migrate_tables(
                source,
                target,
                list(tables),
                options or MigrationOptions(),
                token,
                progress=self.progress,
                target_schema_override=target_schema_override or None,
            )
        finally:
            if self._active_token is token:
                self._active_token = None

    def cancel_migration(self) -> None:
        """Request cancellation of the running job.

        Raises:
            NoActiveMigrationError: If no job is running
        """
        if self._active_token is None:
            raise NoActiveMigrationError("No migration in progress")
        self._active_token.cancel()
        logger.info("Cancellation requested")

    async def sort_tables_by_dependency(
        self,
        connection_id: str,
        tables: Sequence[TableRef]
    ) -> List[TableRef]:
        handle = await self._require(connection_id)
        dependencies = await catalog.get_all_dependencies(handle)
        return sort_tables_by_dependency(tables, dependencies)

    async def analyze_schema(
        self,
        source_id: str,
        target_id: str,
        tables: Sequence[TableRef],
        target_schema_override: Optional[str] = None
    ) -> List[TableComparison]:
        """Compare each selected source table with its target counterpart."""
        source = await self._require(source_id, "Source connection")
        target = await self._require(target_id, "Target connection")

        comparisons = []
        for table in tables:
            target_schema = target_schema_override or table.schema_name
            try:
                source_def = await catalog.get_table_schema(
                    source, table.schema_name, table.name
                )
                try:
                    target_def = await catalog.get_table_schema(target, target_schema, table.name)
                except TableNotFoundError:
                    target_def = None
            except CatalogError as e:
                comparisons.append(TableComparison(
                    schema=table.schema_name, table=table.name, status=ERROR, details=str(e)
                ))
                continue
            comparisons.append(compare_table_schemas(source_def, target_def))
        return comparisons

    async def list_tables(self, connection_id: str) -> List[TableInfo]:
        return await catalog.list_tables(await self._require(connection_id))

    async def list_schemas(self, connection_id: str) -> List[str]:
        return await catalog.list_schemas(await self._require(connection_id))

    async def get_table_schema(self, connection_id: str, schema: str, table: str) -> TableSchema:
        return await catalog.get_table_schema(await self._require(connection_id), schema, table)
