"""Transfer of a single table from source to target."""
import logging
from enum import Enum
from typing import Any, List, Optional, Tuple

from pgshift.core.cancellation import CancellationToken
from pgshift.core.codec import encode_row
from pgshift.core.errors import (
    CatalogError,
    MigrationCancelledError,
    PreparationError,
    TransferError,
)
from pgshift.core.progress import ProgressChannel
from pgshift.database.base import DATABASE_ERRORS, DatabaseHandle
from pgshift.database.catalog import (
    get_owned_sequences,
    get_row_count,
    get_table_schema,
    schema_exists,
)
from pgshift.models.migration import MigrationOptions, MigrationProgress, ProgressStatus
from pgshift.models.schema import TableRef, TableSchema
from pgshift.sql.ddl import rewrite_create_statement
from pgshift.sql.statements import (
    build_create_schema,
    build_insert,
    build_keyset_select,
    build_offset_select,
    build_sequence_reset,
    build_toggle_triggers,
    build_truncate,
)

logger = logging.getLogger(__name__)


class TransferState(str, Enum):
    """Lifecycle of one table transfer."""

    PREPARING = "PREPARING"
    MIGRATING = "MIGRATING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class TableTransfer:  # pylint: disable=too-many-instance-attributes
    """Copy one table: prepare target, stream batches, resync sequences.

    Rows are read from the source in primary-key order using keyset
    pagination (offset pagination when the table has no primary key) and
    written to the target as one multi-row INSERT per batch.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        source: DatabaseHandle,
        target: DatabaseHandle,
        table: TableRef,
        options: MigrationOptions,
        cancel_token: CancellationToken,
        progress: Optional[ProgressChannel] = None,
        position: Tuple[int, int] = (1, 1),
        target_schema_override: Optional[str] = None
    ):
        self.source = source
        self.target = target
        self.table = table
        self.options = options
        self.cancel_token = cancel_token
        self.progress = progress
        self.current_table, self.total_tables = position
        self.target_schema = target_schema_override or table.schema_name

        self.state = TransferState.PREPARING
        self.rows_transferred = 0
        self.total_rows = 0
        self.batches = 0
        self._triggers_disabled = False

    def _emit(self, status: ProgressStatus) -> None:
        if self.progress is None:
            return
        self.progress.emit(MigrationProgress(
            table_name=self.table.name,
            current_table=self.current_table,
            total_tables=self.total_tables,
            rows_transferred=self.rows_transferred,
            total_rows=self.total_rows,
            status=status,
        ))

    async def run(self) -> int:
        """Transfer the table.

        Returns:
            Number of rows read from the source and sent to the target

        Raises:
            MigrationError: Any subclass describing the failed step; the
                transfer state is FAILED or CANCELLED afterwards.
        """
        try:
            schema = await self._prepare()
            self.state = TransferState.MIGRATING
            await self._copy_rows(schema)
            await self._finish()
        except MigrationCancelledError:
            self.state = TransferState.CANCELLED
            raise
        except Exception:
            self.state = TransferState.FAILED
            await self._restore_triggers()
            raise

        self.state = TransferState.COMPLETE
        self._emit(ProgressStatus.COMPLETE)
        logger.info(
            "Migrated %s: %d rows in %d batches",
            self.table, self.rows_transferred, self.batches
        )
        return self.rows_transferred

    async def _prepare(self) -> TableSchema:
        source_schema, name = self.table.schema_name, self.table.name

        schema = await get_table_schema(self.source, source_schema, name)
        self.total_rows = await get_row_count(self.source, source_schema, name)
        self._emit(ProgressStatus.PREPARING)

        try:
            if not await schema_exists(self.target, self.target_schema):
                await self.target.execute(build_create_schema(self.target_schema))
        except (CatalogError, *DATABASE_ERRORS) as e:
            raise PreparationError(f"Failed to create schema {self.target_schema}: {e}") from e

        if self.options.create_table_if_not_exists:
            create_stmt = rewrite_create_statement(
                schema.create_statement, source_schema, name, self.target_schema
            )
            await self._prepare_step(create_stmt, "Failed to create table")

        if self.options.truncate_before_insert:
            await self._prepare_step(
                build_truncate(self.target_schema, name), "Failed to truncate"
            )

        if self.options.disable_constraints:
            await self._prepare_step(
                build_toggle_triggers(self.target_schema, name, enable=False),
                "Failed to disable triggers"
            )
            self._triggers_disabled = True

        return schema

    async def _prepare_step(self, statement: str, failure: str) -> None:
        logger.debug("Preparing %s: %s", self.table, statement)
        try:
            await self.target.execute(statement)
        except DATABASE_ERRORS as e:
            raise PreparationError(f"{failure}: {e}") from e

    async def _fetch_batch(self, schema: TableSchema, last_key: Optional[tuple]) -> List[Any]:
        columns = schema.column_names
        batch_size = self.options.batch_size
        key_columns = schema.primary_key_columns

        if key_columns:
            query = build_keyset_select(
                self.table.schema_name, self.table.name, columns, key_columns,
                batch_size, after_key=last_key is not None
            )
            args = last_key or ()
        else:
            query = build_offset_select(
                self.table.schema_name, self.table.name, columns,
                batch_size, self.rows_transferred
            )
            args = ()

        try:
            return await self.source.fetch(query, *args)
        except DATABASE_ERRORS as e:
            raise TransferError(f"Failed to fetch data: {e}") from e

    async def _copy_rows(self, schema: TableSchema) -> None:
        batch_size = self.options.batch_size
        key_columns = schema.primary_key_columns
        last_key: Optional[tuple] = None

        while True:
            if self.cancel_token.is_cancelled:
                raise MigrationCancelledError("Migration cancelled")

            rows = await self._fetch_batch(schema, last_key)
            if not rows:
                break

            literals = [encode_row(row, schema.columns) for row in rows]
            insert = build_insert(
                self.target_schema, self.table.name, schema.column_names, literals
            )
            try:
                await self.target.execute(insert)
            except DATABASE_ERRORS as e:
                raise TransferError(f"Batch insert failed: {e}") from e

            if key_columns:
                last_key = tuple(rows[-1][k] for k in key_columns)

            self.batches += 1
            self.rows_transferred += len(rows)
            self._emit(ProgressStatus.MIGRATING)

            if len(rows) < batch_size:
                break

    async def _enable_triggers(self) -> None:
        # cleared before the statement: a failed ENABLE is never retried
        self._triggers_disabled = False
        await self.target.execute(
            build_toggle_triggers(self.target_schema, self.table.name, enable=True)
        )

    async def _restore_triggers(self) -> None:
        """Best-effort ENABLE TRIGGER on the failure path; errors are only logged."""
        if not self._triggers_disabled:
            return
        try:
            await self._enable_triggers()
        except DATABASE_ERRORS as e:
            logger.warning("Failed to re-enable triggers on %s after error: %s", self.table, e)

    async def _finish(self) -> None:
        if self._triggers_disabled:
            try:
                await self._enable_triggers()
            except DATABASE_ERRORS as e:
                raise TransferError(f"Failed to re-enable triggers: {e}") from e

        try:
            await self._sync_sequences()
        except (CatalogError, *DATABASE_ERRORS) as e:
            logger.warning("Failed to sync sequences for %s: %s", self.table, e)

    async def _sync_sequences(self) -> None:
        bindings = await get_owned_sequences(self.target, self.target_schema, self.table.name)
        for binding in bindings:
            await self.target.execute(
                build_sequence_reset(binding.column, binding.table), binding.sequence
            )
            logger.debug("Reset sequence %s for %s", binding.sequence, self.table)
