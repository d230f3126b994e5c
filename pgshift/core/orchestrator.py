"""Sequential migration of a list of tables."""
import logging
import time
from typing import List, Optional, Sequence

from pgshift.core.cancellation import CancellationToken
from pgshift.core.errors import MigrationCancelledError, MigrationError
from pgshift.core.progress import ProgressChannel
from pgshift.core.transfer import TableTransfer
from pgshift.database.base import DatabaseHandle
from pgshift.models.migration import (
    MigrationOptions,
    MigrationProgress,
    MigrationResult,
    ProgressStatus,
)
from pgshift.models.schema import TableRef

logger = logging.getLogger(__name__)

CANCELLED_NOTICE = "Migration cancelled by user"


async def migrate_tables(  # pylint: disable=too-many-arguments
    source: DatabaseHandle,
    target: DatabaseHandle,
    tables: Sequence[TableRef],
    options: MigrationOptions,
    cancel_token: CancellationToken,
    progress: Optional[ProgressChannel] = None,
    target_schema_override: Optional[str] = None
) -> MigrationResult:
    """Migrate tables one after another in the given order.

    A failing table is recorded as `"schema.table: message"` and the loop
    moves on. Cancellation stops the loop with a single notice in the
    error list.

    Args:
        source: Handle to read from
        target: Handle to write to
        tables: Tables in migration order (already dependency-sorted)
        options: Per-job transfer options
        cancel_token: Flag checked before every table and batch
        progress: Optional channel receiving progress events
        target_schema_override: Write every table into this schema instead

    Returns:
        MigrationResult summarising the job
    """
    start = time.monotonic()
    tables_migrated = 0
    total_rows = 0
    errors: List[str] = []
    total_tables = len(tables)

    for index, table in enumerate(tables, start=1):
        if cancel_token.is_cancelled:
            errors.append(CANCELLED_NOTICE)
            break

        if progress is not None:
            progress.emit(MigrationProgress(
                table_name=table.name,
                current_table=index,
                total_tables=total_tables,
                status=ProgressStatus.STARTING,
            ))

        transfer = TableTransfer(
            source, target, table, options, cancel_token,
            progress=progress,
            position=(index, total_tables),
            target_schema_override=target_schema_override,
        )
        try:
            rows = await transfer.run()
        except MigrationCancelledError:
            logger.info("Migration cancelled during %s", table)
            _emit_terminal(progress, transfer, ProgressStatus.CANCELLED, None)
            errors.append(CANCELLED_NOTICE)
            break
        except MigrationError as e:
            logger.warning("Table %s failed: %s", table, e)
            _emit_terminal(progress, transfer, ProgressStatus.FAILED, str(e))
            errors.append(f"{table.qualified_name}: {e}")
            continue

        tables_migrated += 1
        total_rows += rows

    elapsed_ms = int((time.monotonic() - start) * 1000)
    result = MigrationResult(
        tables_migrated=tables_migrated,
        total_rows=total_rows,
        errors=errors,
        elapsed_ms=elapsed_ms,
    )
    logger.info(
        "Migration finished: %d/%d tables, %d rows, %d errors in %d ms",
        tables_migrated, total_tables, total_rows, len(errors), elapsed_ms
    )
    return result


def _emit_terminal(progress, transfer: TableTransfer, status: ProgressStatus, error):
    if progress is None:
        return
    progress.emit(MigrationProgress(
        table_name=transfer.table.name,
        current_table=transfer.current_table,
        total_tables=transfer.total_tables,
        rows_transferred=transfer.rows_transferred,
        total_rows=transfer.total_rows,
        status=status,
        error=error,
    ))
