"""Read-only catalog queries against a PostgreSQL endpoint."""
import logging
from typing import Dict, List

from pgshift.core.errors import CatalogError, TableNotFoundError
from pgshift.database.base import DATABASE_ERRORS, DatabaseHandle
from pgshift.models.schema import (
    ColumnInfo,
    SequenceBinding,
    TableDependency,
    TableInfo,
    TableRef,
    TableSchema,
)
from pgshift.sql.statements import build_count

logger = logging.getLogger(__name__)

LIST_TABLES_QUERY = """
SELECT
    t.table_schema,
    t.table_name,
    COALESCE(pg_total_relation_size(c.oid), 0) AS size_bytes
FROM information_schema.tables t
LEFT JOIN pg_catalog.pg_namespace n ON n.nspname = t.table_schema
LEFT JOIN pg_catalog.pg_class c ON c.relname = t.table_name AND c.relnamespace = n.oid
WHERE t.table_schema NOT IN ('pg_catalog', 'information_schema', 'pg_toast')
    AND t.table_type = 'BASE TABLE'
ORDER BY t.table_schema, t.table_name
"""

LIST_SCHEMAS_QUERY = """
SELECT schema_name
FROM information_schema.schemata
WHERE schema_name NOT IN ('pg_catalog', 'information_schema', 'pg_toast')
    AND schema_name NOT LIKE 'pg_temp_%'
    AND schema_name NOT LIKE 'pg_toast_temp_%'
ORDER BY schema_name
"""

COLUMNS_QUERY = """
SELECT
    c.column_name,
    c.data_type,
    c.is_nullable = 'YES' AS is_nullable,
    c.column_default,
    c.ordinal_position
FROM information_schema.columns c
WHERE c.table_schema = $1 AND c.table_name = $2
ORDER BY c.ordinal_position
"""

# Key column order comes from the constraint, not the table
PRIMARY_KEY_QUERY = """
SELECT kcu.column_name
FROM information_schema.table_constraints tc
JOIN information_schema.key_column_usage kcu
    ON tc.constraint_name = kcu.constraint_name
    AND tc.table_schema = kcu.table_schema
    AND tc.table_name = kcu.table_name
WHERE tc.table_schema = $1
    AND tc.table_name = $2
    AND tc.constraint_type = 'PRIMARY KEY'
ORDER BY kcu.ordinal_position
"""

DEPENDENCIES_QUERY = """
SELECT DISTINCT
    tc.table_schema,
    tc.table_name,
    ccu.table_schema AS foreign_table_schema,
    ccu.table_name AS foreign_table_name
FROM information_schema.table_constraints AS tc
JOIN information_schema.constraint_column_usage AS ccu
    ON ccu.constraint_name = tc.constraint_name
    AND ccu.constraint_schema = tc.constraint_schema
WHERE tc.constraint_type = 'FOREIGN KEY'
    AND tc.table_schema NOT IN ('pg_catalog', 'information_schema')
"""

SCHEMA_EXISTS_QUERY = "SELECT EXISTS (SELECT 1 FROM pg_namespace WHERE nspname = $1)"

# Sequences owned by a column (serial) or backing an identity column
OWNED_SEQUENCES_QUERY = """
SELECT
    quote_ident(n.nspname) || '.' || quote_ident(s.relname) AS sequence,
    quote_ident(a.attname) AS column_name,
    quote_ident(tn.nspname) || '.' || quote_ident(t.relname) AS table_name
FROM pg_class s
JOIN pg_namespace n ON n.oid = s.relnamespace
JOIN pg_depend d ON d.objid = s.oid AND d.deptype IN ('a', 'i')
JOIN pg_class t ON t.oid = d.refobjid
JOIN pg_namespace tn ON tn.oid = t.relnamespace
JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = d.refobjsubid
WHERE s.relkind = 'S'
    AND tn.nspname = $1
    AND t.relname = $2
"""


async def list_tables(handle: DatabaseHandle) -> List[TableInfo]:
    """List base tables outside system schemas with exact row counts."""
    try:
        rows = await handle.fetch(LIST_TABLES_QUERY)
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to list tables: {e}") from e

    tables = []
    for row in rows:
        schema, name = row["table_schema"], row["table_name"]
        try:
            row_count = await handle.fetchval(build_count(schema, name))
        except DATABASE_ERRORS as e:
            logger.warning("Could not count rows of %s.%s: %s", schema, name, e)
            row_count = 0
        tables.append(TableInfo(
            schema=schema,
            name=name,
            row_count=row_count or 0,
            size_bytes=row["size_bytes"],
        ))

    logger.info("Listed %d tables", len(tables))
    return tables


async def list_schemas(handle: DatabaseHandle) -> List[str]:
    try:
        rows = await handle.fetch(LIST_SCHEMAS_QUERY)
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to list schemas: {e}") from e
    return [row["schema_name"] for row in rows]


async def get_row_count(handle: DatabaseHandle, schema: str, table: str) -> int:
    try:
        count = await handle.fetchval(build_count(schema, table))
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to count rows: {e}") from e
    return int(count or 0)


async def get_table_schema(handle: DatabaseHandle, schema: str, table: str) -> TableSchema:
    """Read columns and primary key of one table.

    Args:
        handle: Database to query
        schema: Schema name
        table: Table name

    Returns:
        TableSchema built fresh from the catalog

    Raises:
        TableNotFoundError: If the catalog has no columns for the table
        CatalogError: If a catalog query fails
    """
    try:
        column_rows = await handle.fetch(COLUMNS_QUERY, schema, table)
        pk_rows = await handle.fetch(PRIMARY_KEY_QUERY, schema, table)
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to get columns: {e}") from e

    if not column_rows:
        raise TableNotFoundError(f"Table {schema}.{table} not found")

    columns = [
        ColumnInfo(
            name=row["column_name"],
            data_type=row["data_type"],
            is_nullable=row["is_nullable"],
            column_default=row["column_default"],
            ordinal_position=row["ordinal_position"],
        )
        for row in column_rows
    ]

    return TableSchema(
        schema_name=schema,
        table_name=table,
        columns=columns,
        primary_key_columns=[row["column_name"] for row in pk_rows],
    )


async def get_all_dependencies(handle: DatabaseHandle) -> List[TableDependency]:
    """Collect foreign-key edges for the whole database, one entry per child."""
    try:
        rows = await handle.fetch(DEPENDENCIES_QUERY)
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to get dependencies: {e}") from e

    edges: Dict[TableRef, List[TableRef]] = {}
    for row in rows:
        child = TableRef(schema=row["table_schema"], name=row["table_name"])
        parent = TableRef(
            schema=row["foreign_table_schema"], name=row["foreign_table_name"]
        )
        edges.setdefault(child, []).append(parent)

    return [
        TableDependency(schema=child.schema_name, name=child.name, depends_on=parents)
        for child, parents in edges.items()
    ]


async def schema_exists(handle: DatabaseHandle, schema: str) -> bool:
    try:
        return bool(await handle.fetchval(SCHEMA_EXISTS_QUERY, schema))
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to look up schema {schema}: {e}") from e


async def get_owned_sequences(
    handle: DatabaseHandle,
    schema: str,
    table: str
) -> List[SequenceBinding]:
    try:
        rows = await handle.fetch(OWNED_SEQUENCES_QUERY, schema, table)
    except DATABASE_ERRORS as e:
        raise CatalogError(f"Failed to list sequences: {e}") from e
    return [
        SequenceBinding(
            sequence=row["sequence"], column=row["column_name"], table=row["table_name"]
        )
        for row in rows
    ]
