"""CREATE TABLE generation and rewriting."""
import logging
from typing import Sequence

from pgshift.sql.statements import column_list, qualified_table, quote_ident

logger = logging.getLogger(__name__)

# Sequence-backed integer columns are recreated as SERIAL types so the target
# owns its own sequence instead of referencing one that does not exist there.
_SERIAL_TYPES = {
    "smallint": "SMALLSERIAL",
    "integer": "SERIAL",
    "bigint": "BIGSERIAL",
}


def _column_definition(column) -> str:
    data_type = column.data_type
    default = column.column_default
    is_sequence = bool(default) and "nextval" in default

    default_clause = ""
    if is_sequence and data_type.lower() in _SERIAL_TYPES:
        data_type = _SERIAL_TYPES[data_type.lower()]
    elif default:
        default_clause = f" DEFAULT {default}"

    definition = f"    {quote_ident(column.name)} {data_type}"
    # SERIAL implies NOT NULL
    if not column.is_nullable and not is_sequence:
        definition += " NOT NULL"
    return definition + default_clause


def generate_create_table_statement(
    schema: str,
    table: str,
    columns: Sequence,
    primary_keys: Sequence[str]
) -> str:
    """Generate a CREATE TABLE statement from catalog column information.

    Args:
        schema: Schema name
        table: Table name
        columns: Column definitions in ordinal order
        primary_keys: Primary key column names, in key order

    Returns:
        CREATE TABLE statement terminated by a semicolon.
    """
    lines = [_column_definition(c) for c in columns]
    if primary_keys:
        lines.append(f"    PRIMARY KEY ({column_list(primary_keys)})")

    return (
        f"CREATE TABLE {qualified_table(schema, table)} (\n"
        + ",\n".join(lines)
        + "\n);"
    )


def rewrite_create_statement(
    statement: str,
    source_schema: str,
    table: str,
    target_schema: str
) -> str:
    """Point a generated CREATE TABLE at the target schema with IF NOT EXISTS.

    Example:
        CREATE TABLE "public"."users" (...)
        -> CREATE TABLE IF NOT EXISTS "staging"."users" (...)
    """
    source_header = f"CREATE TABLE {qualified_table(source_schema, table)}"
    target_header = f"CREATE TABLE IF NOT EXISTS {qualified_table(target_schema, table)}"

    if not statement.startswith(source_header):
        logger.debug("CREATE statement for %s.%s has an unexpected header", source_schema, table)
    return statement.replace(source_header, target_header, 1)
