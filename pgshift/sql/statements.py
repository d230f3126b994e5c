"""SQL text builders for the statements issued during a table transfer."""
from typing import Iterable, List, Sequence


def quote_ident(name: str) -> str:
    """Quote an identifier for PostgreSQL, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def qualified_table(schema: str, table: str) -> str:
    return f"{quote_ident(schema)}.{quote_ident(table)}"


def column_list(columns: Iterable[str]) -> str:
    return ", ".join(quote_ident(c) for c in columns)


def build_keyset_select(
    schema: str,
    table: str,
    columns: Sequence[str],
    key_columns: Sequence[str],
    batch_size: int,
    after_key: bool
) -> str:
    """Build a keyset-paginated SELECT.

    When `after_key` is set the statement expects the last seen key values as
    parameters `$1..$n`, one per key column, compared as a row value so that
    composite keys page correctly.

    Example:
        SELECT "id", "name" FROM "public"."users"
        WHERE "id" > $1 ORDER BY "id" LIMIT 1000
    """
    keys = column_list(key_columns)
    where = ""
    if after_key:
        params = ", ".join(f"${i}" for i in range(1, len(key_columns) + 1))
        if len(key_columns) == 1:
            where = f" WHERE {keys} > {params}"
        else:
            where = f" WHERE ({keys}) > ({params})"

    return (
        f"SELECT {column_list(columns)} FROM {qualified_table(schema, table)}"
        f"{where} ORDER BY {keys} LIMIT {int(batch_size)}"
    )


def build_offset_select(
    schema: str,
    table: str,
    columns: Sequence[str],
    batch_size: int,
    offset: int
) -> str:
    """Build an offset-paginated SELECT for tables without a primary key."""
    return (
        f"SELECT {column_list(columns)} FROM {qualified_table(schema, table)}"
        f" ORDER BY 1 LIMIT {int(batch_size)} OFFSET {int(offset)}"
    )


def build_insert(
    schema: str,
    table: str,
    columns: Sequence[str],
    rows: List[List[str]]
) -> str:
    """Build one multi-row INSERT from already rendered literals."""
    values = ", ".join("(" + ", ".join(row) + ")" for row in rows)
    return (
        f"INSERT INTO {qualified_table(schema, table)} ({column_list(columns)}) "
        f"VALUES {values} ON CONFLICT DO NOTHING"
    )


def build_create_schema(schema: str) -> str:
    return f"CREATE SCHEMA IF NOT EXISTS {quote_ident(schema)}"


def build_truncate(schema: str, table: str) -> str:
    return f"TRUNCATE TABLE {qualified_table(schema, table)} CASCADE"


def build_toggle_triggers(schema: str, table: str, enable: bool) -> str:
    action = "ENABLE" if enable else "DISABLE"
    return f"ALTER TABLE {qualified_table(schema, table)} {action} TRIGGER ALL"


def build_sequence_reset(column: str, table_fqn: str) -> str:
    """Build the setval call moving a sequence past the stored maximum.

    `table_fqn` and `column` are expected to be already quoted, as returned by
    the catalog. The sequence name is bound as `$1`.
    """
    return (
        f"SELECT setval($1, COALESCE((SELECT MAX({column}) FROM {table_fqn}), 0) + 1, false)"
    )


def build_count(schema: str, table: str) -> str:
    return f"SELECT COUNT(*) FROM {qualified_table(schema, table)}"
