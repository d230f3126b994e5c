"""Parsing of user-supplied table references."""
import logging
from typing import Iterable, List

from sqlglot import exp
from sqlglot.errors import ParseError
from sqlglot.optimizer.normalize_identifiers import normalize_identifiers

from pgshift.models.schema import TableRef

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"


class TableReferenceError(ValueError):
    """Raised when a table reference cannot be parsed."""


def parse_table_reference(reference: str, default_schema: str = DEFAULT_SCHEMA) -> TableRef:
    """Parse `table`, `schema.table` or quoted forms into a TableRef.

    Uses sqlglot's PostgreSQL dialect, so `"My Schema"."Order Items"` keeps
    its spaces and case while unquoted names fold to lowercase, as PostgreSQL
    itself does.

    Args:
        reference: Table reference as typed by the user
        default_schema: Schema used when the reference has none

    Returns:
        TableRef for the referenced table

    Raises:
        TableReferenceError: If the reference is empty or not a table name
    """
    if not reference or not reference.strip():
        raise TableReferenceError("Empty table reference")

    try:
        table = exp.to_table(reference.strip(), dialect="postgres")
    except ParseError as e:
        raise TableReferenceError(f"Invalid table reference '{reference}': {e}") from e

    if table is None or not table.name or table.catalog:
        raise TableReferenceError(
            f"Invalid table reference '{reference}'. Expected TABLE or SCHEMA.TABLE"
        )

    table = normalize_identifiers(table, dialect="postgres")
    return TableRef(schema=table.db or default_schema, name=table.name)


def parse_table_references(
    references: Iterable[str],
    default_schema: str = DEFAULT_SCHEMA
) -> List[TableRef]:
    """Parse several references, dropping duplicates but keeping first-seen order."""
    result: List[TableRef] = []
    for reference in references:
        ref = parse_table_reference(reference, default_schema)
        if ref in result:
            logger.debug("Ignoring duplicate table reference %s", ref)
            continue
        result.append(ref)
    return result
