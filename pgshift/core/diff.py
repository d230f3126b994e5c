"""Source/target table comparison."""
from typing import List, Optional

from pgshift.models.migration import TableComparison
from pgshift.models.schema import TableSchema

MATCH = "MATCH"
MISSING_IN_TARGET = "MISSING_IN_TARGET"
COLUMNS_MISMATCH = "COLUMNS_MISMATCH"
ERROR = "ERROR"


def _column_differences(source: TableSchema, target: TableSchema) -> List[str]:
    """Compare columns by name and declared type."""
    source_cols = {c.name: c for c in source.columns}
    target_cols = {c.name: c for c in target.columns}

    differences = []
    for name in sorted(set(source_cols) | set(target_cols)):
        s_col = source_cols.get(name)
        t_col = target_cols.get(name)

        if s_col and not t_col:
            differences.append(f"Missing in target: {name}")
        elif not s_col and t_col:
            differences.append(f"Extra in target: {name}")
        elif s_col.data_type != t_col.data_type:
            differences.append(
                f"Type mismatch on {name}: {s_col.data_type} vs {t_col.data_type}"
            )
    return differences


def compare_table_schemas(
    source: TableSchema,
    target: Optional[TableSchema]
) -> TableComparison:
    """Classify how a target table relates to its source definition.

    Args:
        source: Source table definition
        target: Target table definition, or None if it does not exist

    Returns:
        TableComparison with MATCH, MISSING_IN_TARGET or COLUMNS_MISMATCH
    """
    if target is None:
        return TableComparison(
            schema=source.schema_name, table=source.table_name, status=MISSING_IN_TARGET
        )

    differences = _column_differences(source, target)
    if differences:
        return TableComparison(
            schema=source.schema_name,
            table=source.table_name,
            status=COLUMNS_MISMATCH,
            details="; ".join(differences),
        )

    return TableComparison(schema=source.schema_name, table=source.table_name, status=MATCH)
