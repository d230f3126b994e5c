"""Table structure and catalog models."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from pgshift.sql.ddl import generate_create_table_statement


class TableRef(BaseModel):
    """Identity of a table: schema plus table name."""

    schema_name: str = Field(alias="schema")
    name: str

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {"schema": "public", "name": "orders"}
        }
    )

    @property
    def qualified_name(self) -> str:
        """Dotted `schema.table` form used in messages."""
        return f"{self.schema_name}.{self.name}"

    def sort_key(self):
        return (self.schema_name, self.name)

    def __str__(self) -> str:
        return self.qualified_name


class ColumnInfo(BaseModel):
    """Represents a database column definition."""

    name: str
    data_type: str
    is_nullable: bool = True
    column_default: Optional[str] = None
    is_primary_key: bool = False
    ordinal_position: int

    model_config = ConfigDict(frozen=True)


class TableSchema(BaseModel):
    """Represents a table definition read from the catalog.

    Columns are kept in ordinal order, which is also the order used for
    column lists in SELECT and INSERT statements. The primary-key flag of each
    column is derived from `primary_key_columns` and cannot be set on its own.
    """

    schema_name: str
    table_name: str
    columns: List[ColumnInfo]
    primary_key_columns: List[str] = []

    @model_validator(mode="after")
    def _normalize_columns(self):
        positions = [c.ordinal_position for c in self.columns]
        if len(positions) != len(set(positions)):
            raise ValueError(
                f"Duplicate ordinal positions in {self.schema_name}.{self.table_name}"
            )

        pk_names = set(self.primary_key_columns)
        ordered = sorted(self.columns, key=lambda c: c.ordinal_position)
        self.columns = [
            c if c.is_primary_key == (c.name in pk_names)
            else c.model_copy(update={"is_primary_key": c.name in pk_names})
            for c in ordered
        ]
        return self

    @computed_field
    @property
    def create_statement(self) -> str:
        """CREATE TABLE statement reproducing columns and primary key."""
        return generate_create_table_statement(
            self.schema_name, self.table_name, self.columns, self.primary_key_columns
        )

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def ref(self) -> TableRef:
        return TableRef(schema=self.schema_name, name=self.table_name)


class TableDependency(BaseModel):
    """A table and the distinct tables it references through foreign keys."""

    schema_name: str = Field(alias="schema")
    name: str
    depends_on: List[TableRef] = []

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _drop_self_and_duplicates(self):
        me = (self.schema_name, self.name)
        unique: List[TableRef] = []
        for parent in self.depends_on:
            if parent.sort_key() == me or parent in unique:
                continue
            unique.append(parent)
        self.depends_on = unique
        return self

    @property
    def ref(self) -> TableRef:
        return TableRef(schema=self.schema_name, name=self.name)


class TableInfo(BaseModel):
    """Catalog listing entry for a base table."""

    schema_name: str = Field(alias="schema")
    name: str
    row_count: int = 0
    size_bytes: int = 0

    model_config = ConfigDict(populate_by_name=True)


class SequenceBinding(BaseModel):
    """A sequence feeding a column, as needed for resynchronisation."""

    sequence: str
    column: str
    table: str
