"""Migration job options, progress events and results."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class MigrationOptions(BaseModel):
    """Per-job switches controlling how each table is transferred."""

    create_table_if_not_exists: bool = True
    truncate_before_insert: bool = False
    disable_constraints: bool = True
    batch_size: int = Field(default=1000, gt=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "create_table_if_not_exists": True,
                "truncate_before_insert": False,
                "disable_constraints": True,
                "batch_size": 1000
            }
        }
    )


class ProgressStatus(str, Enum):
    """Status labels carried by progress events."""

    STARTING = "Starting"
    PREPARING = "Preparing"
    MIGRATING = "Migrating"
    COMPLETE = "Complete"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class MigrationProgress(BaseModel):
    """Point-in-time state of a running job. Emitted, never stored."""

    table_name: str
    current_table: int
    total_tables: int
    rows_transferred: int = 0
    total_rows: int = 0
    status: ProgressStatus
    error: Optional[str] = None


class MigrationResult(BaseModel):
    """Terminal summary of a migration job."""

    tables_migrated: int = 0
    total_rows: int = 0
    errors: List[str] = []
    elapsed_ms: int = 0

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self):
        """Convert to dictionary representation."""
        return self.model_dump(mode="json")


class TableComparison(BaseModel):
    """Outcome of comparing one source table against the target."""

    schema_name: str = Field(alias="schema")
    table: str
    status: str  # MATCH, MISSING_IN_TARGET, COLUMNS_MISMATCH, ERROR
    details: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
