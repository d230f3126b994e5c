"""Error taxonomy for migration jobs."""


class MigrationError(Exception):
    """Base class for errors raised while migrating tables."""


class ConnectionNotFoundError(MigrationError):
    """Raised when a connection id does not resolve to a live pool."""


class DatabaseConnectionError(MigrationError):
    """Raised when a pool cannot be opened or fails its probe query."""


class NoActiveMigrationError(MigrationError):
    """Raised when cancelling while no job is running."""


class CatalogError(MigrationError):
    """Raised when a catalog query fails."""


class TableNotFoundError(CatalogError):
    """Raised when a table has no columns in the catalog."""


class PreparationError(MigrationError):
    """Raised when the target cannot be prepared for a table."""


class TransferError(MigrationError):
    """Raised when fetching or inserting a batch fails."""


class MigrationCancelledError(MigrationError):
    """Raised when a cancellation request is observed mid-table."""


class SerializationError(MigrationError):
    """Raised when a value cannot be rendered as a literal for its column."""

    def __init__(self, column: str, data_type: str, detail: str = ""):
        message = f"Unsupported or unreadable data type '{data_type}' for column '{column}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.column = column
        self.data_type = data_type
