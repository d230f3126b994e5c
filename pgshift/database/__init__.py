"""Database access: handles, connection registry and catalog queries."""
from pgshift.database.base import DATABASE_ERRORS, DatabaseHandle
from pgshift.database.connection import ConnectionManager, PooledConnection

__all__ = [
    'DATABASE_ERRORS',
    'ConnectionManager',
    'DatabaseHandle',
    'PooledConnection',
]
