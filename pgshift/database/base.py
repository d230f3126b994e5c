"""Abstract database handle used by the catalog and the transfer loop."""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, List

import asyncpg

# Driver-level failures caught at statement sites and re-raised as typed errors
DATABASE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class DatabaseHandle(ABC):
    """Abstract handle to one database endpoint.

    Every method is a single round trip and a suspension point. Rows are
    returned as mappings addressable by column name (asyncpg Records).
    """

    @abstractmethod
    async def fetch(self, query: str, *args: Any) -> List[Any]:
        """Run a query and return all rows.

        Args:
            query: SQL text, parameters as $1..$n
            *args: Parameter values

        Returns:
            List of rows, empty if the query matched nothing.
        """

    @abstractmethod
    async def fetchval(self, query: str, *args: Any) -> Any:
        """Run a query and return the first column of the first row."""

    @abstractmethod
    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement and return its status tag."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connections.

        Should be idempotent (safe to call multiple times).
        """
