"""Pooled connections and the registry that owns them."""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, List, Optional

import asyncpg

from pgshift.core.errors import ConnectionNotFoundError, DatabaseConnectionError
from pgshift.database.base import DATABASE_ERRORS, DatabaseHandle
from pgshift.models.connection import ConnectionConfig, ConnectionStatus

logger = logging.getLogger(__name__)

MAX_CONNECTIONS = 5
ACQUIRE_TIMEOUT = 10.0

PoolFactory = Callable[..., Awaitable[Any]]


class PooledConnection(DatabaseHandle):
    """DatabaseHandle backed by an asyncpg pool.

    Each call borrows a connection for one statement, waiting at most
    `acquire_timeout` seconds for a free one.
    """

    def __init__(self, pool, acquire_timeout: float = ACQUIRE_TIMEOUT):
        self.pool = pool
        self.acquire_timeout = acquire_timeout

    async def fetch(self, query: str, *args: Any) -> List[Any]:
        async with self.pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetch(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        async with self.pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.execute(query, *args)

    async def close(self) -> None:
        if self.pool is not None:
            try:
                await self.pool.close()
            finally:
                self.pool = None


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writing = False

    @asynccontextmanager
    async def read(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writing)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writing and self._readers == 0)
            self._writing = True
        try:
            yield
        finally:
            async with self._cond:
                self._writing = False
                self._cond.notify_all()


class ConnectionManager:
    """Registry of open pools keyed by an opaque connection id."""

    def __init__(
        self,
        pool_factory: Optional[PoolFactory] = None,
        max_connections: int = MAX_CONNECTIONS,
        acquire_timeout: float = ACQUIRE_TIMEOUT
    ):
        self._pool_factory = pool_factory or asyncpg.create_pool
        self._max_connections = max_connections
        self._acquire_timeout = acquire_timeout
        self._connections: Dict[str, DatabaseHandle] = {}
        self._lock = ReadWriteLock()

    async def _open(self, config: ConnectionConfig, max_size: int) -> PooledConnection:
        try:
            pool = await self._pool_factory(
                dsn=config.dsn(),
                min_size=1,
                max_size=max_size,
                timeout=self._acquire_timeout,
            )
        except DATABASE_ERRORS as e:
            raise DatabaseConnectionError(f"Failed to connect: {e}") from e

        handle = PooledConnection(pool, self._acquire_timeout)
        try:
            await handle.fetchval("SELECT 1")
        except DATABASE_ERRORS as e:
            await handle.close()
            raise DatabaseConnectionError(f"Connection test failed: {e}") from e
        return handle

    async def connect(self, config: ConnectionConfig) -> ConnectionStatus:
        """Open a pool for `config` and register it under a new id.

        Raises:
            DatabaseConnectionError: If the pool cannot be opened or probed
        """
        handle = await self._open(config, self._max_connections)
        connection_id = str(uuid.uuid4())

        async with self._lock.write():
            self._connections[connection_id] = handle

        logger.info("Connected to %s/%s as %s", config.host, config.database, connection_id)
        return ConnectionStatus(
            id=connection_id,
            connected=True,
            database=config.database,
            host=config.host,
        )

    async def disconnect(self, connection_id: str) -> None:
        """Close and forget a registered connection.

        Raises:
            ConnectionNotFoundError: If the id is unknown
        """
        async with self._lock.write():
            handle = self._connections.pop(connection_id, None)
        if handle is None:
            raise ConnectionNotFoundError(f"Connection {connection_id} not found")
        await handle.close()
        logger.info("Closed connection %s", connection_id)

    async def get_pool(self, connection_id: str) -> Optional[DatabaseHandle]:
        async with self._lock.read():
            return self._connections.get(connection_id)

    async def disconnect_all(self) -> None:
        async with self._lock.write():
            handles = list(self._connections.values())
            self._connections.clear()
        for handle in handles:
            try:
                await handle.close()
            except DATABASE_ERRORS as e:
                logger.warning("Error closing connection: %s", e)

    async def test_connection(self, config: ConnectionConfig) -> bool:
        """Open a single-connection pool, probe it and close it again."""
        handle = await self._open(config, 1)
        await handle.close()
        return True
