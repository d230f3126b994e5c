"""Connection settings and status models."""
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict


class ConnectionConfig(BaseModel):
    """Settings for one PostgreSQL endpoint."""

    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str = ""
    password: str = ""
    sslmode: str = "require"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "host": "db.internal",
                "port": 5432,
                "database": "shop",
                "username": "migrator",
                "password": "secret",
                "sslmode": "require"
            }
        }
    )

    def dsn(self) -> str:
        """Connection URL with URL-encoded credentials."""
        user = quote(self.username, safe="")
        password = quote(self.password, safe="")
        return (
            f"postgres://{user}:{password}@{self.host}:{self.port}/{self.database}"
            f"?sslmode={self.sslmode}"
        )


class ConnectionStatus(BaseModel):
    """Outcome of registering a connection."""

    id: str
    connected: bool
    database: str
    host: str
    error: Optional[str] = None
