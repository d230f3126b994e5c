"""Configuration management."""
from pgshift.config.connection import (
    ConnectionConfigError,
    load_connection_config,
    validate_connection_config,
)

__all__ = [
    'ConnectionConfigError',
    'load_connection_config',
    'validate_connection_config',
]
