"""Connection configuration management."""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from pgshift.models.connection import ConnectionConfig

logger = logging.getLogger(__name__)

ENV_FIELDS = ['HOST', 'PORT', 'DATABASE', 'USERNAME', 'PASSWORD', 'SSLMODE']
REQUIRED_FIELDS = ['host', 'database', 'username']


class ConnectionConfigError(ValueError):
    """Raised when connection configuration loading fails."""


def load_connection_config(
    conn_file: Optional[str] = None,
    profile: str = 'source'
) -> ConnectionConfig:
    """Load connection configuration for one endpoint.

    Loads configuration with the following priority:
    1. Explicit --source-conn/--target-conn path (highest priority)
    2. ~/.pgshift/{profile}.yaml
    3. PGSHIFT_{PROFILE}_* environment variables
    4. Defaults (localhost, empty credentials)

    Args:
        conn_file: Optional explicit connection file path
        profile: Profile name (source, target, or any saved connection name)

    Returns:
        ConnectionConfig model

    Raises:
        ConnectionConfigError: If configuration file is invalid
    """
    # Try explicit file first
    if conn_file:
        config = _load_yaml_config(conn_file)
        logger.info("Loaded connection config from: %s", conn_file)
        return _to_model(config, conn_file)

    # Try default location
    default_path = Path.home() / '.pgshift' / f'{profile.lower()}.yaml'
    if default_path.exists():
        config = _load_yaml_config(str(default_path))
        logger.info("Loaded connection config from: %s", default_path)
        return _to_model(config, str(default_path))

    # Try environment variables
    env_config = _load_from_env(profile)
    if env_config:
        logger.info("Loaded connection config from environment variables")
        return _to_model(env_config, "environment")

    logger.warning("No connection config found for %s. Using defaults.", profile)
    return ConnectionConfig()


def _to_model(config: Dict[str, Any], origin: str) -> ConnectionConfig:
    # 'user' is accepted as a synonym, as in libpq connection strings
    if 'user' in config and 'username' not in config:
        config = dict(config)
        config['username'] = config.pop('user')
    try:
        return ConnectionConfig(**config)
    except (ValidationError, TypeError) as e:
        raise ConnectionConfigError(f"Invalid connection settings in {origin}:\n{e}") from e


def _load_yaml_config(file_path: str) -> Dict[str, Any]:
    """Load YAML configuration file.

    Args:
        file_path: Path to YAML config file

    Returns:
        Parsed configuration dictionary

    Raises:
        ConnectionConfigError: If file is invalid or missing
    """
    try:
        if not os.path.exists(file_path):
            raise ConnectionConfigError(f"Configuration file not found: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict):
            raise ConnectionConfigError(
                f"Configuration file must contain a YAML dictionary: {file_path}"
            )

        return config

    except yaml.YAMLError as e:
        raise ConnectionConfigError(
            f"Invalid YAML configuration: {file_path}\n{e}"
        ) from e
    except OSError as e:
        raise ConnectionConfigError(
            f"Error reading configuration file: {file_path}\n{e}"
        ) from e


def _load_from_env(profile: str) -> Optional[Dict[str, Any]]:
    """Load configuration from PGSHIFT_{PROFILE}_{FIELD} environment variables."""
    prefix = f"PGSHIFT_{profile.upper()}"
    config = {}

    for param in ENV_FIELDS:
        value = os.getenv(f"{prefix}_{param}")
        if value:
            config[param.lower()] = value

    return config if config else None


def validate_connection_config(config: ConnectionConfig, profile: str = 'source') -> bool:
    """Validate that required connection parameters are present.

    Raises:
        ConnectionConfigError: If required parameters are missing
    """
    missing_fields = [f for f in REQUIRED_FIELDS if not getattr(config, f)]

    if missing_fields:
        raise ConnectionConfigError(
            f"Missing required connection parameters for {profile}: "
            f"{', '.join(missing_fields)}. "
            f"Provide via --{profile}-conn or ~/.pgshift/{profile.lower()}.yaml"
        )

    return True
